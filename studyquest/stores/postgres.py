"""PostgreSQL-backed stores"""

import logging
from datetime import datetime
from typing import List, Optional

import psycopg

from studyquest.db import queries
from studyquest.exceptions import wrap_external_exception
from studyquest.models.task import Task, TaskCompletionEvent
from studyquest.models.user_stats import PointsHistoryEntry, UserStats
from studyquest.stores.base import Award, AwardOutcome

logger = logging.getLogger(__name__)


def _stats_row(stats: UserStats) -> dict:
    return stats.model_dump(include={"points", "streak", "best_streak", "last_active_date"})


def _award_entry(outcome: AwardOutcome) -> dict:
    return {
        "stats": _stats_row(outcome.stats),
        "points_awarded": outcome.points_awarded,
        "reason": outcome.reason,
        "task_id": outcome.event.task_id,
        "milestone_ids": list(outcome.milestone_ids),
    }


class PostgresUserStatsStore:
    """Stats store on the user_stats, points_history and user_milestones tables"""

    async def get(self, user_id: str) -> UserStats:
        try:
            row = await queries.get_user_stats(user_id)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="get_user_stats", user_id=user_id)
        return UserStats(**row)

    async def save(self, user_id: str, stats: UserStats) -> None:
        try:
            await queries.save_user_stats(user_id, _stats_row(stats))
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="save_user_stats", user_id=user_id)

    async def apply_award(self, event: TaskCompletionEvent, award: Award) -> AwardOutcome:
        captured = {}

        def award_rows(stats_row: dict) -> dict:
            captured["outcome"] = award(event, UserStats(**stats_row))
            return _award_entry(captured["outcome"])

        try:
            await queries.apply_award_locked(event.user_id, award_rows)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="apply_award", user_id=event.user_id)

        return captured["outcome"]

    async def get_points_history(self, user_id: str, limit: int = 50) -> List[PointsHistoryEntry]:
        try:
            rows = await queries.get_points_history(user_id, limit=limit)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="get_points_history", user_id=user_id)
        return [PointsHistoryEntry(**row) for row in rows]


class PostgresTaskStore:
    """Task store on the tasks table; completions also write the stats tables"""

    async def get_task(self, user_id: str, task_id: int) -> Optional[Task]:
        try:
            row = await queries.get_task(user_id, task_id)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="get_task", user_id=user_id)
        return Task(**row) if row else None

    async def complete_task(
        self,
        user_id: str,
        task_id: int,
        award: Award,
        proof_files: Optional[List[str]] = None,
        proof_text: Optional[str] = None,
        proof_link: Optional[str] = None,
        completed_at: Optional[datetime] = None
    ) -> Optional[AwardOutcome]:
        captured = {}

        def award_rows(task_row: dict, stats_row: dict) -> dict:
            event = TaskCompletionEvent(
                user_id=user_id,
                task_id=task_row["id"],
                category=task_row.get("category") or task_row.get("subject"),
                completed_at=task_row["completed_at"],
            )
            captured["outcome"] = award(event, UserStats(**stats_row))
            return _award_entry(captured["outcome"])

        try:
            row = await queries.complete_task_with_award(
                user_id,
                task_id,
                award_rows,
                proof_files=proof_files,
                proof_text=proof_text,
                proof_link=proof_link,
                completed_at=completed_at,
            )
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="complete_task", user_id=user_id)

        if row is None:
            return None
        return captured["outcome"]
