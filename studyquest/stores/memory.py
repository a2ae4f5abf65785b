"""
In-memory stores

Used by the test suite and by STORAGE_BACKEND=memory for local development.
Nothing here is persisted across restarts.
"""

import asyncio
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Optional

from studyquest.models.task import COMPLETABLE_STATUSES, Task, TaskCompletionEvent, TaskStatus
from studyquest.models.user_stats import PointsHistoryEntry, UserStats
from studyquest.stores.base import Award, AwardOutcome

logger = logging.getLogger(__name__)


class InMemoryUserStatsStore:
    """Stats store backed by dicts, serialized per user with asyncio locks"""

    def __init__(self):
        self._stats: Dict[str, UserStats] = {}
        self._history: Dict[str, List[PointsHistoryEntry]] = defaultdict(list)
        self._milestones: Dict[str, Dict[str, datetime]] = defaultdict(dict)
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def lock_for(self, user_id: str) -> asyncio.Lock:
        return self._locks[user_id]

    def _get(self, user_id: str) -> UserStats:
        stats = self._stats.get(user_id)
        if stats is None:
            stats = UserStats(user_id=user_id)
            self._stats[user_id] = stats
            logger.debug(f"Created stats for user {user_id} in memory store")
        return stats

    def _save(self, user_id: str, stats: UserStats) -> None:
        self._stats[user_id] = stats.model_copy(update={"updated_at": datetime.now(timezone.utc)})

    async def get(self, user_id: str) -> UserStats:
        return self._get(user_id)

    async def save(self, user_id: str, stats: UserStats) -> None:
        self._save(user_id, stats)

    async def apply_award(self, event: TaskCompletionEvent, award: Award) -> AwardOutcome:
        async with self.lock_for(event.user_id):
            return self.apply_award_locked(event, award)

    def apply_award_locked(self, event: TaskCompletionEvent, award: Award) -> AwardOutcome:
        """Apply an award; the caller holds lock_for(event.user_id)"""
        outcome = award(event, self._get(event.user_id))

        now = datetime.now(timezone.utc)
        self._save(event.user_id, outcome.stats)
        self._history[event.user_id].append(PointsHistoryEntry(
            user_id=event.user_id,
            amount=outcome.points_awarded,
            reason=outcome.reason,
            task_id=event.task_id,
            created_at=now,
        ))
        for milestone_id in outcome.milestone_ids:
            self._milestones[event.user_id].setdefault(milestone_id, now)

        return outcome

    def milestone_unlocks(self, user_id: str) -> Dict[str, datetime]:
        """First unlock time per milestone ID"""
        return dict(self._milestones[user_id])

    async def get_points_history(self, user_id: str, limit: int = 50) -> List[PointsHistoryEntry]:
        return list(reversed(self._history[user_id]))[:limit]


class InMemoryTaskStore:
    """Task store backed by a dict, sharing the stats store's per-user locks"""

    def __init__(self, stats_store: InMemoryUserStatsStore):
        self.stats_store = stats_store
        self._tasks: Dict[int, Task] = {}
        self._next_id = 1

    async def create_task(
        self,
        user_id: str,
        title: str,
        category: Optional[str] = None,
        subject: Optional[str] = None,
        status: TaskStatus = TaskStatus.PENDING
    ) -> Task:
        task = Task(
            id=self._next_id,
            user_id=user_id,
            title=title,
            category=category,
            subject=subject,
            status=status,
            created_at=datetime.now(timezone.utc),
        )
        self._tasks[task.id] = task
        self._next_id += 1
        return task

    async def get_task(self, user_id: str, task_id: int) -> Optional[Task]:
        task = self._tasks.get(task_id)
        if task is None or task.user_id != user_id:
            return None
        return task

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
        async with self.stats_store.lock_for(user_id):
            task = await self.get_task(user_id, task_id)
            if task is None or task.status not in COMPLETABLE_STATUSES:
                return None

            completed_at = completed_at or datetime.now(timezone.utc)
            event = TaskCompletionEvent(
                user_id=user_id,
                task_id=task_id,
                category=task.category or task.subject,
                completed_at=completed_at,
            )

            # Task is only marked completed once the award went through
            outcome = self.stats_store.apply_award_locked(event, award)

            self._tasks[task_id] = task.model_copy(update={
                "status": TaskStatus.COMPLETED,
                "proof_files": proof_files if proof_files is not None else task.proof_files,
                "proof_text": proof_text if proof_text is not None else task.proof_text,
                "proof_link": proof_link if proof_link is not None else task.proof_link,
                "completed_at": completed_at,
            })

        return outcome
