"""
GamificationService - Gamification Business Logic

Connects task completion to the gamification engine and the stores:
points, levels, streaks, milestone certificates and points history.
"""

import logging
from typing import Dict, List, Any, Optional
from datetime import datetime, timedelta, timezone

from studyquest.exceptions import (
    RecordNotFoundError,
    TaskAlreadyCompletedError,
    ValidationError,
)
from studyquest.gamification import (
    PointsRules,
    apply_task_completion,
    calculate_level_progress,
    evaluate_milestones,
    localize_timestamp,
    milestone_progress,
)
from studyquest.gamification.streak_system import format_streak_display
from studyquest.models.milestone import MilestoneDefinition
from studyquest.models.task import TaskCompletionEvent
from studyquest.models.user_stats import PointsHistoryEntry, UserStats
from studyquest.stores.base import Award, AwardOutcome, RewardCatalog, TaskStore, UserStatsStore
from studyquest.utils.attachments import classify_attachment

logger = logging.getLogger(__name__)


class GamificationService:
    """
    Service for gamification features.

    Responsibilities:
    - Completing tasks exactly once, together with their award
    - Applying the engine atomically per user
    - Recording points history and first milestone unlocks
    - Read-only stats projections for display
    """

    def __init__(
        self,
        stats_store: UserStatsStore,
        task_store: TaskStore,
        catalog: RewardCatalog,
        rules: Optional[PointsRules] = None,
        timezone: str = "UTC",
        max_clock_skew: timedelta = timedelta(minutes=5)
    ):
        """
        Initialize GamificationService.

        Args:
            stats_store: User stats persistence
            task_store: Task persistence
            catalog: Milestone definitions source
            rules: Point and level constants (defaults to configuration)
            timezone: Zone used to count streak days and to read naive timestamps
            max_clock_skew: How far in the future a client completion time may be
        """
        self.stats_store = stats_store
        self.task_store = task_store
        self.catalog = catalog
        self.rules = rules or PointsRules.from_config()
        self.timezone = timezone
        self.max_clock_skew = max_clock_skew
        logger.debug("GamificationService initialized")

    async def complete_task(
        self,
        user_id: str,
        task_id: int,
        proof_files: Optional[List[str]] = None,
        proof_text: Optional[str] = None,
        proof_link: Optional[str] = None,
        completed_at: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Complete a task and award gamification progress.

        The task transition and the award are stored together, so a
        failure leaves the task completable.

        Raises:
            ValidationError: completed_at is in the future
            RecordNotFoundError: Task does not exist for this user
            TaskAlreadyCompletedError: Task was completed before
        """
        completed_at = self._completion_time(completed_at, user_id)
        award = self._award_for(await self.catalog.list())

        outcome = await self.task_store.complete_task(
            user_id,
            task_id,
            award,
            proof_files=proof_files,
            proof_text=proof_text,
            proof_link=proof_link,
            completed_at=completed_at,
        )

        if outcome is None:
            task = await self.task_store.get_task(user_id, task_id)
            if task is None:
                raise RecordNotFoundError(
                    f"Task {task_id} not found for user {user_id}",
                    record_type="Task",
                    record_id=str(task_id),
                    user_id=user_id,
                    operation="complete_task"
                )
            raise TaskAlreadyCompletedError(task_id, user_id=user_id, operation="complete_task")

        return self._completion_result(outcome)

    async def process_task_completion(self, event: TaskCompletionEvent) -> Dict[str, Any]:
        """
        Process gamification for a task completion event.

        Returns:
            {
                'user_id': str,
                'task_id': int,
                'points_awarded': int,
                'points': int,
                'level_up': bool,
                'old_level': int,
                'new_level': int,
                'progress': dict,
                'current_streak': int,
                'best_streak': int,
                'milestones_unlocked': list,
                'message': str
            }
        """
        event = event.model_copy(update={
            'completed_at': self._completion_time(event.completed_at, event.user_id)
        })
        award = self._award_for(await self.catalog.list())

        outcome = await self.stats_store.apply_award(event, award)
        return self._completion_result(outcome)

    def _completion_time(self, completed_at: Optional[datetime], user_id: str) -> datetime:
        """Localize a client timestamp and reject ones from the future"""
        now = datetime.now(timezone.utc)
        if completed_at is None:
            return now

        completed_at = localize_timestamp(completed_at, self.timezone)
        if completed_at > now + self.max_clock_skew:
            raise ValidationError(
                "Completion time cannot be in the future",
                field="completed_at",
                value=completed_at.isoformat(),
                user_id=user_id,
                operation="complete_task"
            )
        return completed_at

    def _award_for(self, catalog: List[MilestoneDefinition]) -> Award:
        def award(event: TaskCompletionEvent, stats: UserStats) -> AwardOutcome:
            new_stats, engine_result = apply_task_completion(
                stats, event, catalog, self.rules, self.timezone
            )
            return AwardOutcome(
                event=event,
                stats=new_stats,
                points_awarded=engine_result['points_awarded'],
                milestone_ids=[m.id for m in engine_result['newly_unlocked']],
                details=engine_result,
            )

        return award

    def _completion_result(self, outcome: AwardOutcome) -> Dict[str, Any]:
        event = outcome.event
        engine_result = outcome.details

        result = {
            'user_id': event.user_id,
            'task_id': event.task_id,
            'points_awarded': outcome.points_awarded,
            'points': outcome.stats.points,
            'level_up': engine_result['leveled_up'],
            'old_level': engine_result['old_level'],
            'new_level': engine_result['new_level'],
            'progress': engine_result['progress'],
            'current_streak': outcome.stats.streak,
            'best_streak': outcome.stats.best_streak,
            'milestones_unlocked': engine_result['newly_unlocked'],
            'message': self._build_completion_message(engine_result),
        }

        logger.info(
            f"Gamification processed for task completion: user={event.user_id}, "
            f"task={event.task_id}, points=+{result['points_awarded']} ({result['points']}), "
            f"level={result['new_level']}, streak={result['current_streak']}, "
            f"milestones={len(outcome.milestone_ids)}"
        )

        return result

    async def get_stats_summary(self, user_id: str) -> Dict[str, Any]:
        """
        Get user stats with level progress and milestones.

        Returns:
            {
                'user_id': str,
                'points': int,
                'level': int,
                'current_level_points': int,
                'points_to_next_level': int,
                'points_remaining': int,
                'progress_percent': float,
                'streak': int,
                'best_streak': int,
                'last_active_date': date | None,
                'streak_message': str,
                'milestones_unlocked': list,
                'milestones_locked': list
            }
        """
        stats = await self.stats_store.get(user_id)
        catalog = await self.catalog.list()
        progress = calculate_level_progress(stats.points, self.rules.level_width)

        return {
            'user_id': user_id,
            'points': stats.points,
            **progress,
            'streak': stats.streak,
            'best_streak': stats.best_streak,
            'last_active_date': stats.last_active_date,
            'streak_message': format_streak_display(stats),
            'milestones_unlocked': evaluate_milestones(stats, catalog),
            'milestones_locked': milestone_progress(stats, catalog),
        }

    async def get_task_proof(self, user_id: str, task_id: int) -> Dict[str, Any]:
        """
        Get a task's proof of completion with preview kinds.

        Returns:
            {
                'task_id': int,
                'status': str,
                'proof_files': [{'url': str, 'kind': AttachmentKind}],
                'proof_text': str,
                'proof_link': str
            }
        """
        task = await self.task_store.get_task(user_id, task_id)
        if task is None:
            raise RecordNotFoundError(
                f"Task {task_id} not found for user {user_id}",
                record_type="Task",
                record_id=str(task_id),
                user_id=user_id,
                operation="get_task_proof"
            )

        return {
            'task_id': task.id,
            'status': task.status.value,
            'proof_files': [
                {'url': url, 'kind': classify_attachment(url)}
                for url in task.proof_files
            ],
            'proof_text': task.proof_text or "",
            'proof_link': task.proof_link or "",
        }

    async def get_points_history(self, user_id: str, limit: int = 50) -> List[PointsHistoryEntry]:
        """Get recent points awards, newest first"""
        return await self.stats_store.get_points_history(user_id, limit=limit)

    def _build_completion_message(self, engine_result: Dict[str, Any]) -> str:
        """Build user-facing completion message"""
        parts = [f"⭐ +{engine_result['points_awarded']} points"]

        if engine_result['leveled_up']:
            parts.append(f"🎉 Level up! You reached level {engine_result['new_level']}")

        parts.append(engine_result['streak']['message'])

        for milestone in engine_result['newly_unlocked']:
            parts.append(f"🏆 Certificate unlocked: {milestone.name}")

        return "\n".join(parts)
