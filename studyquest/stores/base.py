"""
Store interfaces used by the gamification service

Stats and tasks are owned by the stores; the engine never touches storage.
An award is computed by a callback while the store holds the user's stats
locked, so the task transition, the stats write, the points history entry
and first milestone unlocks land together or not at all.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Protocol

from studyquest.models.milestone import MilestoneDefinition
from studyquest.models.task import Task, TaskCompletionEvent
from studyquest.models.user_stats import PointsHistoryEntry, UserStats


@dataclass
class AwardOutcome:
    """Everything a store writes for one completion"""
    event: TaskCompletionEvent
    stats: UserStats
    points_awarded: int
    milestone_ids: List[str] = field(default_factory=list)
    reason: str = "Task completed"
    details: Dict[str, Any] = field(default_factory=dict)


# (event, current stats) -> outcome; raising leaves storage untouched
Award = Callable[[TaskCompletionEvent, UserStats], AwardOutcome]


class UserStatsStore(Protocol):
    """Per-user stats persistence"""

    async def get(self, user_id: str) -> UserStats:
        """Get stats, creating a zeroed record for unknown users"""
        ...

    async def save(self, user_id: str, stats: UserStats) -> None:
        ...

    async def apply_award(self, event: TaskCompletionEvent, award: Award) -> AwardOutcome:
        """
        Read, award and write stats as one unit

        Concurrent calls for the same user must not lose updates.
        """
        ...

    async def get_points_history(self, user_id: str, limit: int = 50) -> List[PointsHistoryEntry]:
        ...


class TaskStore(Protocol):
    """Task persistence and the completion transition"""

    async def get_task(self, user_id: str, task_id: int) -> Optional[Task]:
        ...

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
        """
        Move a pending/in-progress task to completed and apply its award

        Returns None when the task is missing or already completed, so
        points are never awarded twice. If the award raises, the task is
        left completable.
        """
        ...


class RewardCatalog(Protocol):
    """Source of milestone definitions"""

    async def list(self) -> List[MilestoneDefinition]:
        ...
