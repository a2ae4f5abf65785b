"""
Milestone Catalog

Static certificate ladder plus catalog sources used by the service.
"""

from typing import List
import logging

from studyquest.db import queries
from studyquest.models.milestone import MilestoneDefinition

logger = logging.getLogger(__name__)


DEFAULT_CATALOG: List[MilestoneDefinition] = [
    MilestoneDefinition(
        id="points_50",
        name="50 Points Starter",
        description="Great start! You've earned your first 50 learning points.",
        icon="award",
        points_threshold=50,
    ),
    MilestoneDefinition(
        id="points_100",
        name="100 Points Achievement",
        description="Congratulations on earning your first 100 points!",
        icon="trophy",
        points_threshold=100,
    ),
    MilestoneDefinition(
        id="points_250",
        name="250 Points Milestone",
        description="Amazing progress - you've reached 250 points!",
        icon="star",
        points_threshold=250,
    ),
    MilestoneDefinition(
        id="points_500",
        name="500 Points Excellence",
        description="Outstanding achievement - 500 points earned!",
        icon="crown",
        points_threshold=500,
    ),
    MilestoneDefinition(
        id="points_1000",
        name="1000 Points Master",
        description="You are a true learning master with 1000 points!",
        icon="gem",
        points_threshold=1000,
    ),
    MilestoneDefinition(
        id="streak_7",
        name="Streak Champion",
        description="Maintain a 7-day learning streak",
        icon="flame",
        streak_threshold=7,
    ),
    MilestoneDefinition(
        id="streak_100",
        name="100 Days of Learning",
        description="Celebrate completing 100 days of continuous learning",
        icon="medal",
        streak_threshold=100,
    ),
]


class StaticRewardCatalog:
    """Catalog backed by an in-memory list"""

    def __init__(self, milestones: List[MilestoneDefinition] = None):
        self._milestones = list(milestones if milestones is not None else DEFAULT_CATALOG)

    async def list(self) -> List[MilestoneDefinition]:
        return list(self._milestones)


class PostgresRewardCatalog:
    """Catalog loaded from the milestones table"""

    async def list(self) -> List[MilestoneDefinition]:
        """Load milestone definitions, falling back to the default ladder"""
        rows = await queries.get_all_milestones()
        if not rows:
            logger.warning("No milestones configured in database, using default catalog")
            return list(DEFAULT_CATALOG)

        return [MilestoneDefinition(**row) for row in rows]
