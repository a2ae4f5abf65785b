"""
Milestone System

Evaluates which milestone certificates a user currently qualifies for.

- Points milestones unlock when points >= threshold
- Streak milestones unlock when the current streak >= threshold
- Evaluation is recomputed from stats every time; there is no claimed flag
- Locked milestones report progress toward their threshold
"""

from typing import Dict, List, Any
import logging

from studyquest.models.milestone import MilestoneDefinition, MilestoneKind, UnlockedMilestone
from studyquest.models.user_stats import UserStats

logger = logging.getLogger(__name__)


def _stat_for(stats: UserStats, milestone: MilestoneDefinition) -> int:
    if milestone.kind == MilestoneKind.POINTS:
        return stats.points
    return stats.streak


def is_unlocked(stats: UserStats, milestone: MilestoneDefinition) -> bool:
    """Whether the stat a milestone measures has reached its threshold"""
    return _stat_for(stats, milestone) >= milestone.threshold


def evaluate_milestones(
    stats: UserStats,
    catalog: List[MilestoneDefinition]
) -> List[UnlockedMilestone]:
    """
    Get every milestone the user currently qualifies for

    Args:
        stats: Current user stats
        catalog: Milestone definitions

    Returns:
        Unlocked milestones in catalog order (the full set, not a delta)
    """
    return [
        UnlockedMilestone(
            id=milestone.id,
            name=milestone.name,
            description=milestone.description,
            icon=milestone.icon,
            kind=milestone.kind,
            threshold=milestone.threshold,
        )
        for milestone in catalog
        if is_unlocked(stats, milestone)
    ]


def newly_unlocked(
    before: List[UnlockedMilestone],
    after: List[UnlockedMilestone]
) -> List[UnlockedMilestone]:
    """Milestones present in `after` but not in `before`"""
    before_ids = {m.id for m in before}
    return [m for m in after if m.id not in before_ids]


def milestone_progress(
    stats: UserStats,
    catalog: List[MilestoneDefinition]
) -> List[Dict[str, Any]]:
    """
    Get locked milestones with progress

    Returns:
        [
            {
                'milestone': MilestoneDefinition,
                'current': int,
                'target': int,
                'percentage': float
            }
        ]
        sorted by progress (closest to completion first)
    """
    locked = []
    for milestone in catalog:
        if is_unlocked(stats, milestone):
            continue

        current = _stat_for(stats, milestone)
        target = milestone.threshold
        locked.append({
            'milestone': milestone,
            'current': current,
            'target': target,
            'percentage': min(100.0, current / target * 100),
        })

    locked.sort(key=lambda x: x['percentage'], reverse=True)
    return locked
