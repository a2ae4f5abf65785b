"""
Gamification system for StudyQuest

Turns task completions into progress:
- Points and levels
- Daily activity streaks
- Milestone certificates

Every rule here is a pure function of user stats; stores handle persistence.
"""

from studyquest.gamification.points_system import (
    PointsRules,
    award_points,
    calculate_level_progress,
    level_for_points,
)
from studyquest.gamification.streak_system import update_streak, activity_date_for, localize_timestamp
from studyquest.gamification.milestone_system import (
    evaluate_milestones,
    newly_unlocked,
    milestone_progress,
)
from studyquest.gamification.engine import apply_task_completion

__all__ = [
    "PointsRules",
    "award_points",
    "calculate_level_progress",
    "level_for_points",
    "update_streak",
    "activity_date_for",
    "localize_timestamp",
    "evaluate_milestones",
    "newly_unlocked",
    "milestone_progress",
    "apply_task_completion",
]
