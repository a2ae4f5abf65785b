"""
Gamification Engine

Pure composition of the point, level, streak and milestone rules:
(current stats, completion event) -> (new stats, result).
No I/O happens here; persistence belongs to the stores.
"""

from typing import Dict, List, Any, Tuple
import logging

from studyquest.gamification.points_system import (
    DEFAULT_RULES,
    PointsRules,
    award_points,
    calculate_level_progress,
)
from studyquest.gamification.streak_system import activity_date_for, update_streak
from studyquest.gamification.milestone_system import evaluate_milestones, newly_unlocked
from studyquest.exceptions import ValidationError
from studyquest.models.milestone import MilestoneDefinition
from studyquest.models.task import TaskCompletionEvent
from studyquest.models.user_stats import UserStats

logger = logging.getLogger(__name__)


def apply_task_completion(
    stats: UserStats,
    event: TaskCompletionEvent,
    catalog: List[MilestoneDefinition],
    rules: PointsRules = DEFAULT_RULES,
    timezone: str = "UTC"
) -> Tuple[UserStats, Dict[str, Any]]:
    """
    Apply a task completion to user stats

    Args:
        stats: Stats read from the store
        event: Completion event for the same user
        catalog: Milestone definitions
        rules: Point and level constants
        timezone: Zone used to pick the calendar day of the completion

    Returns:
        (new_stats, {
            'points_awarded': int,
            'old_points': int,
            'new_points': int,
            'old_level': int,
            'new_level': int,
            'leveled_up': bool,
            'progress': dict (see calculate_level_progress),
            'streak': dict (see update_streak),
            'milestones': list[UnlockedMilestone],
            'newly_unlocked': list[UnlockedMilestone]
        })
    """
    if event.user_id != stats.user_id:
        raise ValidationError(
            f"Event for user {event.user_id} applied to stats of user {stats.user_id}",
            field="user_id",
            value=event.user_id,
            operation="apply_task_completion"
        )

    old_progress = calculate_level_progress(stats.points, rules.level_width)
    milestones_before = evaluate_milestones(stats, catalog)

    points_awarded = award_points(event, rules)
    new_stats = stats.model_copy(update={"points": stats.points + points_awarded})

    activity_date = activity_date_for(event.completed_at, timezone)
    if stats.last_active_date is not None and activity_date < stats.last_active_date:
        # Late-reported completion: points count, streak history is not rewritten
        logger.info(
            f"Task {event.task_id} for user {stats.user_id} completed on {activity_date}, "
            f"before last active date {stats.last_active_date}; streak unchanged"
        )
        streak_result = {
            "old_streak": stats.streak,
            "current_streak": stats.streak,
            "best_streak": stats.best_streak,
            "streak_started": False,
            "streak_broken": False,
            "message": f"Streak unchanged. Day {stats.streak} 🔥",
        }
    else:
        new_stats, streak_result = update_streak(new_stats, activity_date)

    progress = calculate_level_progress(new_stats.points, rules.level_width)
    milestones_after = evaluate_milestones(new_stats, catalog)
    unlocked_now = newly_unlocked(milestones_before, milestones_after)

    leveled_up = progress["level"] > old_progress["level"]
    if leveled_up:
        logger.info(
            f"User {stats.user_id} leveled up from {old_progress['level']} to {progress['level']}!"
        )

    return new_stats, {
        "points_awarded": points_awarded,
        "old_points": stats.points,
        "new_points": new_stats.points,
        "old_level": old_progress["level"],
        "new_level": progress["level"],
        "leveled_up": leveled_up,
        "progress": progress,
        "streak": streak_result,
        "milestones": milestones_after,
        "newly_unlocked": unlocked_now,
    }
