"""
Points and Leveling System

Awards points for completed tasks and projects a point total onto levels.

Leveling Curve:
- Every level is the same width (100 points by default)
- level = points // width + 1, so 0 points is level 1

Point Award Rules:
- Completed task: 10 points (base)
- Category bonus: +5 when the task has a category, only if enabled
"""

from dataclasses import dataclass
from typing import Dict, Any
import logging

from studyquest import config
from studyquest.exceptions import ValidationError
from studyquest.models.task import TaskCompletionEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PointsRules:
    """Tunable point and level constants"""
    base_points: int = 10
    category_bonus_enabled: bool = False
    category_bonus_points: int = 5
    level_width: int = 100

    @classmethod
    def from_config(cls) -> "PointsRules":
        """Build rules from environment configuration"""
        return cls(
            base_points=config.BASE_TASK_POINTS,
            category_bonus_enabled=config.CATEGORY_BONUS_ENABLED,
            category_bonus_points=config.CATEGORY_BONUS_POINTS,
            level_width=config.POINTS_PER_LEVEL,
        )


DEFAULT_RULES = PointsRules()


def award_points(event: TaskCompletionEvent, rules: PointsRules = DEFAULT_RULES) -> int:
    """
    Calculate points for a task completion

    Args:
        event: The completion event
        rules: Point constants (base award and optional category bonus)

    Returns:
        Points delta to add to the user's total (always positive)
    """
    if rules.base_points <= 0:
        raise ValidationError(
            "Base task points must be positive",
            field="base_points",
            value=rules.base_points,
            user_id=event.user_id,
            operation="award_points"
        )

    amount = rules.base_points

    # Bonuses
    if rules.category_bonus_enabled and event.category and event.category.strip():
        amount += rules.category_bonus_points

    logger.debug(f"Task {event.task_id} for user {event.user_id} is worth {amount} points")
    return amount


def calculate_level_progress(points: int, level_width: int = 100) -> Dict[str, Any]:
    """
    Calculate level and progress from total points

    Returns:
        {
            'level': int,
            'current_level_points': int,
            'points_to_next_level': int (width of a level),
            'points_remaining': int (points still needed for next level),
            'progress_percent': float (0-100)
        }
    """
    if points < 0:
        raise ValidationError(
            "Points cannot be negative",
            field="points",
            value=points,
            operation="calculate_level_progress"
        )
    if level_width <= 0:
        raise ValidationError(
            "Level width must be positive",
            field="level_width",
            value=level_width,
            operation="calculate_level_progress"
        )

    current_level_points = points % level_width
    progress_percent = min(100.0, current_level_points / level_width * 100)

    return {
        "level": points // level_width + 1,
        "current_level_points": current_level_points,
        "points_to_next_level": level_width,
        "points_remaining": level_width - current_level_points,
        "progress_percent": progress_percent,
    }


def level_for_points(points: int, level_width: int = 100) -> int:
    """Level for a point total"""
    return calculate_level_progress(points, level_width)["level"]
