"""
Daily Activity Streak System

Counts consecutive calendar days with at least one completed task.

Rules:
- First activity ever: streak starts at 1
- Same calendar day as last activity: no change
- Next calendar day: streak + 1
- Gap of more than one day: streak resets to 1
- Earlier than last activity: rejected (OutOfOrderActivityError)

Calendar days are taken in a single zone (STREAK_TIMEZONE, UTC by default).
"""

from typing import Dict, Any, Tuple
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging

from studyquest.exceptions import OutOfOrderActivityError, ValidationError
from studyquest.models.user_stats import UserStats

logger = logging.getLogger(__name__)


def _zone(tz_name: str) -> ZoneInfo:
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValidationError(
            f"Unknown timezone '{tz_name}'",
            field="timezone",
            value=tz_name,
            cause=e
        )


def localize_timestamp(moment: datetime, tz_name: str = "UTC") -> datetime:
    """Attach the streak timezone to a naive timestamp; aware ones pass through"""
    tz = _zone(tz_name)
    if moment.tzinfo is None:
        return moment.replace(tzinfo=tz)
    return moment


def activity_date_for(completed_at: datetime, tz_name: str = "UTC") -> date:
    """
    Calendar day of a completion timestamp in the streak timezone

    Naive timestamps are read as wall-clock time in that timezone.
    """
    return localize_timestamp(completed_at, tz_name).astimezone(_zone(tz_name)).date()


def update_streak(stats: UserStats, activity_date: date) -> Tuple[UserStats, Dict[str, Any]]:
    """
    Apply an activity day to the user's streak

    Args:
        stats: Current user stats (not mutated)
        activity_date: Calendar day of the activity

    Returns:
        (new_stats, {
            'old_streak': int,
            'current_streak': int,
            'best_streak': int,
            'streak_started': bool,
            'streak_broken': bool,
            'message': str
        })
    """
    if isinstance(activity_date, datetime):
        activity_date = activity_date.date()

    last_date = stats.last_active_date
    old_streak = stats.streak
    new_streak = old_streak
    streak_started = False
    streak_broken = False

    # If this is the first activity
    if last_date is None:
        new_streak = 1
        streak_started = True
        message = "Streak started! Day 1 🎉"

    # If activity is on the same day
    elif activity_date == last_date:
        # Already counted for today, no change
        message = f"Streak continues! Day {old_streak} 🔥"

    elif activity_date < last_date:
        raise OutOfOrderActivityError(
            activity_date,
            last_date,
            user_id=stats.user_id,
            operation="update_streak"
        )

    # If activity is the next day (continuing streak)
    elif activity_date == last_date + timedelta(days=1):
        new_streak = old_streak + 1
        message = f"Streak continues! Day {new_streak} 🔥"

    # If there's a gap
    else:
        gap_days = (activity_date - last_date).days
        new_streak = 1
        streak_broken = True
        message = f"Streak reset. Previous: {old_streak} days. Starting fresh! Day 1 💪"
        logger.info(
            f"User {stats.user_id} streak broken. "
            f"Was {old_streak}, gap was {gap_days} days"
        )

    new_stats = stats.model_copy(update={
        "streak": new_streak,
        "best_streak": max(stats.best_streak, new_streak),
        "last_active_date": activity_date,
    })

    return new_stats, {
        "old_streak": old_streak,
        "current_streak": new_streak,
        "best_streak": new_stats.best_streak,
        "streak_started": streak_started,
        "streak_broken": streak_broken,
        "message": message,
    }


def format_streak_display(stats: UserStats) -> str:
    """Short one-line streak summary"""
    if stats.streak == 0:
        return "No active streak yet. Complete a task to start one! 💪"

    line = f"🔥 {stats.streak} day streak"
    if stats.best_streak > stats.streak:
        line += f" (best: {stats.best_streak})"
    return line
