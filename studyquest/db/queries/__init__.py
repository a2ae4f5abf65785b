"""
Database queries - Re-export all functions.

All imports like 'from studyquest.db.queries import get_user_stats'
and 'from studyquest.db import queries' resolve here.

Module organization:
- gamification.py: User stats, awards, points history, milestones
- tasks.py: Task lookup and the completion transition
"""

# Gamification operations
from studyquest.db.queries.gamification import (
    get_user_stats,
    save_user_stats,
    apply_award_locked,
    get_points_history,
    get_all_milestones,
)

# Task operations
from studyquest.db.queries.tasks import (
    get_task,
    complete_task_with_award,
)

__all__ = [
    # Gamification (5 functions)
    "get_user_stats",
    "save_user_stats",
    "apply_award_locked",
    "get_points_history",
    "get_all_milestones",

    # Tasks (2 functions)
    "get_task",
    "complete_task_with_award",
]
