"""Task database queries"""
import logging
from datetime import datetime
from typing import Callable, Optional
from studyquest.db.connection import db
from studyquest.db.queries.gamification import apply_award_on_cursor

logger = logging.getLogger(__name__)

TASK_COLUMNS = """id, user_id, title, description, subject, category, status, due_date,
                  assigned_by_coach_id, proof_files, proof_text, proof_link,
                  completed_at, created_at"""


async def get_task(user_id: str, task_id: int) -> Optional[dict]:
    """
    Get a task owned by user

    Returns:
        Task row or None
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"""
                SELECT {TASK_COLUMNS}
                FROM tasks
                WHERE id = %s AND user_id = %s
                """,
                (task_id, user_id)
            )
            row = await cur.fetchone()
            return dict(row) if row else None


async def complete_task_with_award(
    user_id: str,
    task_id: int,
    award: Callable[[dict, dict], dict],
    proof_files: Optional[list[str]] = None,
    proof_text: Optional[str] = None,
    proof_link: Optional[str] = None,
    completed_at: Optional[datetime] = None
) -> Optional[dict]:
    """
    Transition a pending or in-progress task to completed and award it

    The status update, the stats write, the points history entry and the
    milestone unlocks share one transaction. The status condition makes the
    transition happen at most once; if award raises, everything rolls back
    and the task stays completable.

    Args:
        award: Called with (task_row, locked_stats_row), returns the award entry

    Returns:
        Updated task row, or None if no transition happened
    """
    async with db.connection() as conn:
        async with conn.transaction():
            async with conn.cursor() as cur:
                await cur.execute(
                    f"""
                    UPDATE tasks
                    SET status = 'completed',
                        proof_files = COALESCE(%s::text[], proof_files),
                        proof_text = COALESCE(%s::text, proof_text),
                        proof_link = COALESCE(%s::text, proof_link),
                        completed_at = COALESCE(%s::timestamptz, CURRENT_TIMESTAMP)
                    WHERE id = %s AND user_id = %s
                      AND status IN ('pending', 'in_progress')
                    RETURNING {TASK_COLUMNS}
                    """,
                    (proof_files, proof_text, proof_link, completed_at, task_id, user_id)
                )
                row = await cur.fetchone()
                if not row:
                    return None

                task_row = dict(row)
                await apply_award_on_cursor(cur, user_id, lambda stats_row: award(task_row, stats_row))
                return task_row
