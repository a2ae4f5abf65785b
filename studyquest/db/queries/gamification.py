"""Gamification database queries"""
import logging
from typing import Any, Callable
from studyquest.db.connection import db

logger = logging.getLogger(__name__)

STATS_COLUMNS = "user_id, points, streak, best_streak, last_active_date, updated_at"

# Called with the locked stats row. Returns the award entry:
# {'stats': dict, 'points_awarded': int, 'reason': str, 'task_id': int | None,
#  'milestone_ids': list[str]}
AwardRows = Callable[[dict], dict]


# ==========================================
# User Stats Functions
# ==========================================

async def get_user_stats(user_id: str) -> dict:
    """
    Get user stats (creates a zeroed record if it doesn't exist)

    Returns:
        {
            'user_id': str,
            'points': int,
            'streak': int,
            'best_streak': int,
            'last_active_date': date | None,
            'updated_at': datetime
        }
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"""
                SELECT {STATS_COLUMNS}
                FROM user_stats
                WHERE user_id = %s
                """,
                (user_id,)
            )
            row = await cur.fetchone()

            if not row:
                # Create new stats record with defaults
                await cur.execute(
                    f"""
                    INSERT INTO user_stats (user_id, points, streak, best_streak)
                    VALUES (%s, 0, 0, 0)
                    ON CONFLICT (user_id) DO UPDATE SET user_id = EXCLUDED.user_id
                    RETURNING {STATS_COLUMNS}
                    """,
                    (user_id,)
                )
                row = await cur.fetchone()
                await conn.commit()
                logger.info(f"Created new stats record for user {user_id}")

            return dict(row) if row else None


async def save_user_stats(user_id: str, stats_data: dict) -> None:
    """
    Update user stats

    Args:
        user_id: User ID
        stats_data: Dict with points, streak, best_streak, last_active_date
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                INSERT INTO user_stats (user_id, points, streak, best_streak, last_active_date)
                VALUES (%s, %s, %s, %s, %s)
                ON CONFLICT (user_id) DO UPDATE
                SET points = EXCLUDED.points,
                    streak = EXCLUDED.streak,
                    best_streak = EXCLUDED.best_streak,
                    last_active_date = EXCLUDED.last_active_date,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (
                    user_id,
                    stats_data['points'],
                    stats_data['streak'],
                    stats_data['best_streak'],
                    stats_data['last_active_date'],
                )
            )
            await conn.commit()


# ==========================================
# Award Functions (run on a caller's cursor, inside its transaction)
# ==========================================

async def lock_user_stats(cur: Any, user_id: str) -> dict:
    """Create the stats row if missing and lock it with SELECT ... FOR UPDATE"""
    await cur.execute(
        """
        INSERT INTO user_stats (user_id, points, streak, best_streak)
        VALUES (%s, 0, 0, 0)
        ON CONFLICT (user_id) DO NOTHING
        """,
        (user_id,)
    )
    await cur.execute(
        f"""
        SELECT {STATS_COLUMNS}
        FROM user_stats
        WHERE user_id = %s
        FOR UPDATE
        """,
        (user_id,)
    )
    row = await cur.fetchone()
    return dict(row)


async def write_user_stats(cur: Any, user_id: str, stats_data: dict) -> None:
    await cur.execute(
        """
        UPDATE user_stats
        SET points = %s,
            streak = %s,
            best_streak = %s,
            last_active_date = %s,
            updated_at = CURRENT_TIMESTAMP
        WHERE user_id = %s
        """,
        (
            stats_data['points'],
            stats_data['streak'],
            stats_data['best_streak'],
            stats_data['last_active_date'],
            user_id,
        )
    )


async def insert_points_history(cur: Any, user_id: str, amount: int, reason: str, task_id=None) -> int:
    await cur.execute(
        """
        INSERT INTO points_history (user_id, amount, reason, task_id)
        VALUES (%s, %s, %s, %s)
        RETURNING id
        """,
        (user_id, amount, reason, task_id)
    )
    row = await cur.fetchone()
    return row['id']


async def insert_milestone_unlocks(cur: Any, user_id: str, milestone_ids: list[str]) -> list[str]:
    """
    Record first unlock of milestones (already-recorded ones are ignored)

    Returns:
        IDs that were recorded for the first time
    """
    recorded = []
    for milestone_id in milestone_ids:
        await cur.execute(
            """
            INSERT INTO user_milestones (user_id, milestone_id)
            VALUES (%s, %s)
            ON CONFLICT (user_id, milestone_id) DO NOTHING
            RETURNING milestone_id
            """,
            (user_id, milestone_id)
        )
        row = await cur.fetchone()
        if row:
            recorded.append(row['milestone_id'])
    return recorded


async def apply_award_on_cursor(cur: Any, user_id: str, award: AwardRows) -> dict:
    """
    Lock stats, compute the award and write stats, history and unlocks

    If award raises, nothing has been written and the caller's
    transaction rolls back.

    Returns:
        The award entry
    """
    stats_row = await lock_user_stats(cur, user_id)
    entry = award(stats_row)

    await write_user_stats(cur, user_id, entry['stats'])
    await insert_points_history(cur, user_id, entry['points_awarded'], entry['reason'], entry.get('task_id'))
    recorded = await insert_milestone_unlocks(cur, user_id, entry['milestone_ids'])

    if recorded:
        logger.info(f"User {user_id} reached milestones: {', '.join(recorded)}")
    return entry


async def apply_award_locked(user_id: str, award: AwardRows) -> dict:
    """
    Apply an award to user stats in a single transaction

    The row lock serializes concurrent completions for the same user
    instead of letting them overwrite each other.
    """
    async with db.connection() as conn:
        async with conn.transaction():
            async with conn.cursor() as cur:
                return await apply_award_on_cursor(cur, user_id, award)


# ==========================================
# Points History Functions
# ==========================================

async def get_points_history(user_id: str, limit: int = 50) -> list[dict]:
    """
    Get recent points history for user

    Returns:
        List of entries ordered by created_at DESC
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT id, user_id, amount, reason, task_id, created_at
                FROM points_history
                WHERE user_id = %s
                ORDER BY created_at DESC
                LIMIT %s
                """,
                (user_id, limit)
            )
            rows = await cur.fetchall()
            return [dict(row) for row in rows]


# ==========================================
# Milestone Functions
# ==========================================

async def get_all_milestones() -> list[dict]:
    """
    Get all milestone definitions

    Returns:
        List of milestones ordered by sort_order
    """
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT id, name, description, icon, points_threshold, streak_threshold
                FROM milestones
                ORDER BY sort_order, id
                """
            )
            rows = await cur.fetchall()
            return [dict(row) for row in rows]
