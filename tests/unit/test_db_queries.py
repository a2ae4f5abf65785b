"""Unit tests for database queries (studyquest/db/queries/)"""
import pytest
from datetime import date, datetime, timezone
from unittest.mock import MagicMock, patch

from studyquest.db import queries
from studyquest.db.queries.gamification import insert_milestone_unlocks


# ============================================================================
# User Stats Query Tests
# ============================================================================

@pytest.mark.asyncio
async def test_get_user_stats_existing(mock_db_connection, mock_db_cursor):
    """Existing stats row is returned without inserting"""
    row = {'user_id': 'student-42', 'points': 30, 'streak': 1, 'best_streak': 2,
           'last_active_date': date(2024, 3, 10), 'updated_at': None}
    mock_db_cursor.fetchone.return_value = row

    with patch('studyquest.db.queries.gamification.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_db_connection

        result = await queries.get_user_stats('student-42')

    assert result == row
    mock_db_cursor.execute.assert_called_once()
    mock_db_connection.commit.assert_not_called()


@pytest.mark.asyncio
async def test_get_user_stats_creates_missing(mock_db_connection, mock_db_cursor):
    """Unknown user gets a zeroed stats row"""
    created = {'user_id': 'student-42', 'points': 0, 'streak': 0, 'best_streak': 0,
               'last_active_date': None, 'updated_at': None}
    mock_db_cursor.fetchone.side_effect = [None, created]

    with patch('studyquest.db.queries.gamification.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_db_connection

        result = await queries.get_user_stats('student-42')

    assert result['points'] == 0
    insert_sql = mock_db_cursor.execute.call_args_list[1][0][0]
    assert "INSERT INTO user_stats" in insert_sql
    mock_db_connection.commit.assert_called_once()


STATS_ROW = {
    'user_id': 'student-42', 'points': 90, 'streak': 1, 'best_streak': 1,
    'last_active_date': date(2024, 3, 10), 'updated_at': None,
}


def award_to_100(stats_row):
    return {
        'stats': {**stats_row, 'points': stats_row['points'] + 10, 'streak': 2, 'best_streak': 2,
                  'last_active_date': date(2024, 3, 11)},
        'points_awarded': 10,
        'reason': "Task completed",
        'task_id': 5,
        'milestone_ids': ['points_100'],
    }


@pytest.mark.asyncio
async def test_apply_award_locked(mock_db_connection, mock_db_cursor):
    """Stats row is locked, awarded and written back with history in one transaction"""
    mock_db_cursor.fetchone.side_effect = [STATS_ROW, {'id': 12}, {'milestone_id': 'points_100'}]

    with patch('studyquest.db.queries.gamification.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_db_connection

        entry = await queries.apply_award_locked('student-42', award_to_100)

    assert entry['stats']['points'] == 100
    mock_db_connection.transaction.assert_called_once()

    statements = [c[0][0] for c in mock_db_cursor.execute.call_args_list]
    assert len(statements) == 5
    assert "FOR UPDATE" in statements[1]
    assert "UPDATE user_stats" in statements[2]
    assert "INSERT INTO points_history" in statements[3]
    assert "ON CONFLICT (user_id, milestone_id) DO NOTHING" in statements[4]
    assert mock_db_cursor.execute.call_args_list[2][0][1] == (100, 2, 2, date(2024, 3, 11), 'student-42')
    assert mock_db_cursor.execute.call_args_list[3][0][1] == ('student-42', 10, "Task completed", 5)


@pytest.mark.asyncio
async def test_apply_award_locked_failure_writes_nothing(mock_db_connection, mock_db_cursor):
    mock_db_cursor.fetchone.return_value = STATS_ROW

    def explode(stats_row):
        raise RuntimeError("award failed")

    with patch('studyquest.db.queries.gamification.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_db_connection

        with pytest.raises(RuntimeError):
            await queries.apply_award_locked('student-42', explode)

    statements = [c[0][0] for c in mock_db_cursor.execute.call_args_list]
    assert len(statements) == 2
    assert "FOR UPDATE" in statements[1]


@pytest.mark.asyncio
async def test_save_user_stats_upserts(mock_db_connection, mock_db_cursor):
    with patch('studyquest.db.queries.gamification.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_db_connection

        await queries.save_user_stats('student-42', {
            'points': 20, 'streak': 1, 'best_streak': 3, 'last_active_date': None,
        })

    sql, params = mock_db_cursor.execute.call_args[0]
    assert "ON CONFLICT (user_id) DO UPDATE" in sql
    assert params == ('student-42', 20, 1, 3, None)
    mock_db_connection.commit.assert_called_once()


# ============================================================================
# Points History & Milestone Query Tests
# ============================================================================

@pytest.mark.asyncio
async def test_insert_milestone_unlocks_returns_first_unlocks(mock_db_cursor):
    """Conflicting inserts return no row and are left out"""
    mock_db_cursor.fetchone.side_effect = [{'milestone_id': 'points_50'}, None]

    recorded = await insert_milestone_unlocks(mock_db_cursor, 'student-42', ['points_50', 'streak_7'])

    assert recorded == ['points_50']
    assert mock_db_cursor.execute.call_count == 2


@pytest.mark.asyncio
async def test_get_points_history(mock_db_connection, mock_db_cursor):
    mock_db_cursor.fetchall.return_value = [{'id': 12, 'amount': 10}]

    with patch('studyquest.db.queries.gamification.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_db_connection

        history = await queries.get_points_history('student-42', limit=5)

    assert history == [{'id': 12, 'amount': 10}]
    assert mock_db_cursor.execute.call_args[0][1] == ('student-42', 5)


@pytest.mark.asyncio
async def test_get_all_milestones(mock_db_connection, mock_db_cursor):
    mock_db_cursor.fetchall.return_value = [
        {'id': 'points_50', 'name': '50 Points Starter', 'description': '', 'icon': 'award',
         'points_threshold': 50, 'streak_threshold': None},
    ]

    with patch('studyquest.db.queries.gamification.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_db_connection

        milestones = await queries.get_all_milestones()

    assert milestones[0]['id'] == 'points_50'
    assert "ORDER BY sort_order" in mock_db_cursor.execute.call_args[0][0]


# ============================================================================
# Task Query Tests
# ============================================================================

@pytest.mark.asyncio
async def test_complete_task_with_award_shares_transaction(mock_db_connection, mock_db_cursor):
    """Task transition and stats award run on one cursor in one transaction"""
    completed_at = datetime(2024, 3, 11, 9, 0, tzinfo=timezone.utc)
    task_row = {'id': 5, 'status': 'completed', 'completed_at': completed_at}
    mock_db_cursor.fetchone.side_effect = [task_row, STATS_ROW, {'id': 1}, None]
    seen = []

    def award(task, stats_row):
        seen.append((task['id'], stats_row['points']))
        return award_to_100(stats_row)

    with patch('studyquest.db.queries.tasks.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_db_connection

        row = await queries.complete_task_with_award(
            'student-42', 5, award, proof_files=['/uploads/a.png'], completed_at=completed_at
        )

    assert row['id'] == 5
    assert seen == [(5, 90)]
    mock_db.assert_called_once()
    mock_db_connection.transaction.assert_called_once()

    statements = [c[0][0] for c in mock_db_cursor.execute.call_args_list]
    assert "status IN ('pending', 'in_progress')" in statements[0]
    assert "FOR UPDATE" in statements[2]
    assert "UPDATE user_stats" in statements[3]
    assert "INSERT INTO points_history" in statements[4]
    assert mock_db_cursor.execute.call_args_list[0][0][1] == (
        ['/uploads/a.png'], None, None, completed_at, 5, 'student-42'
    )


@pytest.mark.asyncio
async def test_complete_task_with_award_already_completed(mock_db_connection, mock_db_cursor):
    mock_db_cursor.fetchone.return_value = None
    award = MagicMock()

    with patch('studyquest.db.queries.tasks.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_db_connection

        assert await queries.complete_task_with_award('student-42', 5, award) is None

    award.assert_not_called()
    assert mock_db_cursor.execute.call_count == 1


@pytest.mark.asyncio
async def test_complete_task_with_award_failure_propagates(mock_db_connection, mock_db_cursor):
    """A failing award raises out of the transaction so the status update rolls back"""
    mock_db_cursor.fetchone.side_effect = [{'id': 5, 'completed_at': None}, STATS_ROW]

    def explode(task, stats_row):
        raise RuntimeError("award failed")

    with patch('studyquest.db.queries.tasks.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_db_connection

        with pytest.raises(RuntimeError):
            await queries.complete_task_with_award('student-42', 5, explode)

    transaction_exit = mock_db_connection.transaction.return_value.__aexit__
    assert transaction_exit.call_args[0][0] is RuntimeError
    statements = [c[0][0] for c in mock_db_cursor.execute.call_args_list]
    assert not any("UPDATE user_stats" in sql for sql in statements)


@pytest.mark.asyncio
async def test_get_task_scoped_to_user(mock_db_connection, mock_db_cursor):
    with patch('studyquest.db.queries.tasks.db.connection') as mock_db:
        mock_db.return_value.__aenter__.return_value = mock_db_connection

        assert await queries.get_task('student-42', 5) is None

    assert mock_db_cursor.execute.call_args[0][1] == (5, 'student-42')
