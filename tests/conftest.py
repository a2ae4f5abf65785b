"""Global test fixtures and utilities for studyquest tests"""
import pytest
from unittest.mock import AsyncMock, MagicMock
from datetime import datetime, date, timezone

from studyquest.gamification.catalog import StaticRewardCatalog
from studyquest.gamification.points_system import PointsRules
from studyquest.models.milestone import MilestoneDefinition
from studyquest.models.task import TaskCompletionEvent
from studyquest.models.user_stats import UserStats
from studyquest.services.gamification_service import GamificationService
from studyquest.stores.memory import InMemoryTaskStore, InMemoryUserStatsStore


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def mock_db_cursor():
    """Mock database cursor with standard query results"""
    cursor = AsyncMock()
    cursor.fetchone = AsyncMock(return_value=None)
    cursor.fetchall = AsyncMock(return_value=[])
    cursor.execute = AsyncMock()
    return cursor


@pytest.fixture
def mock_db_connection(mock_db_cursor):
    """Mock database connection yielding mock_db_cursor"""
    conn = MagicMock()
    conn.cursor.return_value.__aenter__.return_value = mock_db_cursor
    conn.commit = AsyncMock()
    conn.rollback = AsyncMock()
    return conn


# ============================================================================
# User & Stats Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "student-42"


@pytest.fixture
def test_api_key():
    """Standard test API key"""
    return "test_api_key_12345"


@pytest.fixture
def fresh_stats(test_user_id):
    """Stats for a user who has never completed a task"""
    return UserStats(user_id=test_user_id)


@pytest.fixture
def active_stats(test_user_id):
    """Stats for a user mid-way through level 1 with a running streak"""
    return UserStats(
        user_id=test_user_id,
        points=95,
        streak=3,
        best_streak=5,
        last_active_date=date(2024, 3, 10),
    )


@pytest.fixture
def completion_event_factory(test_user_id):
    """Build TaskCompletionEvents with sensible defaults"""
    def _create(task_id=1, category=None, completed_at=None, user_id=None):
        return TaskCompletionEvent(
            user_id=user_id or test_user_id,
            task_id=task_id,
            category=category,
            completed_at=completed_at or datetime(2024, 3, 11, 15, 30, tzinfo=timezone.utc),
        )
    return _create


# ============================================================================
# Gamification Fixtures
# ============================================================================

@pytest.fixture
def base_rules():
    """Canonical base-only point rules"""
    return PointsRules()


@pytest.fixture
def bonus_rules():
    """Point rules with the category bonus switched on"""
    return PointsRules(category_bonus_enabled=True)


@pytest.fixture
def small_catalog():
    """A catalog with one points milestone and one streak milestone"""
    return [
        MilestoneDefinition(id="points_100", name="Century", points_threshold=100),
        MilestoneDefinition(id="streak_3", name="Three in a Row", streak_threshold=3),
    ]


@pytest.fixture
def stats_store():
    return InMemoryUserStatsStore()


@pytest.fixture
def task_store(stats_store):
    """Task store sharing the stats store's per-user locks"""
    return InMemoryTaskStore(stats_store)


@pytest.fixture
def gamification_service(stats_store, task_store, base_rules):
    """GamificationService on in-memory stores and the default catalog"""
    return GamificationService(
        stats_store,
        task_store,
        StaticRewardCatalog(),
        rules=base_rules,
    )
