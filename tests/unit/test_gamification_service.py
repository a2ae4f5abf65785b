"""Unit tests for GamificationService"""

import asyncio
import pytest
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from studyquest.exceptions import RecordNotFoundError, TaskAlreadyCompletedError, ValidationError
from studyquest.gamification.catalog import StaticRewardCatalog
from studyquest.models.task import TaskStatus
from studyquest.models.user_stats import UserStats
from studyquest.services.gamification_service import GamificationService
from studyquest.stores.memory import InMemoryUserStatsStore
from studyquest.utils.attachments import AttachmentKind


class YieldingStatsStore(InMemoryUserStatsStore):
    """Memory store that yields to the event loop before every award"""

    async def apply_award(self, event, award):
        await asyncio.sleep(0)
        return await super().apply_award(event, award)


# ============================================================================
# Task Completion Tests
# ============================================================================

@pytest.mark.asyncio
async def test_complete_task_awards_points(gamification_service, task_store, test_user_id):
    """Completing a task from zero gives 10 points, level 1, streak 1"""
    task = await task_store.create_task(test_user_id, "Read chapter 3")

    result = await gamification_service.complete_task(
        test_user_id,
        task.id,
        completed_at=datetime(2024, 3, 11, 15, 30, tzinfo=timezone.utc),
    )

    assert result['points_awarded'] == 10
    assert result['points'] == 10
    assert result['new_level'] == 1
    assert result['level_up'] is False
    assert result['progress']['progress_percent'] == pytest.approx(10.0)
    assert result['current_streak'] == 1
    assert "+10 points" in result['message']


@pytest.mark.asyncio
async def test_complete_task_twice_rejected(gamification_service, task_store, stats_store, test_user_id):
    """Second completion of the same task does not award points"""
    task = await task_store.create_task(test_user_id, "Essay draft")
    await gamification_service.complete_task(test_user_id, task.id)

    with pytest.raises(TaskAlreadyCompletedError):
        await gamification_service.complete_task(test_user_id, task.id)

    stats = await stats_store.get(test_user_id)
    assert stats.points == 10


@pytest.mark.asyncio
async def test_complete_missing_task(gamification_service, test_user_id):
    with pytest.raises(RecordNotFoundError):
        await gamification_service.complete_task(test_user_id, 999)


@pytest.mark.asyncio
async def test_complete_task_of_other_user(gamification_service, task_store, test_user_id):
    task = await task_store.create_task("another-student", "Lab report")

    with pytest.raises(RecordNotFoundError):
        await gamification_service.complete_task(test_user_id, task.id)


@pytest.mark.asyncio
async def test_complete_task_records_history(gamification_service, task_store, test_user_id):
    first = await task_store.create_task(test_user_id, "Task A")
    second = await task_store.create_task(test_user_id, "Task B")

    await gamification_service.complete_task(test_user_id, first.id)
    await gamification_service.complete_task(test_user_id, second.id)

    history = await gamification_service.get_points_history(test_user_id)
    assert [entry.task_id for entry in history] == [second.id, first.id]
    assert all(entry.amount == 10 for entry in history)


@pytest.mark.asyncio
async def test_complete_task_uses_subject_as_category(stats_store, task_store, bonus_rules, test_user_id):
    service = GamificationService(stats_store, task_store, StaticRewardCatalog(), rules=bonus_rules)
    task = await task_store.create_task(test_user_id, "Fractions", subject="math")

    result = await service.complete_task(test_user_id, task.id)

    assert result['points_awarded'] == 15


# ============================================================================
# Failed Completion & Timestamp Tests
# ============================================================================

@pytest.mark.asyncio
async def test_failed_award_leaves_task_completable(stats_store, task_store, base_rules, test_user_id):
    """If the engine raises, the task stays pending and can be completed later"""
    task = await task_store.create_task(test_user_id, "Map of Europe")
    broken = GamificationService(
        stats_store, task_store, StaticRewardCatalog(), rules=base_rules, timezone="Not/AZone"
    )

    with pytest.raises(ValidationError):
        await broken.complete_task(test_user_id, task.id)

    assert (await task_store.get_task(test_user_id, task.id)).status == TaskStatus.PENDING
    assert (await stats_store.get(test_user_id)).points == 0
    assert await stats_store.get_points_history(test_user_id) == []

    service = GamificationService(stats_store, task_store, StaticRewardCatalog(), rules=base_rules)
    result = await service.complete_task(test_user_id, task.id)

    assert result['points'] == 10
    assert (await task_store.get_task(test_user_id, task.id)).status == TaskStatus.COMPLETED


@pytest.mark.asyncio
async def test_future_completion_time_rejected(gamification_service, task_store, stats_store, test_user_id):
    task = await task_store.create_task(test_user_id, "Vocabulary list")

    with pytest.raises(ValidationError) as exc_info:
        await gamification_service.complete_task(
            test_user_id, task.id, completed_at=datetime(2099, 1, 1, tzinfo=timezone.utc)
        )

    assert exc_info.value.field == "completed_at"
    assert (await task_store.get_task(test_user_id, task.id)).status == TaskStatus.PENDING
    assert (await stats_store.get(test_user_id)).last_active_date is None


@pytest.mark.asyncio
async def test_completion_time_within_clock_skew_accepted(gamification_service, task_store, test_user_id):
    task = await task_store.create_task(test_user_id, "Spelling test")
    slightly_ahead = datetime.now(timezone.utc) + timedelta(minutes=1)

    result = await gamification_service.complete_task(test_user_id, task.id, completed_at=slightly_ahead)

    assert result['points_awarded'] == 10


@pytest.mark.asyncio
async def test_process_completion_rejects_future_event(
    gamification_service, stats_store, completion_event_factory, test_user_id
):
    with pytest.raises(ValidationError):
        await gamification_service.process_task_completion(
            completion_event_factory(completed_at=datetime(2099, 1, 1, tzinfo=timezone.utc))
        )

    assert (await stats_store.get(test_user_id)).points == 0


@pytest.mark.asyncio
async def test_naive_completion_time_read_in_streak_timezone(stats_store, task_store, base_rules, test_user_id):
    """23:30 wall-clock in New York is stored as New York time, not UTC"""
    service = GamificationService(
        stats_store, task_store, StaticRewardCatalog(), rules=base_rules, timezone="America/New_York"
    )
    task = await task_store.create_task(test_user_id, "Book report")

    await service.complete_task(test_user_id, task.id, completed_at=datetime(2024, 3, 11, 23, 30))

    stored = await task_store.get_task(test_user_id, task.id)
    assert stored.completed_at.tzinfo == ZoneInfo("America/New_York")
    assert stored.completed_at.astimezone(timezone.utc) == datetime(2024, 3, 12, 3, 30, tzinfo=timezone.utc)
    assert (await stats_store.get(test_user_id)).last_active_date == date(2024, 3, 11)


# ============================================================================
# Milestone Tests
# ============================================================================

@pytest.mark.asyncio
async def test_process_completion_unlocks_milestone(
    stats_store, task_store, base_rules, small_catalog, completion_event_factory, test_user_id
):
    """Reaching 100 points reports the milestone once and records it"""
    await stats_store.save(test_user_id, UserStats(
        user_id=test_user_id, points=95, streak=1, best_streak=1,
        last_active_date=date(2024, 3, 11),
    ))
    service = GamificationService(
        stats_store, task_store, StaticRewardCatalog(small_catalog), rules=base_rules
    )

    result = await service.process_task_completion(completion_event_factory(task_id=1))

    assert result['points'] == 105
    assert result['level_up'] is True
    assert [m.id for m in result['milestones_unlocked']] == ["points_100"]
    assert "Certificate unlocked: Century" in result['message']

    result = await service.process_task_completion(completion_event_factory(task_id=2))
    assert result['milestones_unlocked'] == []

    # Recorded once, at the first unlock
    assert list(stats_store.milestone_unlocks(test_user_id)) == ["points_100"]


# ============================================================================
# Concurrency Tests
# ============================================================================

@pytest.mark.asyncio
async def test_concurrent_completions_are_not_lost(
    task_store, base_rules, completion_event_factory, test_user_id
):
    """Two simultaneous completions from 0 points end at 20, never 10"""
    store = YieldingStatsStore()
    service = GamificationService(store, task_store, StaticRewardCatalog(), rules=base_rules)

    await asyncio.gather(
        service.process_task_completion(completion_event_factory(task_id=1)),
        service.process_task_completion(completion_event_factory(task_id=2)),
    )

    stats = await store.get(test_user_id)
    assert stats.points == 20
    assert stats.streak == 1
    assert len(await store.get_points_history(test_user_id)) == 2


# ============================================================================
# Read Projection Tests
# ============================================================================

@pytest.mark.asyncio
async def test_stats_summary_new_user(gamification_service, test_user_id):
    summary = await gamification_service.get_stats_summary(test_user_id)

    assert summary['points'] == 0
    assert summary['level'] == 1
    assert summary['progress_percent'] == 0
    assert summary['streak'] == 0
    assert summary['milestones_unlocked'] == []
    assert len(summary['milestones_locked']) == 7


@pytest.mark.asyncio
async def test_stats_summary_after_progress(gamification_service, stats_store, test_user_id):
    await stats_store.save(test_user_id, UserStats(
        user_id=test_user_id, points=260, streak=2, best_streak=8,
        last_active_date=date(2024, 3, 11),
    ))

    summary = await gamification_service.get_stats_summary(test_user_id)

    assert summary['level'] == 3
    assert summary['current_level_points'] == 60
    assert summary['best_streak'] == 8
    assert [m.id for m in summary['milestones_unlocked']] == ["points_50", "points_100", "points_250"]
    assert "best: 8" in summary['streak_message']


@pytest.mark.asyncio
async def test_get_task_proof(gamification_service, task_store, test_user_id):
    task = await task_store.create_task(test_user_id, "Poster")
    await gamification_service.complete_task(
        test_user_id,
        task.id,
        proof_files=["/uploads/poster.png", "/uploads/sources.pdf"],
        proof_text="Poster for the science fair",
    )

    proof = await gamification_service.get_task_proof(test_user_id, task.id)

    assert proof['status'] == "completed"
    assert [f['kind'] for f in proof['proof_files']] == [AttachmentKind.IMAGE, AttachmentKind.PDF]
    assert proof['proof_text'] == "Poster for the science fair"
    assert proof['proof_link'] == ""


@pytest.mark.asyncio
async def test_get_task_proof_missing(gamification_service, test_user_id):
    with pytest.raises(RecordNotFoundError):
        await gamification_service.get_task_proof(test_user_id, 42)
