"""API routes for studyquest"""
import logging
from datetime import datetime
from fastapi import APIRouter, Depends, Query, Request

from studyquest.api.models import (
    TaskCompletionRequest, TaskCompletionResponse,
    StatsResponse, MilestoneResponse, LockedMilestone,
    PointsHistoryResponse, TaskProofResponse,
    HealthCheckResponse,
)
from studyquest.api.auth import verify_api_key
from studyquest.api.middleware import limiter
from studyquest.db.connection import db
from studyquest.services.container import get_container
from studyquest.services.gamification_service import GamificationService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_gamification_service() -> GamificationService:
    """Resolve the gamification service from the global container"""
    return get_container().gamification_service


@router.post(
    "/api/v1/users/{user_id}/tasks/{task_id}/complete",
    response_model=TaskCompletionResponse
)
@limiter.limit("30/minute")
async def complete_task_endpoint(
    request: Request,
    user_id: str,
    task_id: int,
    body: TaskCompletionRequest,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """
    Complete a task and award points (Rate limit: 30/minute)

    Returns 409 if the task was already completed, so points are never
    awarded twice for the same task.
    """
    result = await service.complete_task(
        user_id,
        task_id,
        proof_files=body.proof_files,
        proof_text=body.proof_text,
        proof_link=body.proof_link,
        completed_at=body.completed_at,
    )
    return TaskCompletionResponse(**result)


@router.get("/api/v1/users/{user_id}/stats", response_model=StatsResponse)
@limiter.limit("60/minute")
async def get_stats_endpoint(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """Get points, level progress and streak (Rate limit: 60/minute)"""
    summary = await service.get_stats_summary(user_id)
    return StatsResponse(**summary)


@router.get("/api/v1/users/{user_id}/milestones", response_model=MilestoneResponse)
@limiter.limit("60/minute")
async def get_milestones_endpoint(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """Get unlocked and locked milestone certificates (Rate limit: 60/minute)"""
    summary = await service.get_stats_summary(user_id)

    locked = [
        LockedMilestone(
            id=entry['milestone'].id,
            name=entry['milestone'].name,
            description=entry['milestone'].description,
            icon=entry['milestone'].icon,
            kind=entry['milestone'].kind,
            threshold=entry['target'],
            current=entry['current'],
            percentage=entry['percentage'],
        )
        for entry in summary['milestones_locked']
    ]

    return MilestoneResponse(
        user_id=user_id,
        unlocked=summary['milestones_unlocked'],
        locked=locked
    )


@router.get("/api/v1/users/{user_id}/points/history", response_model=PointsHistoryResponse)
@limiter.limit("30/minute")
async def get_points_history_endpoint(
    request: Request,
    user_id: str,
    limit: int = Query(default=50, ge=1, le=200),
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """Get recent points awards (Rate limit: 30/minute)"""
    entries = await service.get_points_history(user_id, limit=limit)
    return PointsHistoryResponse(user_id=user_id, entries=entries)


@router.get("/api/v1/users/{user_id}/tasks/{task_id}/proof", response_model=TaskProofResponse)
@limiter.limit("30/minute")
async def get_task_proof_endpoint(
    request: Request,
    user_id: str,
    task_id: int,
    api_key: str = Depends(verify_api_key),
    service: GamificationService = Depends(get_gamification_service)
):
    """Get a task's proof files, text and link (Rate limit: 30/minute)"""
    proof = await service.get_task_proof(user_id, task_id)
    return TaskProofResponse(**proof)


@router.get("/api/health", response_model=HealthCheckResponse)
@limiter.limit("60/minute")
async def health_check(request: Request):
    """Health check endpoint (Rate limit: 60/minute for monitoring systems)"""
    if not db.is_initialized:
        db_status = "not_configured"
    else:
        try:
            async with db.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.execute("SELECT 1")
                    await cur.fetchone()
            db_status = "connected"
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            db_status = "disconnected"

    return HealthCheckResponse(
        status="degraded" if db_status == "disconnected" else "healthy",
        database=db_status,
        timestamp=datetime.now()
    )
