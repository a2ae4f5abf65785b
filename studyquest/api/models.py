"""Pydantic models for API request/response validation"""
from typing import Optional, List
from pydantic import BaseModel, Field
from datetime import date, datetime

from studyquest.models.milestone import MilestoneKind, UnlockedMilestone
from studyquest.models.user_stats import PointsHistoryEntry
from studyquest.utils.attachments import AttachmentKind


class TaskCompletionRequest(BaseModel):
    """Request to complete a task with optional proof"""
    proof_files: Optional[List[str]] = Field(
        default=None,
        description="Uploaded proof file paths or data URIs"
    )
    proof_text: Optional[str] = Field(default=None, description="Free-text proof")
    proof_link: Optional[str] = Field(default=None, description="Link to proof")
    completed_at: Optional[datetime] = Field(
        default=None,
        description="When the task was completed (defaults to now)"
    )


class LevelProgress(BaseModel):
    """Level and progress toward the next level"""
    level: int
    current_level_points: int
    points_to_next_level: int
    points_remaining: int
    progress_percent: float


class TaskCompletionResponse(BaseModel):
    """Response after completing a task"""
    user_id: str
    task_id: int
    points_awarded: int
    points: int
    level_up: bool
    old_level: int
    new_level: int
    progress: LevelProgress
    current_streak: int
    best_streak: int
    milestones_unlocked: List[UnlockedMilestone]
    message: str


class StatsResponse(BaseModel):
    """Response with points, level and streak"""
    user_id: str
    points: int
    level: int
    current_level_points: int
    points_to_next_level: int
    points_remaining: int
    progress_percent: float
    streak: int
    best_streak: int
    last_active_date: Optional[date] = None
    streak_message: str


class LockedMilestone(BaseModel):
    """Milestone not reached yet, with progress"""
    id: str
    name: str
    description: str
    icon: Optional[str] = None
    kind: MilestoneKind
    threshold: int
    current: int
    percentage: float


class MilestoneResponse(BaseModel):
    """Response with milestone certificates"""
    user_id: str
    unlocked: List[UnlockedMilestone]
    locked: List[LockedMilestone]


class PointsHistoryResponse(BaseModel):
    """Response with recent points awards"""
    user_id: str
    entries: List[PointsHistoryEntry]


class ProofAttachment(BaseModel):
    """Proof file with its preview kind"""
    url: str
    kind: AttachmentKind


class TaskProofResponse(BaseModel):
    """Response with a task's proof of completion"""
    task_id: int
    status: str
    proof_files: List[ProofAttachment]
    proof_text: str
    proof_link: str


class HealthCheckResponse(BaseModel):
    """Health check response"""
    status: str = Field(..., description="Service status")
    database: str = Field(..., description="Database connection status")
    timestamp: datetime = Field(..., description="Check timestamp")


class ErrorResponse(BaseModel):
    """Error response model"""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    user_message: Optional[str] = Field(None, description="Message safe to show to users")
    request_id: Optional[str] = Field(None, description="Request ID for tracing")
    timestamp: datetime = Field(default_factory=datetime.now)
