"""User stats models for gamification"""
from typing import Optional
from datetime import date, datetime
from pydantic import BaseModel, Field


class UserStats(BaseModel):
    """
    Per-user gamification state

    Level is never stored; it is always derived from points.
    """
    user_id: str
    points: int = Field(default=0, ge=0, description="Cumulative points")
    streak: int = Field(default=0, ge=0, description="Consecutive active days")
    best_streak: int = Field(default=0, ge=0, description="Longest streak reached")
    last_active_date: Optional[date] = None
    updated_at: Optional[datetime] = None


class PointsHistoryEntry(BaseModel):
    """A single points award"""
    user_id: str
    amount: int
    reason: str
    task_id: Optional[int] = None
    created_at: Optional[datetime] = None
