"""Task models"""
from enum import Enum
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class TaskStatus(str, Enum):
    """Task lifecycle status"""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# Statuses a task may be completed from
COMPLETABLE_STATUSES = (TaskStatus.PENDING, TaskStatus.IN_PROGRESS)


class Task(BaseModel):
    """A unit of student work"""
    id: int
    user_id: str
    title: str
    description: Optional[str] = None
    subject: Optional[str] = None
    category: Optional[str] = None
    status: TaskStatus = TaskStatus.PENDING
    due_date: Optional[str] = None
    assigned_by_coach_id: Optional[str] = None
    proof_files: list[str] = Field(default_factory=list)
    proof_text: Optional[str] = None
    proof_link: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class TaskCompletionEvent(BaseModel):
    """Emitted once when a task transitions into 'completed'"""
    user_id: str
    task_id: int
    category: Optional[str] = None
    completed_at: datetime
