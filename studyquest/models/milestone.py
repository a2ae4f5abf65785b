"""Milestone models for gamification"""
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, model_validator


class MilestoneKind(str, Enum):
    """Which stat a milestone is measured against"""
    POINTS = "points"
    STREAK = "streak"


class MilestoneDefinition(BaseModel):
    """
    Catalog entry for a milestone certificate

    Exactly one of points_threshold / streak_threshold is set.
    """
    id: str
    name: str
    description: str = ""
    icon: Optional[str] = None
    points_threshold: Optional[int] = Field(default=None, ge=0)
    streak_threshold: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode='after')
    def check_single_threshold(self) -> 'MilestoneDefinition':
        """Ensure a milestone is measured against exactly one stat"""
        if (self.points_threshold is None) == (self.streak_threshold is None):
            raise ValueError(
                f"Milestone '{self.id}' must define exactly one of "
                f"points_threshold or streak_threshold"
            )
        return self

    @property
    def kind(self) -> MilestoneKind:
        if self.points_threshold is not None:
            return MilestoneKind.POINTS
        return MilestoneKind.STREAK

    @property
    def threshold(self) -> int:
        if self.points_threshold is not None:
            return self.points_threshold
        return self.streak_threshold


class UnlockedMilestone(BaseModel):
    """A milestone the user currently qualifies for"""
    id: str
    name: str
    description: str
    icon: Optional[str] = None
    kind: MilestoneKind
    threshold: int

