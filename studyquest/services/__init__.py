"""
Service Layer Package

Business logic services that sit between the HTTP layer and the stores.

Core Services:
- GamificationService: Task completion, points, levels, streaks, milestones
"""

from studyquest.services.container import ServiceContainer, get_container, init_container
from studyquest.services.gamification_service import GamificationService

__all__ = [
    "ServiceContainer",
    "get_container",
    "init_container",
    "GamificationService",
]
