"""Stats, task and catalog stores"""

from studyquest.stores.base import Award, AwardOutcome, UserStatsStore, TaskStore, RewardCatalog
from studyquest.stores.memory import InMemoryUserStatsStore, InMemoryTaskStore
from studyquest.stores.postgres import PostgresUserStatsStore, PostgresTaskStore

__all__ = [
    "Award",
    "AwardOutcome",
    "UserStatsStore",
    "TaskStore",
    "RewardCatalog",
    "InMemoryUserStatsStore",
    "InMemoryTaskStore",
    "PostgresUserStatsStore",
    "PostgresTaskStore",
]
