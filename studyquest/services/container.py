"""
Service Container - Dependency Injection Container

Simple DI container for managing service instances and their dependencies.
Uses lazy loading to only instantiate services when first accessed.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional
import logging

from studyquest import config

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    The storage backend decides which stores are wired in.
    """

    storage_backend: str = "postgres"

    # Stores and services (lazy-loaded via properties)
    _stats_store: Optional[object] = field(default=None, init=False, repr=False)
    _task_store: Optional[object] = field(default=None, init=False, repr=False)
    _catalog: Optional[object] = field(default=None, init=False, repr=False)
    _gamification_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def stats_store(self):
        """Get UserStatsStore instance (lazy-loaded)"""
        if self._stats_store is None:
            if self.storage_backend == "memory":
                from studyquest.stores.memory import InMemoryUserStatsStore
                self._stats_store = InMemoryUserStatsStore()
            else:
                from studyquest.stores.postgres import PostgresUserStatsStore
                self._stats_store = PostgresUserStatsStore()
            logger.debug(f"{type(self._stats_store).__name__} instantiated")
        return self._stats_store

    @property
    def task_store(self):
        """Get TaskStore instance (lazy-loaded)"""
        if self._task_store is None:
            if self.storage_backend == "memory":
                from studyquest.stores.memory import InMemoryTaskStore
                self._task_store = InMemoryTaskStore(self.stats_store)
            else:
                from studyquest.stores.postgres import PostgresTaskStore
                self._task_store = PostgresTaskStore()
            logger.debug(f"{type(self._task_store).__name__} instantiated")
        return self._task_store

    @property
    def catalog(self):
        """Get RewardCatalog instance (lazy-loaded)"""
        if self._catalog is None:
            from studyquest.gamification.catalog import PostgresRewardCatalog, StaticRewardCatalog
            if self.storage_backend == "memory":
                self._catalog = StaticRewardCatalog()
            else:
                self._catalog = PostgresRewardCatalog()
            logger.debug(f"{type(self._catalog).__name__} instantiated")
        return self._catalog

    @property
    def gamification_service(self):
        """Get GamificationService instance (lazy-loaded)"""
        if self._gamification_service is None:
            from studyquest.services.gamification_service import GamificationService
            self._gamification_service = GamificationService(
                self.stats_store,
                self.task_store,
                self.catalog,
                timezone=config.STREAK_TIMEZONE,
                max_clock_skew=timedelta(seconds=config.COMPLETION_CLOCK_SKEW_SECONDS),
            )
            logger.debug("GamificationService instantiated")
        return self._gamification_service


# Global container instance (initialized at startup)
_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Get the global service container.

    Returns:
        ServiceContainer: The global container instance

    Raises:
        RuntimeError: If container not initialized (call init_container first)
    """
    if _container is None:
        raise RuntimeError(
            "Service container not initialized. "
            "Call init_container() at startup before using services."
        )
    return _container


def init_container(storage_backend: str = config.STORAGE_BACKEND) -> ServiceContainer:
    """
    Initialize the global service container.

    Should be called once at startup after infrastructure setup.

    Args:
        storage_backend: 'postgres' or 'memory'

    Returns:
        ServiceContainer: The initialized container
    """
    global _container

    _container = ServiceContainer(storage_backend=storage_backend)

    logger.info(f"Service container initialized (storage: {storage_backend})")
    return _container
