"""FastAPI dependency injection providers.

Route handlers receive the stores, the dispatcher and the settings
through these functions, so tests swap them with
``app.dependency_overrides`` instead of patching module globals.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from slotverse.config.settings import Settings, get_settings
from slotverse.core.game_repository import GameRepository
from slotverse.core.job_store import JobStore
from slotverse.ingress.dispatcher import JobDispatcher
from slotverse.scraper.wakeup import JobWakeup


@lru_cache
def get_job_store() -> JobStore:
    """Return the process-wide ``JobStore`` bound to ``AsyncSessionLocal``."""
    return JobStore()


@lru_cache
def get_game_repository() -> GameRepository:
    return GameRepository()


@lru_cache
def get_wakeup() -> JobWakeup:
    """Return the process-wide wake-up publisher.

    Closed by the application shutdown hook.
    """
    settings = get_settings()
    return JobWakeup(settings.redis_url, settings.worker_wakeup_channel)


def get_dispatcher(
    store: Annotated[JobStore, Depends(get_job_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> JobDispatcher:
    return JobDispatcher(
        store,
        wakeup=get_wakeup(),
        max_jobs_per_hour=settings.max_jobs_per_requester_per_hour,
    )


SettingsDep = Annotated[Settings, Depends(get_settings)]
JobStoreDep = Annotated[JobStore, Depends(get_job_store)]
GameRepositoryDep = Annotated[GameRepository, Depends(get_game_repository)]
DispatcherDep = Annotated[JobDispatcher, Depends(get_dispatcher)]
