"""FastAPI dependency factories."""

from __future__ import annotations

from typing import AsyncIterator

from fastapi import Depends, HTTPException

from rubber.config import Settings, SettingsError, get_settings
from rubber.logger import get_logger
from rubber.services.review_orchestrator import ReviewOrchestrator

logger = get_logger()


def settings_dependency() -> Settings:
    """Resolve application settings, surfacing configuration errors via HTTPException."""

    try:
        return get_settings()
    except SettingsError as exc:
        logger.error(f"Failed to load settings: {exc}")
        raise HTTPException(status_code=500, detail=str(exc)) from exc


async def orchestrator_dependency(
    settings: Settings = Depends(settings_dependency),
) -> AsyncIterator[ReviewOrchestrator]:
    """Provide a per-request orchestrator and close its HTTP clients afterwards."""

    orchestrator = ReviewOrchestrator.from_settings(settings)
    try:
        yield orchestrator
    finally:
        await orchestrator.aclose()
