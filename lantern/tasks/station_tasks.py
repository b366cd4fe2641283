"""Celery tasks for station signal upkeep."""

from __future__ import annotations

import asyncio
import logging

from lantern.celery_app import celery_app
from lantern.db import init_db
from lantern.hacking.services import build_services

logger = logging.getLogger(__name__)


async def _run_decay_tick() -> int:
    services = build_services()
    try:
        return await services.decay.tick()
    finally:
        await services.aclose()


@celery_app.task(name="lantern.tasks.station_tasks.decay_stations")
def decay_stations() -> int:
    """Move every station one unit toward the baseline signal."""
    init_db()
    changed = asyncio.run(_run_decay_tick())
    logger.info("[DECAY] %s station(s) changed", changed)
    return changed


async def _run_round_reset() -> dict:
    services = build_services()
    try:
        removed = await services.sessions.delete_all_sessions()
        reset = await services.decay.reset_now()
    finally:
        await services.aclose()
    return {"removed_hacks": removed, "reset_stations": reset}


@celery_app.task(name="lantern.tasks.station_tasks.reset_stations")
def reset_stations() -> dict:
    """Round end cleanup for workers: drop every hack and reset stations once."""
    init_db()
    result = asyncio.run(_run_round_reset())
    logger.info("[RESET] %s", result)
    return result
