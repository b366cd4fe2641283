"""Lantern round lifecycle: read, update, start and end the current round."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field

from lantern.auth.router import get_request_token
from lantern.auth.utils import require_access
from lantern.config import settings
from lantern.errors import InvalidInput
from lantern.hacking.services import LanternServices, get_services
from lantern.tasks.station_tasks import reset_stations

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/lantern/round", tags=["rounds"])


class StartRoundRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    end_time: datetime | None = Field(None, alias="endTime")


class EndRoundRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_time: datetime | None = Field(None, alias="startTime")


class UpdateRoundRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_time: datetime | None = Field(None, alias="startTime")
    end_time: datetime | None = Field(None, alias="endTime")


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def time_left(round_data: dict, now: datetime | None = None) -> int | None:
    """Seconds until the round ends (active) or starts (inactive)."""
    target = round_data["endTime"] if round_data["isActive"] else round_data["startTime"]
    if not target:
        return None
    now = now or datetime.now(timezone.utc)
    return max(0, int((_as_utc(datetime.fromisoformat(target)) - now).total_seconds()))


def round_info(round_data: dict) -> dict:
    return {"timeLeft": time_left(round_data), "round": round_data}


@router.get("")
async def read_round(request: Request, services: LanternServices = Depends(get_services)):
    await require_access(get_request_token(request), "GetLanternRound")
    return {"data": round_info(await services.rounds.get_round())}


@router.post("")
async def update_round(
    payload: UpdateRoundRequest,
    request: Request,
    services: LanternServices = Depends(get_services),
):
    await require_access(get_request_token(request), "UpdateLanternRound")
    if payload.start_time is None and payload.end_time is None:
        raise InvalidInput("startTime or endTime is required")

    round_data = await services.rounds.save_round(
        start_time=_as_utc(payload.start_time), end_time=_as_utc(payload.end_time)
    )
    logger.info(f"Lantern round times set to {round_data['startTime']} - {round_data['endTime']}")
    return {"data": round_info(round_data)}


@router.post("/start")
async def start_round(
    payload: StartRoundRequest,
    request: Request,
    services: LanternServices = Depends(get_services),
):
    await require_access(get_request_token(request), "StartLanternRound")
    round_data = await services.rounds.save_round(is_active=True, end_time=_as_utc(payload.end_time))
    logger.info(f"Lantern round started, ends at {round_data['endTime']}")
    return {"data": round_info(round_data)}


@router.post("/end")
async def end_round(
    payload: EndRoundRequest,
    request: Request,
    services: LanternServices = Depends(get_services),
):
    await require_access(get_request_token(request), "EndLanternRound")
    round_data = await services.rounds.save_round(
        is_active=False, start_time=_as_utc(payload.start_time)
    )

    if settings.decay_backend == "celery":
        reset_stations.delay()
        logger.info("Lantern round ended, reset dispatched to workers")
    else:
        removed = await services.sessions.delete_all_sessions()
        reset = await services.decay.reset_now()
        logger.info(f"Lantern round ended, removed {removed} hack(s), reset {reset} station(s)")

    return {"data": round_info(round_data)}
