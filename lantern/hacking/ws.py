"""Realtime access to the hacking minigame.

Clients send ``{"event": ..., "data": {...}, "id": ...}`` frames and get one
reply per frame carrying the same ``event`` and ``id`` plus either ``data``
or ``error``. The token travels inside ``data`` like in the socket events of
the chat protocol.
"""

import json
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from lantern.auth.utils import require_access
from lantern.errors import InvalidInput, LanternError
from lantern.hacking.router import ChallengeRequest, ManipulateRequest
from lantern.hacking.services import LanternServices, get_services
from lantern.rounds.router import round_info

logger = logging.getLogger(__name__)
ws_router = APIRouter()


async def handle_get_lantern_hack(services: LanternServices, data: dict) -> dict:
    payload = ChallengeRequest.model_validate(data)
    user = await require_access(data.get("token"), "HackLantern")
    return await services.orchestrator.request_challenge(user["username"], payload.station_id)


async def handle_manipulate_station(services: LanternServices, data: dict) -> dict:
    payload = ManipulateRequest.model_validate(data)
    user = await require_access(data.get("token"), "HackLantern")
    return await services.orchestrator.submit_guess(
        user["username"], payload.password, payload.boosting_signal
    )


async def handle_get_lantern_info(services: LanternServices, data: dict) -> dict:
    await require_access(data.get("token"), "GetLanternRound")
    stations = await services.stations.get_all_stations()
    info = round_info(await services.rounds.get_round())
    info["activeStations"] = [s.to_client() for s in stations if s.is_active]
    info["inactiveStations"] = [s.to_client() for s in stations if not s.is_active]
    return info


EVENT_HANDLERS = {
    "getLanternHack": handle_get_lantern_hack,
    "manipulateStation": handle_manipulate_station,
    "getLanternInfo": handle_get_lantern_info,
}


async def dispatch(services: LanternServices, message) -> dict:
    if not isinstance(message, dict):
        return InvalidInput("Message must be an object").to_dict()

    event = message.get("event")
    reply = {"event": event}
    if message.get("id") is not None:
        reply["id"] = message["id"]

    handler = EVENT_HANDLERS.get(event)
    data = message.get("data")
    try:
        if handler is None:
            raise InvalidInput(f"Unknown event {event}")
        if not isinstance(data, dict):
            raise InvalidInput("data must be an object")
        reply["data"] = await handler(services, data)
    except ValidationError as e:
        reply.update(InvalidInput(f"Invalid {event} payload: {e.error_count()} error(s)").to_dict())
    except LanternError as e:
        reply.update(e.to_dict())
    return reply


@ws_router.websocket("/ws")
async def lantern_ws(websocket: WebSocket, services: LanternServices = Depends(get_services)):
    await websocket.accept()
    try:
        while True:
            try:
                message = json.loads(await websocket.receive_text())
            except (KeyError, TypeError, ValueError):
                await websocket.send_json(InvalidInput("Frames must be JSON").to_dict())
                continue
            await websocket.send_json(await dispatch(services, message))
    except WebSocketDisconnect:
        return
    except Exception:
        logger.exception("Lantern websocket failed")
        await websocket.close(code=1011)
