import logging

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field

from lantern.auth.router import get_request_token
from lantern.auth.utils import require_access
from lantern.errors import InvalidInput
from lantern.hacking.models import GameUser, Station
from lantern.hacking.services import LanternServices, get_services

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/lantern", tags=["lantern"])


class ChallengeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    station_id: int = Field(alias="stationId")


class ManipulateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    password: str = Field(min_length=1, max_length=100)
    boosting_signal: bool = Field(alias="boostingSignal")


class StationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    station_id: int = Field(alias="stationId")
    station_name: str = Field(alias="stationName", min_length=1)
    is_active: bool = Field(False, alias="isActive")
    signal_value: int | None = Field(None, alias="signalValue")


class GameUserRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_name: str = Field(alias="userName", min_length=1)
    station_id: int = Field(alias="stationId")
    passwords: list[str] = Field(min_length=1, max_length=26)


class GameUsersRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    game_users: list[GameUserRequest] = Field(alias="gameUsers", min_length=1)


class FakePasswordsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    passwords: list[str] = Field(min_length=1)


@router.post("/hack")
async def get_lantern_hack(
    payload: ChallengeRequest,
    request: Request,
    services: LanternServices = Depends(get_services),
):
    user = await require_access(get_request_token(request), "HackLantern")
    data = await services.orchestrator.request_challenge(user["username"], payload.station_id)
    return {"data": data}


@router.post("/hack/manipulate")
async def manipulate_station(
    payload: ManipulateRequest,
    request: Request,
    services: LanternServices = Depends(get_services),
):
    user = await require_access(get_request_token(request), "HackLantern")
    data = await services.orchestrator.submit_guess(
        user["username"], payload.password, payload.boosting_signal
    )
    return {"data": data}


@router.get("/stations")
async def get_stations(request: Request, services: LanternServices = Depends(get_services)):
    await require_access(get_request_token(request), "GetLanternStations")
    stations = await services.stations.get_all_stations()
    return {
        "data": {
            "activeStations": [s.to_client() for s in stations if s.is_active],
            "inactiveStations": [s.to_client() for s in stations if not s.is_active],
        }
    }


@router.get("/stations/{station_id}")
async def get_station(
    station_id: int, request: Request, services: LanternServices = Depends(get_services)
):
    await require_access(get_request_token(request), "GetLanternStations")
    station = await services.stations.get_station(station_id)
    return {"data": {"station": station.to_client()}}


@router.post("/stations", status_code=201)
async def create_station(
    payload: StationRequest, request: Request, services: LanternServices = Depends(get_services)
):
    await require_access(get_request_token(request), "CreateLanternStation")
    config = services.engine.config
    signal_value = config.baseline if payload.signal_value is None else payload.signal_value
    if not config.min_value <= signal_value <= config.max_value:
        raise InvalidInput(
            f"signalValue must be between {config.min_value} and {config.max_value}"
        )

    station = await services.stations.create_station(
        Station(
            station_id=payload.station_id,
            station_name=payload.station_name,
            is_active=payload.is_active,
            signal_value=signal_value,
        )
    )
    logger.info(f"Created station {station.station_id} ({station.station_name})")
    return {"data": {"station": station.to_client()}}


@router.post("/gameUsers", status_code=201)
async def create_game_users(
    payload: GameUsersRequest, request: Request, services: LanternServices = Depends(get_services)
):
    await require_access(get_request_token(request), "CreateGameUsers")
    for game_user in payload.game_users:
        if not all(game_user.passwords):
            raise InvalidInput(f"Empty password for game user {game_user.user_name}")

    created = await services.candidates.add_game_users(
        [
            GameUser(user_name=gu.user_name, station_id=gu.station_id, passwords=gu.passwords)
            for gu in payload.game_users
        ]
    )
    return {"data": {"amount": len(created)}}


@router.post("/fakePasswords", status_code=201)
async def create_fake_passwords(
    payload: FakePasswordsRequest,
    request: Request,
    services: LanternServices = Depends(get_services),
):
    await require_access(get_request_token(request), "CreateFakePasswords")
    passwords = [p for p in payload.passwords if p]
    added = await services.candidates.add_decoy_passwords(passwords)
    return {"data": {"amount": added}}
