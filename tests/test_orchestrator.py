import pytest

from lantern.db import get_connection
from lantern.errors import DoesNotExist, ExternalFailure, NoActiveSession


@pytest.mark.asyncio
async def test_request_challenge_creates_session(services, seeded_station):
    challenge = await services.orchestrator.request_challenge("player", seeded_station)

    session = await services.sessions.get_session("player")
    assert session is not None
    assert session.station_id == seeded_station
    assert session.tries_left == services.orchestrator.tries_amount
    assert challenge["userName"] == session.correct_candidate.user_name
    assert challenge["triesLeft"] == session.tries_left
    assert challenge["stationId"] == seeded_station
    for candidate in session.candidates:
        assert candidate.password in challenge["passwords"]


@pytest.mark.asyncio
async def test_request_challenge_reuses_session(services, seeded_station):
    await services.orchestrator.request_challenge("player", seeded_station)
    first = await services.sessions.get_session("player")

    await services.orchestrator.submit_guess("player", "wrong", True)
    challenge = await services.orchestrator.request_challenge("player", seeded_station)
    second = await services.sessions.get_session("player")

    assert second.candidates == first.candidates
    assert challenge["triesLeft"] == first.tries_left - 1


@pytest.mark.asyncio
async def test_request_challenge_other_station_replaces_session(services, seeded_station):
    with get_connection() as conn:
        conn.execute(
            "INSERT INTO stations (station_id, station_name, is_active, signal_value) VALUES (6, 'Lake', 1, 100)"
        )
        conn.execute(
            "INSERT INTO game_users (user_name, station_id, passwords) VALUES ('phreak', 6, '[\"lakeside\"]')"
        )

    await services.orchestrator.request_challenge("player", seeded_station)
    old = await services.sessions.get_session("player")

    challenge = await services.orchestrator.request_challenge("player", 6)
    new = await services.sessions.get_session("player")

    assert challenge["stationId"] == 6
    assert new.station_id == 6
    assert [c.user_name for c in new.candidates] == ["phreak"]

    result = await services.orchestrator.submit_guess("player", old.correct_candidate.password, True)
    assert result["success"] is False


@pytest.mark.asyncio
async def test_request_challenge_without_game_users(services):
    with pytest.raises(DoesNotExist):
        await services.orchestrator.request_challenge("player", 99)
    assert await services.sessions.get_session("player") is None


@pytest.mark.asyncio
async def test_correct_guess_boosts_station(services, seeded_station):
    await services.orchestrator.request_challenge("player", seeded_station)
    session = await services.sessions.get_session("player")

    result = await services.orchestrator.submit_guess(
        "player", session.correct_candidate.password.upper(), True
    )

    assert result == {"success": True, "boostingSignal": True}
    station = await services.stations.get_station(seeded_station)
    assert station.signal_value == 110
    assert await services.sessions.get_session("player") is None

    with pytest.raises(NoActiveSession):
        await services.orchestrator.submit_guess("player", session.correct_candidate.password, True)


@pytest.mark.asyncio
async def test_correct_guess_cuts_station(services, seeded_station):
    await services.orchestrator.request_challenge("player", seeded_station)
    session = await services.sessions.get_session("player")

    result = await services.orchestrator.submit_guess(
        "player", session.correct_candidate.password, False
    )

    assert result == {"success": True, "boostingSignal": False}
    station = await services.stations.get_station(seeded_station)
    assert station.signal_value == 90


@pytest.mark.asyncio
async def test_wrong_guess_lowers_tries_and_reports_matches(services, seeded_station):
    await services.orchestrator.request_challenge("player", seeded_station)
    session = await services.sessions.get_session("player")
    correct = session.correct_candidate.password
    guess = correct[:2] + "#" * (len(correct) - 2)

    result = await services.orchestrator.submit_guess("player", guess, True)

    assert result == {
        "success": False,
        "triesLeft": session.tries_left - 1,
        "matches": {"amount": 2},
    }
    station = await services.stations.get_station(seeded_station)
    assert station.signal_value == 100


@pytest.mark.asyncio
async def test_running_out_of_tries_removes_session(services, seeded_station):
    await services.orchestrator.request_challenge("player", seeded_station)
    budget = services.orchestrator.tries_amount

    for _ in range(budget - 1):
        result = await services.orchestrator.submit_guess("player", "nope", True)
        assert result["triesLeft"] > 0

    result = await services.orchestrator.submit_guess("player", "nope", True)
    assert result["success"] is False
    assert result["triesLeft"] == 0
    assert "matches" in result
    assert await services.sessions.get_session("player") is None

    challenge = await services.orchestrator.request_challenge("player", seeded_station)
    assert challenge["triesLeft"] == budget


@pytest.mark.asyncio
async def test_correct_guess_without_tries_does_not_win(services, seeded_station):
    await services.orchestrator.request_challenge("player", seeded_station)
    session = await services.sessions.get_session("player")
    session.tries_left = 0
    await services.sessions.replace_session(session)

    result = await services.orchestrator.submit_guess(
        "player", session.correct_candidate.password, True
    )

    assert result["success"] is False
    assert result["triesLeft"] == 0
    station = await services.stations.get_station(seeded_station)
    assert station.signal_value == 100
    assert await services.sessions.get_session("player") is None


@pytest.mark.asyncio
async def test_signal_failure_keeps_session_and_tries(services, seeded_station):
    await services.orchestrator.request_challenge("player", seeded_station)
    session = await services.sessions.get_session("player")
    with get_connection() as conn:
        conn.execute("DELETE FROM stations WHERE station_id = ?", (seeded_station,))

    with pytest.raises(ExternalFailure):
        await services.orchestrator.submit_guess(
            "player", session.correct_candidate.password, True
        )

    kept = await services.sessions.get_session("player")
    assert kept is not None
    assert kept.tries_left == session.tries_left


@pytest.mark.asyncio
async def test_guess_without_session(services):
    with pytest.raises(NoActiveSession):
        await services.orchestrator.submit_guess("nobody", "password", True)
