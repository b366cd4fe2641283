"""Entry points for the lantern hacking minigame.

``request_challenge`` hands a player the puzzle for a station and
``submit_guess`` resolves it. Both are consumed by the HTTP routes and the
websocket handler.
"""

from __future__ import annotations

import logging
import random

from lantern.config import settings
from lantern.errors import ExternalFailure, LanternError, NoActiveSession
from lantern.hacking.challenge import build_challenge, count_matches, generate_session
from lantern.hacking.signal_engine import SignalEngine
from lantern.hacking.store import CandidateSource, SessionStore

logger = logging.getLogger(__name__)


class HackOrchestrator:
    def __init__(
        self,
        sessions: SessionStore,
        candidates: CandidateSource,
        engine: SignalEngine,
        tries_amount: int | None = None,
        decoy_display_size: int | None = None,
        rng: random.Random | None = None,
    ):
        self.sessions = sessions
        self.candidates = candidates
        self.engine = engine
        self.tries_amount = settings.hacking_tries_amount if tries_amount is None else tries_amount
        self.decoy_display_size = (
            settings.decoy_display_size if decoy_display_size is None else decoy_display_size
        )
        self.rng = rng

    async def request_challenge(self, owner: str, station_id: int) -> dict:
        session = await self.sessions.get_session(owner)

        if session is None or session.station_id != station_id:
            game_users = await self.candidates.get_candidates_for_station(station_id)
            session = generate_session(
                owner, station_id, game_users, self.tries_amount, rng=self.rng
            )
            await self.sessions.replace_session(session)
            logger.info(f"New hack for {owner} on station {station_id}")

        decoy_pool = await self.candidates.get_decoy_password_pool()
        return build_challenge(session, decoy_pool, self.decoy_display_size, rng=self.rng)

    async def submit_guess(self, owner: str, password: str, boosting: bool) -> dict:
        session = await self.sessions.get_session(owner)
        if session is None:
            raise NoActiveSession()

        guess = password.lower()
        correct_password = session.correct_candidate.password

        if guess == correct_password.lower() and session.tries_left > 0:
            try:
                await self.engine.apply(session.station_id, boosting)
            except LanternError as e:
                logger.warning(f"Signal update for station {session.station_id} failed: {e.text}")
                raise ExternalFailure("Failed to manipulate the station") from e

            await self.sessions.delete_session(owner)
            logger.info(f"{owner} hacked station {session.station_id}")
            return {"success": True, "boostingSignal": boosting}

        lowered = await self.sessions.lower_tries(owner)
        if lowered is None:
            raise NoActiveSession()

        matches = {"amount": count_matches(guess, correct_password)}

        if lowered.tries_left <= 0:
            await self.sessions.delete_session(owner)
            logger.info(f"{owner} ran out of tries on station {session.station_id}")
            return {"success": False, "triesLeft": 0, "matches": matches}

        return {"success": False, "triesLeft": lowered.tries_left, "matches": matches}
