"""Wiring of stores, engine, scheduler and orchestrator."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi.requests import HTTPConnection

from lantern.hacking.decay import DecayScheduler
from lantern.hacking.orchestrator import HackOrchestrator
from lantern.hacking.signal_engine import SignalConfig, SignalEngine
from lantern.hacking.store import CandidateSource, RoundStore, SessionStore, StationStore
from lantern.hacking.telemetry import BoostNotifier


@dataclass
class LanternServices:
    stations: StationStore
    sessions: SessionStore
    candidates: CandidateSource
    rounds: RoundStore
    notifier: BoostNotifier
    engine: SignalEngine
    decay: DecayScheduler
    orchestrator: HackOrchestrator

    async def aclose(self):
        await self.decay.stop()
        await self.notifier.aclose()


def build_services(
    notifier: BoostNotifier | None = None,
    config: SignalConfig | None = None,
) -> LanternServices:
    config = config or SignalConfig.from_settings()
    notifier = notifier or BoostNotifier()
    stations = StationStore()
    sessions = SessionStore()
    candidates = CandidateSource()
    engine = SignalEngine(stations, notifier, config)

    return LanternServices(
        stations=stations,
        sessions=sessions,
        candidates=candidates,
        rounds=RoundStore(),
        notifier=notifier,
        engine=engine,
        decay=DecayScheduler(stations, notifier, config),
        orchestrator=HackOrchestrator(sessions, candidates, engine),
    )


def get_services(conn: HTTPConnection) -> LanternServices:
    return conn.app.state.services
