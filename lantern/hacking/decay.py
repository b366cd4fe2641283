"""Background drift of every station's signal back toward the baseline."""

from __future__ import annotations

import asyncio
import logging

from lantern.config import settings
from lantern.errors import LanternError
from lantern.hacking.signal_engine import SignalConfig, step_toward_baseline
from lantern.hacking.store import StationStore
from lantern.hacking.telemetry import BoostNotifier

logger = logging.getLogger(__name__)


class DecayScheduler:
    """Runs one tick every ``interval`` seconds until stopped.

    A tick moves every station that is off the baseline by exactly one unit,
    persists it and reports the new value. Stations are handled
    independently: one failing station does not stop the rest.
    """

    def __init__(
        self,
        stations: StationStore,
        notifier: BoostNotifier,
        config: SignalConfig | None = None,
        interval: float | None = None,
    ):
        self.stations = stations
        self.notifier = notifier
        self.config = config or SignalConfig.from_settings()
        self.interval = settings.signal_reset_timeout if interval is None else interval
        self._task: asyncio.Task | None = None
        self._tick_lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> int:
        """Run one decay pass. Returns how many stations changed."""
        async with self._tick_lock:
            stations = await self.stations.get_all_stations()
            changed = 0

            for station in stations:
                new_value = step_toward_baseline(station.signal_value, self.config)
                if new_value == station.signal_value:
                    continue

                try:
                    await self.stations.update_signal(station.station_id, new_value)
                except LanternError:
                    logger.exception(f"Decay of station {station.station_id} failed")
                    continue

                self.notifier.notify_boost(station.station_id, new_value)
                changed += 1

            if changed:
                logger.debug(f"Decay tick moved {changed} station(s) toward {self.config.baseline}")
            return changed

    async def reset_now(self) -> int:
        """Run a tick right away instead of waiting for the timer."""
        return await self.tick()

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.tick()
            except LanternError as e:
                logger.warning(f"Decay tick failed: {e.text}")
            except Exception:
                logger.exception("Unexpected error in decay tick")

    def start(self):
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="lantern-decay")
        logger.info(f"Decay scheduler started, interval {self.interval}s")

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Decay scheduler stopped")
