"""Station signal arithmetic and the boost/cut operation."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from lantern.config import settings
from lantern.hacking.store import StationStore
from lantern.hacking.telemetry import BoostNotifier

logger = logging.getLogger(__name__)


@dataclass
class SignalConfig:
    baseline: int = 100
    threshold: int = 50
    change_percentage: float = 0.2
    max_step_change: int = 10

    @classmethod
    def from_settings(cls) -> SignalConfig:
        return cls(
            baseline=settings.signal_default,
            threshold=settings.signal_threshold,
            change_percentage=settings.change_percentage,
            max_step_change=settings.signal_max_change,
        )

    @property
    def min_value(self) -> int:
        return self.baseline - self.threshold

    @property
    def max_value(self) -> int:
        return self.baseline + self.threshold


def clamp_signal(value: float, config: SignalConfig) -> int:
    """Round up, then clamp into the allowed band."""
    return max(config.min_value, min(config.max_value, math.ceil(value)))


def compute_signal(signal_value: int, boosting: bool, config: SignalConfig) -> int:
    """New signal value for a boost (``boosting``) or a cut.

    The step shrinks as the value moves away from the baseline. Pushing back
    across the baseline from the other side always uses the full
    ``max_step_change``.
    """
    difference = abs(signal_value - config.baseline)
    step = (config.threshold - difference) * config.change_percentage

    if boosting and signal_value < config.baseline:
        step = config.max_step_change
    elif not boosting and signal_value > config.baseline:
        step = config.max_step_change

    new_value = signal_value + step if boosting else signal_value - abs(step)
    return clamp_signal(new_value, config)


def step_toward_baseline(signal_value: int, config: SignalConfig) -> int:
    """One decay unit toward the baseline, never past it."""
    if signal_value > config.baseline:
        return signal_value - 1
    if signal_value < config.baseline:
        return signal_value + 1
    return signal_value


class SignalEngine:
    def __init__(
        self,
        stations: StationStore,
        notifier: BoostNotifier,
        config: SignalConfig | None = None,
    ):
        self.stations = stations
        self.notifier = notifier
        self.config = config or SignalConfig.from_settings()

    async def apply(self, station_id: int, boosting: bool) -> int:
        station = await self.stations.get_station(station_id)
        new_value = compute_signal(station.signal_value, boosting, self.config)

        await self.stations.update_signal(station_id, new_value)
        logger.info(
            f"Station {station_id} {'boosted' if boosting else 'cut'}: "
            f"{station.signal_value} -> {new_value}"
        )

        self.notifier.notify_boost(station_id, new_value)
        return new_value
