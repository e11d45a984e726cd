from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional

from . import exceptions
from .model import EnergyModel
from .settings import DashboardConfig
from .types import Snapshot

logger = logging.getLogger(__name__)


class Driver:
    """
    Fixed-interval driver for an EnergyModel.

    Each step is one atomic tick (snapshot, history append, alert check).
    While paused, steps are skipped and history stays static; the next tick
    after resume uses the clock's current instant.
    """

    def __init__(
        self,
        model: EnergyModel,
        config: Optional[DashboardConfig] = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.model = model
        self.config = config or DashboardConfig()
        self._sleep = sleep
        self._paused = False
        self.ticks = 0

    @property
    def update_frequency_ms(self) -> int:
        return self.config.dashboard.update_frequency

    @property
    def paused(self) -> bool:
        return self._paused

    def set_update_frequency(self, frequency_ms: int) -> None:
        exceptions.require(
            frequency_ms > 0, "Update frequency must be positive.", exceptions.DriverError
        )
        self.config.dashboard.update_frequency = frequency_ms
        logger.info("Update frequency set to %d ms", frequency_ms)

    def pause(self) -> None:
        if not self._paused:
            self._paused = True
            logger.info("Driver paused after %d ticks", self.ticks)

    def resume(self) -> None:
        if self._paused:
            self._paused = False
            logger.info("Driver resumed")

    def step(self) -> Optional[Snapshot]:
        """Run one tick unless paused."""
        if self._paused:
            return None
        snap = self.model.tick()
        self.ticks += 1
        return snap

    def run(self, ticks: int, *, on_tick: Optional[Callable[[Snapshot], None]] = None) -> int:
        """Step `ticks` times, sleeping the update interval between steps; returns ticks run."""
        exceptions.require(ticks >= 0, "ticks must be non-negative.", exceptions.DriverError)
        done = 0
        for i in range(ticks):
            snap = self.step()
            if snap is not None:
                done += 1
                if on_tick is not None:
                    on_tick(snap)
            if i < ticks - 1:
                self._sleep(self.update_frequency_ms / 1000.0)
        return done

    def status(self) -> Dict[str, Any]:
        return {
            "update_frequency": self.update_frequency_ms,
            "is_updating": not self._paused,
            "ticks": self.ticks,
            "default_chart_period": self.config.dashboard.default_chart_period,
        }
