from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional, Protocol
from zoneinfo import ZoneInfo

import numpy as np

from . import canon, exceptions


class Clock(Protocol):
    def now(self) -> datetime: ...


class RandomSource(Protocol):
    def uniform(
        self, low: float, high: float, size: Optional[int] = None
    ) -> float | np.ndarray: ...


class SystemClock:
    """Wall clock in a fixed timezone."""

    def __init__(self, tz: str = canon.DEFAULT_TZ):
        self.tz = ZoneInfo(tz)

    def now(self) -> datetime:
        return datetime.now(self.tz)


class FixedClock:
    """Manually advanced clock for deterministic runs and tests."""

    def __init__(self, instant: datetime):
        exceptions.require(
            instant.tzinfo is not None,
            "FixedClock needs a tz-aware instant.",
            exceptions.ConfigError,
        )
        self._now = instant

    def now(self) -> datetime:
        return self._now

    def advance(self, **delta: float) -> datetime:
        self._now = self._now + timedelta(**delta)
        return self._now

    def set(self, instant: datetime) -> None:
        self._now = instant


class NumpyRandomSource:
    """RandomSource backed by numpy's Generator; pass a seed for reproducible runs."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = np.random.default_rng(seed)

    def uniform(
        self, low: float, high: float, size: Optional[int] = None
    ) -> float | np.ndarray:
        if size is None:
            return float(self._rng.uniform(low, high))
        return self._rng.uniform(low, high, size=size)
