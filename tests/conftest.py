from datetime import datetime
from zoneinfo import ZoneInfo

import numpy as np
import pytest

from microgridlogic import EnergyModel
from microgridlogic.sources import FixedClock, NumpyRandomSource

TZ = "UTC"


class MidpointRandom:
    """RandomSource stub: every draw is the midpoint of its range."""

    def uniform(self, low, high, size=None):
        mid = (low + high) / 2.0
        if size is None:
            return mid
        return np.full(size, mid)


@pytest.fixture
def noon():
    # Wednesday
    return datetime(2025, 1, 8, 12, 0, tzinfo=ZoneInfo(TZ))


@pytest.fixture
def midnight():
    return datetime(2025, 1, 8, 0, 0, tzinfo=ZoneInfo(TZ))


@pytest.fixture
def clock(noon):
    return FixedClock(noon)


@pytest.fixture
def rng():
    return NumpyRandomSource(seed=42)


@pytest.fixture
def midpoint():
    return MidpointRandom()


@pytest.fixture
def model(clock, rng):
    return EnergyModel(clock=clock, rng=rng, tz=TZ)


@pytest.fixture
def mid_model(clock, midpoint):
    """Model with deterministic midpoint draws at a weekday noon."""
    return EnergyModel(clock=clock, rng=midpoint, tz=TZ)
