"""Driver loop: cadence, pause/resume and update frequency."""

from datetime import timedelta

import pytest

from microgridlogic import Driver, exceptions
from microgridlogic.settings import DashboardConfig


@pytest.fixture
def driver(mid_model, clock):
    # Sleeping advances the fixed clock instead of blocking
    return Driver(mid_model, sleep=lambda s: clock.advance(seconds=s))


def test_run_ticks_and_sleeps(mid_model):
    """run(n) ticks n times and sleeps between ticks at the configured interval."""
    slept = []
    d = Driver(mid_model, sleep=slept.append)
    assert d.run(3) == 3
    assert slept == [5.0, 5.0]
    assert d.status()["ticks"] == 3


def test_update_frequency_drives_history(driver, noon):
    """At a 30-minute interval every tick lands a 24h point."""
    driver.set_update_frequency(30 * 60 * 1000)
    driver.run(3)
    h24 = driver.model.get_historical_data("24h")
    assert h24["timestamps"][-1] == noon + timedelta(hours=1)
    assert len(h24["labels"]) == 48


def test_pause_resume_gap_self_corrects(driver, clock, noon):
    """Paused steps do nothing; the first tick after a long gap appends once."""
    driver.step()
    driver.pause()
    assert driver.step() is None
    assert driver.run(2) == 0
    clock.set(noon + timedelta(hours=3))
    before = driver.model.get_historical_data("24h")["timestamps"]

    driver.resume()
    assert driver.step() is not None
    after = driver.model.get_historical_data("24h")["timestamps"]
    assert after[-1] == noon + timedelta(hours=3)
    assert after[-2] == before[-1]


def test_invalid_frequency(mid_model):
    """Non-positive frequency is refused."""
    d = Driver(mid_model, DashboardConfig())
    with pytest.raises(exceptions.DriverError):
        d.set_update_frequency(0)
    assert d.status()["update_frequency"] == 5000
