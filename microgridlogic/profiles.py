from __future__ import annotations

from typing import Callable, Dict

import numpy as np
import pandas as pd

from . import canon
from .sources import RandomSource
from .types import Device, DeviceCategory

PowerProfile = Callable[[int, RandomSource], float]


def solar_factor(hours: np.ndarray) -> np.ndarray:
    """
    Bell-shaped daylight factor (0..1) by whole local hour.
    Zero outside 06:00–18:00; peak at 12:00.
    """
    hours = np.asarray(hours, dtype=float)
    x = (hours - canon.SOLAR_START_HOUR) / 12.0 * np.pi
    shape = np.sin(np.clip(x, 0.0, np.pi))
    night = (hours < canon.SOLAR_START_HOUR) | (hours > canon.SOLAR_END_HOUR)
    shape[night] = 0.0
    return shape


def solar_kw(hour: int, rng: RandomSource) -> float:
    factor = float(solar_factor(np.array([hour]))[0])
    if factor == 0.0:
        return 0.0
    return factor * (canon.SOLAR_BASE_KW + float(rng.uniform(0.0, canon.SOLAR_NOISE_KW)))


def wind_kw(rng: RandomSource) -> float:
    return canon.WIND_BASE_KW + float(rng.uniform(0.0, canon.WIND_NOISE_KW))


def generation_series(idx: pd.DatetimeIndex, rng: RandomSource) -> np.ndarray:
    """Per-point solar + wind kW for a tz-aware index (used for backfill)."""
    if idx.tz is None:
        raise ValueError("Index must be timezone-aware for accurate solar alignment.")
    n = len(idx)
    solar = solar_factor(idx.hour.to_numpy()) * (
        canon.SOLAR_BASE_KW + np.asarray(rng.uniform(0.0, canon.SOLAR_NOISE_KW, size=n))
    )
    wind = canon.WIND_BASE_KW + np.asarray(rng.uniform(0.0, canon.WIND_NOISE_KW, size=n))
    return np.round(solar + wind, 2)


def consumption_base(hours: np.ndarray, weekdays: np.ndarray) -> np.ndarray:
    """
    Aggregate baseline demand (kW) by hour and day of week (Mon=0..Sun=6):
      - weekdays: 8 in 07–09 and 18–22, 6 in 10–17, else 4
      - weekends: 7 in 10–22, else 4
    """
    hours = np.asarray(hours)
    weekdays = np.asarray(weekdays)
    is_weekday = weekdays <= 4
    peak = ((hours >= 7) & (hours <= 9)) | ((hours >= 18) & (hours <= 22))
    daytime = (hours >= 10) & (hours <= 17)
    weekend_active = (hours >= 10) & (hours <= 22)
    return np.select(
        [is_weekday & peak, is_weekday & daytime, ~is_weekday & weekend_active],
        [8.0, 6.0, 7.0],
        default=4.0,
    )


def consumption_series(idx: pd.DatetimeIndex, rng: RandomSource) -> np.ndarray:
    base = consumption_base(idx.hour.to_numpy(), idx.dayofweek.to_numpy())
    return np.round(base + np.asarray(rng.uniform(0.0, 3.0, size=len(idx))), 2)


## Device power profiles
def _overnight(hour: int) -> bool:
    return hour >= 22 or hour <= 6


def _dark(hour: int) -> bool:
    return hour <= 7 or hour >= 18


def _hvac(hour: int, rng: RandomSource) -> float:
    power = 2.5 + float(rng.uniform(0.0, 2.0))
    if _overnight(hour):
        power *= 0.7
    return power


def _water_heater(hour: int, rng: RandomSource) -> float:
    if 6 <= hour <= 8 or 18 <= hour <= 20:
        return 3.0 + float(rng.uniform(0.0, 1.0))
    return 0.5


def _ev(hour: int, rng: RandomSource) -> float:
    return 6.0 + float(rng.uniform(0.0, 2.0)) if _overnight(hour) else 0.0


def _lighting(hour: int, rng: RandomSource) -> float:
    return 0.5 + float(rng.uniform(0.0, 0.3)) if _dark(hour) else 0.1


def _pool_pump(hour: int, rng: RandomSource) -> float:
    return 1.5 if 10 <= hour <= 16 else 0.0


def _default(hour: int, rng: RandomSource) -> float:
    return 0.5 + float(rng.uniform(0.0, 1.0))


DEVICE_PROFILES: Dict[str, PowerProfile] = {
    "hvac": _hvac,
    "water_heater": _water_heater,
    "ev": _ev,
    "lighting": _lighting,
    "pool_pump": _pool_pump,
    "default": _default,
}

# Known device names -> category; anything else falls back to "default"
CATEGORY_BY_NAME: Dict[str, DeviceCategory] = {
    "hvac": "hvac",
    "heat pump": "hvac",
    "water heater": "water_heater",
    "electric vehicle": "ev",
    "ev charger": "ev",
    "lighting": "lighting",
    "pool pump": "pool_pump",
}

AUTO_DARK_KW = 0.3


def classify_device(name: str) -> DeviceCategory:
    return CATEGORY_BY_NAME.get(name.strip().casefold(), "default")


def device_power(device: Device, hour: int, rng: RandomSource) -> float:
    """kW drawn by a device at the given local hour, honouring its status."""
    if device.status == "off":
        return 0.0
    if device.status == "auto":
        # Auto devices follow daylight only, whatever their category
        return AUTO_DARK_KW if _dark(hour) else 0.0
    category = device.category or classify_device(device.name)
    profile = DEVICE_PROFILES.get(category, DEVICE_PROFILES["default"])
    return profile(hour, rng)
