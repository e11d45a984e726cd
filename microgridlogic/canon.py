from __future__ import annotations
from typing import Final, Dict

INDEX_NAME: Final[str] = "t_start"
DEFAULT_TZ: Final[str] = "UTC"

# Period -> (capacity in points, cadence in minutes)
PERIODS: Final[Dict[str, tuple[int, int]]] = {
    "24h": (48, 30),
    "7d": (168, 60),
    "30d": (720, 60),
}

# Solar daylight window (inclusive hours) and amplitude
SOLAR_START_HOUR: Final[int] = 6
SOLAR_END_HOUR: Final[int] = 18
SOLAR_BASE_KW: Final[float] = 8.0
SOLAR_NOISE_KW: Final[float] = 4.0

WIND_BASE_KW: Final[float] = 3.0
WIND_NOISE_KW: Final[float] = 6.0

# Battery / grid coupling
INITIAL_BATTERY_PCT: Final[float] = 75.0
BATTERY_COUPLING: Final[float] = 0.1
BATTERY_NOMINAL_V: Final[float] = 48.0
BATTERY_SPAN_V: Final[float] = 6.0
GRID_DEFICIT_MARGIN_KW: Final[float] = 2.0
GRID_LOAD_FACTOR: Final[float] = 10.0
HEALTH_CRITICAL_PCT: Final[float] = 10.0
HEALTH_WARNING_PCT: Final[float] = 30.0

# Daily totals assume roughly one snapshot per half hour
SNAPSHOTS_PER_DAY: Final[int] = 48

# Alerts
ALERT_DEDUP_SECONDS: Final[int] = 5 * 60
ALERT_CAP: Final[int] = 50

# Reports
GRID_RATE_PER_KWH: Final[float] = 0.12
CO2_KG_PER_KWH: Final[float] = 0.4
EFFICIENCY_BASELINE_PCT: Final[float] = 75.0
