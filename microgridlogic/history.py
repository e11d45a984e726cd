from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo

import pandas as pd

from . import canon, exceptions, profiles
from .sources import RandomSource
from .types import SeriesPayload

logger = logging.getLogger(__name__)


def require_period(period: str) -> tuple[int, int]:
    """Return (capacity, cadence_min) for a period or raise PeriodError."""
    exceptions.require(
        period in canon.PERIODS,
        f"Unknown period {period!r}; expected one of {', '.join(canon.PERIODS)}.",
        exceptions.PeriodError,
    )
    return canon.PERIODS[period]


def as_timestamp(instant: datetime | pd.Timestamp, tz: str = canon.DEFAULT_TZ) -> pd.Timestamp:
    """Coerce to a Timestamp in tz; naive values are taken as local to tz."""
    ts = pd.Timestamp(instant)
    if ts.tz is None:
        return ts.tz_localize(ZoneInfo(tz))
    return ts.tz_convert(ZoneInfo(tz))


def format_label(ts: pd.Timestamp, period: str) -> str:
    """
    Display label per period:
      - '24h': 'HH:MM'
      - '7d':  'Mon 14:00'
      - '30d': 'Jan 5'
    """
    if period == "24h":
        return ts.strftime("%H:%M")
    if period == "7d":
        return ts.strftime("%a %H:00")
    if period == "30d":
        return f"{ts.strftime('%b')} {ts.day}"
    return ts.isoformat()


def empty_series_frame(tz: str = canon.DEFAULT_TZ) -> pd.DataFrame:
    idx = pd.DatetimeIndex([], tz=ZoneInfo(tz), name=canon.INDEX_NAME)
    return pd.DataFrame(
        {
            "label": pd.Series([], dtype=object, index=idx),
            "generation": pd.Series([], dtype=float, index=idx),
            "consumption": pd.Series([], dtype=float, index=idx),
        },
        index=idx,
    )


class HistoricalSeries:
    """
    Rolling generation/consumption history for every period.

    Each period is a DataFrame indexed by the raw tz-aware instant ('t_start')
    with columns ['label', 'generation', 'consumption']. Cadence checks use the
    index, never the display label.
    """

    def __init__(self, tz: str = canon.DEFAULT_TZ):
        self.tz = tz
        self._frames: Dict[str, pd.DataFrame] = {
            p: empty_series_frame(tz) for p in canon.PERIODS
        }

    def backfill(self, now: datetime, rng: RandomSource) -> None:
        """Fill every period to capacity with points ending at `now`."""
        end = as_timestamp(now, self.tz)
        for period, (capacity, cadence_min) in canon.PERIODS.items():
            idx = pd.date_range(
                end=end, periods=capacity, freq=f"{cadence_min}min", name=canon.INDEX_NAME
            )
            self._frames[period] = pd.DataFrame(
                {
                    "label": [format_label(ts, period) for ts in idx],
                    "generation": profiles.generation_series(idx, rng),
                    "consumption": profiles.consumption_series(idx, rng),
                },
                index=idx,
            )
            logger.debug("Backfilled %s with %d points", period, capacity)

    def frame(self, period: str) -> pd.DataFrame:
        require_period(period)
        return self._frames[period].copy()

    def size(self, period: str) -> int:
        require_period(period)
        return len(self._frames[period])

    def last_instant(self, period: str) -> Optional[pd.Timestamp]:
        require_period(period)
        df = self._frames[period]
        if df.empty:
            return None
        return pd.Timestamp(df.index[-1])

    def is_due(self, period: str, now: datetime) -> bool:
        _, cadence_min = require_period(period)
        last = self.last_instant(period)
        if last is None:
            return True
        elapsed = as_timestamp(now, self.tz) - last
        return elapsed >= pd.Timedelta(minutes=cadence_min)

    def append(
        self, period: str, now: datetime, generation: float, consumption: float
    ) -> None:
        """Append one point, evicting the oldest once the period is at capacity."""
        capacity, _ = require_period(period)
        ts = as_timestamp(now, self.tz)
        row = pd.DataFrame(
            {
                "label": [format_label(ts, period)],
                "generation": [float(generation)],
                "consumption": [float(consumption)],
            },
            index=pd.DatetimeIndex([ts], name=canon.INDEX_NAME),
        )
        df = self._frames[period]
        out = row if df.empty else pd.concat([df, row])
        self._frames[period] = out.iloc[-capacity:]

    def append_if_due(
        self, now: datetime, generation: float, consumption: float
    ) -> List[str]:
        """Append to every period whose cadence has elapsed; return those periods."""
        appended: List[str] = []
        for period in canon.PERIODS:
            if self.is_due(period, now):
                self.append(period, now, generation, consumption)
                appended.append(period)
        if appended:
            logger.debug("Appended point to %s", ", ".join(appended))
        return appended

    def to_payload(self, period: str) -> SeriesPayload:
        require_period(period)
        df = self._frames[period]
        return {
            "labels": [str(x) for x in df["label"]],
            "timestamps": [ts.to_pydatetime() for ts in pd.DatetimeIndex(df.index)],
            "generation": [float(x) for x in df["generation"]],
            "consumption": [float(x) for x in df["consumption"]],
        }
