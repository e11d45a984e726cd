from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterator, List, Optional, Protocol

from . import canon
from .settings import AlertSettings
from .types import Alert, AlertType, Snapshot

logger = logging.getLogger(__name__)


class AlertRule(Protocol):
    def __call__(
        self, snapshot: Snapshot, *, settings: AlertSettings
    ) -> Optional[tuple[AlertType, str, str]]: ...


def battery_level(
    snapshot: Snapshot, *, settings: AlertSettings
) -> Optional[tuple[AlertType, str, str]]:
    pct = snapshot["battery"]["percentage"]
    if pct < settings.battery_critical_threshold:
        return (
            "critical",
            "Critical Battery Level",
            f"Battery level is {pct}%. Immediate action required.",
        )
    if pct < settings.battery_warning_threshold:
        return (
            "warning",
            "Low Battery Warning",
            f"Battery level is {pct}%. Consider reducing loads.",
        )
    return None


def grid_load(
    snapshot: Snapshot, *, settings: AlertSettings
) -> Optional[tuple[AlertType, str, str]]:
    load = snapshot["grid"]["load"]
    if load > settings.grid_load_threshold:
        return (
            "warning",
            "High Grid Load",
            f"Grid load is {load}%. System under stress.",
        )
    return None


RULES: list[AlertRule] = [battery_level, grid_load]


def evaluate(
    snapshot: Snapshot, settings: AlertSettings, ids: Iterator[int]
) -> List[Alert]:
    """Run every rule against a snapshot; alerts are stamped with the snapshot time."""
    out: List[Alert] = []
    for rule in RULES:
        hit = rule(snapshot, settings=settings)
        if hit is None:
            continue
        kind, title, message = hit
        out.append(
            Alert(
                id=next(ids),
                type=kind,
                title=title,
                message=message,
                timestamp=snapshot["timestamp"],
            )
        )
    return out


def is_duplicate(
    existing: List[Alert],
    candidate: Alert,
    window: timedelta = timedelta(seconds=canon.ALERT_DEDUP_SECONDS),
) -> bool:
    """True if a live alert with the same title was raised within the window."""
    return any(
        not a.dismissed
        and a.title == candidate.title
        and abs(a.timestamp - candidate.timestamp) < window
        for a in existing
    )


def merge(
    existing: List[Alert], candidates: List[Alert], cap: int = canon.ALERT_CAP
) -> tuple[List[Alert], List[Alert]]:
    """
    Insert non-duplicate candidates newest-first and truncate to `cap`.
    Returns (alerts, inserted).
    """
    alerts = list(existing)
    inserted: List[Alert] = []
    for cand in candidates:
        if is_duplicate(alerts, cand):
            continue
        alerts.insert(0, cand)
        inserted.append(cand)
        logger.info("Alert raised: %s (%s)", cand.title, cand.type)
    return alerts[:cap], inserted


def seed_alerts(now: datetime, ids: Iterator[int]) -> List[Alert]:
    """Initial alert feed shown before the first snapshot."""
    return [
        Alert(
            id=next(ids),
            type="warning",
            title="Low Battery Alert",
            message="Battery level is below 25%. Consider reducing non-essential loads.",
            timestamp=now - timedelta(minutes=5),
        ),
        Alert(
            id=next(ids),
            type="info",
            title="Maintenance Reminder",
            message="Solar panel cleaning recommended. Last cleaning: 30 days ago.",
            timestamp=now - timedelta(hours=2),
        ),
        Alert(
            id=next(ids),
            type="critical",
            title="Grid Connection Lost",
            message="Grid connection has been lost. System running on battery power.",
            timestamp=now - timedelta(minutes=10),
            dismissed=True,
        ),
    ]
