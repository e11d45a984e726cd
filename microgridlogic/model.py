from __future__ import annotations

import copy
import itertools
import logging
from dataclasses import asdict, fields, replace
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from . import alerts, canon, profiles, report
from .history import HistoricalSeries, as_timestamp, require_period
from .settings import AlertSettings, ControlSettings
from .sources import Clock, NumpyRandomSource, RandomSource, SystemClock
from .types import (
    Alert,
    BatteryHealth,
    Device,
    GridStatus,
    Household,
    ReportData,
    Schedule,
    SeriesPayload,
    Snapshot,
)

logger = logging.getLogger(__name__)


def default_households() -> List[Household]:
    roster = {
        ("house1", "House 1"): [
            ("HVAC", "on", "high"),
            ("Water Heater", "on", "medium"),
            ("Refrigerator", "on", "high"),
            ("Lighting", "on", "low"),
        ],
        ("house2", "House 2"): [
            ("HVAC", "on", "high"),
            ("Electric Vehicle", "off", "low"),
            ("Washer/Dryer", "off", "low"),
            ("Kitchen Appliances", "on", "medium"),
        ],
        ("house3", "House 3"): [
            ("Heat Pump", "on", "high"),
            ("Pool Pump", "off", "low"),
            ("Electronics", "on", "medium"),
            ("Outdoor Lighting", "auto", "low"),
        ],
    }
    return [
        Household(
            id=hid,
            name=name,
            devices=[
                Device(
                    name=dname,
                    status=status,  # type: ignore[arg-type]
                    priority=prio,  # type: ignore[arg-type]
                    category=profiles.classify_device(dname),
                )
                for dname, status, prio in devices
            ],
        )
        for (hid, name), devices in roster.items()
    ]


def default_schedules() -> List[Schedule]:
    return [
        Schedule(
            id=1,
            name="Night Charging",
            time="22:00 - 06:00",
            action="Charge EV",
            conditions="Low grid rates",
        ),
        Schedule(
            id=2,
            name="Peak Shaving",
            time="16:00 - 20:00",
            action="Reduce non-essential loads",
            conditions="High grid rates",
        ),
    ]


def battery_health(percentage: float) -> BatteryHealth:
    if percentage < canon.HEALTH_CRITICAL_PCT:
        return "Critical"
    if percentage < canon.HEALTH_WARNING_PCT:
        return "Warning"
    return "Good"


def grid_status(
    percentage: float, generation: float, consumption: float, discharge_limit: float
) -> GridStatus:
    """Grid draws when the battery is below its limit or demand outruns supply."""
    if percentage < discharge_limit:
        return "ON"
    if consumption > generation + canon.GRID_DEFICIT_MARGIN_KW:
        return "ON"
    return "OFF"


def efficiency_pct(generation: float, consumption: float) -> int:
    if generation <= 0 or consumption <= 0:
        return 0
    return int(round(min(100.0, generation / consumption * 100.0)))


class EnergyModel:
    """
    Synthetic microgrid model.

    Owns the current snapshot, the rolling history per period, the household
    roster, alerts, control settings and schedules. Build one per application
    and hand it to consumers; every accessor returns a deep copy.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        rng: Optional[RandomSource] = None,
        *,
        households: Optional[Iterable[Household]] = None,
        alert_settings: Optional[AlertSettings] = None,
        controls: Optional[ControlSettings] = None,
        tz: str = canon.DEFAULT_TZ,
        backfill: bool = True,
    ):
        self.tz = tz
        self.clock: Clock = clock or SystemClock(tz)
        self.rng: RandomSource = rng or NumpyRandomSource()
        self.alert_settings = alert_settings or AlertSettings()
        self.controls = controls or ControlSettings()

        self._households = (
            [copy.deepcopy(h) for h in households]
            if households is not None
            else default_households()
        )
        for household in self._households:
            for device in household.devices:
                if device.category is None:
                    device.category = profiles.classify_device(device.name)
        self._schedules = default_schedules()
        self._schedule_ids = itertools.count(len(self._schedules) + 1)
        self._alert_ids = itertools.count(1)

        now = self._instant(self.clock.now())
        self._battery_pct = canon.INITIAL_BATTERY_PCT
        self._current: Snapshot = {
            "timestamp": now,
            "generation": {"solar": 0.0, "wind": 0.0, "total": 0.0},
            "consumption": {"households": 0.0, "total": 0.0},
            "battery": {
                "percentage": int(round(self._battery_pct)),
                "health": battery_health(self._battery_pct),
                "voltage": 0.0,
                "temperature": 0.0,
            },
            "grid": {"status": "OFF", "load": 0},
            "daily_summary": {"total_generated": 0.0, "total_consumed": 0.0, "efficiency": 0},
        }

        self.history = HistoricalSeries(tz)
        if backfill:
            self.history.backfill(now, self.rng)
        self._alerts: List[Alert] = alerts.seed_alerts(now, self._alert_ids)

    # ------------------------------------------------------------------
    # Snapshot generation
    # ------------------------------------------------------------------
    def _instant(self, now: datetime) -> datetime:
        """Express an instant in the model timezone; naive values are taken as local to it."""
        return as_timestamp(now, self.tz).to_pydatetime()

    def _update_households(self, hour: int) -> float:
        """Recompute device power and per-household usage; return total kW."""
        total = 0.0
        for household in self._households:
            usage = 0.0
            for device in household.devices:
                device.power = profiles.device_power(device, hour, self.rng)
                usage += device.power
            household.current_usage = round(usage, 2)
            total += household.current_usage
        return round(total, 2)

    def generate_snapshot(self, now: Optional[datetime] = None) -> Snapshot:
        """
        Produce a new snapshot for `now` (defaults to the clock), then append
        to due history periods and evaluate alerts.
        """
        now = self._instant(now or self.clock.now())
        hour = now.hour

        solar = round(profiles.solar_kw(hour, self.rng), 2)
        wind = round(profiles.wind_kw(self.rng), 2)
        generation = round(solar + wind, 2)
        consumption = self._update_households(hour)

        net = generation - consumption
        self._battery_pct = min(100.0, max(0.0, self._battery_pct + net * canon.BATTERY_COUPLING))
        pct = int(round(self._battery_pct))

        status = grid_status(
            pct, generation, consumption, self.controls.energy_limits.battery_discharge_limit
        )
        load = int(round(min(100.0, abs(net) * canon.GRID_LOAD_FACTOR))) if status == "ON" else 0

        prev = self._current["daily_summary"]
        self._current = {
            "timestamp": now,
            "generation": {"solar": solar, "wind": wind, "total": generation},
            "consumption": {"households": consumption, "total": consumption},
            "battery": {
                "percentage": pct,
                "health": battery_health(pct),
                "voltage": round(
                    canon.BATTERY_NOMINAL_V + self._battery_pct / 100.0 * canon.BATTERY_SPAN_V, 1
                ),
                "temperature": round(25.0 + float(self.rng.uniform(0.0, 10.0)), 1),
            },
            "grid": {"status": status, "load": load},
            "daily_summary": {
                "total_generated": round(
                    prev["total_generated"] + generation / canon.SNAPSHOTS_PER_DAY, 2
                ),
                "total_consumed": round(
                    prev["total_consumed"] + consumption / canon.SNAPSHOTS_PER_DAY, 2
                ),
                "efficiency": efficiency_pct(generation, consumption),
            },
        }
        logger.debug(
            "Snapshot %s gen=%.2f cons=%.2f battery=%d%% grid=%s",
            now.isoformat(),
            generation,
            consumption,
            pct,
            status,
        )

        self.append_if_due(now)
        self.check_alerts()
        return copy.deepcopy(self._current)

    def append_if_due(self, now: Optional[datetime] = None) -> List[str]:
        """Append the current snapshot to every period whose cadence has elapsed."""
        now = self._instant(now or self._current["timestamp"])
        return self.history.append_if_due(
            now,
            self._current["generation"]["total"],
            self._current["consumption"]["total"],
        )

    def check_alerts(self, snapshot: Optional[Snapshot] = None) -> List[Alert]:
        """Evaluate alert rules against a snapshot; returns copies of inserted alerts."""
        snap = snapshot or self._current
        candidates = alerts.evaluate(snap, self.alert_settings, self._alert_ids)
        self._alerts, inserted = alerts.merge(self._alerts, candidates)
        return [replace(a) for a in inserted]

    def tick(self) -> Snapshot:
        """One driver step at the clock's current instant."""
        return self.generate_snapshot(self.clock.now())

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    def get_current_data(self) -> Snapshot:
        return copy.deepcopy(self._current)

    def get_historical_data(self, period: str = "24h") -> SeriesPayload:
        return self.history.to_payload(period)

    def get_household_data(self) -> Dict[str, List[Dict[str, Any]]]:
        return {"households": [asdict(h) for h in self._households]}

    def get_alerts_data(self) -> List[Dict[str, Any]]:
        return [asdict(a) for a in self._alerts]

    def get_controls_data(self) -> Dict[str, Any]:
        return self.controls.model_dump()

    def get_schedules_data(self) -> List[Dict[str, Any]]:
        return [asdict(s) for s in self._schedules]

    def get_alert_settings(self) -> Dict[str, Any]:
        return self.alert_settings.model_dump()

    def get_report_data(self, period: str = "7d") -> ReportData:
        require_period(period)
        return report.build_report(period, self.get_historical_data(period))

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------
    def toggle_device(self, household_id: str, device_name: str) -> bool:
        household = next((h for h in self._households if h.id == household_id), None)
        if household is None:
            return False
        device = next((d for d in household.devices if d.name == device_name), None)
        if device is None:
            return False
        device.status = "off" if device.status == "on" else "on"
        logger.info("Device %s/%s -> %s", household_id, device_name, device.status)
        return True

    def toggle_schedule(self, schedule_id: int) -> bool:
        schedule = next((s for s in self._schedules if s.id == schedule_id), None)
        if schedule is None:
            return False
        schedule.active = not schedule.active
        return True

    def add_schedule(self, spec: Mapping[str, Any]) -> Schedule:
        """Append a schedule built from `spec`; id is assigned and active forced True."""
        allowed = {f.name for f in fields(Schedule)} - {"id", "active"}
        schedule = Schedule(
            id=next(self._schedule_ids),
            **{k: v for k, v in spec.items() if k in allowed},
        )
        self._schedules.append(schedule)
        return replace(schedule)

    def dismiss_alert(self, alert_id: int) -> bool:
        alert = next((a for a in self._alerts if a.id == alert_id), None)
        if alert is None:
            return False
        alert.dismissed = True
        return True

    def clear_dismissed_alerts(self) -> int:
        before = len(self._alerts)
        self._alerts = [a for a in self._alerts if not a.dismissed]
        return before - len(self._alerts)

    def update_control_setting(self, category: str, key: str, value: Any) -> bool:
        """Set one validated control field; False for unknown keys or rejected values."""
        return self.controls.update_setting(category, key, value)

    def update_alert_settings(self, **changes: Any) -> bool:
        """Apply validated alert threshold changes; False if any value is rejected."""
        try:
            self.alert_settings = AlertSettings.model_validate(
                {**self.alert_settings.model_dump(), **changes}
            )
        except ValueError as err:
            logger.warning("Rejected alert settings %r: %s", changes, err)
            return False
        return True
