from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, cast

import pandas as pd

from . import canon, exceptions
from .types import HouseholdStats, ReportData, ReportStatistics, SeriesPayload

if TYPE_CHECKING:
    from .model import EnergyModel


def _safe_ratio_pct(num: float, den: float) -> float:
    return (num / den * 100.0) if num > 0 and den > 0 else 0.0


def statistics(series: SeriesPayload) -> ReportStatistics:
    """
    Aggregate a historical series. Empty series report zeros throughout;
    efficiency is avg generation / avg consumption, 0 on a zero denominator.
    """
    gen = pd.Series(series["generation"], dtype=float)
    cons = pd.Series(series["consumption"], dtype=float)
    if gen.empty or cons.empty:
        return {
            "avg_generation": 0.0,
            "avg_consumption": 0.0,
            "efficiency": 0,
            "peak_generation": 0.0,
            "peak_consumption": 0.0,
            "total_generation": 0.0,
            "total_consumption": 0.0,
        }
    avg_gen = float(gen.mean())
    avg_cons = float(cons.mean())
    return {
        "avg_generation": round(avg_gen, 2),
        "avg_consumption": round(avg_cons, 2),
        "efficiency": int(round(_safe_ratio_pct(avg_gen, avg_cons))),
        "peak_generation": round(float(gen.max()), 2),
        "peak_consumption": round(float(cons.max()), 2),
        "total_generation": round(float(gen.sum()), 2),
        "total_consumption": round(float(cons.sum()), 2),
    }


def build_report(period: str, series: SeriesPayload) -> ReportData:
    return {"period": period, "data": series, "statistics": statistics(series)}


def efficiency_trend(current: float, baseline: float = canon.EFFICIENCY_BASELINE_PCT) -> float:
    """Percent change of efficiency relative to a baseline."""
    exceptions.require(baseline != 0, "Baseline efficiency must be non-zero.", exceptions.ReportError)
    return (current - baseline) / baseline * 100.0


def cost_savings(stats: ReportStatistics, rate: float = canon.GRID_RATE_PER_KWH) -> float:
    return stats["total_generation"] * rate


def co2_reduction(stats: ReportStatistics, kg_per_kwh: float = canon.CO2_KG_PER_KWH) -> float:
    return stats["total_generation"] * kg_per_kwh


def efficiency_rating(efficiency: float) -> str:
    if efficiency >= 90:
        return "Excellent"
    if efficiency >= 80:
        return "Very Good"
    if efficiency >= 70:
        return "Good"
    if efficiency >= 60:
        return "Average"
    return "Needs Improvement"


def report_summary(
    report: ReportData, *, baseline: float = canon.EFFICIENCY_BASELINE_PCT
) -> Dict[str, Any]:
    stats = report["statistics"]
    return {
        "period": report["period"],
        "statistics": dict(stats),
        "trends": {
            "efficiency": efficiency_trend(stats["efficiency"], baseline),
            "generation": stats["total_generation"],
            "consumption": stats["total_consumption"],
        },
        "financials": {
            "cost_savings": cost_savings(stats),
            "co2_reduction": co2_reduction(stats),
        },
        "rating": efficiency_rating(stats["efficiency"]),
    }


def household_statistics(households: List[Mapping[str, Any]]) -> HouseholdStats:
    """Roll up household/device records as returned by EnergyModel.get_household_data()."""
    device_types: Dict[str, Dict[str, float]] = {}
    total_devices = 0
    active_devices = 0
    for h in households:
        for d in h["devices"]:
            total_devices += 1
            entry = device_types.setdefault(
                d["name"], {"count": 0, "total_power": 0.0, "active_count": 0}
            )
            entry["count"] += 1
            entry["total_power"] += float(d["power"])
            if d["status"] == "on":
                entry["active_count"] += 1
                active_devices += 1

    total_usage = float(sum(float(h["current_usage"]) for h in households))
    highest: Optional[str] = None
    if households:
        highest = str(max(households, key=lambda h: h["current_usage"])["id"])
    return {
        "total_households": len(households),
        "total_devices": total_devices,
        "active_devices": active_devices,
        "total_usage": round(total_usage, 2),
        "average_usage_per_household": (
            round(total_usage / len(households), 2) if households else 0.0
        ),
        "highest_usage_household": highest,
        "device_types": device_types,
    }


def build_export(
    model: "EnergyModel", period: str = "7d", *, generated_at: Optional[datetime] = None
) -> Dict[str, Any]:
    """Assemble the downloadable report payload for a period."""
    report = model.get_report_data(period)
    current = model.get_current_data()
    households = model.get_household_data()["households"]
    stats = report["statistics"]
    return {
        "generated_at": generated_at or model.clock.now(),
        "period": period,
        "summary": {
            "total_generation": stats["total_generation"],
            "total_consumption": stats["total_consumption"],
            "efficiency": stats["efficiency"],
            "cost_savings": cost_savings(stats),
            "co2_reduction": co2_reduction(stats),
        },
        "historical_data": cast(Dict[str, Any], report["data"]),
        "current_status": {
            "battery": current["battery"],
            "grid": current["grid"],
            "generation": current["generation"],
            "consumption": current["consumption"],
        },
        "household_breakdown": [
            {
                "name": h["name"],
                "current_usage": h["current_usage"],
                "devices": [d for d in h["devices"] if d["power"] > 0],
            }
            for h in households
        ],
    }
