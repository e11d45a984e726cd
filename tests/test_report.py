"""Report statistics, summaries, household roll-ups and export payloads."""

import pytest

from microgridlogic import exceptions, report


def _series(gen, cons):
    return {
        "labels": [str(i) for i in range(len(gen))],
        "timestamps": [],
        "generation": gen,
        "consumption": cons,
    }


def test_statistics_basic():
    """Averages, peaks, totals and efficiency from a small series."""
    stats = report.statistics(_series([10.0, 20.0], [5.0, 15.0]))
    assert stats == {
        "avg_generation": 15.0,
        "avg_consumption": 10.0,
        "efficiency": 150,
        "peak_generation": 20.0,
        "peak_consumption": 15.0,
        "total_generation": 30.0,
        "total_consumption": 20.0,
    }


def test_statistics_empty_and_zero_denominator():
    """Empty series report zeros; zero consumption gives 0 efficiency."""
    empty = report.statistics(_series([], []))
    assert all(v == 0 for v in empty.values())
    assert report.statistics(_series([1.0, 2.0], [0.0, 0.0]))["efficiency"] == 0


def test_report_totals_match_series(model):
    """7d total generation equals the rounded sum of the series."""
    rep = model.get_report_data("7d")
    assert rep["period"] == "7d"
    assert rep["statistics"]["total_generation"] == round(sum(rep["data"]["generation"]), 2)
    assert rep["statistics"]["total_consumption"] == round(sum(rep["data"]["consumption"]), 2)
    assert len(rep["data"]["labels"]) == 168


@pytest.mark.parametrize(
    "eff,rating",
    [(95, "Excellent"), (85, "Very Good"), (70, "Good"), (60, "Average"), (10, "Needs Improvement")],
)
def test_efficiency_rating(eff, rating):
    """Ratings step down every 10 points from 90."""
    assert report.efficiency_rating(eff) == rating


def test_trend_and_financials():
    """Trend is relative to the baseline; savings and CO2 scale total generation."""
    assert report.efficiency_trend(90, 75) == pytest.approx(20.0)
    with pytest.raises(exceptions.ReportError):
        report.efficiency_trend(90, 0)

    rep = report.build_report("24h", _series([50.0, 50.0], [40.0, 60.0]))
    summary = report.report_summary(rep)
    assert summary["financials"]["cost_savings"] == pytest.approx(12.0)
    assert summary["financials"]["co2_reduction"] == pytest.approx(40.0)
    assert summary["rating"] == "Excellent"
    assert summary["trends"]["efficiency"] == pytest.approx((100 - 75) / 75 * 100)


def test_household_statistics(mid_model):
    """Roll-up of the default roster after a noon snapshot."""
    mid_model.generate_snapshot()
    stats = report.household_statistics(mid_model.get_household_data()["households"])
    assert stats["total_households"] == 3
    assert stats["total_devices"] == 12
    assert stats["active_devices"] == 8
    assert stats["total_usage"] == pytest.approx(14.1)
    assert stats["average_usage_per_household"] == pytest.approx(4.7)
    assert stats["highest_usage_household"] == "house1"
    assert stats["device_types"]["HVAC"]["count"] == 2
    assert stats["device_types"]["HVAC"]["total_power"] == pytest.approx(7.0)


def test_household_statistics_empty():
    """No households: zeros and no leader."""
    stats = report.household_statistics([])
    assert stats["total_households"] == 0
    assert stats["average_usage_per_household"] == 0.0
    assert stats["highest_usage_household"] is None


def test_build_export(mid_model, noon):
    """Export carries summary, history, current status and powered devices only."""
    mid_model.generate_snapshot()
    payload = report.build_export(mid_model, "24h")
    assert payload["generated_at"] == noon
    assert payload["period"] == "24h"
    assert payload["summary"]["total_generation"] == mid_model.get_report_data("24h")["statistics"]["total_generation"]
    assert payload["current_status"]["battery"]["percentage"] == 75
    house3 = payload["household_breakdown"][2]
    assert [d["name"] for d in house3["devices"]] == ["Heat Pump", "Electronics"]
