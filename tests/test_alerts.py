"""Alert rule evaluation, deduplication window and cap."""

import itertools
from datetime import timedelta

from microgridlogic import alerts, canon
from microgridlogic.settings import AlertSettings
from microgridlogic.types import Alert


def _snapshot(model, pct=75, load=0):
    snap = model.get_current_data()
    snap["battery"]["percentage"] = pct
    snap["grid"]["load"] = load
    return snap


def test_rules_thresholds(model):
    """Battery <20 critical, 20–29 warning; grid load >80 warning."""
    ids = itertools.count(100)
    cfg = AlertSettings()

    def titles(snap):
        return [(a.type, a.title) for a in alerts.evaluate(snap, cfg, ids)]

    assert titles(_snapshot(model, pct=19)) == [("critical", "Critical Battery Level")]
    assert titles(_snapshot(model, pct=20)) == [("warning", "Low Battery Warning")]
    assert titles(_snapshot(model, pct=29)) == [("warning", "Low Battery Warning")]
    assert titles(_snapshot(model, pct=30)) == []
    assert titles(_snapshot(model, pct=50, load=80)) == []
    assert titles(_snapshot(model, pct=50, load=81)) == [("warning", "High Grid Load")]


def test_alert_message_includes_value(model):
    """Messages quote the measured value."""
    [alert] = alerts.evaluate(_snapshot(model, pct=12), AlertSettings(), itertools.count(1))
    assert alert.message == "Battery level is 12%. Immediate action required."


def test_check_alerts_deduplicates_within_window(model, noon):
    """Two critical readings within 5 minutes produce one live alert."""
    snap = _snapshot(model, pct=5)
    assert len(model.check_alerts(snap)) == 1
    snap["timestamp"] = noon + timedelta(minutes=4)
    assert model.check_alerts(snap) == []

    live = [a for a in model.get_alerts_data() if a["title"] == "Critical Battery Level"]
    assert len(live) == 1
    assert model.get_alerts_data()[0]["title"] == "Critical Battery Level"


def test_check_alerts_after_window_or_dismissal(model, noon):
    """A repeat outside the window, or after dismissal, is inserted again."""
    snap = _snapshot(model, pct=5)
    [first] = model.check_alerts(snap)

    snap["timestamp"] = noon + timedelta(minutes=6)
    assert len(model.check_alerts(snap)) == 1

    model.dismiss_alert(first.id)
    snap["timestamp"] = noon + timedelta(minutes=7)
    # the 6-minute alert is still live and within the window
    assert model.check_alerts(snap) == []


def test_generated_snapshots_deduplicate(mid_model, clock):
    """Repeated snapshots under a raised threshold yield a single alert per title."""
    assert mid_model.update_alert_settings(battery_critical_threshold=100) is True
    mid_model.tick()
    clock.advance(minutes=2)
    mid_model.tick()
    live = [
        a
        for a in mid_model.get_alerts_data()
        if a["title"] == "Critical Battery Level" and not a["dismissed"]
    ]
    assert len(live) == 1


def test_update_alert_settings_rejects_invalid(model):
    """Out-of-range thresholds are rejected and the previous settings kept."""
    assert model.update_alert_settings(grid_load_threshold=150) is False
    assert model.get_alert_settings()["grid_load_threshold"] == 80.0


def test_merge_caps_newest_first(noon):
    """The alert list keeps only the 50 most recent entries, newest first."""
    ids = itertools.count(1)
    candidates = [
        Alert(id=next(ids), type="info", title=f"t{i}", message="", timestamp=noon)
        for i in range(60)
    ]
    out, inserted = alerts.merge([], candidates)
    assert len(inserted) == 60
    assert len(out) == canon.ALERT_CAP
    assert out[0].title == "t59"
    assert out[-1].title == "t10"


def test_seed_alerts(noon):
    """Seed feed has three alerts, the grid one already dismissed."""
    seeded = alerts.seed_alerts(noon, itertools.count(1))
    assert [a.id for a in seeded] == [1, 2, 3]
    assert [a.dismissed for a in seeded] == [False, False, True]
    assert seeded[0].timestamp == noon - timedelta(minutes=5)
