"""JSON export/import of snapshots, households and reports.

Covers:
- Snapshot instants survive dumps/loads
- Households -> JSON -> Households preserves every field
- Report round trip preserves series and statistics
"""

import pytest

from microgridlogic import exceptions, formats


def test_snapshot_roundtrip(mid_model):
    """Snapshot timestamps come back as equal datetimes."""
    snap = mid_model.generate_snapshot()
    back = formats.loads(formats.dumps(snap))
    assert back == snap


def test_households_roundtrip(mid_model):
    """Household records are identical field-for-field after export/import."""
    mid_model.generate_snapshot()
    records = mid_model.get_household_data()["households"]
    homes = formats.households_from_records(records)
    back = formats.households_from_json(formats.households_to_json(homes))
    assert formats.households_to_records(back) == records


def test_report_roundtrip(model):
    """Report payload survives JSON including instants."""
    model.generate_snapshot()
    rep = model.get_report_data("24h")
    back = formats.report_from_json(formats.report_to_json(rep))
    assert back == rep
    assert back["data"]["timestamps"][-1] == rep["data"]["timestamps"][-1]


def test_invalid_payloads():
    """Bad JSON or malformed structures raise FormatError."""
    with pytest.raises(exceptions.FormatError):
        formats.loads("{nope")
    with pytest.raises(exceptions.FormatError):
        formats.households_from_json('{"homes": []}')
    with pytest.raises(exceptions.FormatError):
        formats.households_from_records([{"name": "no id"}])
    bad = '{"period": "24h", "statistics": {}, "data": {"labels": ["a"], "generation": [], "consumption": []}}'
    with pytest.raises(exceptions.FormatError):
        formats.report_from_json(bad)
