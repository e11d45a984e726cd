from __future__ import annotations

import json
from dataclasses import asdict, fields
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping

import numpy as np
import pandas as pd

from . import exceptions
from .types import Device, Household, ReportData

# Keys whose values are instants (scalar or list) in exported payloads
DATETIME_KEYS = frozenset({"timestamp", "timestamps", "generated_at"})


def _encode(obj: Any) -> Any:
    if isinstance(obj, (datetime, pd.Timestamp)):
        return obj.isoformat()
    if isinstance(obj, np.generic):
        return obj.item()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _decode_instants(obj: Any) -> Any:
    if isinstance(obj, dict):
        out: Dict[str, Any] = {}
        for key, value in obj.items():
            if key in DATETIME_KEYS and isinstance(value, str):
                out[key] = datetime.fromisoformat(value)
            elif key in DATETIME_KEYS and isinstance(value, list):
                out[key] = [datetime.fromisoformat(v) for v in value]
            else:
                out[key] = _decode_instants(value)
        return out
    if isinstance(obj, list):
        return [_decode_instants(v) for v in obj]
    return obj


def dumps(payload: Any, indent: int | None = 2) -> str:
    """Serialize a plain payload; instants become ISO-8601 strings."""
    return json.dumps(payload, default=_encode, indent=indent)


def loads(text: str) -> Any:
    """Parse a payload written by dumps(); instant keys are turned back into datetimes."""
    try:
        return _decode_instants(json.loads(text))
    except ValueError as err:
        raise exceptions.FormatError(f"Invalid payload: {err}") from err


def households_to_records(households: Iterable[Household]) -> List[Dict[str, Any]]:
    return [asdict(h) for h in households]


def households_from_records(records: Iterable[Mapping[str, Any]]) -> List[Household]:
    """
    Rebuild Household objects from records produced by households_to_records
    (or EnergyModel.get_household_data()['households']).
    """
    device_keys = {f.name for f in fields(Device)}
    household_keys = {f.name for f in fields(Household)} - {"devices"}
    out: List[Household] = []
    for rec in records:
        try:
            devices = [
                Device(**{k: v for k, v in d.items() if k in device_keys})
                for d in rec.get("devices", [])
            ]
            out.append(
                Household(
                    **{k: v for k, v in rec.items() if k in household_keys},
                    devices=devices,
                )
            )
        except TypeError as err:
            raise exceptions.FormatError(f"Invalid household record: {err}") from err
    return out


def households_to_json(households: Iterable[Household]) -> str:
    return dumps({"households": households_to_records(households)})


def households_from_json(text: str) -> List[Household]:
    obj = loads(text)
    exceptions.require(
        isinstance(obj, dict) and isinstance(obj.get("households"), list),
        "Expected an object with a 'households' list.",
        exceptions.FormatError,
    )
    return households_from_records(obj["households"])


def report_to_json(report: ReportData) -> str:
    return dumps(report)


def report_from_json(text: str) -> ReportData:
    obj = loads(text)
    for key in ("period", "data", "statistics"):
        exceptions.require(
            isinstance(obj, dict) and key in obj,
            f"Report payload is missing '{key}'.",
            exceptions.FormatError,
        )
    data = obj["data"]
    lengths = {len(data.get(k, [])) for k in ("labels", "generation", "consumption")}
    exceptions.require(
        len(lengths) == 1,
        "Report series must have equal-length labels/generation/consumption.",
        exceptions.FormatError,
    )
    return obj
