from __future__ import annotations

import json
import logging
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class _Section(BaseModel):
    # Persisted blobs use camelCase keys (e.g. 'updateFrequency')
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, validate_assignment=True
    )

    @classmethod
    def field_name(cls, key: str) -> str | None:
        """Resolve a field name or its camelCase alias to the field name."""
        for name, info in cls.model_fields.items():
            if key == name or key == info.alias:
                return name
        return None

    def update_setting(self, category: str, key: str, value: Any) -> bool:
        """Set one nested field; returns False for unknown category/key or rejected value."""
        section = getattr(self, category, None) if category in type(self).model_fields else None
        if not isinstance(section, _Section):
            return False
        name = type(section).field_name(key)
        if name is None:
            return False
        try:
            setattr(section, name, value)
        except ValidationError as err:
            logger.warning("Rejected %s.%s=%r: %s", category, key, value, err)
            return False
        return True


class GeneralSettings(_Section):
    language: Literal["en", "es", "fr", "de", "zh"] = "en"
    theme: Literal["dark", "light", "auto"] = "dark"
    timezone: str = "UTC"


class DashboardSettings(_Section):
    update_frequency: int = Field(default=5000, gt=0, description="milliseconds")
    default_chart_period: Literal["24h", "7d", "30d"] = "24h"
    show_animations: bool = True


class UnitsSettings(_Section):
    energy: Literal["kwh", "mwh", "wh"] = "kwh"
    power: Literal["kw", "mw", "w"] = "kw"
    temperature: Literal["celsius", "fahrenheit"] = "celsius"


class DataSettings(_Section):
    retention_period: int = Field(default=90, gt=0, description="days")
    share_usage_data: bool = False
    cloud_backup: bool = True


class DashboardConfig(_Section):
    general: GeneralSettings = Field(default_factory=GeneralSettings)
    dashboard: DashboardSettings = Field(default_factory=DashboardSettings)
    units: UnitsSettings = Field(default_factory=UnitsSettings)
    data: DataSettings = Field(default_factory=DataSettings)

    @classmethod
    def merged(cls, saved: Mapping[str, Any]) -> "DashboardConfig":
        """
        Overlay a saved blob onto defaults category by category.
        Keys may be camelCase aliases or field names; unknown categories and
        keys are ignored; invalid values raise ValidationError.
        """
        merged = cls().model_dump()
        for category, values in saved.items():
            if category not in merged or not isinstance(values, Mapping):
                continue
            section_cls = cls.model_fields[category].annotation
            for key, value in values.items():
                name = section_cls.field_name(key)
                if name is not None:
                    merged[category][name] = value
        return cls.model_validate(merged)

    @classmethod
    def from_json(cls, text: str | None) -> "DashboardConfig":
        """Parse a persisted blob; malformed input is logged and defaults are used."""
        if not text:
            return cls()
        try:
            saved = json.loads(text)
            if not isinstance(saved, Mapping):
                raise ValueError("settings blob must be a JSON object")
            return cls.merged(saved)
        except (ValueError, ValidationError) as err:
            logger.warning("Ignoring malformed settings, using defaults: %s", err)
            return cls()

    def to_json(self, indent: int | None = 2) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)


class AlertSettings(_Section):
    battery_critical_threshold: float = Field(default=20.0, ge=0, le=100)
    battery_warning_threshold: float = Field(default=30.0, ge=0, le=100)
    grid_load_threshold: float = Field(default=80.0, ge=0, le=100)
    push_notifications: bool = True
    email_alerts: bool = False


## Control settings
class SystemControls(_Section):
    grid_connection: bool = True
    auto_load_balancing: bool = True
    battery_charging: bool = True


class EnergyLimits(_Section):
    max_grid_import: float = Field(default=10.0, ge=0, description="kW")
    battery_discharge_limit: float = Field(default=20.0, ge=0, le=100, description="%")
    load_priority: Literal["low", "normal", "high"] = "normal"


class ControlSettings(_Section):
    system_controls: SystemControls = Field(default_factory=SystemControls)
    energy_limits: EnergyLimits = Field(default_factory=EnergyLimits)


## Unit conversion
UNIT_CONVERSIONS: dict[str, dict[str, dict[str, Any]]] = {
    "energy": {
        "kwh": {"factor": 1.0, "symbol": "kWh"},
        "mwh": {"factor": 0.001, "symbol": "MWh"},
        "wh": {"factor": 1000.0, "symbol": "Wh"},
    },
    "power": {
        "kw": {"factor": 1.0, "symbol": "kW"},
        "mw": {"factor": 0.001, "symbol": "MW"},
        "w": {"factor": 1000.0, "symbol": "W"},
    },
    "temperature": {
        "celsius": {"symbol": "°C"},
        "fahrenheit": {"symbol": "°F"},
    },
}


def convert_value(
    value: float,
    kind: Literal["energy", "power", "temperature"],
    units: UnitsSettings,
    from_unit: str | None = None,
) -> float:
    """
    Convert a base-unit value (kWh, kW, °C) to the configured display unit.
    Temperatures convert between Celsius and Fahrenheit given from_unit.
    """
    target = getattr(units, kind, None)
    table = UNIT_CONVERSIONS.get(kind, {})
    if target not in table:
        return value
    if kind == "temperature":
        if from_unit == "celsius" and target == "fahrenheit":
            return value * 9.0 / 5.0 + 32.0
        if from_unit == "fahrenheit" and target == "celsius":
            return (value - 32.0) * 5.0 / 9.0
        return value
    return value * float(table[target]["factor"])


def unit_symbol(kind: str, units: UnitsSettings) -> str:
    target = getattr(units, kind, None)
    return str(UNIT_CONVERSIONS.get(kind, {}).get(target, {}).get("symbol", ""))
