from __future__ import annotations
from typing import TypedDict, Literal, List, Dict, Optional
from dataclasses import dataclass, field
from datetime import datetime

Period = Literal["24h", "7d", "30d"]
DeviceStatus = Literal["on", "off", "auto"]
DevicePriority = Literal["low", "medium", "high"]
DeviceCategory = Literal["hvac", "water_heater", "ev", "lighting", "pool_pump", "default"]
AlertType = Literal["info", "warning", "critical"]
BatteryHealth = Literal["Good", "Warning", "Critical"]
GridStatus = Literal["ON", "OFF"]


# Snapshot payload
class Generation(TypedDict):
    solar: float
    wind: float
    total: float


class Consumption(TypedDict):
    households: float
    total: float


class Battery(TypedDict):
    percentage: int
    health: BatteryHealth
    voltage: float
    temperature: float


class Grid(TypedDict):
    status: GridStatus
    load: int


class DailySummary(TypedDict):
    total_generated: float  # kWh, running approximation
    total_consumed: float
    efficiency: int  # %


class Snapshot(TypedDict):
    timestamp: datetime
    generation: Generation
    consumption: Consumption
    battery: Battery
    grid: Grid
    daily_summary: DailySummary


# Historical series as handed to consumers (equal-length lists)
class SeriesPayload(TypedDict):
    labels: List[str]
    timestamps: List[datetime]
    generation: List[float]
    consumption: List[float]


class ReportStatistics(TypedDict):
    avg_generation: float
    avg_consumption: float
    efficiency: int
    peak_generation: float
    peak_consumption: float
    total_generation: float
    total_consumption: float


class ReportData(TypedDict):
    period: str
    data: SeriesPayload
    statistics: ReportStatistics


## Household models
@dataclass
class Device:
    name: str
    power: float = 0.0  # kW, recomputed every snapshot
    status: DeviceStatus = "on"
    priority: DevicePriority = "medium"
    category: Optional[DeviceCategory] = None  # resolved from name when None


@dataclass
class Household:
    id: str
    name: str
    status: str = "Active"
    current_usage: float = 0.0  # kW, sum of device power
    devices: List[Device] = field(default_factory=list)


@dataclass
class Alert:
    id: int
    type: AlertType
    title: str
    message: str
    timestamp: datetime
    dismissed: bool = False


@dataclass
class Schedule:
    id: int
    name: str = ""
    time: str = ""  # "HH:MM - HH:MM"
    action: str = ""
    conditions: str = ""
    active: bool = True


class HouseholdStats(TypedDict):
    total_households: int
    total_devices: int
    active_devices: int
    total_usage: float
    average_usage_per_household: float
    highest_usage_household: Optional[str]
    device_types: Dict[str, Dict[str, float]]
