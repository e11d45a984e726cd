from . import (
    canon,
    types,
    sources,
    profiles,
    history,
    settings,
    alerts,
    report,
    formats,
    model,
    driver,
)
from .model import EnergyModel
from .driver import Driver

__all__ = [
    "canon",
    "types",
    "sources",
    "profiles",
    "history",
    "settings",
    "alerts",
    "report",
    "formats",
    "model",
    "driver",
    "EnergyModel",
    "Driver",
]
