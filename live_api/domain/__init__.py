"""Domain layer - Snapshots y modelos de salud."""

from .snapshot import EntitySnapshot, EntityState
from .system_health import HealthSample, MonitoredServer, MountStat, ServerStatus, SlotHealth

__all__ = [
    "EntitySnapshot",
    "EntityState",
    "HealthSample",
    "MonitoredServer",
    "MountStat",
    "ServerStatus",
    "SlotHealth",
]
