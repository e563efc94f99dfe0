"""Modelos de salud del sistema y de servidores de streaming monitorizados."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class SlotHealth:
    """Resumen por slot embebido en el snapshot de salud."""
    slot_id: int
    state: str
    bytes_out: int = 0
    out_kbps: int = 0
    track_title: Optional[str] = None
    listeners: int = 0


@dataclass(frozen=True)
class HealthSample:
    """Una medición puntual de salud del host del encoder."""
    sampled_at: float  # epoch seconds (reloj del backend)
    cpu_pct: float
    mem_pct: float
    mem_used_mb: int = 0
    mem_total_mb: int = 0
    net_in_kbps: int = 0
    net_out_kbps: int = 0
    net_iface: Optional[str] = None
    thread_count: int = 0
    slots: Tuple[SlotHealth, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ServerStatus:
    """Estado general del proceso encoder (`/api/v1/status`)."""
    version: Optional[str]
    uptime: Optional[str]
    encoders_connected: int = 0
    encoders_total: int = 0
    master_volume: Optional[float] = None
    observed_at_ms: float = 0.0


@dataclass(frozen=True)
class MountStat:
    """Mount publicado en un servidor monitorizado."""
    mount: str
    codec: Optional[str] = None
    listeners: int = 0
    bitrate: int = 0
    title: Optional[str] = None
    online: bool = False
    ours: bool = False  # algún slot del encoder publica en este mount


@dataclass(frozen=True)
class MonitoredServer:
    """Servidor de streaming (Icecast/Shoutcast/...) vigilado por el encoder."""
    server_id: int
    name: str
    server_type: str
    host: str
    port: int
    status: str
    listeners: int = 0
    out_kbps: int = 0
    uptime: Optional[str] = None
    polled_at: Optional[float] = None
    fetch_ms: Optional[int] = None
    mounts: Tuple[MountStat, ...] = ()

    @property
    def is_online(self) -> bool:
        return self.status == "online"
