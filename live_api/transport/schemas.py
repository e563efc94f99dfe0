"""Esquemas Pydantic de las respuestas del API del encoder.

Validan la forma del payload antes de convertirlo a los modelos de dominio
inmutables. Un payload que no valida se reporta como MalformedResponse.
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..domain import (
    EntitySnapshot,
    EntityState,
    HealthSample,
    MonitoredServer,
    MountStat,
    ServerStatus,
    SlotHealth,
)


def _none_to_zero(v: Any) -> Any:
    return 0 if v is None else v


class EncoderStatusIn(BaseModel):
    """Un elemento de `GET /api/v1/encoders`.

    Ejemplo:
    {
        "slot_id": 1,
        "state": "live",
        "is_live": true,
        "bytes_sent": 1048576,
        "uptime_sec": 312,
        "track_title": "Song",
        "track_artist": "Artist",
        "position_ms": 10000,
        "duration_ms": 60000,
        "volume": 1.0,
        "last_error": ""
    }
    """

    model_config = ConfigDict(extra="ignore")

    slot_id: int
    state: Optional[str] = "idle"
    is_live: bool = False
    name: Optional[str] = None
    format: Optional[str] = None
    bytes_sent: int = Field(default=0, ge=0)
    listeners: int = Field(default=0, ge=0)
    uptime_sec: Optional[int] = None
    track_title: Optional[str] = None
    track_artist: Optional[str] = None
    position_ms: Optional[int] = None
    duration_ms: Optional[int] = None
    track_index: Optional[int] = None
    track_count: Optional[int] = None
    volume: Optional[float] = None
    last_error: Optional[str] = None

    @field_validator("bytes_sent", "listeners", mode="before")
    @classmethod
    def _counters_default_to_zero(cls, v):
        return _none_to_zero(v)

    @field_validator("position_ms", "duration_ms")
    @classmethod
    def _non_negative(cls, v):
        if v is not None and v < 0:
            return 0
        return v

    @model_validator(mode="after")
    def _clamp_position(self):
        """position_ms nunca supera duration_ms cuando ambos existen."""
        if (
            self.position_ms is not None
            and self.duration_ms
            and self.position_ms > self.duration_ms
        ):
            self.position_ms = self.duration_ms
        return self

    def to_snapshot(self, observed_at_ms: float) -> EntitySnapshot:
        return EntitySnapshot(
            entity_id=self.slot_id,
            state=EntityState.parse(self.state),
            position_ms=self.position_ms,
            duration_ms=self.duration_ms,
            bytes_sent=self.bytes_sent,
            listeners=self.listeners,
            observed_at_ms=observed_at_ms,
            name=self.name,
            format=self.format,
            track_title=self.track_title or None,
            track_artist=self.track_artist or None,
            uptime_sec=self.uptime_sec,
            volume=self.volume,
            last_error=self.last_error or None,
            track_index=self.track_index,
            track_count=self.track_count,
        )


class SlotHealthIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    slot_id: int
    state: str = "idle"
    bytes_out: int = 0
    out_kbps: int = 0
    track_title: Optional[str] = None
    listeners: int = 0

    @field_validator("bytes_out", "out_kbps", "listeners", mode="before")
    @classmethod
    def _counters_default_to_zero(cls, v):
        return _none_to_zero(v)

    def to_domain(self) -> SlotHealth:
        return SlotHealth(
            slot_id=self.slot_id,
            state=self.state,
            bytes_out=self.bytes_out,
            out_kbps=self.out_kbps,
            track_title=self.track_title or None,
            listeners=self.listeners,
        )


class HealthSampleIn(BaseModel):
    """Snapshot de `GET /api/v1/system/health` o un punto del historial."""

    model_config = ConfigDict(extra="ignore")

    sampled_at: float
    cpu_pct: float = 0.0
    mem_pct: float = 0.0
    mem_used_mb: int = 0
    mem_total_mb: int = 0
    net_in_kbps: int = 0
    net_out_kbps: int = 0
    net_iface: Optional[str] = None
    thread_count: int = 0
    slots: List[SlotHealthIn] = Field(default_factory=list)

    def to_domain(self) -> HealthSample:
        return HealthSample(
            sampled_at=self.sampled_at,
            cpu_pct=self.cpu_pct,
            mem_pct=self.mem_pct,
            mem_used_mb=self.mem_used_mb,
            mem_total_mb=self.mem_total_mb,
            net_in_kbps=self.net_in_kbps,
            net_out_kbps=self.net_out_kbps,
            net_iface=self.net_iface,
            thread_count=self.thread_count,
            slots=tuple(s.to_domain() for s in self.slots),
        )


class ServerStatusIn(BaseModel):
    """`GET /api/v1/status`."""

    model_config = ConfigDict(extra="ignore")

    version: Optional[str] = None
    uptime: Optional[str] = None
    encoders_connected: int = 0
    encoders_total: int = 0
    master_volume: Optional[float] = None

    @field_validator("uptime", mode="before")
    @classmethod
    def _uptime_as_text(cls, v):
        if v is None:
            return None
        return str(v)

    def to_domain(self, observed_at_ms: float) -> ServerStatus:
        return ServerStatus(
            version=self.version,
            uptime=self.uptime,
            encoders_connected=self.encoders_connected,
            encoders_total=self.encoders_total,
            master_volume=self.master_volume,
            observed_at_ms=observed_at_ms,
        )


class MountStatIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    mount: str
    codec: Optional[str] = None
    listeners: int = 0
    bitrate: int = 0
    title: Optional[str] = None
    online: bool = False
    ours: bool = False

    @field_validator("listeners", "bitrate", mode="before")
    @classmethod
    def _counters_default_to_zero(cls, v):
        return _none_to_zero(v)

    def to_domain(self) -> MountStat:
        return MountStat(
            mount=self.mount,
            codec=self.codec or None,
            listeners=self.listeners,
            bitrate=self.bitrate,
            title=self.title or None,
            online=self.online,
            ours=self.ours,
        )


class MonitoredServerIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    server_id: int
    name: str = ""
    server_type: str = "unknown"
    host: str = ""
    port: int = 8000
    status: str = "unknown"
    listeners: int = 0
    out_kbps: int = 0
    uptime: Optional[str] = None
    polled_at: Optional[float] = None
    fetch_ms: Optional[int] = None
    mounts: List[MountStatIn] = Field(default_factory=list)

    def to_domain(self) -> MonitoredServer:
        return MonitoredServer(
            server_id=self.server_id,
            name=self.name,
            server_type=self.server_type,
            host=self.host,
            port=self.port,
            status=self.status,
            listeners=self.listeners,
            out_kbps=self.out_kbps,
            uptime=self.uptime,
            polled_at=self.polled_at,
            fetch_ms=self.fetch_ms,
            mounts=tuple(m.to_domain() for m in self.mounts),
        )


class MonitoredServersIn(BaseModel):
    """`GET /api/v1/server_monitors/stats`."""

    model_config = ConfigDict(extra="ignore")

    servers: List[MonitoredServerIn] = Field(default_factory=list)


class MonitoredServerDetailIn(BaseModel):
    """`GET /api/v1/server_monitors/stats?id=N`: un servidor con sus mounts."""

    model_config = ConfigDict(extra="ignore")

    server: MonitoredServerIn


# ---------------------------------------------------------------------------
# Cuerpos de los comandos de control
# ---------------------------------------------------------------------------


class MetadataIn(BaseModel):
    """Metadata a empujar a los streams (slot=None → todos los slots)."""

    title: str = ""
    artist: str = ""
    album: Optional[str] = None
    genre: Optional[str] = None
    year: Optional[str] = None
    bpm: Optional[str] = None
    artwork: Optional[str] = None
    slot: Optional[int] = None


class VolumeIn(BaseModel):
    """Volumen lineal 0.0–2.0 (slot=None → volumen master)."""

    volume: float = Field(..., ge=0.0, le=2.0)
    slot: Optional[int] = None
