"""Modelo de dominio para snapshots de slots del encoder."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class EntityState(str, Enum):
    """Estado reportado por un slot del encoder."""
    IDLE = "idle"
    STARTING = "starting"
    CONNECTING = "connecting"
    LIVE = "live"
    RECONNECTING = "reconnecting"
    STOPPING = "stopping"
    ERROR = "error"

    @classmethod
    def parse(cls, value: Optional[str]) -> "EntityState":
        """Convierte el string del backend; desconocidos se tratan como idle."""
        raw = (value or "").strip().lower()
        try:
            return cls(raw)
        except ValueError:
            if raw:
                logger.debug("[SNAPSHOT] Unknown state=%r mapped to idle", value)
            return cls.IDLE

    @property
    def is_live(self) -> bool:
        return self is EntityState.LIVE


@dataclass(frozen=True)
class EntitySnapshot:
    """Una observación de un slot en un instante dado.

    Es inmutable: el engine la lee pero nunca la modifica. `observed_at_ms`
    es el reloj del engine en el momento de recibir la respuesta, no un
    timestamp del backend.
    """
    entity_id: int
    state: EntityState
    position_ms: Optional[int]
    duration_ms: Optional[int]
    bytes_sent: int
    listeners: int
    observed_at_ms: float

    # Metadata opcional
    name: Optional[str] = None
    format: Optional[str] = None
    track_title: Optional[str] = None
    track_artist: Optional[str] = None
    uptime_sec: Optional[int] = None
    volume: Optional[float] = None
    last_error: Optional[str] = None
    track_index: Optional[int] = None
    track_count: Optional[int] = None

    @property
    def is_live(self) -> bool:
        return self.state.is_live

    @property
    def display_name(self) -> str:
        return self.name or f"Slot {self.entity_id}"

    @property
    def track_line(self) -> str:
        parts = [p for p in (self.track_title, self.track_artist) if p]
        return " — ".join(parts) if parts else "No track loaded"
