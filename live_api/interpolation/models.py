from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class LiveInterpolationState:
    """Base de interpolación de un slot, reemplazada en cada poll.

    `is_interpolatable` solo es True para slots en estado live. Para relays
    sin duración (`base_duration_ms == 0`) se extrapola `base_uptime_ms`.
    """
    base_position_ms: int
    base_duration_ms: int
    observed_at_ms: float
    is_interpolatable: bool
    display_color: str
    base_uptime_ms: int = 0


@dataclass(frozen=True)
class ProgressFrame:
    """Posición proyectada de un slot en un frame concreto."""
    entity_id: int
    is_live: bool
    position_ms: int
    duration_ms: int
    progress_fraction: Optional[float]  # None si no hay duración conocida
    elapsed_ms: int
    color: str

    @property
    def progress_pct(self) -> Optional[float]:
        if self.progress_fraction is None:
            return None
        return self.progress_fraction * 100.0
