"""Vista inmutable del estado reconciliado que consume la proyección."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple

from .domain import EntitySnapshot, HealthSample, MonitoredServer, ServerStatus
from .monitoring import ApiHealthState
from .rates import RateTick
from .series import SeriesPoint

BANDWIDTH_TOTAL_KEY = "bandwidth:total"
HEALTH_CPU_KEY = "health:cpu"
HEALTH_MEM_KEY = "health:mem"
HEALTH_NET_IN_KEY = "health:net_in"
HEALTH_NET_OUT_KEY = "health:net_out"


def bandwidth_key(entity_id: int) -> str:
    return f"bandwidth:{entity_id}"


@dataclass(frozen=True)
class ReconciledState:
    """Copia consistente del estado del engine en un instante.

    `entities` conserva el orden del último listado recibido.
    """
    api_health: ApiHealthState
    entities: Mapping[int, EntitySnapshot] = field(default_factory=dict)
    colors: Mapping[int, str] = field(default_factory=dict)
    rates: Optional[RateTick] = None
    health: Optional[HealthSample] = None
    server_status: Optional[ServerStatus] = None
    servers: Tuple[MonitoredServer, ...] = ()
    series: Mapping[str, Tuple[SeriesPoint, ...]] = field(default_factory=dict)
    auth_required: bool = False

    def rate_for(self, entity_id: int) -> float:
        if self.rates is None:
            return 0.0
        return self.rates.per_entity.get(entity_id, 0.0)

    @property
    def total_bytes_per_second(self) -> float:
        return self.rates.total_bytes_per_second if self.rates is not None else 0.0

    def series_points(self, key: str) -> Tuple[SeriesPoint, ...]:
        return tuple(self.series.get(key, ()))

    def to_dict(self) -> Dict[str, object]:
        return {
            "api_health": self.api_health.to_dict(),
            "entity_ids": list(self.entities),
            "total_bytes_per_second": self.total_bytes_per_second,
            "auth_required": self.auth_required,
        }
