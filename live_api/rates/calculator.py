"""Cálculo de tasas (bytes/s) a partir de contadores acumulados por slot.

El contador `bytes_sent` crece de forma monótona mientras el slot no se
reinicie. La tasa de cada tick es `max(0, actual - previo) / intervalo`,
usando el intervalo NOMINAL del loop (no el medido entre respuestas).
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterable, List, Mapping, Optional

from ..domain import EntitySnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateSample:
    bytes_per_second: float
    computed_at_ms: float


@dataclass(frozen=True)
class RateTick:
    """Tasas de un tick de polling: por slot + agregado."""
    computed_at_ms: float
    per_entity: Mapping[int, float] = field(default_factory=dict)
    total_bytes_per_second: float = 0.0


class RateCalculator:
    """Historial acotado de tasas por slot.

    - Primera observación de un slot: fija la línea base, tasa 0.
    - Contador que decrece (slot reiniciado): STALE_COUNTER_RESET, se limpia
      el historial del slot y la tasa del tick es 0. Nunca lanza.
    """

    def __init__(self, nominal_interval_s: float, capacity: int = 30):
        if nominal_interval_s <= 0:
            raise ValueError(f"nominal_interval_s must be > 0 (got {nominal_interval_s})")
        if capacity <= 0:
            raise ValueError(f"capacity must be > 0 (got {capacity})")
        self._interval_s = float(nominal_interval_s)
        self._capacity = int(capacity)
        self._previous: Dict[int, int] = {}
        self._history: Dict[int, Deque[RateSample]] = {}
        self._counter_resets = 0

    @property
    def nominal_interval_s(self) -> float:
        return self._interval_s

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def counter_resets(self) -> int:
        return self._counter_resets

    def observe(self, entity_id: int, bytes_sent: int, computed_at_ms: float) -> RateSample:
        """Registra el contador de un slot y devuelve la tasa del tick."""
        current = max(0, int(bytes_sent))
        previous = self._previous.get(entity_id)
        buf = self._history.setdefault(entity_id, deque(maxlen=self._capacity))

        if previous is None:
            rate = 0.0
        elif current < previous:
            self._counter_resets += 1
            logger.info(
                "[RATES] STALE_COUNTER_RESET entity_id=%s previous=%d current=%d",
                entity_id, previous, current,
            )
            buf.clear()
            rate = 0.0
        else:
            rate = (current - previous) / self._interval_s

        self._previous[entity_id] = current
        sample = RateSample(bytes_per_second=rate, computed_at_ms=computed_at_ms)
        buf.append(sample)
        return sample

    def observe_tick(self, snapshots: Iterable[EntitySnapshot], computed_at_ms: float) -> RateTick:
        """Procesa todos los slots de una respuesta y olvida los ausentes."""
        per_entity: Dict[int, float] = {}
        for snap in snapshots:
            per_entity[snap.entity_id] = self.observe(
                snap.entity_id, snap.bytes_sent, computed_at_ms
            ).bytes_per_second
        self.retain(per_entity.keys())
        return RateTick(
            computed_at_ms=computed_at_ms,
            per_entity=dict(per_entity),
            total_bytes_per_second=sum(per_entity.values()),
        )

    def history(self, entity_id: int) -> List[RateSample]:
        return list(self._history.get(entity_id, ()))

    def current(self, entity_id: int) -> float:
        buf = self._history.get(entity_id)
        if not buf:
            return 0.0
        return buf[-1].bytes_per_second

    def forget(self, entity_id: int) -> None:
        self._previous.pop(entity_id, None)
        self._history.pop(entity_id, None)

    def retain(self, entity_ids: Iterable[int]) -> None:
        keep = set(entity_ids)
        for entity_id in [e for e in self._previous if e not in keep]:
            logger.debug("[RATES] Forgetting entity_id=%s (no longer reported)", entity_id)
            self.forget(entity_id)

    def entity_ids(self) -> List[int]:
        return sorted(self._previous)

    def last_counter(self, entity_id: int) -> Optional[int]:
        return self._previous.get(entity_id)
