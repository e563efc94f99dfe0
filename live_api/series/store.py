"""Series acotadas en memoria para los gráficos (ancho de banda, CPU, memoria).

Cada serie es un deque con su propia capacidad; al desbordar se descarta el
punto más antiguo. Las series se crean en el primer `append`.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Iterable, List, Optional


@dataclass(frozen=True)
class SeriesPoint:
    label: str
    value: float


class SeriesStore:
    def __init__(self, default_capacity: int = 30) -> None:
        if default_capacity <= 0:
            raise ValueError(f"default_capacity must be > 0 (got {default_capacity})")
        self._default_capacity = int(default_capacity)
        # key -> deque[SeriesPoint]
        self._series: Dict[str, Deque[SeriesPoint]] = {}

    def _ensure(self, key: str, capacity: Optional[int]) -> Deque[SeriesPoint]:
        buf = self._series.get(key)
        if buf is None:
            cap = int(capacity) if capacity else self._default_capacity
            buf = self._series.setdefault(key, deque(maxlen=cap))
        return buf

    def append(self, key: str, point: SeriesPoint, capacity: Optional[int] = None) -> None:
        self._ensure(key, capacity).append(point)

    def replace(self, key: str, points: Iterable[SeriesPoint], capacity: Optional[int] = None) -> None:
        """Reemplaza la serie completa conservando solo los más recientes."""
        existing = self._series.get(key)
        cap = capacity or (existing.maxlen if existing is not None else None) or self._default_capacity
        self._series[key] = deque(points, maxlen=int(cap))

    def get(self, key: str) -> List[SeriesPoint]:
        return list(self._series.get(key, ()))

    def labels(self, key: str) -> List[str]:
        return [p.label for p in self._series.get(key, ())]

    def values(self, key: str) -> List[float]:
        return [p.value for p in self._series.get(key, ())]

    def last(self, key: str) -> Optional[SeriesPoint]:
        buf = self._series.get(key)
        return buf[-1] if buf else None

    def capacity(self, key: str) -> int:
        buf = self._series.get(key)
        return buf.maxlen if buf is not None and buf.maxlen else self._default_capacity

    def keys(self) -> List[str]:
        return sorted(self._series)

    def discard(self, key: str) -> None:
        self._series.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._series

    def __len__(self) -> int:
        return len(self._series)
