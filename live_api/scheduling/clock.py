"""Relojes inyectables para loops de polling y de frames.

`SystemClock` usa el tiempo real; `VirtualClock` permite a los tests avanzar
el tiempo de forma determinista sin esperar timers reales.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import time
from typing import List, Protocol, Tuple

# Iteraciones del event loop para dejar correr continuaciones pendientes
_DRAIN_ITERATIONS = 50


class Clock(Protocol):
    def now_ms(self) -> float:
        ...

    async def sleep(self, seconds: float) -> None:
        ...


class SystemClock:
    """Reloj de pared en milisegundos + asyncio.sleep."""

    def now_ms(self) -> float:
        return time.time() * 1000.0

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(max(0.0, seconds))


class VirtualClock:
    """Reloj manual para tests.

    Uso:
        clock = VirtualClock()
        task = RepeatingTask("entities", 5.0, action, clock)
        task.start()
        await clock.advance(12.0)   # dispara los ticks de t=5 y t=10
    """

    def __init__(self, start_ms: float = 0.0):
        self._now_ms = float(start_ms)
        self._sleepers: List[Tuple[float, int, asyncio.Future]] = []
        self._seq = itertools.count()

    def now_ms(self) -> float:
        return self._now_ms

    def set_ms(self, value_ms: float) -> None:
        """Mueve el reloj sin despertar a nadie (para funciones puras)."""
        self._now_ms = float(value_ms)

    def tick_ms(self, delta_ms: float) -> None:
        self._now_ms += float(delta_ms)

    @property
    def pending_sleepers(self) -> int:
        return sum(1 for _, _, fut in self._sleepers if not fut.done())

    async def sleep(self, seconds: float) -> None:
        if seconds <= 0:
            await asyncio.sleep(0)
            return
        fut = asyncio.get_running_loop().create_future()
        deadline = self._now_ms + seconds * 1000.0
        heapq.heappush(self._sleepers, (deadline, next(self._seq), fut))
        await fut

    async def advance(self, seconds: float) -> None:
        """Avanza el reloj despertando los sleepers en orden de deadline."""
        target = self._now_ms + seconds * 1000.0
        await drain()
        while self._sleepers and self._sleepers[0][0] <= target:
            deadline, _, fut = heapq.heappop(self._sleepers)
            self._now_ms = max(self._now_ms, deadline)
            if not fut.done():
                fut.set_result(None)
            await drain()
        self._now_ms = target
        await drain()


async def drain(iterations: int = _DRAIN_ITERATIONS) -> None:
    """Cede el control varias veces para que corran las tareas listas."""
    for _ in range(iterations):
        await asyncio.sleep(0)
