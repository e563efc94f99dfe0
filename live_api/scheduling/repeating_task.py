"""Tarea repetitiva con intervalo fijo y una sola ejecución en vuelo.

Modelo "dispara y reprograma": cada `interval_s` se dispara la acción sin
importar si la anterior tuvo éxito. Si la ejecución previa sigue en vuelo,
el tick se salta (no se encola ni se duplica la petición). `refresh()` en
cambio espera a que termine y vuelve a disparar.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from .clock import Clock

logger = logging.getLogger(__name__)

Action = Callable[[], Awaitable[object]]
ErrorHandler = Callable[["RepeatingTask", BaseException], None]


class RepeatingTask:
    """Loop temporizado independiente ligado a una clase de datos."""

    def __init__(
        self,
        name: str,
        interval_s: float,
        action: Action,
        clock: Clock,
        on_error: Optional[ErrorHandler] = None,
        fire_immediately: bool = True,
    ):
        if interval_s <= 0:
            raise ValueError(f"interval_s must be > 0 (got {interval_s})")
        self.name = name
        self.interval_s = float(interval_s)
        self._action = action
        self._clock = clock
        self._on_error = on_error
        self._fire_immediately = fire_immediately

        self._in_flight = False
        self._stopped = True
        self._timer_task: Optional[asyncio.Task] = None
        self._action_task: Optional[asyncio.Task] = None
        self._idle_waiters: List[asyncio.Future] = []

        # Métricas
        self._fired = 0
        self._completed = 0
        self._skipped = 0
        self._errors = 0
        self._last_fired_ms: Optional[float] = None

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def running(self) -> bool:
        return not self._stopped

    def start(self) -> None:
        """Arranca el timer en el event loop actual (idempotente)."""
        if self._timer_task is not None and not self._timer_task.done():
            return
        self._stopped = False
        self._timer_task = asyncio.get_running_loop().create_task(
            self._timer_loop(), name=f"poll-{self.name}"
        )

    def halt(self) -> None:
        """Detiene el timer sin esperar ni cancelar la acción en vuelo."""
        self._stopped = True
        if self._timer_task is not None and self._timer_task is not asyncio.current_task():
            self._timer_task.cancel()

    async def stop(self) -> None:
        """Detiene el timer y cancela la petición en vuelo, si la hay."""
        self.halt()
        tasks = [t for t in (self._timer_task, self._action_task) if t is not None and not t.done()]
        for t in tasks:
            t.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._timer_task = None
        self._action_task = None

    def trigger(self) -> Optional[asyncio.Task]:
        """Dispara la acción en background; None si ya hay una en vuelo."""
        if self._in_flight:
            self._record_skip()
            return None
        self._in_flight = True
        self._action_task = asyncio.get_running_loop().create_task(
            self._run_action(), name=f"poll-{self.name}-action"
        )
        return self._action_task

    async def fire(self) -> bool:
        """Dispara y espera la acción. Devuelve False si se saltó."""
        if self._in_flight:
            self._record_skip()
            return False
        self._in_flight = True
        await self._run_action()
        return True

    async def wait_idle(self) -> None:
        """Espera a que termine la ejecución en vuelo, si la hay."""
        while self._in_flight:
            waiter = asyncio.get_running_loop().create_future()
            self._idle_waiters.append(waiter)
            await waiter

    async def refresh(self) -> bool:
        """Garantiza una ejecución que empieza después de esta llamada.

        A diferencia de `fire()`, no se salta: si hay una petición en vuelo
        (emitida antes de la llamada) espera a que termine y dispara otra.
        Se mantiene una sola ejecución en vuelo por loop.
        """
        await self.wait_idle()
        self._in_flight = True
        await self._run_action()
        return True

    async def _timer_loop(self) -> None:
        if self._fire_immediately:
            self.trigger()
        while not self._stopped:
            await self._clock.sleep(self.interval_s)
            if self._stopped:
                break
            self.trigger()

    async def _run_action(self) -> None:
        self._fired += 1
        self._last_fired_ms = self._clock.now_ms()
        try:
            await self._action()
            self._completed += 1
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._errors += 1
            if self._on_error is not None:
                self._on_error(self, e)
            else:
                logger.exception("[SCHEDULER] loop=%s action failed: %s", self.name, e)
        finally:
            self._in_flight = False
            waiters, self._idle_waiters = self._idle_waiters, []
            for waiter in waiters:
                if not waiter.done():
                    waiter.set_result(None)

    def _record_skip(self) -> None:
        self._skipped += 1
        logger.debug(
            "[SCHEDULER] loop=%s tick skipped (request still in flight)", self.name
        )

    @property
    def stats(self) -> dict:
        return {
            "name": self.name,
            "interval_s": self.interval_s,
            "running": self.running,
            "in_flight": self._in_flight,
            "fired": self._fired,
            "completed": self._completed,
            "skipped": self._skipped,
            "errors": self._errors,
            "last_fired_ms": self._last_fired_ms,
        }
