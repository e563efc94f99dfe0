"""Scheduler de loops de polling independientes.

Cada clase de datos (encoders, salud, historial, status, servidores) tiene su
propio `RepeatingTask`. Un fallo o crash en un loop nunca detiene a los demás,
salvo `Unauthorized`: la sesión expiró, así que se detienen todos los loops y
se notifica al hook de re-autenticación.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from ..transport.errors import Unauthorized
from .clock import Clock
from .repeating_task import Action, RepeatingTask

logger = logging.getLogger(__name__)

UnauthorizedHook = Callable[[Unauthorized], None]


class PollScheduler:
    def __init__(self, clock: Clock, on_unauthorized: Optional[UnauthorizedHook] = None):
        self._clock = clock
        self._on_unauthorized = on_unauthorized
        self._tasks: Dict[str, RepeatingTask] = {}
        self._auth_required = False
        self._last_unauthorized: Optional[Unauthorized] = None

    @property
    def auth_required(self) -> bool:
        return self._auth_required

    @property
    def last_unauthorized(self) -> Optional[Unauthorized]:
        return self._last_unauthorized

    @property
    def loop_names(self) -> List[str]:
        return list(self._tasks)

    def add_loop(
        self,
        name: str,
        interval_s: float,
        action: Action,
        fire_immediately: bool = True,
    ) -> RepeatingTask:
        if name in self._tasks:
            raise ValueError(f"Loop '{name}' already registered")
        task = RepeatingTask(
            name=name,
            interval_s=interval_s,
            action=action,
            clock=self._clock,
            on_error=self._handle_error,
            fire_immediately=fire_immediately,
        )
        self._tasks[name] = task
        return task

    def get(self, name: str) -> RepeatingTask:
        try:
            return self._tasks[name]
        except KeyError:
            raise KeyError(f"Unknown poll loop '{name}'") from None

    def start(self) -> None:
        self._auth_required = False
        self._last_unauthorized = None
        for task in self._tasks.values():
            task.start()
        logger.info(
            "[SCHEDULER] Started loops=%s",
            ",".join(f"{t.name}@{t.interval_s:g}s" for t in self._tasks.values()),
        )

    async def stop(self) -> None:
        for task in self._tasks.values():
            await task.stop()
        logger.info("[SCHEDULER] Stopped. %s", self.stats)

    def halt(self) -> None:
        """Detiene todos los timers; las peticiones en vuelo terminan solas."""
        for task in self._tasks.values():
            task.halt()

    async def trigger(self, name: str) -> bool:
        """Disparo fuera de ciclo (ej: tras un comando de control).

        Si el loop ya tiene una petición en vuelo, esa petición salió antes
        del comando: se espera a que termine y se dispara otra. Devuelve
        False solo si la sesión expiró.
        """
        task = self.get(name)
        if not self._auth_required:
            await task.wait_idle()
        if self._auth_required:
            logger.debug("[SCHEDULER] trigger loop=%s ignored (auth required)", name)
            return False
        return await task.refresh()

    def _handle_error(self, task: RepeatingTask, exc: BaseException) -> None:
        if isinstance(exc, Unauthorized):
            first = not self._auth_required
            self._auth_required = True
            self._last_unauthorized = exc
            self.halt()
            if first:
                logger.warning(
                    "[SCHEDULER] Session expired loop=%s redirect=%s, halting all loops",
                    task.name, exc.redirect,
                )
                if self._on_unauthorized is not None:
                    self._on_unauthorized(exc)
            return

        logger.error(
            "[SCHEDULER] loop=%s action crashed: %s", task.name, exc, exc_info=exc,
        )

    @property
    def stats(self) -> dict:
        return {
            "auth_required": self._auth_required,
            "loops": {name: t.stats for name, t in self._tasks.items()},
        }
