"""Loop de animación: llama al render en cada frame sin tocar la red."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from .clock import Clock

logger = logging.getLogger(__name__)

Render = Callable[[float], None]


class FrameLoop:
    """Invoca `render(now_ms)` a `frame_rate_hz`.

    El render debe ser rápido y síncrono (leer estado + proyectar). Un error
    en un frame se registra y el loop sigue con el siguiente.
    """

    def __init__(self, clock: Clock, render: Render, frame_rate_hz: float = 60.0):
        if frame_rate_hz <= 0:
            raise ValueError(f"frame_rate_hz must be > 0 (got {frame_rate_hz})")
        self._clock = clock
        self._render = render
        self._frame_interval_s = 1.0 / frame_rate_hz
        self._task: Optional[asyncio.Task] = None
        self._frames = 0
        self._errors = 0

    @property
    def frames(self) -> int:
        return self._frames

    @property
    def errors(self) -> int:
        return self._errors

    def render_once(self) -> None:
        now = self._clock.now_ms()
        try:
            self._render(now)
            self._frames += 1
        except Exception as e:
            self._errors += 1
            logger.error("[FRAME] Render failed at now_ms=%.0f: %s", now, e)

    def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="frame-loop")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None

    async def _run(self) -> None:
        while True:
            self.render_once()
            await self._clock.sleep(self._frame_interval_s)
