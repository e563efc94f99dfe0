"""Ensamblado del runtime: cliente + engine + scheduler + controles + frames."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from common.config import Settings, get_settings

from .controls import ControlClient
from .engine import ReconciliationEngine
from .scheduling import Clock, FrameLoop, PollScheduler, SystemClock
from .transport import TelemetryClient, Unauthorized

logger = logging.getLogger(__name__)


@dataclass
class LiveRuntime:
    settings: Settings
    client: TelemetryClient
    clock: Clock
    engine: ReconciliationEngine
    scheduler: PollScheduler
    controls: ControlClient
    frame_loop: Optional[FrameLoop] = None
    owns_client: bool = True
    started: bool = field(default=False, init=False)

    async def start(self) -> None:
        """Arranca los loops. Tras un Unauthorized (timers detenidos) los rearma."""
        if self.started and not self.scheduler.auth_required:
            return
        if self.started:
            await self.scheduler.stop()
            logger.info("[RUNTIME] Restarting loops after re-authentication")
        self.engine.mark_auth_required(False)
        self.scheduler.start()
        if self.frame_loop is not None:
            self.frame_loop.start()
        self.started = True
        logger.info("[RUNTIME] Started api=%s", self.client.base_url)

    async def stop(self) -> None:
        if self.frame_loop is not None:
            await self.frame_loop.stop()
        await self.scheduler.stop()
        if self.owns_client:
            await self.client.aclose()
        self.started = False
        logger.info("[RUNTIME] Stopped")


def build_runtime(
    settings: Optional[Settings] = None,
    client: Optional[TelemetryClient] = None,
    clock: Optional[Clock] = None,
    render: Optional[Callable[[float], None]] = None,
    on_unauthorized: Optional[Callable[[Unauthorized], None]] = None,
) -> LiveRuntime:
    """Crea el runtime con los loops de polling ya registrados.

    Args:
        settings: Configuración (por defecto get_settings())
        client: Cliente HTTP (por defecto uno construido desde settings)
        clock: Reloj inyectable (SystemClock en producción)
        render: Callback de frame; si se da, se arranca un FrameLoop
        on_unauthorized: Hook hacia el flujo de login externo
    """
    settings = settings or get_settings()
    owns_client = client is None
    client = client or TelemetryClient.from_settings(settings)
    clock = clock or SystemClock()

    engine = ReconciliationEngine(client, settings, clock)

    def _on_unauthorized(exc: Unauthorized) -> None:
        engine.mark_auth_required(True)
        if on_unauthorized is not None:
            on_unauthorized(exc)

    scheduler = PollScheduler(clock, on_unauthorized=_on_unauthorized)
    for name, (interval_s, operation) in engine.poll_operations().items():
        scheduler.add_loop(name, interval_s, operation)

    controls = ControlClient(
        client,
        engine,
        scheduler=scheduler,
        clock=clock,
        refresh_delay_s=settings.control_refresh_delay_s,
    )

    frame_loop = None
    if render is not None:
        frame_loop = FrameLoop(clock, render, settings.frame_rate_hz)

    return LiveRuntime(
        settings=settings,
        client=client,
        clock=clock,
        engine=engine,
        scheduler=scheduler,
        controls=controls,
        frame_loop=frame_loop,
        owns_client=owns_client,
    )
