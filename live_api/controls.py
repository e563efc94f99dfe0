"""Comandos de control sobre el encoder (fire-and-poll).

Tras cada comando se dispara de inmediato el loop afectado para que la vista
refleje el cambio sin esperar al siguiente tick. Si el backend respondió con
un fallo (ok=false, no-2xx) también se refresca: un start fallido puede dejar
el slot en otro estado. El fallo se propaga al llamador como TransportError.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .engine import LOOP_ENTITIES, LOOP_SERVER_STATUS, LOOP_SERVERS, ReconciliationEngine
from .scheduling import Clock, PollScheduler
from .transport import TelemetryClient, TransportError, Unauthorized, Unreachable
from .transport.schemas import MetadataIn, VolumeIn

logger = logging.getLogger(__name__)

ENCODER_ACTIONS = ("start", "stop", "restart")

METADATA_PATH = "/api/v1/metadata"
VOLUME_PATH = "/api/v1/volume"
SERVER_POLL_PATH = "/api/v1/server_monitors/poll"


class ControlClient:
    def __init__(
        self,
        client: TelemetryClient,
        engine: ReconciliationEngine,
        scheduler: Optional[PollScheduler] = None,
        clock: Optional[Clock] = None,
        refresh_delay_s: float = 0.0,
    ):
        self._client = client
        self._engine = engine
        self._scheduler = scheduler
        self._clock = clock or engine.clock
        self._refresh_delay_s = max(0.0, float(refresh_delay_s))

    async def encoder_action(self, entity_id: int, action: str) -> Any:
        if action not in ENCODER_ACTIONS:
            raise ValueError(f"Unknown encoder action '{action}' (expected one of {ENCODER_ACTIONS})")
        data = await self._command("POST", f"/api/v1/encoders/{int(entity_id)}/{action}", None, LOOP_ENTITIES)
        logger.info("[CONTROL] entity_id=%s action=%s accepted", entity_id, action)
        return data

    async def start(self, entity_id: int) -> Any:
        return await self.encoder_action(entity_id, "start")

    async def stop(self, entity_id: int) -> Any:
        return await self.encoder_action(entity_id, "stop")

    async def restart(self, entity_id: int) -> Any:
        return await self.encoder_action(entity_id, "restart")

    async def push_metadata(self, metadata: MetadataIn) -> Any:
        body = metadata.model_dump(exclude_none=True)
        data = await self._command("PUT", METADATA_PATH, body, LOOP_ENTITIES)
        logger.info("[CONTROL] metadata pushed slot=%s title=%r", metadata.slot, metadata.title)
        return data

    async def set_volume(self, volume: float, slot: Optional[int] = None) -> Any:
        """Volumen lineal 0.0–2.0; slot=None → master."""
        payload = VolumeIn(volume=volume, slot=slot)
        loop = LOOP_SERVER_STATUS if slot is None else LOOP_ENTITIES
        data = await self._command("PUT", VOLUME_PATH, payload.model_dump(exclude_none=True), loop)
        logger.info("[CONTROL] volume=%.2f slot=%s", payload.volume, "master" if slot is None else slot)
        return data

    async def poll_server(self, server_id: Optional[int] = None) -> Any:
        body = {} if server_id is None else {"id": int(server_id)}
        data = await self._command("POST", SERVER_POLL_PATH, body, LOOP_SERVERS)
        logger.info("[CONTROL] server poll requested id=%s", server_id if server_id is not None else "all")
        return data

    async def _command(self, method: str, path: str, body: Any, loop: str) -> Any:
        try:
            data = await self._send(method, path, body)
        except (Unauthorized, Unreachable):
            # Sin sesión o sin red no hay estado nuevo que leer
            raise
        except TransportError:
            await self._refresh(loop)
            raise
        await self._refresh(loop)
        return data

    async def _send(self, method: str, path: str, body: Any = None) -> Any:
        result = await self._client.request(method, path, body)
        if not result.ok:
            error = result.error or TransportError(f"{method} {path} failed")
            logger.warning(
                "[CONTROL] %s %s failed kind=%s status=%s error=%s",
                method, path, error.kind, error.status_code, error.message,
            )
            raise error
        return result.data

    async def _refresh(self, loop: str) -> bool:
        if self._refresh_delay_s > 0:
            await self._clock.sleep(self._refresh_delay_s)
        if self._scheduler is not None:
            return await self._scheduler.trigger(loop)
        return await self._engine.poll_operation(loop)()
