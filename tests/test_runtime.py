"""Tests del ensamblado del runtime (arranque, sesión expirada, rearranque)."""

from unittest.mock import MagicMock

import pytest

from conftest import encoder, fail, ok
from live_api.engine import ENCODERS_PATH, LOOP_ENTITIES
from live_api.runtime import build_runtime
from live_api.scheduling.clock import drain
from live_api.transport import Unauthorized


class TestLiveRuntime:

    @pytest.mark.asyncio
    async def test_start_is_idempotent_while_running(self, fake_client, settings, clock):
        fake_client.set(ENCODERS_PATH, ok([encoder(1)]))
        runtime = build_runtime(settings, client=fake_client, clock=clock)

        await runtime.start()
        await drain()
        await runtime.start()
        await drain()

        assert runtime.scheduler.get(LOOP_ENTITIES).stats["fired"] == 1
        await runtime.stop()
        fake_client.aclose.assert_not_called()

    @pytest.mark.asyncio
    async def test_start_after_unauthorized_rearms_loops(self, fake_client, settings, clock):
        fake_client.set(ENCODERS_PATH, [fail(Unauthorized()), ok([encoder(1)])])
        hook = MagicMock()
        runtime = build_runtime(settings, client=fake_client, clock=clock, on_unauthorized=hook)

        await runtime.start()
        await drain()

        hook.assert_called_once()
        assert runtime.scheduler.auth_required is True
        assert runtime.engine.state().auth_required is True
        assert runtime.scheduler.get(LOOP_ENTITIES).running is False

        # sesión renovada
        await runtime.start()
        await drain()

        assert runtime.started is True
        assert runtime.scheduler.auth_required is False
        assert runtime.engine.state().auth_required is False
        assert runtime.scheduler.get(LOOP_ENTITIES).running is True
        assert runtime.engine.entity(1) is not None
        await runtime.stop()
