"""Fixtures compartidas: settings deterministas, reloj virtual, cliente falso."""

import asyncio
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import pytest

from common.config import Settings
from live_api.scheduling import VirtualClock
from live_api.transport import TelemetryClient, TransportError, TransportResult


def make_settings(**overrides) -> Settings:
    values = dict(
        api_base_url="http://encoder.test",
        session_token="tok",
        session_cookie="mc1session",
        api_key=None,
        request_timeout_s=4.0,
        entities_interval_s=5.0,
        health_interval_s=5.0,
        health_history_interval_s=60.0,
        status_interval_s=30.0,
        servers_interval_s=30.0,
        rate_history_size=30,
        bandwidth_points=30,
        health_points=60,
        health_history_samples=60,
        frame_rate_hz=60.0,
        control_refresh_delay_s=0.0,
        log_level="INFO",
    )
    values.update(overrides)
    return Settings(**values)


def encoder(slot_id: int, **fields) -> Dict[str, Any]:
    """Elemento de `GET /api/v1/encoders` con valores por defecto."""
    item = {
        "slot_id": slot_id,
        "state": "live",
        "is_live": True,
        "bytes_sent": 0,
        "uptime_sec": 60,
        "track_title": "Song",
        "track_artist": "Artist",
        "position_ms": 10000,
        "duration_ms": 60000,
        "volume": 1.0,
        "last_error": "",
    }
    item.update(fields)
    return item


def health_payload(sampled_at: float, cpu: float = 10.0, mem: float = 40.0) -> Dict[str, Any]:
    return {
        "ok": True,
        "sampled_at": sampled_at,
        "cpu_pct": cpu,
        "mem_pct": mem,
        "mem_used_mb": 400,
        "mem_total_mb": 1000,
        "net_in_kbps": 120,
        "net_out_kbps": 320,
        "net_iface": "eth0",
        "thread_count": 12,
        "slots": [
            {"slot_id": 1, "state": "live", "bytes_out": 2048, "out_kbps": 128,
             "track_title": "Song", "listeners": 3},
        ],
    }


class FakeClient:
    """Cliente de transporte falso: responde por ruta con TransportResult.

    `responses[path]` puede ser un TransportResult, una lista de ellos
    (se consumen en orden, el último se repite) o un callable.
    """

    def __init__(self, base_url: str = "http://encoder.test"):
        self.base_url = base_url
        self.responses: Dict[str, Any] = {}
        self.calls: List[tuple] = []
        self.gates: Dict[str, asyncio.Event] = {}
        self.aclose = AsyncMock()

    def set(self, path: str, response: Any) -> None:
        self.responses[path] = response

    def hold(self, path: str) -> asyncio.Event:
        """Retiene las peticiones a `path` hasta que se haga set() del evento."""
        gate = self.gates[path] = asyncio.Event()
        return gate

    async def request(self, method, path, body=None, *, params=None, schema=None):
        self.calls.append((method, path, body, params))
        gate = self.gates.get(path)
        if gate is not None:
            await gate.wait()
        response = self.responses.get(path)
        if response is None:
            return TransportResult(ok=True, data={}, status_code=200)
        if callable(response):
            response = response()
        if isinstance(response, list):
            response = response.pop(0) if len(response) > 1 else response[0]
        if response.ok and schema is not None:
            # Misma validación que el cliente real
            try:
                data = TelemetryClient._validate(response.data, schema, response.status_code or 200)
            except TransportError as e:
                return fail(e)
            return TransportResult(ok=True, data=data, status_code=response.status_code)
        return response

    def paths(self, method: Optional[str] = None) -> List[str]:
        return [c[1] for c in self.calls if method is None or c[0] == method]


def ok(data: Any, status_code: int = 200) -> TransportResult:
    return TransportResult(ok=True, data=data, status_code=status_code)


def fail(error) -> TransportResult:
    return TransportResult(ok=False, error=error, status_code=error.status_code)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock(start_ms=1_700_000_000_000)


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()
