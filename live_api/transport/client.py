"""Adaptador de transporte hacia el API de telemetría del encoder.

Emite peticiones autenticadas con httpx y normaliza todos los fallos
(red, auth, no-2xx, payload inválido) en un `TransportResult`. No reintenta:
la cadencia de reintento es la del scheduler.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from .errors import MalformedResponse, ServerError, TransportError, Unauthorized, Unreachable

logger = logging.getLogger(__name__)

_AUTH_STATUS_CODES = (401, 403)

# Marcador para cuerpos que no son JSON (distinto de un JSON `null`)
_NOT_JSON = object()


@dataclass
class TransportResult:
    """Resultado uniforme de una petición."""

    ok: bool
    data: Any = None
    error: Optional[TransportError] = None
    status_code: Optional[int] = None

    def unwrap(self) -> Any:
        """Devuelve `data` o lanza el error normalizado."""
        if not self.ok:
            raise self.error or TransportError("request failed")
        return self.data


def _error_message(body: Any, default: str) -> str:
    if isinstance(body, dict):
        msg = body.get("error") or body.get("message")
        if msg:
            return str(msg)
    return default


def unwrap_envelope(body: Any, status_code: int) -> Any:
    """Extrae el payload del envelope `{ok, error, data?}`.

    - lista JSON → payload tal cual (el listado de encoders no usa envelope)
    - objeto con ok=false → ServerError con el mensaje del backend
    - objeto con `data` → `data`; si no, el objeto completo
    """
    if isinstance(body, list):
        return body
    if not isinstance(body, dict):
        raise MalformedResponse(
            f"Expected JSON object or array, got {type(body).__name__}",
            status_code,
        )
    if body.get("ok") is False:
        raise ServerError(_error_message(body, "Backend reported failure"), status_code)
    if "data" in body:
        return body["data"]
    return body


class TelemetryClient:
    """Cliente HTTP asíncrono del API del encoder.

    Uso:
        client = TelemetryClient("http://encoder:8330", session_token="...")
        result = await client.request("GET", "/api/v1/encoders")
        if result.ok:
            ...
    """

    def __init__(
        self,
        base_url: str,
        session_token: Optional[str] = None,
        session_cookie: str = "mc1session",
        api_key: Optional[str] = None,
        timeout_s: float = 4.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Accept": "application/json"}
        if api_key:
            headers["X-API-Key"] = api_key
        cookies = {session_cookie: session_token} if session_token else None

        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            cookies=cookies,
            timeout=timeout_s,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "TelemetryClient":
        return cls(
            base_url=settings.api_base_url,
            session_token=settings.session_token,
            session_cookie=settings.session_cookie,
            api_key=settings.api_key,
            timeout_s=settings.request_timeout_s,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        params: Optional[Dict[str, Any]] = None,
        schema: Any = None,
    ) -> TransportResult:
        """Ejecuta una petición y devuelve un TransportResult.

        Args:
            method: Verbo HTTP
            path: Ruta relativa al base_url (ej: /api/v1/encoders)
            body: Cuerpo JSON opcional
            params: Query string opcional
            schema: Tipo a validar con pydantic (ej: List[EncoderStatusIn])

        Returns:
            TransportResult con el payload validado o el error normalizado
        """
        try:
            data, status = await self._send(method, path, body, params)
            if schema is not None:
                data = self._validate(data, schema, status)
            return TransportResult(ok=True, data=data, status_code=status)
        except TransportError as e:
            logger.debug(
                "[TRANSPORT] %s %s failed kind=%s status=%s error=%s",
                method, path, e.kind, e.status_code, e.message,
            )
            return TransportResult(ok=False, error=e, status_code=e.status_code)

    async def _send(
        self,
        method: str,
        path: str,
        body: Any,
        params: Optional[Dict[str, Any]],
    ) -> tuple:
        try:
            response = await self._client.request(
                method,
                path,
                json=body,
                params=params,
            )
        except httpx.TimeoutException as e:
            raise Unreachable(f"Timeout calling {path}: {e}") from e
        except httpx.DecodingError as e:
            # Content-Encoding inválido: el backend respondió pero el body no sirve
            raise MalformedResponse(f"Cannot decode response from {path}: {e}") from e
        except (httpx.RequestError, httpx.InvalidURL) as e:
            raise Unreachable(f"Cannot reach {self._base_url}: {e}") from e

        status = response.status_code
        parsed = self._parse_json(response)

        if status in _AUTH_STATUS_CODES:
            redirect = "/login"
            if isinstance(parsed, dict) and parsed.get("redirect"):
                redirect = str(parsed["redirect"])
            raise Unauthorized(_error_message(parsed, "Unauthorized"), status, redirect)

        if not response.is_success:
            raise ServerError(_error_message(parsed, f"HTTP {status}"), status)

        if parsed is _NOT_JSON:
            raise MalformedResponse(f"Response from {path} is not valid JSON", status)

        return unwrap_envelope(parsed, status), status

    @staticmethod
    def _parse_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError, ValueError):
            return _NOT_JSON

    @staticmethod
    def _validate(data: Any, schema: Any, status: int) -> Any:
        try:
            return TypeAdapter(schema).validate_python(data)
        except ValidationError as e:
            raise MalformedResponse(
                f"Unexpected payload shape: {e.error_count()} validation error(s)",
                status,
            ) from e

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "TelemetryClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()
