"""Taxonomía de errores del adaptador de transporte.

Todas las variantes heredan de `TransportError` para que los loops de polling
puedan absorberlas de forma uniforme. Solo `Unauthorized` debe salir del core.
"""

from __future__ import annotations

from typing import Optional


class TransportError(Exception):
    """Fallo normalizado de una petición al API de telemetría."""

    kind = "transport"

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class Unreachable(TransportError):
    """Fallo de red: conexión rechazada, DNS, timeout."""

    kind = "unreachable"


class Unauthorized(TransportError):
    """El backend indica que la sesión expiró; hay que re-autenticar."""

    kind = "unauthorized"

    def __init__(
        self,
        message: str = "Unauthorized",
        status_code: Optional[int] = 401,
        redirect: str = "/login",
    ):
        self.redirect = redirect
        super().__init__(message, status_code)


class ServerError(TransportError):
    """Respuesta no-2xx (salvo auth) o envelope con ok=false."""

    kind = "server_error"


class MalformedResponse(TransportError):
    """El body no es JSON, no se puede decodificar o no tiene la forma esperada."""

    kind = "malformed"
