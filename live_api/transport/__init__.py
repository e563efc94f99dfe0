"""Transport layer - Cliente HTTP del API del encoder y errores normalizados."""

from .client import TelemetryClient, TransportResult
from .errors import MalformedResponse, ServerError, TransportError, Unauthorized, Unreachable

__all__ = [
    "TelemetryClient",
    "TransportResult",
    "TransportError",
    "Unreachable",
    "Unauthorized",
    "ServerError",
    "MalformedResponse",
]
