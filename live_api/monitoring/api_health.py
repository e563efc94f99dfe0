"""Salud del API remoto (alcanzable / no alcanzable).

Es ortogonal al estado de cada slot: un slot puede estar `error` con el API
online, y con el API offline se sigue mostrando el último estado conocido.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApiHealthState:
    reachable: bool = False
    last_success_at_ms: Optional[float] = None
    last_error: Optional[str] = None
    last_error_kind: Optional[str] = None
    consecutive_failures: int = 0

    def to_dict(self) -> dict:
        return {
            "reachable": self.reachable,
            "last_success_at_ms": self.last_success_at_ms,
            "last_error": self.last_error,
            "last_error_kind": self.last_error_kind,
            "consecutive_failures": self.consecutive_failures,
        }


def _label(reachable: bool) -> str:
    return "ONLINE" if reachable else "OFFLINE"


class ApiHealthMonitor:
    """Empieza como no alcanzable hasta la primera respuesta válida."""

    def __init__(self) -> None:
        self._state = ApiHealthState()
        self._transitions = 0

    @property
    def state(self) -> ApiHealthState:
        return self._state

    @property
    def reachable(self) -> bool:
        return self._state.reachable

    @property
    def transitions(self) -> int:
        return self._transitions

    def mark_success(self, now_ms: float) -> ApiHealthState:
        previous = self._state
        self._state = ApiHealthState(
            reachable=True,
            last_success_at_ms=now_ms,
            last_error=None,
            last_error_kind=None,
            consecutive_failures=0,
        )
        if not previous.reachable:
            self._transitions += 1
            logger.info(
                "[API_HEALTH] %s -> %s after failures=%d",
                _label(False), _label(True), previous.consecutive_failures,
            )
        return self._state

    def mark_failure(self, error: str, kind: Optional[str] = None) -> ApiHealthState:
        previous = self._state
        self._state = replace(
            previous,
            reachable=False,
            last_error=error,
            last_error_kind=kind,
            consecutive_failures=previous.consecutive_failures + 1,
        )
        if previous.reachable:
            self._transitions += 1
            logger.warning(
                "[API_HEALTH] %s -> %s kind=%s error=%s",
                _label(True), _label(False), kind, error,
            )
        else:
            logger.debug(
                "[API_HEALTH] still offline failures=%d kind=%s",
                self._state.consecutive_failures, kind,
            )
        return self._state
