"""Interpolación sub-segundo de la posición de reproducción.

Entre dos polls (cada ~5 s) la posición se extrapola con el tiempo
transcurrido desde la última observación. Máquina de dos estados por slot:

    not-live -> live : se siembra la base (posición, duración, observed_at)
    live -> live     : se re-siembra SIEMPRE con el snapshot más reciente
    * -> not-live    : posición y progreso fijados a 0, sin avanzar
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from ..domain import EntitySnapshot
from .models import LiveInterpolationState, ProgressFrame

logger = logging.getLogger(__name__)


def project_progress(entity_id: int, state: LiveInterpolationState, now_ms: float) -> ProgressFrame:
    """Función pura: avanza la base según el tiempo transcurrido."""
    if not state.is_interpolatable:
        return ProgressFrame(
            entity_id=entity_id,
            is_live=False,
            position_ms=0,
            duration_ms=state.base_duration_ms,
            progress_fraction=0.0,
            elapsed_ms=0,
            color=state.display_color,
        )

    # Un reloj que retrocede no hace retroceder la posición
    elapsed = max(0.0, now_ms - state.observed_at_ms)
    duration = state.base_duration_ms

    if duration > 0:
        position = min(duration, state.base_position_ms + elapsed)
        fraction: Optional[float] = position / duration
    else:
        position = state.base_position_ms + elapsed
        fraction = None

    return ProgressFrame(
        entity_id=entity_id,
        is_live=True,
        position_ms=int(position),
        duration_ms=duration,
        progress_fraction=fraction,
        elapsed_ms=int(state.base_uptime_ms + elapsed),
        color=state.display_color,
    )


def seed_from_snapshot(snapshot: EntitySnapshot, color: str) -> LiveInterpolationState:
    duration = snapshot.duration_ms or 0
    position = snapshot.position_ms or 0
    if duration > 0:
        position = min(position, duration)
    return LiveInterpolationState(
        base_position_ms=position,
        base_duration_ms=duration,
        observed_at_ms=snapshot.observed_at_ms,
        is_interpolatable=snapshot.is_live,
        display_color=color,
        base_uptime_ms=(snapshot.uptime_sec or 0) * 1000,
    )


class InterpolationEngine:
    """Mapa entity_id -> LiveInterpolationState.

    Solo `reseed` escribe el mapa (reemplazando objetos inmutables completos);
    `frame` trabaja sobre una copia tomada al inicio.
    """

    def __init__(self) -> None:
        self._states: Dict[int, LiveInterpolationState] = {}

    def reseed(self, snapshot: EntitySnapshot, color: str) -> LiveInterpolationState:
        previous = self._states.get(snapshot.entity_id)
        state = seed_from_snapshot(snapshot, color)

        was_live = previous is not None and previous.is_interpolatable
        if was_live != state.is_interpolatable:
            logger.debug(
                "[INTERP] entity_id=%s %s -> %s",
                snapshot.entity_id,
                "live" if was_live else "not-live",
                "live" if state.is_interpolatable else "not-live",
            )

        self._states[snapshot.entity_id] = state
        return state

    def get(self, entity_id: int) -> Optional[LiveInterpolationState]:
        return self._states.get(entity_id)

    def frame(self, now_ms: float) -> Dict[int, ProgressFrame]:
        states = dict(self._states)
        return {eid: project_progress(eid, st, now_ms) for eid, st in sorted(states.items())}

    def retain(self, entity_ids: Iterable[int]) -> None:
        keep = set(entity_ids)
        self._states = {eid: st for eid, st in self._states.items() if eid in keep}

    def __len__(self) -> int:
        return len(self._states)
