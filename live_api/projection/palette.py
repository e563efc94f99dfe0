"""Colores y clases CSS compartidos por la proyección y el engine."""

from __future__ import annotations

from typing import Dict, Tuple

SLOT_COLORS: Tuple[str, ...] = ("#14b8a6", "#0891b2", "#a78bfa")
DEFAULT_SLOT_COLOR = SLOT_COLORS[0]

CPU_COLOR = "#14b8a6"
MEM_COLOR = "#0891b2"
NET_IN_COLOR = "#60a5fa"
NET_OUT_COLOR = "#a78bfa"

# Estado del backend -> clase visual de la tarjeta/badge
STATE_CLASSES: Dict[str, str] = {
    "live": "live",
    "idle": "idle",
    "connecting": "connecting",
    "reconnecting": "connecting",
    "error": "error",
    "stopping": "idle",
    "starting": "connecting",
}

# Estado de slot en el snapshot de salud -> color de badge
SLOT_HEALTH_BADGES: Dict[str, str] = {
    "live": "teal",
    "reconnecting": "orange",
    "error": "red",
    "sleep": "yellow",
}


def slot_color(index: int) -> str:
    """Color por posición del slot en el listado (no por slot_id)."""
    return SLOT_COLORS[index % len(SLOT_COLORS)]
