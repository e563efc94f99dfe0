"""Routers HTTP del servicio live."""

from .control import router as control_router
from .health import router as health_router
from .views import router as views_router

__all__ = ["control_router", "health_router", "views_router"]
