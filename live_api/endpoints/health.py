"""Liveness del servicio y salud del API remoto."""

from fastapi import APIRouter, Depends

from .deps import get_runtime

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    """Liveness check: always returns ok while the process is running."""
    return {"status": "ok"}


@router.get("/live/api-health")
def api_health(runtime=Depends(get_runtime)):
    """Estado del API del encoder + métricas de los loops de polling."""
    return {
        **runtime.engine.api_health.to_dict(),
        "auth_required": runtime.scheduler.auth_required,
        "scheduler": runtime.scheduler.stats,
        "rates": {"counter_resets": runtime.engine.rates.counter_resets},
        "stale_payloads": runtime.engine.stale_payloads,
    }
