"""View-models reconciliados como JSON (el render HTML queda fuera)."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from ..projection import (
    format_duration,
    project_bandwidth_chart,
    project_dashboard,
    project_health_chart,
    project_mount_rows,
    project_server_row,
    project_servers,
    project_system_health,
)
from .deps import get_runtime

router = APIRouter(prefix="/live", tags=["live"])


@router.get("/dashboard")
def dashboard(runtime=Depends(get_runtime)):
    engine = runtime.engine
    view = project_dashboard(engine.state(), engine.frame())
    return asdict(view)


@router.get("/encoders/{entity_id}/progress")
def encoder_progress(entity_id: int, runtime=Depends(get_runtime)):
    """Posición interpolada al instante de la petición."""
    frame = runtime.engine.frame().get(entity_id)
    if frame is None:
        raise HTTPException(status_code=404, detail=f"Unknown encoder slot {entity_id}")
    return {
        **asdict(frame),
        "progress_pct": frame.progress_pct,
        "position_text": format_duration(frame.position_ms),
        "duration_text": format_duration(frame.duration_ms) if frame.duration_ms else "",
    }


@router.get("/bandwidth")
def bandwidth(runtime=Depends(get_runtime)):
    state = runtime.engine.state()
    return {
        "total_bytes_per_second": state.total_bytes_per_second,
        "chart": asdict(project_bandwidth_chart(state)),
    }


@router.get("/system")
def system(runtime=Depends(get_runtime)):
    state = runtime.engine.state()
    gauges = project_system_health(state.health)
    return {
        "health": asdict(gauges) if gauges is not None else None,
        "chart": asdict(project_health_chart(state)),
    }


@router.get("/servers")
def servers(runtime=Depends(get_runtime)):
    return {"servers": [asdict(row) for row in project_servers(runtime.engine.state())]}


@router.get("/servers/{server_id}/mounts")
async def server_mounts(server_id: int, runtime=Depends(get_runtime)):
    """Detalle de mounts de un servidor, pedido al backend en el momento."""
    server = await runtime.engine.fetch_server_detail(server_id)
    if server is None:
        health = runtime.engine.api_health
        return JSONResponse(
            status_code=502,
            content={"error": health.last_error or "Server detail unavailable", "kind": health.last_error_kind},
        )
    return {
        "server": asdict(project_server_row(server)),
        "fetch_ms": server.fetch_ms,
        "mounts": [asdict(row) for row in project_mount_rows(server)],
    }
