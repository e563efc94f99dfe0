"""Comandos de control reenviados al encoder."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..controls import ENCODER_ACTIONS
from ..transport.schemas import MetadataIn, VolumeIn
from .deps import get_runtime

router = APIRouter(prefix="/live", tags=["control"])


class ServerPollIn(BaseModel):
    id: Optional[int] = None


@router.post("/encoders/{entity_id}/{action}")
async def encoder_action(entity_id: int, action: str, runtime=Depends(get_runtime)):
    if action not in ENCODER_ACTIONS:
        raise HTTPException(status_code=404, detail=f"Unknown action '{action}'")
    data = await runtime.controls.encoder_action(entity_id, action)
    return {"ok": True, "slot": entity_id, "action": action, "data": data}


@router.put("/metadata")
async def push_metadata(body: MetadataIn, runtime=Depends(get_runtime)):
    data = await runtime.controls.push_metadata(body)
    return {"ok": True, "data": data}


@router.put("/volume")
async def set_volume(body: VolumeIn, runtime=Depends(get_runtime)):
    data = await runtime.controls.set_volume(body.volume, body.slot)
    return {"ok": True, "data": data}


@router.post("/servers/poll")
async def poll_servers(body: Optional[ServerPollIn] = None, runtime=Depends(get_runtime)):
    server_id = body.id if body is not None else None
    data = await runtime.controls.poll_server(server_id)
    return {"ok": True, "data": data}
