"""
Shared watchlist endpoints - add, list and remove video links.

Successful mutations are pushed to every WebSocket client; failed ones are only
reported to the caller.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

from ..config import get_settings
from ..services.record_store import RecordStore, RecordStoreError
from ..services.session import SessionCoordinator
from .dependencies import get_record_store, get_coordinator

router = APIRouter()


class RecordCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    url: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    addedBy: Optional[str] = None


@router.get("")
async def list_records(
    limit: Optional[int] = Query(None, ge=1),
    store: RecordStore = Depends(get_record_store),
):
    """Most recently added records first."""
    settings = get_settings()
    limit = min(limit or settings.history_limit, settings.max_history_limit)
    try:
        return await store.list(limit=limit)
    except RecordStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("", status_code=201)
async def add_record(
    body: RecordCreate,
    store: RecordStore = Depends(get_record_store),
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    """Store a video link and announce it to everyone connected."""
    try:
        record = await store.add(url=body.url, title=body.title, added_by=body.addedBy)
    except RecordStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))

    await coordinator.record_created(record)
    return record


@router.delete("/{record_id}")
async def delete_record(
    record_id: int,
    store: RecordStore = Depends(get_record_store),
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    """Remove a video link and announce the removal."""
    try:
        removed = await store.remove(record_id)
    except RecordStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))

    if not removed:
        return JSONResponse(status_code=404, content={"success": False})

    await coordinator.record_removed(record_id)
    return {"success": True}
