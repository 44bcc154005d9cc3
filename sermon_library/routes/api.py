"""
Sermon Library - JSON API Routes

Provides the REST endpoints for:
- Listing and fetching items (metadata only, straight from MongoDB)
- Creating an item from a multipart form with optional thumbnail/audio parts
- Editing an item (sparse update, replacing files that are re-uploaded)
- Deleting an item together with its files on Google Drive
- Health check
"""

import time
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from sermon_library.config import APP_VERSION
from sermon_library.database import ping
from sermon_library.models import DeleteResult, Item, form_fields
from sermon_library.services.item_manager import ItemManager, UploadedFile

router = APIRouter(tags=["API"])

# Track startup time for health check
_START_TIME = time.time()


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------
def get_item_manager(request: Request) -> ItemManager:
    """Return the ItemManager built at startup."""
    return request.app.state.item_manager


async def _read_upload(upload: Optional[UploadFile]) -> Optional[UploadedFile]:
    """Read a multipart file part into memory; empty parts count as absent."""
    if upload is None:
        return None
    content = await upload.read()
    if not upload.filename and not content:
        return None
    return UploadedFile(
        content=content,
        filename=upload.filename or "upload",
        content_type=upload.content_type,
    )


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
@router.get("/health")
async def health_check(request: Request) -> Dict[str, Any]:
    """Health check endpoint for the service."""
    uptime = round(time.time() - _START_TIME, 2)
    mongo_client = getattr(request.app.state, "mongo_client", None)
    drive = getattr(request.app.state, "drive", None)

    db_ok = mongo_client is not None and await ping(mongo_client)

    return {
        "status": "ok" if db_ok else "degraded",
        "database": "ok" if db_ok else "unavailable",
        "drive_configured": bool(drive is not None and drive.is_configured),
        "uptime_seconds": uptime,
        "version": APP_VERSION,
    }


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------
@router.get("/items", response_model=List[Item])
async def api_list_items(manager: ItemManager = Depends(get_item_manager)):
    """List all items, newest first."""
    return await manager.list_items()


@router.get("/items/{item_id}", response_model=Item)
async def api_get_item(item_id: str, manager: ItemManager = Depends(get_item_manager)):
    """Get a single item by id."""
    return await manager.get_item(item_id)


@router.post("/upload", response_model=Item)
async def api_upload_item(
    name: Optional[str] = Form(None),
    date: Optional[str] = Form(None),
    speaker: Optional[str] = Form(None),
    series: Optional[str] = Form(None),
    thumbnail: Optional[UploadFile] = File(None),
    audio_file: Optional[UploadFile] = File(None, alias="audioFile"),
    manager: ItemManager = Depends(get_item_manager),
):
    """Create an item, uploading its thumbnail and audio file to Google Drive."""
    fields = form_fields(name=name, date=date, speaker=speaker, series=series)
    return await manager.create_item(
        fields,
        thumbnail=await _read_upload(thumbnail),
        audio_file=await _read_upload(audio_file),
    )


@router.put("/edit/{item_id}", response_model=Item)
async def api_edit_item(
    item_id: str,
    name: Optional[str] = Form(None),
    date: Optional[str] = Form(None),
    speaker: Optional[str] = Form(None),
    series: Optional[str] = Form(None),
    thumbnail: Optional[UploadFile] = File(None),
    audio_file: Optional[UploadFile] = File(None, alias="audioFile"),
    manager: ItemManager = Depends(get_item_manager),
):
    """
    Edit an item.

    Only the fields present (and non-empty) in the form change.  A new
    thumbnail or audio file replaces the old one, which is then deleted
    from Google Drive.
    """
    fields = form_fields(name=name, date=date, speaker=speaker, series=series)
    return await manager.edit_item(
        item_id,
        fields,
        thumbnail=await _read_upload(thumbnail),
        audio_file=await _read_upload(audio_file),
    )


@router.delete("/items/{item_id}", response_model=DeleteResult)
async def api_delete_item(
    item_id: str, manager: ItemManager = Depends(get_item_manager)
):
    """Delete an item and its files on Google Drive."""
    return await manager.delete_item(item_id)
