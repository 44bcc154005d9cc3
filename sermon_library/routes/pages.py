"""
Sermon Library - Frontend Routes

Serves the prebuilt single-page frontend from FRONTEND_DIST_DIR.  Any GET
request that no API route matched returns the requested file from the
bundle if it exists, otherwise ``index.html`` so client-side routing works.

This router must be registered last.
"""

from pathlib import Path

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse

from sermon_library.config import FRONTEND_DIST_DIR

router = APIRouter(tags=["Pages"])


def _resolve_in_dist(dist_dir: Path, relative: str) -> Path | None:
    """Return the file under *dist_dir* named by *relative*, if it exists."""
    if not relative:
        return None
    root = dist_dir.resolve()
    candidate = (root / relative).resolve()
    if not candidate.is_relative_to(root) or not candidate.is_file():
        return None
    return candidate


@router.get("/{full_path:path}", include_in_schema=False)
async def frontend(full_path: str):
    """Serve a bundle file, falling back to the SPA entry point."""
    asset = _resolve_in_dist(FRONTEND_DIST_DIR, full_path)
    if asset is not None:
        return FileResponse(asset)

    index = FRONTEND_DIST_DIR / "index.html"
    if not index.is_file():
        raise HTTPException(status_code=404, detail="Not Found")
    return FileResponse(index)
