"""Routes backing the single-page client. Include this router after every API router."""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import FileResponse, RedirectResponse

from showtrackr.core.config import settings

router = APIRouter(tags=["spa"])


@router.get("/", include_in_schema=False)
async def index() -> FileResponse:
    index_file = Path(settings.static_dir) / "index.html"
    if not index_file.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not built")
    return FileResponse(index_file)


@router.get("/{path:path}", include_in_schema=False)
async def client_route(path: str, request: Request) -> RedirectResponse:
    """Send deep links back to the client, which routes on the URL fragment."""

    target = f"/#/{path}"
    if request.url.query:
        target = f"{target}?{request.url.query}"
    return RedirectResponse(target, status_code=status.HTTP_302_FOUND)
