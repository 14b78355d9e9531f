"""
Serves stored uploads under the default public prefix.

Only used when THOLVI_PUBLIC_BASE_URL is left at "/files"; a CDN in front
of the data directory makes this router unnecessary.
"""

import mimetypes

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from tholvi.adapters.fs.filestore import FileSystemStore
from tholvi.api.deps import get_file_store

router = APIRouter()

CACHE_CONTROL_IMMUTABLE = "public, max-age=31536000, immutable"


@router.get("/{bucket}/{path:path}")
def get_file(
    bucket: str,
    path: str,
    store: FileSystemStore = Depends(get_file_store),
) -> Response:
    try:
        data = store.get(bucket, path)
    except (FileNotFoundError, ValueError):
        raise HTTPException(status_code=404, detail="File not found") from None

    media_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
    # Paths carry a random component, so content never changes
    return Response(
        content=data,
        media_type=media_type,
        headers={"Cache-Control": CACHE_CONTROL_IMMUTABLE, "X-Content-Type-Options": "nosniff"},
    )
