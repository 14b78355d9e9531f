"""
Upload routes.

Screenshots back a member's payment request, thumbnails decorate content.
Each is a multipart form with a single `file` part whose content type names
the image type. Only the returned URL is stored elsewhere.
"""

import logging
import mimetypes
from uuid import uuid4

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from tholvi.adapters.fs.filestore import FileSystemStore
from tholvi.api.deps import get_current_user, get_file_store, get_rules, require_admin
from tholvi.api.schemas import UploadResponse
from tholvi.domain.entities import UserAccount
from tholvi.domain.errors import DependencyFailure
from tholvi.rules.models import Rules

logger = logging.getLogger(__name__)

router = APIRouter()

# Room for part boundaries and headers on top of the file itself
MULTIPART_OVERHEAD_BYTES = 16 * 1024

# mimetypes maps image/jpeg to .jpg on some platforms and .jpe on others
_EXTENSIONS = {"image/jpeg": ".jpg"}


def too_large_detail(max_bytes: int) -> dict[str, str]:
    return {"code": "upload_too_large", "message": f"Upload exceeds {max_bytes} bytes"}


def _read_image(file: UploadFile, rules: Rules) -> tuple[bytes, str]:
    mime_type = (file.content_type or "").split(";")[0].strip().lower()
    if mime_type not in rules.uploads.allowlist_mime_types:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "code": "mime_type_not_allowed",
                "message": f"Content type '{mime_type or 'missing'}' is not allowed",
            },
        )

    # Never pull more than one byte past the limit into memory
    max_bytes = rules.uploads.max_upload_bytes
    data = file.file.read(max_bytes + 1)
    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "empty_upload", "message": "Upload body is empty"},
        )
    if len(data) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=too_large_detail(max_bytes),
        )
    return data, mime_type


def _store(
    store: FileSystemStore, bucket: str, owner: UserAccount, data: bytes, mime_type: str
) -> str:
    ext = _EXTENSIONS.get(mime_type) or mimetypes.guess_extension(mime_type) or ""
    path = f"{owner.id}/{uuid4().hex}{ext}"
    try:
        return store.put(bucket, path, data)
    except DependencyFailure as e:
        logger.error("Upload to %s failed: %s", bucket, e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "dependency_failure", "message": "File store unavailable"},
        ) from e


@router.post(
    "/uploads/screenshot", response_model=UploadResponse, status_code=status.HTTP_201_CREATED
)
def upload_screenshot(
    file: UploadFile = File(...),
    current_user: UserAccount = Depends(get_current_user),
    store: FileSystemStore = Depends(get_file_store),
    rules: Rules = Depends(get_rules),
) -> UploadResponse:
    """Payment proof image. Any signed-in member."""
    data, mime_type = _read_image(file, rules)
    return UploadResponse(url=_store(store, "screenshots", current_user, data, mime_type))


@router.post(
    "/admin/uploads/thumbnail", response_model=UploadResponse, status_code=status.HTTP_201_CREATED
)
def upload_thumbnail(
    file: UploadFile = File(...),
    admin: UserAccount = Depends(require_admin),
    store: FileSystemStore = Depends(get_file_store),
    rules: Rules = Depends(get_rules),
) -> UploadResponse:
    data, mime_type = _read_image(file, rules)
    return UploadResponse(url=_store(store, "thumbnails", admin, data, mime_type))
