"""Grievance attachment storage on the local upload directory."""

from __future__ import annotations

import logging
import re
import uuid
from pathlib import Path

from fastapi import UploadFile

from ..config import settings
from ..domain_errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024  # 1MB
_STORED_NAME_RE = re.compile(
    r"^grievance-[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}\.[a-z0-9]{1,16}$"
)

MIME_TYPES: dict[str, tuple[str, ...]] = {
    "jpg": ("image/jpeg",),
    "jpeg": ("image/jpeg",),
    "png": ("image/png",),
    "pdf": ("application/pdf",),
    "doc": ("application/msword",),
    "docx": ("application/vnd.openxmlformats-officedocument.wordprocessingml.document",),
}


def upload_dir() -> Path:
    path = Path(settings.UPLOAD_DIR) / "grievances"
    path.mkdir(parents=True, exist_ok=True)
    return path


def validate_upload(file: UploadFile) -> str:
    """Check the extension and declared MIME type; return the normalized extension."""
    if not file.filename:
        raise ValidationError("Filename is required")

    if "." not in file.filename:
        raise ValidationError("File extension is required")

    ext = file.filename.rsplit(".", 1)[-1].lower()
    if ext not in settings.allowed_extensions_list or ext not in MIME_TYPES:
        raise ValidationError(f"File type not allowed. Allowed: {settings.ALLOWED_EXTENSIONS}")

    content_type = (file.content_type or "").split(";")[0].strip().lower()
    if content_type not in MIME_TYPES[ext]:
        raise ValidationError("File content type does not match its extension")
    return ext


async def save_attachment(file: UploadFile) -> str:
    """Stream an upload to disk with a hard size limit; return the stored name."""
    ext = validate_upload(file)
    stored_name = f"grievance-{uuid.uuid4()}.{ext}"
    dest_path = upload_dir() / stored_name

    size = 0
    try:
        with dest_path.open("xb") as out:
            while True:
                chunk = await file.read(_CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > settings.MAX_UPLOAD_SIZE:
                    raise ValidationError(f"File too large. Max size: {settings.MAX_UPLOAD_SIZE} bytes")
                out.write(chunk)
    except ValidationError:
        # Ensure partial file is removed.
        dest_path.unlink(missing_ok=True)
        raise
    except FileExistsError:
        raise ConflictError("File collision, try again")

    logger.info("attachment.stored name=%s size=%s", stored_name, size)
    return stored_name


def resolve_attachment_path(stored_name: str) -> Path:
    """Map a stored name back to a file inside the upload directory."""
    if not stored_name or not _STORED_NAME_RE.match(stored_name):
        raise NotFoundError("Attachment not found")
    path = upload_dir() / stored_name
    if not path.is_file():
        raise NotFoundError("Attachment not found")
    return path


def media_type_for(stored_name: str) -> str:
    ext = stored_name.rsplit(".", 1)[-1].lower()
    return MIME_TYPES.get(ext, ("application/octet-stream",))[0]


def release_attachment(stored_name: str | None) -> None:
    """Best-effort removal; failures are logged, never raised."""
    if not stored_name:
        return
    try:
        (upload_dir() / Path(stored_name).name).unlink(missing_ok=True)
    except OSError:
        logger.exception("Failed to release attachment %s", stored_name)
