import logging
import os
import time
import uuid
from pathlib import Path
from typing import Optional

from fastapi import UploadFile
from slugify import slugify

from app.config import settings
from app.errors import ValidationError

logger = logging.getLogger(__name__)

MEDIA_URL_PREFIX = "/uploads"


def media_root() -> Path:
    root = Path(settings.MEDIA_DIR).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


def save_upload(file: UploadFile, title: str, field: str, subdir: str = "videos") -> str:
    """Write an uploaded file below MEDIA_DIR and return its public URL."""
    ext = os.path.splitext(file.filename or "")[1].lower()
    filename = f"{field}-{slugify(title) or 'video'}-{int(time.time())}-{uuid.uuid4().hex[:8]}{ext}"

    target_dir = media_root() / subdir
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / filename

    max_bytes = settings.MAX_UPLOAD_MB * 1024 * 1024
    written = 0
    with target.open("wb") as out:
        while True:
            chunk = file.file.read(1024 * 1024)
            if not chunk:
                break
            written += len(chunk)
            if written > max_bytes:
                out.close()
                target.unlink(missing_ok=True)
                raise ValidationError(
                    f"File exceeds {settings.MAX_UPLOAD_MB}MB limit",
                    reason="file_too_large",
                )
            out.write(chunk)

    logger.info(f"Stored upload {target} ({written} bytes)")
    return f"{MEDIA_URL_PREFIX}/{subdir}/{filename}"


def delete_media(url: Optional[str]):
    path = resolve_media_path(url[len(MEDIA_URL_PREFIX) + 1:]) if url and url.startswith(MEDIA_URL_PREFIX + "/") else None
    if path and path.is_file():
        path.unlink()


def resolve_media_path(relative: str) -> Optional[Path]:
    """Map a request path to a file inside MEDIA_DIR, or None if it escapes it."""
    root = media_root()
    candidate = (root / relative).resolve()
    try:
        candidate.relative_to(root)
    except ValueError:
        return None
    return candidate

