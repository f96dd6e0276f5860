# utils/uploads.py
import logging
import os
import shutil
import uuid
from pathlib import Path
from typing import Optional

from fastapi import HTTPException, UploadFile

from config import settings

logger = logging.getLogger(__name__)

# Accepted content types and the extension each one is stored under
ALLOWED_IMAGE_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}
URL_PREFIX = "/uploads/"


def upload_dir() -> Path:
    path = Path(settings.UPLOAD_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return path


def upload_path(image_url: str) -> Optional[Path]:
    """Local file behind an upload URL, or None when it points outside the upload dir."""
    if not image_url or not image_url.startswith(URL_PREFIX):
        return None
    root = upload_dir().resolve()
    path = (root / image_url[len(URL_PREFIX):]).resolve()
    if path.parent != root:
        return None
    return path


def remove_upload(image_url: str) -> None:
    # Only files we stored ourselves are removed
    old_path = upload_path(image_url)
    if old_path is not None and old_path.is_file():
        os.remove(old_path)


def save_image(file: UploadFile, previous_url: str = "") -> str:
    """Store an uploaded product image and return its public URL."""
    ext = ALLOWED_IMAGE_TYPES.get(file.content_type)
    if ext is None:
        raise HTTPException(status_code=400, detail="Invalid file type")

    unique_filename = f"{uuid.uuid4()}.{ext}"
    save_path = upload_dir() / unique_filename

    try:
        with open(save_path, "wb") as buffer:
            shutil.copyfileobj(file.file, buffer)
        remove_upload(previous_url)
    except OSError as e:
        logger.exception("Could not store upload %s", unique_filename)
        raise HTTPException(status_code=500, detail=f"File save error: {e}")
    finally:
        file.file.close()

    return f"{URL_PREFIX}{unique_filename}"
