"""
Image upload storage for job photos and company logos.

Stores to Cloudflare R2 if configured, otherwise the local UPLOAD_DIR,
which main.py serves under /uploads.
"""

import logging
import uuid
from io import BytesIO
from pathlib import Path
from typing import Optional

from fastapi import HTTPException, UploadFile
from PIL import Image

from .config import settings

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png", "webp", "heic"}
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB

CONTENT_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "heic": "image/heic",
}


def get_extension(filename: str) -> str:
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower()


def r2_configured() -> bool:
    return bool(
        settings.CLOUDFLARE_R2_ACCOUNT_ID
        and settings.CLOUDFLARE_R2_ACCESS_KEY_ID
        and settings.CLOUDFLARE_R2_SECRET_ACCESS_KEY
    )


def _upload_to_r2(file_bytes: bytes, key: str, content_type: str) -> str:
    """Upload file to Cloudflare R2 and return the public URL."""
    import boto3

    s3 = boto3.client(
        "s3",
        endpoint_url=f"https://{settings.CLOUDFLARE_R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=settings.CLOUDFLARE_R2_ACCESS_KEY_ID,
        aws_secret_access_key=settings.CLOUDFLARE_R2_SECRET_ACCESS_KEY,
    )
    s3.upload_fileobj(
        BytesIO(file_bytes),
        settings.CLOUDFLARE_R2_BUCKET,
        key,
        ExtraArgs={"ContentType": content_type},
    )
    return f"https://{settings.CLOUDFLARE_R2_BUCKET}.{settings.CLOUDFLARE_R2_ACCOUNT_ID}.r2.dev/{key}"


def _save_locally(file_bytes: bytes, subdir: str, filename: str) -> str:
    upload_dir = Path(settings.UPLOAD_DIR) / subdir
    upload_dir.mkdir(parents=True, exist_ok=True)
    with open(upload_dir / filename, "wb") as f:
        f.write(file_bytes)
    return f"/uploads/{subdir}/{filename}"


def local_path(stored_path: Optional[str]) -> Optional[Path]:
    """Filesystem path for a locally stored upload, or None (R2 URL, emoji, missing file)."""
    if not stored_path or not stored_path.startswith("/uploads/"):
        return None
    root = Path(settings.UPLOAD_DIR).resolve()
    path = (root / stored_path[len("/uploads/"):]).resolve()
    if root not in path.parents:
        logger.warning("Ignoring upload path outside %s: %s", root, stored_path)
        return None
    return path if path.is_file() else None


def is_valid_image(file_bytes: bytes) -> bool:
    """True if Pillow can identify and verify the bytes as an image."""
    try:
        with Image.open(BytesIO(file_bytes)) as img:
            img.verify()
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError):
        return False
    return True


def delete_local(stored_path: Optional[str]) -> None:
    path = local_path(stored_path)
    if path is not None:
        try:
            path.unlink()
        except OSError as e:
            logger.warning("Could not delete upload %s: %s", path, e)


async def store_image(file: UploadFile, subdir: str, prefix: str) -> str:
    """
    Validate and store one uploaded image.

    - Validates file type (jpg, jpeg, png, webp, heic)
    - Validates file size (max 10MB, non-empty)
    - Validates the bytes decode as an image (except heic)
    - Returns the R2 URL or /uploads/<subdir>/<name> path
    """
    ext = get_extension(file.filename or "")
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"File type '{ext}' not allowed. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}",
        )

    file_bytes = await file.read()

    if len(file_bytes) > MAX_FILE_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"File too large ({len(file_bytes) / 1024 / 1024:.1f}MB). Maximum is 10MB.",
        )
    if len(file_bytes) == 0:
        raise HTTPException(status_code=400, detail="Empty file.")
    # HEIC needs a Pillow plugin; it is stored as-is and never embedded in PDFs
    if ext != "heic" and not is_valid_image(file_bytes):
        raise HTTPException(status_code=400, detail=f"File is not a valid {ext} image.")

    unique_name = f"{prefix}_{uuid.uuid4().hex[:12]}.{ext}"
    content_type = CONTENT_TYPES.get(ext, "application/octet-stream")

    if r2_configured():
        return _upload_to_r2(file_bytes, f"{subdir}/{unique_name}", content_type)
    return _save_locally(file_bytes, subdir, unique_name)
