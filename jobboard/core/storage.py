"""
Local blob store for uploaded resumes and logos.

Files are addressed by a path relative to UPLOAD_DIR (e.g. "resumes/3f2a....pdf")
and served publicly under PUBLIC_STORAGE_URL.
"""

from typing import Iterable, Optional
from fastapi import UploadFile
import logging
import os
import uuid

from jobboard.core.config import settings
from jobboard.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

RESUME_EXTENSIONS = {"pdf", "doc", "docx"}
LOGO_EXTENSIONS = {"jpeg", "jpg", "png", "gif"}

def file_extension(filename: Optional[str]) -> str:
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()

def read_upload(upload: UploadFile, field: str, allowed_extensions: Iterable[str], max_size_mb: int) -> bytes:
    """Read an uploaded file after checking its extension and size"""
    allowed = sorted(allowed_extensions)
    if file_extension(upload.filename) not in allowed:
        raise ValidationError({field: [f"The {field} must be a file of type: {', '.join(allowed)}."]})

    content = upload.file.read()
    if not content:
        raise ValidationError({field: [f"The {field} file is empty."]})
    if len(content) > max_size_mb * 1024 * 1024:
        raise ValidationError({field: [f"The {field} may not be greater than {max_size_mb} MB."]})
    return content

def store_file(content: bytes, folder: str, filename: str) -> str:
    """Write content under a fresh name inside folder and return its relative path"""
    directory = os.path.join(settings.UPLOAD_DIR, folder)
    os.makedirs(directory, exist_ok=True)

    relative_path = f"{folder}/{uuid.uuid4().hex}.{file_extension(filename)}"
    with open(os.path.join(settings.UPLOAD_DIR, relative_path), "wb") as buffer:
        buffer.write(content)

    logger.info(f"Stored upload at {relative_path}")
    return relative_path

def delete_file(relative_path: Optional[str]) -> bool:
    if not relative_path:
        return False
    if not file_exists(relative_path):
        logger.warning(f"Tried to delete missing upload {relative_path}")
        return False
    os.remove(os.path.join(settings.UPLOAD_DIR, relative_path))
    logger.info(f"Deleted upload {relative_path}")
    return True

def file_exists(relative_path: Optional[str]) -> bool:
    return bool(relative_path) and os.path.isfile(os.path.join(settings.UPLOAD_DIR, relative_path))

def public_url(relative_path: Optional[str]) -> Optional[str]:
    if not relative_path:
        return None
    return f"{settings.PUBLIC_STORAGE_URL.rstrip('/')}/{relative_path}"
