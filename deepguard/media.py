"""
Supported media types and upload validation
"""

import os
from typing import Optional

from deepguard.config import MAX_FILE_SIZE, MAX_FILENAME_LENGTH
from deepguard.errors import UploadValidationError

SUPPORTED_IMAGE_TYPES = ["image/jpeg", "image/png", "image/webp"]
SUPPORTED_VIDEO_TYPES = ["video/mp4", "video/webm", "video/mov"]
SUPPORTED_AUDIO_TYPES = ["audio/wav", "audio/mp3", "audio/m4a", "audio/ogg"]

ALL_SUPPORTED_TYPES = SUPPORTED_IMAGE_TYPES + SUPPORTED_VIDEO_TYPES + SUPPORTED_AUDIO_TYPES

BLOCKED_EXTENSIONS = [".exe", ".bat", ".cmd", ".com", ".pif", ".scr", ".vbs", ".js", ".jar"]

CONTENT_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".mp4": "video/mp4",
    ".avi": "video/x-msvideo",
    ".mov": "video/quicktime",
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
}


def get_file_category(mime_type: Optional[str]) -> str:
    """Map a MIME type to image / video / audio / unsupported"""
    if mime_type in SUPPORTED_IMAGE_TYPES:
        return "image"
    if mime_type in SUPPORTED_VIDEO_TYPES:
        return "video"
    if mime_type in SUPPORTED_AUDIO_TYPES:
        return "audio"
    return "unsupported"


def validate_upload(filename: Optional[str], content_type: Optional[str]) -> str:
    """
    Check an incoming upload before anything is written to disk.

    Args:
        filename: Client-supplied file name
        content_type: Client-supplied MIME type

    Returns:
        The file category (image, video or audio)

    Raises:
        UploadValidationError: with status 400 for anything we refuse to store
    """
    if filename is None and content_type is None:
        raise UploadValidationError("No file uploaded")

    category = get_file_category(content_type)
    if category == "unsupported":
        raise UploadValidationError(f"Unsupported file type: {content_type}")

    if not filename or len(filename) > MAX_FILENAME_LENGTH:
        raise UploadValidationError("Invalid filename")

    lowered = filename.lower()
    if ".." in lowered or "/" in lowered or "\\" in lowered:
        raise UploadValidationError("Invalid filename - path traversal not allowed")

    ext = os.path.splitext(lowered)[1]
    if ext in BLOCKED_EXTENSIONS:
        raise UploadValidationError(f"File type not allowed: {ext}")

    return category


def validate_size(size: int):
    if size == 0:
        raise UploadValidationError("File is empty")
    if size > MAX_FILE_SIZE:
        raise UploadValidationError("File size exceeds 10MB limit", status_code=413)


def content_type_for(filename: str) -> str:
    ext = os.path.splitext(filename)[1].lower()
    return CONTENT_TYPES.get(ext, "application/octet-stream")
