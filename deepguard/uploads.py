"""
Upload storage: saving, listing, serving and cleaning up analysed files
"""

import os
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List
from urllib.parse import quote

from deepguard import config
from deepguard.errors import UploadValidationError
from deepguard.media import validate_size, validate_upload


@dataclass(frozen=True)
class SavedUpload:
    path: Path
    filename: str
    original_name: str
    content_type: str
    size: int
    category: str


def build_saved_filename(original_name: str) -> str:
    """Prefix the original name with an epoch-millisecond stamp to avoid collisions"""
    stem, ext = os.path.splitext(original_name)
    return f"{int(time.time() * 1000)}-{stem}{ext}"


def save_upload(upload) -> SavedUpload:
    """
    Validate and persist a multipart upload.

    The body is copied in chunks so an oversized file is rejected as soon as it
    crosses the limit; the partial file is removed before the error propagates.
    """
    if upload is None:
        raise UploadValidationError("No file uploaded")

    category = validate_upload(upload.filename, upload.content_type)

    filename = build_saved_filename(upload.filename)
    filepath = config.upload_dir() / filename

    size = 0
    try:
        with open(filepath, "wb") as buffer:
            while True:
                chunk = upload.file.read(config.UPLOAD_CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > config.MAX_FILE_SIZE:
                    validate_size(size)
                buffer.write(chunk)
        validate_size(size)
    except UploadValidationError:
        filepath.unlink(missing_ok=True)
        raise

    print(f"[FILE_UPLOAD] {upload.filename} ({upload.content_type}) - Size: {size} bytes - Category: {category}")

    return SavedUpload(
        path=filepath,
        filename=filename,
        original_name=upload.filename,
        content_type=upload.content_type,
        size=size,
        category=category,
    )


def list_uploads() -> List[Dict]:
    uploads_dir = config.upload_dir()
    files = []
    for entry in sorted(uploads_dir.iterdir()):
        if not entry.is_file():
            continue
        stats = entry.stat()
        files.append({
            "name": entry.name,
            "size": stats.st_size,
            "modified": datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc).isoformat(),
            "url": f"/api/files/{quote(entry.name)}",
        })
    return files


def resolve_upload(filename: str) -> Path:
    """
    Locate a stored upload by name.

    Raises:
        PermissionError: the name resolves outside the uploads directory
        FileNotFoundError: no such file
    """
    uploads_dir = config.upload_dir().resolve()
    filepath = (uploads_dir / filename).resolve()

    if filepath == uploads_dir or uploads_dir not in filepath.parents:
        raise PermissionError(f"Access denied: {filename}")
    if not filepath.is_file():
        raise FileNotFoundError(filename)
    return filepath


def cleanup_old_uploads(max_age_hours: float = config.FILE_RETENTION_HOURS) -> int:
    """Delete uploads older than max_age_hours; returns how many were removed"""
    uploads_dir = config.upload_dir()
    cutoff = time.time() - max_age_hours * 3600
    cleaned = 0

    for entry in uploads_dir.iterdir():
        if entry.is_file() and entry.stat().st_mtime < cutoff:
            entry.unlink()
            cleaned += 1

    print(f"🧹 Cleaned up {cleaned} uploads older than {max_age_hours}h")
    return cleaned
