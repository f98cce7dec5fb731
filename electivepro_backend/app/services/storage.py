"""Blob storage for uploaded statements and pack templates, kept on the local filesystem."""
import logging
import os
import time
import uuid
from pathlib import Path

from fastapi import HTTPException

from app.core.config import settings

logger = logging.getLogger(__name__)

BUCKETS = {"statements", "documents"}


def _root() -> Path:
    return Path(settings.storage_dir).resolve()


def save_file(bucket: str, original_name: str | None, data: bytes, prefix: str = "") -> str:
    """Write ``data`` under a unique name and return its ``bucket/name`` path."""
    if bucket not in BUCKETS:
        raise ValueError(f"Unknown bucket {bucket!r}")
    ext = os.path.splitext(original_name or "")[1].lower() or ".bin"
    stem = f"{prefix}_" if prefix else ""
    name = f"{stem}{int(time.time())}_{uuid.uuid4().hex[:8]}{ext}"
    target = _root() / bucket / name
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)
    logger.info("Stored %d bytes at %s/%s", len(data), bucket, name)
    return f"{bucket}/{name}"


def resolve_path(stored_path: str) -> Path:
    root = _root()
    candidate = (root / stored_path).resolve()
    # only bucket/name, nothing nested and nothing outside the root
    if candidate.parent.parent != root or candidate.parent.name not in BUCKETS:
        raise HTTPException(status_code=404, detail="File not found.")
    if not candidate.is_file():
        raise HTTPException(status_code=404, detail="File not found.")
    return candidate


def delete_file(stored_path: str | None) -> None:
    if not stored_path:
        return
    try:
        resolve_path(stored_path).unlink()
    except HTTPException:
        logger.warning("Tried to delete missing file %s", stored_path)
