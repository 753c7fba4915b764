"""Filesystem storage utilities."""

from __future__ import annotations

from pathlib import Path
from uuid import uuid4

from fastapi import UploadFile

from rubriq.settings import settings


def ensure_dir(path: Path) -> Path:
    """Create directory if needed and return it."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def uploads_dir() -> Path:
    return ensure_dir(settings.data_path / "uploads")


def save_upload_bytes(data: bytes, suffix: str) -> Path:
    """Persist uploaded bytes under a unique name and return the path."""
    destination = uploads_dir() / f"{uuid4().hex}{suffix}"
    destination.write_bytes(data)
    return destination


def remove_file(path: Path) -> None:
    path.unlink(missing_ok=True)


async def read_upload(upload: UploadFile, max_bytes: int) -> bytes:
    """Read an upload fully, raising ValueError when it exceeds max_bytes."""
    data = await upload.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise ValueError(f"File exceeds the {max_bytes // (1024 * 1024)} MB upload limit")
    return data
