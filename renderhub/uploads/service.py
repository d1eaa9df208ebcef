"""Inline image uploads, deduplicated by content hash.

Files are stored as ``uploaded_{md5}.{ext}`` in the public directory, so
uploading the same bytes twice rewrites the same file.
"""
from __future__ import annotations

import asyncio
import base64
import binascii
import hashlib
import logging
import re
from pathlib import Path
from typing import Optional, Tuple

from renderhub.common.errors import FilesystemError, InvalidImagePayload
from renderhub.config import runtime_config

logger = logging.getLogger(__name__)

_DATA_URI = re.compile(r"^data:([A-Za-z0-9.+\-]+/[A-Za-z0-9.+\-]*);base64,(.+)$", re.DOTALL)


def parse_inline_image(payload: Optional[str]) -> Tuple[str, bytes]:
    """Return (mime type, decoded bytes) for a ``data:image/...;base64,`` payload."""
    if not payload or not isinstance(payload, str):
        raise InvalidImagePayload("base64Data is required and must be a string")
    if not payload.startswith("data:image/"):
        raise InvalidImagePayload('Invalid base64 image format. Must start with "data:image/"')
    match = _DATA_URI.match(payload.strip())
    if not match:
        raise InvalidImagePayload("Invalid base64 image format")
    mime_type, encoded = match.group(1), match.group(2)
    try:
        data = base64.b64decode("".join(encoded.split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidImagePayload(f"Invalid base64 image data: {exc}") from exc
    if not data:
        raise InvalidImagePayload("Image payload is empty")
    return mime_type, data


def extension_for_mime(mime_type: str) -> str:
    subtype = mime_type.split("/", 1)[1] if "/" in mime_type else ""
    subtype = subtype.split("+", 1)[0].lower()
    return subtype or "png"


def uploaded_filename(mime_type: str, data: bytes) -> str:
    digest = hashlib.md5(data).hexdigest()
    return f"uploaded_{digest}.{extension_for_mime(mime_type)}"


class UploadService:
    def __init__(self, public_dir: Optional[str | Path] = None) -> None:
        self.public_dir = Path(public_dir) if public_dir else runtime_config.get_public_dir()

    def _write(self, filename: str, data: bytes) -> None:
        try:
            self.public_dir.mkdir(parents=True, exist_ok=True)
            (self.public_dir / filename).write_bytes(data)
        except OSError as exc:
            raise FilesystemError(f"Failed to save image {filename}: {exc}") from exc

    async def save_inline_image(self, payload: Optional[str]) -> str:
        mime_type, data = parse_inline_image(payload)
        filename = await asyncio.to_thread(uploaded_filename, mime_type, data)
        await asyncio.to_thread(self._write, filename, data)
        logger.info(f"Saved uploaded image {filename} ({len(data)} bytes)")
        return filename


_default_service: Optional[UploadService] = None


def get_upload_service() -> UploadService:
    global _default_service
    if _default_service is None:
        _default_service = UploadService()
    return _default_service


def set_upload_service(service: Optional[UploadService]) -> None:
    global _default_service
    _default_service = service
