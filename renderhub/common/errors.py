"""Error taxonomy shared by every render service module.

Each error carries a machine-readable ``code`` and the HTTP status the app
handlers map it to. Read-only paths catch ``FilesystemError`` and treat the
resource as absent; write paths let it surface.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class RenderServiceError(Exception):
    code = "render.error"
    http_status = 500

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(RenderServiceError):
    """Malformed request body or payload."""

    code = "validation.error"
    http_status = 400


class InvalidImagePayload(ValidationError):
    code = "upload.invalid_image_payload"


class CompositionNotFound(RenderServiceError):
    code = "composition.not_found"


class InvalidInputProps(RenderServiceError):
    code = "composition.invalid_input_props"


class RenderEngineError(RenderServiceError):
    code = "render_engine.failed"


class FilesystemError(RenderServiceError):
    code = "filesystem.error"
