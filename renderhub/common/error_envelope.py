"""Error envelope for all render service responses.

Structure:
{
  "success": false,
  "error": "human readable message",
  "code": "machine.code",
  "details": {}
}
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException

from renderhub.common.errors import RenderServiceError

logger = logging.getLogger(__name__)


class ErrorEnvelope(BaseModel):
    success: bool = False
    error: str
    code: str
    details: Dict[str, Any] = Field(default_factory=dict)


def build_error_envelope(
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> ErrorEnvelope:
    """Construct an ErrorEnvelope (without raising)."""
    return ErrorEnvelope(error=message, code=code, details=details or {})


def error_response(
    code: str,
    message: str,
    status_code: int = 400,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    envelope = build_error_envelope(code=code, message=message, details=details)
    return JSONResponse(content=envelope.model_dump(), status_code=status_code)


async def _service_error_handler(request: Request, exc: RenderServiceError):
    logger.error(f"{request.method} {request.url.path} failed: [{exc.code}] {exc.message}")
    return error_response(exc.code, exc.message, exc.http_status, exc.details)


async def _http_exception_handler(request: Request, exc: HTTPException):
    detail = exc.detail
    message = str(detail) if detail else "HTTP exception"
    return error_response("http.exception", message, exc.status_code)


async def _validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{location}: {first.get('msg')}" if location else "Validation failed"
    # ctx may hold exception objects that are not JSON serialisable
    cleaned = [{k: v for k, v in err.items() if k in {"loc", "msg", "type"}} for err in errors]
    return error_response("validation.error", message, 400, {"errors": cleaned})


async def _generic_exception_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} crashed")
    message = str(exc) or "Internal server error"
    return error_response("internal.error", message, 500)


def register_error_handlers(target_app: FastAPI) -> None:
    target_app.add_exception_handler(RenderServiceError, _service_error_handler)
    target_app.add_exception_handler(HTTPException, _http_exception_handler)
    target_app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    target_app.add_exception_handler(Exception, _generic_exception_handler)
