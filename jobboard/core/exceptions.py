"""
Error taxonomy and the handlers that render every failure in the response envelope:

    {"success": false, "message": "...", "errors": {"field": ["..."]}}
"""

from typing import Dict, List, Optional
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

logger = logging.getLogger(__name__)

class ValidationError(HTTPException):
    """Malformed or missing input, reported field by field"""

    def __init__(self, errors: Dict[str, List[str]], message: str = "Validation error"):
        super().__init__(status_code=422, detail=message)
        self.errors = errors

class AuthorizationError(HTTPException):
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(status_code=403, detail=message)

class NotFoundError(HTTPException):
    def __init__(self, message: str = "Not found"):
        super().__init__(status_code=404, detail=message)

class ConflictError(HTTPException):
    """Valid request that the current state of a record does not allow"""

    def __init__(self, message: str):
        super().__init__(status_code=400, detail=message)

def error_body(message: str, errors: Optional[Dict[str, List[str]]] = None) -> dict:
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return body

def _field_name(loc) -> str:
    # ("body", "salary_min") -> "salary_min", ("query", "page") -> "page"
    parts = [str(part) for part in loc if part not in ("body", "query", "path", "form")]
    return ".".join(parts) or "request"

def collect_field_errors(errors) -> Dict[str, List[str]]:
    grouped: Dict[str, List[str]] = {}
    for error in errors:
        grouped.setdefault(_field_name(error.get("loc", ())), []).append(error.get("msg", "Invalid value"))
    return grouped

async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    errors = getattr(exc, "errors", None)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail), errors),
        headers=getattr(exc, "headers", None),
    )

async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content=error_body("Validation error", collect_field_errors(exc.errors())),
    )

async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {str(exc)}", exc_info=True)
    return JSONResponse(status_code=500, content=error_body("Internal server error"))

def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
