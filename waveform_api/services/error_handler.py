"""
Error Handler Service

This module defines the error taxonomy of the Waveform Metadata API and the
FastAPI exception handlers that render every failure as a plain-text response.
"""

import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..models import ErrorType

# Set up logging
logger = logging.getLogger(__name__)


class WaveformAPIError(Exception):
    """Base class for errors that terminate a waveform request"""
    status_code = 500
    error_type = ErrorType.PROCESSING_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ClientInputError(WaveformAPIError):
    """Malformed request, disallowed source or bad data URI"""
    status_code = 400
    error_type = ErrorType.CLIENT_INPUT_ERROR


class UnsupportedMediaTypeError(ClientInputError):
    """Data URI MIME type or URL extension the service cannot handle"""
    status_code = 415
    error_type = ErrorType.UNSUPPORTED_MEDIA_TYPE


class MethodError(WaveformAPIError):
    status_code = 405
    error_type = ErrorType.METHOD_NOT_ALLOWED


class ExternalFetchError(WaveformAPIError):
    """Network failure, timeout or bad status while fetching a remote URL"""
    status_code = 400
    error_type = ErrorType.EXTERNAL_FETCH_ERROR


class ProcessingError(WaveformAPIError):
    """File I/O, container parse or waveform tool failure"""
    status_code = 500
    error_type = ErrorType.PROCESSING_ERROR


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "body")
        message = error.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "invalid request"


async def waveform_api_error_handler(request: Request, exc: WaveformAPIError):
    """
    Render a taxonomy error as plain text with its mapped status code
    """
    if exc.status_code >= 500:
        logger.error(f"{exc.error_type.value} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.warning(f"{exc.error_type.value} on {request.method} {request.url.path}: {exc.message}")
    return PlainTextResponse(exc.message, status_code=exc.status_code)


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """
    Handle FastAPI request validation errors (malformed JSON, missing or invalid fields)

    FastAPI answers these with 422 by default; this service reports them as 400.
    """
    detail = _format_validation_errors(exc)
    missing_url = any(
        error.get("type") == "missing" and "audio_url" in error.get("loc", ())
        for error in exc.errors()
    )
    if missing_url:
        message = "Missing required 'audio_url' field"
    elif any(error.get("type") == "json_invalid" for error in exc.errors()):
        message = f"Failed to decode JSON body: {detail}"
    else:
        message = f"Invalid request: {detail}"
    logger.warning(f"Request validation error for {request.method} {request.url.path}: {detail}")
    return PlainTextResponse(message, status_code=400)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    Render routing-level HTTP errors (404, 405) as plain text
    """
    if exc.status_code == 405:
        error = MethodError(f"Only {_allowed_methods(exc)} requests are allowed")
        return PlainTextResponse(error.message, status_code=error.status_code, headers=exc.headers)
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)


def _allowed_methods(exc: StarletteHTTPException) -> str:
    allow = (exc.headers or {}).get("Allow", "")
    methods = [method.strip() for method in allow.split(",") if method.strip()]
    return "/".join(methods) if methods else "POST"


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the plain-text handlers for every error the service can raise"""
    app.add_exception_handler(WaveformAPIError, waveform_api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
