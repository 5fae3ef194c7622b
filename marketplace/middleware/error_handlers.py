"""
Request middleware for the Marketplace API: error rendering, request logging
and slow-request detection.

Every error leaves the service as the same JSON shape::

    {"success": false, "timestamp": ..., "request_id": ..., "status_code": ...,
     "error": {...}, "message": ...}

with ``X-Request-ID`` and, for domain errors, ``X-Error-Code`` headers.
"""
import time
import traceback
import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.middleware.base import BaseHTTPMiddleware
from pydantic import ValidationError as PydanticValidationError

from marketplace.utils.exceptions import DatabaseError, MarketplaceBaseException, map_to_http_exception
from marketplace.utils.logging_config import get_logger

logger = get_logger(__name__)

# Query parameters that name the acting user or firm (no auth layer)
ACTOR_PARAMS = ("user_id", "firm_id")

# Endpoints that are polled and not worth an info line per hit
QUIET_PATHS = ("/", "/health")


def _request_context(request: Request, request_id: str) -> Dict[str, Any]:
    context = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
    }
    for param in ACTOR_PARAMS:
        if param in request.query_params:
            context[param] = request.query_params[param]
    return context


def _pydantic_errors(exc: PydanticValidationError):
    # Input values and docs urls stay out of responses
    return exc.errors(include_url=False, include_context=False, include_input=False)


class ExceptionHandlerMiddleware(BaseHTTPMiddleware):
    """Turns every exception escaping a route into the standard error body"""

    async def dispatch(self, request: Request, call_next):
        # Generate request ID for tracking
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        context = _request_context(request, request_id)

        logger.debug(f"Request started: {request.method} {request.url.path}", extra=context)

        try:
            response = await call_next(request)

            # Add request ID to response headers
            response.headers["X-Request-ID"] = request_id
            return response

        except MarketplaceBaseException as exc:
            # Refusals are the caller's problem; only storage failures are ours
            log = logger.error if isinstance(exc, DatabaseError) else logger.warning
            log(
                f"{exc.error_code} in {request.method} {request.url.path}: {exc.message}",
                extra={**context, "error_code": exc.error_code, "details": exc.details}
            )

            http_exc = map_to_http_exception(exc)
            return self._create_error_response(
                request_id, http_exc.status_code, http_exc.detail, {"X-Error-Code": exc.error_code}
            )

        except RequestValidationError as exc:
            # Malformed request (query, path or body)
            logger.warning(
                f"Request validation failed in {request.method} {request.url.path}",
                extra={**context, "validation_errors": exc.errors()}
            )

            return self._create_error_response(request_id, 422, {
                "error": "Validation failed",
                "message": "Request data validation failed",
                "validation_errors": exc.errors(),
            })

        except PydanticValidationError as exc:
            # Model built inside a service from stored or merged data
            logger.warning(
                f"Data validation failed in {request.method} {request.url.path}: {exc.error_count()} error(s)",
                extra={**context, "validation_errors": _pydantic_errors(exc)}
            )

            return self._create_error_response(request_id, 400, {
                "error": "Data validation failed",
                "message": "Invalid data format or values",
                "validation_errors": _pydantic_errors(exc),
            })

        except HTTPException as exc:
            logger.warning(
                f"HTTP exception in {request.method} {request.url.path}: {exc.detail}",
                extra={**context, "status_code": exc.status_code}
            )

            return self._create_error_response(request_id, exc.status_code, exc.detail)

        except Exception as exc:
            # Unexpected: full traceback in the log, nothing internal in the body
            logger.error(
                f"Unhandled exception in {request.method} {request.url.path}: {str(exc)}",
                extra={
                    **context,
                    "exception_type": exc.__class__.__name__,
                    "traceback": traceback.format_exc(),
                },
                exc_info=True
            )

            return self._create_error_response(request_id, 500, {
                "error": "Internal server error",
                "message": "An unexpected error occurred. Please try again later.",
            })

    @staticmethod
    def _create_error_response(
        request_id: str, status_code: int, detail: Any, headers: Optional[Dict[str, str]] = None
    ) -> JSONResponse:
        """Create standardized error response"""

        # Ensure detail is a dictionary
        if isinstance(detail, str):
            detail = {"message": detail}
        elif not isinstance(detail, dict):
            detail = {"message": str(detail)}

        error_response = {
            "success": False,
            "timestamp": datetime.utcnow().isoformat(),
            "request_id": request_id,
            "status_code": status_code,
            **detail
        }

        return JSONResponse(
            status_code=status_code,
            content=error_response,
            headers={"X-Request-ID": request_id, **(headers or {})}
        )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One line per request with status, timing and the acting user or firm"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        request_id = getattr(request.state, 'request_id', str(uuid.uuid4()))
        context = _request_context(request, request_id)

        try:
            response = await call_next(request)
        except Exception as exc:
            processing_time = time.time() - start_time
            logger.error(
                f"Request failed: {request.method} {request.url.path} after {processing_time:.3f}s",
                extra={**context, "processing_time": processing_time, "exception": str(exc)}
            )
            raise

        processing_time = time.time() - start_time
        log = logger.debug if request.url.path in QUIET_PATHS else logger.info
        log(
            f"Response: {request.method} {request.url.path} - {response.status_code} in {processing_time:.3f}s",
            extra={**context, "status_code": response.status_code, "processing_time": processing_time}
        )
        return response


class PerformanceMiddleware(BaseHTTPMiddleware):
    """
    Flags slow requests and sets ``X-Processing-Time``.

    ``route_thresholds`` maps a path prefix to its own threshold in seconds;
    the longest matching prefix wins over ``slow_request_threshold``.
    """

    def __init__(self, app, slow_request_threshold: float = 2.0, route_thresholds: Optional[Dict[str, float]] = None):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold
        self.route_thresholds = route_thresholds or {}

    def threshold_for(self, path: str) -> float:
        matches = [prefix for prefix in self.route_thresholds if path.startswith(prefix)]
        if not matches:
            return self.slow_request_threshold
        return self.route_thresholds[max(matches, key=len)]

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        request_id = getattr(request.state, 'request_id', str(uuid.uuid4()))

        response = await call_next(request)

        processing_time = time.time() - start_time
        threshold = self.threshold_for(request.url.path)

        # Log performance metrics
        if processing_time > threshold:
            logger.warning(
                f"Slow request detected: {request.method} {request.url.path} took {processing_time:.3f}s",
                extra={
                    "request_id": request_id,
                    "processing_time": processing_time,
                    "threshold": threshold,
                    "path": request.url.path
                }
            )

        # Add performance headers
        response.headers["X-Processing-Time"] = f"{processing_time:.3f}"

        return response
