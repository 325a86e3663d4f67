"""
HTTP middleware: error envelope, request logging and slow-request warnings.

Each request gets an id (X-Request-ID) stored on request.state so routers and
the other middleware can log against it.
"""
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from pydantic import ValidationError

from screening.utils.exceptions import ScreeningBaseException, map_to_http_exception
from screening.utils.logging_config import get_logger

logger = get_logger(__name__)


def request_id_of(request: Request) -> str:
    rid = getattr(request.state, "request_id", None)
    if rid is None:
        rid = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = rid
    return rid


def error_envelope(request_id: str, status_code: int, detail: Any) -> JSONResponse:
    """Uniform JSON body for errors that escape the routers"""
    if not isinstance(detail, dict):
        detail = {"message": str(detail)}
    body: Dict[str, Any] = {
        "success": False,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "request_id": request_id,
        "status_code": status_code,
        **detail,
    }
    return JSONResponse(status_code=status_code, content=body, headers={"X-Request-ID": request_id})


class ExceptionHandlerMiddleware(BaseHTTPMiddleware):
    """Turns uncaught exceptions into the error envelope"""

    async def dispatch(self, request: Request, call_next):
        request_id = request_id_of(request)
        where = f"{request.method} {request.url.path}"

        try:
            response = await call_next(request)
        except ScreeningBaseException as exc:
            http_exc = map_to_http_exception(exc)
            log = logger.warning if http_exc.status_code < 500 else logger.error
            log(
                f"{exc.__class__.__name__} in {where}: {exc.message}",
                extra={"request_id": request_id, "error_code": exc.error_code, "details": exc.details},
            )
            return error_envelope(request_id, http_exc.status_code, http_exc.detail)
        except ValidationError as exc:
            # stored documents that no longer fit the models
            logger.error(f"Model validation failed in {where}: {exc}", extra={"request_id": request_id})
            return error_envelope(request_id, 400, {
                "error": "Data validation failed",
                "validation_errors": exc.errors(include_url=False, include_context=False),
            })
        except Exception as exc:
            logger.error(f"Unhandled exception in {where}: {exc}", extra={"request_id": request_id}, exc_info=True)
            return error_envelope(request_id, 500, {
                "error": "Internal server error",
                "message": "An unexpected error occurred. Please try again later.",
            })

        response.headers["X-Request-ID"] = request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One log line per request with the calling user and the status"""

    async def dispatch(self, request: Request, call_next):
        request_id = request_id_of(request)
        user_id = request.headers.get("x-user-id", "anonymous")
        logger.debug(
            f"Request {request.method} {request.url} from {user_id}",
            extra={
                "request_id": request_id,
                "content_length": request.headers.get("content-length", "0"),
                "client_ip": request.client.host if request.client else "unknown",
            },
        )

        response = await call_next(request)

        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} (user {user_id})",
            extra={"request_id": request_id, "status_code": response.status_code},
        )
        return response


class PerformanceMiddleware(BaseHTTPMiddleware):
    """Adds X-Processing-Time and warns about requests slower than the threshold"""

    def __init__(self, app, slow_request_threshold: float = 2.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        if elapsed > self.slow_request_threshold:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} took {elapsed:.3f}s",
                extra={"request_id": request_id_of(request), "threshold": self.slow_request_threshold},
            )
        response.headers["X-Processing-Time"] = f"{elapsed:.3f}"
        return response
