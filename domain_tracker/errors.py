"""Problem documents (RFC 7807) for every error the API returns.

Tracker-level failures are raised as :class:`TrackerProblem` subclasses and
carry their own ``error_code``; framework errors are mapped onto the same
shape so clients only ever parse ``application/problem+json``.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"
PROBLEM_TYPE_PREFIX = "urn:domain-tracker:problem:"


class TrackerProblem(Exception):
    status_code = 500
    error_code = "tracker_error"
    detail = "Domain tracker error"

    def __init__(self, detail: Optional[str] = None, **extra: Any):
        super().__init__(detail or self.detail)
        if detail:
            self.detail = detail
        self.extra = extra


class ConfirmationNotPending(TrackerProblem):
    status_code = 404
    error_code = "confirmation_not_pending"
    detail = "No domain confirmation is pending"


class ServiceNotReady(TrackerProblem):
    status_code = 503
    error_code = "service_not_ready"
    detail = "Service dependencies are not ready"


def _title(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def _generic_code(status_code: int) -> str:
    return f"http_{status_code}"


def _split_detail(detail: Any, status_code: int) -> tuple[str, str]:
    # Routers may pass {"detail": ..., "error_code": ...} as the exception detail.
    if isinstance(detail, dict):
        return (
            str(detail.get("detail") or _title(status_code)),
            str(detail.get("error_code") or _generic_code(status_code)),
        )
    return str(detail or _title(status_code)), _generic_code(status_code)


def problem_response(
    *,
    request: Request,
    status_code: int,
    detail: str,
    error_code: str,
    problem_type: str = "about:blank",
    headers: Optional[dict[str, str]] = None,
    extra: Optional[dict[str, Any]] = None,
) -> JSONResponse:
    body: dict[str, Any] = dict(extra or {})
    body.update(
        {
            "type": problem_type,
            "title": _title(status_code),
            "status": status_code,
            "detail": detail,
            "instance": request.url.path,
            "error_code": error_code,
        }
    )
    return JSONResponse(
        status_code=status_code,
        content=body,
        headers=headers,
        media_type=PROBLEM_MEDIA_TYPE,
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(TrackerProblem)
    async def _tracker_problem(request: Request, exc: TrackerProblem) -> JSONResponse:
        logger.info(
            "tracker problem",
            extra={"error_code": exc.error_code, "path": request.url.path},
        )
        return problem_response(
            request=request,
            status_code=exc.status_code,
            detail=exc.detail,
            error_code=exc.error_code,
            problem_type=PROBLEM_TYPE_PREFIX + exc.error_code,
            extra=exc.extra,
        )

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        detail, error_code = _split_detail(exc.detail, exc.status_code)
        return problem_response(
            request=request,
            status_code=exc.status_code,
            detail=detail,
            error_code=error_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _invalid_request(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return problem_response(
            request=request,
            status_code=422,
            detail="Request validation failed",
            error_code="validation_error",
            extra={"errors": exc.errors()},
        )

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "unhandled error",
            exc_info=(type(exc), exc, exc.__traceback__),
            extra={"path": request.url.path},
        )
        return problem_response(
            request=request,
            status_code=500,
            detail="Internal Server Error",
            error_code=_generic_code(500),
        )
