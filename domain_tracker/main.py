from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

from .config import Settings, settings
from .errors import ServiceNotReady, register_exception_handlers
from .health import readiness_state
from .host import TrackerHost, build_tracker_host
from .observability import configure_observability
from .routers import confirmation, navigation, tracker


def _resolve_api_version(
    path: str, header_version: str | None, config: Settings = settings
) -> tuple[str, bool]:
    supported = set(config.api_supported_versions)
    latest = config.api_latest_version
    normalized = path.strip("/")
    path_parts = normalized.split("/") if normalized else []

    if len(path_parts) >= 2 and path_parts[0] == "api" and path_parts[1] in supported:
        return path_parts[1], False

    if header_version in supported:
        return str(header_version), False

    return latest, True


def create_app(
    config: Settings = settings, *, host: Optional[TrackerHost] = None
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        tracker_host = host or build_tracker_host(config)
        app.state.tracker_host = tracker_host
        tracker_host.tracker.start()
        try:
            yield
        finally:
            tracker_host.tracker.shutdown()

    app = FastAPI(title="Domain Tracker", lifespan=lifespan)
    configure_observability(app)
    register_exception_handlers(app)

    if config.trusted_hosts:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=config.trusted_hosts)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def api_version_middleware(request: Request, call_next):
        version, defaulted = _resolve_api_version(
            request.url.path, request.headers.get("x-api-version"), config
        )
        request.state.api_version = version
        response = await call_next(request)
        response.headers["X-API-Version"] = version
        if defaulted:
            response.headers["X-API-Version-Defaulted"] = "true"
        return response

    @app.middleware("http")
    async def security_headers_middleware(request: Request, call_next):
        response = await call_next(request)
        if not config.security_headers_enabled:
            return response
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers["Cache-Control"] = "no-store"
        return response

    if config.api_latest_version not in config.api_supported_versions:
        raise RuntimeError("api_latest_version must be included in api_supported_versions")
    latest_prefix = f"/api/{config.api_latest_version}"
    for router in (tracker.router, navigation.router, confirmation.router):
        app.include_router(router, prefix=latest_prefix)

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {"status": "ok"}

    @app.get("/ready")
    async def ready(request: Request) -> dict[str, Any]:
        is_ready, checks = readiness_state(getattr(request.app.state, "tracker_host", None))
        if not is_ready:
            raise ServiceNotReady(checks=checks)
        return {"status": "ok", "checks": checks}

    return app


app = create_app()
