import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from apps.presign.exception import PresignError
from apps.presign.registry import SignerRegistry, build_registry
from apps.presign.router import router as presign_router
from apps.presign.service import PresignService
from common.responses import JSONUTF8Response, error_response
from settings.config import Settings, get_settings
from utils.logging import setup_logging

logger = logging.getLogger(__name__)


def _bind_registry(app: FastAPI, registry: SignerRegistry, settings: Settings) -> None:
    app.state.registry = registry
    app.state.presign_service = PresignService.from_settings(registry, settings)


def _build_limiter(settings: Settings) -> Limiter:
    """
    Per-client limiter applied to every route, e.g. "100 per 60 seconds".
    Counters live in memory unless RATE_LIMIT_STORAGE_URI points at a shared store.
    """
    rule = f"{settings.RATE_LIMIT_REQUESTS} per {settings.RATE_LIMIT_WINDOW_SECONDS} seconds"
    return Limiter(
        key_func=get_remote_address,
        default_limits=[rule],
        storage_uri=settings.RATE_LIMIT_STORAGE_URI or None,
    )


def create_app(registry: Optional[SignerRegistry] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory to build a FastAPI app with all middlewares and routers.
    When no registry is given, signers are built once on startup; a failure for
    the primary provider aborts startup so the process never serves traffic.
    """
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if registry is None:
            # FatalStartupError propagates and stops the server
            _bind_registry(app, build_registry(settings), settings)
            logger.info("serving providers: %s", ", ".join(app.state.registry.providers))
        yield

    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type"],
    )

    # Security headers middleware (helmet-like); presigned URLs must never be cached
    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Strict-Transport-Security"] = "max-age=63072000; includeSubDomains; preload"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["Cache-Control"] = "no-store"
        return response

    if settings.ENABLE_RATE_LIMITER:
        app.state.limiter = _build_limiter(settings)
        app.add_middleware(SlowAPIMiddleware)

        @app.exception_handler(RateLimitExceeded)
        async def rate_limited_handler(request: Request, exc: RateLimitExceeded):
            logger.warning("rate limited %s on %s", get_remote_address(request), request.url.path)
            return JSONUTF8Response(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content=error_response(f"rate limit exceeded: {exc.detail}"),
            )

    @app.exception_handler(PresignError)
    async def presign_error_handler(request: Request, exc: PresignError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONUTF8Response(status_code=exc.status_code, content=error_response(str(exc)))

    # Routers
    app.include_router(presign_router)

    if registry is not None:
        _bind_registry(app, registry, settings)

    @app.get("/health")
    async def health():
        registry_ = getattr(app.state, "registry", None)
        return {"status": "ok", "providers": registry_.providers if registry_ is not None else []}

    return app


app = create_app()
