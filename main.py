from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from apps.admin.router import router as admin_router
from apps.bid_vendors.router import router as bid_vendors_router
from apps.bids.assembler import BidQueryAssembler
from apps.bids.router import router as bids_router
from apps.notes.router import router as notes_router
from apps.phases.router import router as phases_router
from apps.realtime.context import RealtimeContext
from apps.realtime.router import router as realtime_router
from apps.vendors.router import router as vendors_router
from common.exceptions import CascadeDeleteError, cascade_delete_error_handler
from models.base import engine, SessionLocal
from models.registry import Base
from settings.config import Settings, get_settings
from utils.api_usage import ApiUsageTracker, track_api_usage
from utils.logging import setup_logging


def create_app(settings: Settings = None) -> FastAPI:
    """
    Application factory to build a FastAPI app with all middlewares and routers.
    """
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL, settings.REALTIME_LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        version="1.0.0",
    )

    # Shared per-app objects; routers read them from request.app.state
    assembler = BidQueryAssembler(
        schema_mode=settings.SCHEMA_MODE,
        synthesize_follow_ups=settings.SYNTHESIZE_FOLLOW_UP_DATES,
    )
    app.state.settings = settings
    app.state.assembler = assembler
    app.state.api_usage = ApiUsageTracker()
    app.state.realtime = RealtimeContext(settings, SessionLocal, assembler)

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
        expose_headers=["Authorization"],
    )

    # Security headers middleware (helmet-like)
    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Strict-Transport-Security"] = "max-age=63072000; includeSubDomains; preload"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["Cache-Control"] = "no-store"
        return response

    app.middleware("http")(track_api_usage)

    # Optional SlowAPI rate limiter
    if settings.ENABLE_RATE_LIMITER:
        # Build a default limit string from settings, using common time units
        req = settings.RATE_LIMIT_REQUESTS
        win = settings.RATE_LIMIT_WINDOW_SECONDS
        if win == 1:
            default_limit = f"{req}/second"
        elif win == 60:
            default_limit = f"{req}/minute"
        elif win == 3600:
            default_limit = f"{req}/hour"
        elif win == 86400:
            default_limit = f"{req}/day"
        else:
            default_limit = f"{req} per {win} seconds"

        limiter = Limiter(
            key_func=get_remote_address,
            default_limits=[default_limit],
            storage_uri=settings.RATE_LIMIT_STORAGE_URI or None,
        )
        app.state.limiter = limiter
        app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
        app.add_middleware(SlowAPIMiddleware)

    app.add_exception_handler(CascadeDeleteError, cascade_delete_error_handler)

    # Routers
    app.include_router(bids_router)
    app.include_router(vendors_router)
    app.include_router(bid_vendors_router)
    app.include_router(phases_router)
    app.include_router(notes_router)
    app.include_router(admin_router)
    app.include_router(realtime_router)

    @app.on_event("startup")
    async def on_startup():
        # Create tables in dev when using the async engine. In prod, use Alembic migrations.
        if settings.CREATE_TABLES_ON_STARTUP:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

        if settings.REALTIME_ENABLED:
            await app.state.realtime.start()

    @app.on_event("shutdown")
    async def on_shutdown():
        await app.state.realtime.stop()

    @app.get("/health")
    async def health():
        return {"status": "ok", "realtime": app.state.realtime.started}

    return app


app = create_app()
