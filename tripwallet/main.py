import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core import errors
from .core.config import Settings, get_settings
from .core.logging import init_logging, request_context_middleware
from .db.dal import Database
from .db.migrate import apply_migrations
from .routers import expenses, health, rates, settings as settings_router, trips
from .services.rate_service import build_rate_service
from .services.rates.base import RateProvider

logger = logging.getLogger("tripwallet")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # One automatic refresh attempt per process; it runs in the background so
    # startup is never blocked by the rate provider.
    auto_task = None
    if app.state.settings.auto_refresh_rates:
        auto_task = asyncio.create_task(app.state.rates.policy.maybe_auto_refresh())
    app.state.auto_refresh_task = auto_task
    try:
        yield
    finally:
        if auto_task is not None and not auto_task.done():
            auto_task.cancel()
            try:
                await auto_task
            except asyncio.CancelledError:
                logger.debug("automatic rate refresh cancelled at shutdown")


def create_app(
    settings_override: Settings | None = None,
    provider_override: RateProvider | None = None,
) -> FastAPI:
    """Application factory.

    settings_override: pass an already constructed Settings instance for tests
    to isolate environment (e.g., temp DB). Falls back to cached get_settings().
    provider_override: inject a rate provider (tests, offline runs).
    """
    settings = settings_override or get_settings()
    if settings.db_path is None:
        settings.init_post_load()
    init_logging(debug=settings.debug)

    # Ensure database schema (idempotent) so test-injected fresh DBs have tables
    try:
        apply_migrations(settings.db_path)  # type: ignore[arg-type]
    except Exception:
        logger.exception("failed to apply migrations on startup")
        raise

    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        version=settings.version,
        lifespan=lifespan,
    )
    db = Database(settings.db_path)  # type: ignore[arg-type]
    app.state.settings = settings
    app.state.db = db
    app.state.rates = build_rate_service(settings, db, provider=provider_override)

    # Middleware (request id / structured logging)
    app.middleware("http")(request_context_middleware)

    # Error handlers
    app.add_exception_handler(errors.TripWalletError, errors.domain_error_handler)
    app.add_exception_handler(StarletteHTTPException, errors.http_error_handler)
    app.add_exception_handler(RequestValidationError, errors.validation_error_handler)
    app.add_exception_handler(Exception, errors.server_error_handler)

    # Routers
    app.include_router(health.router)
    app.include_router(trips.router)
    app.include_router(expenses.router)
    app.include_router(rates.router)
    app.include_router(settings_router.router)

    @app.get("/")
    async def root():
        return {"message": "TripWallet API", "version": settings.version}

    return app


app = create_app()
