from typing import Optional
from fastapi import FastAPI, Request
import httpx
import uvicorn
from contextlib import asynccontextmanager
import asyncio
import time

from app.core.config import Settings, settings as default_settings
from app.core.logging import get_logger
from app.core.middlewares import (
    DefaultHeadersMiddleware,
    ErrorHandlingMiddleware,
    RateLimitMiddleware,
    exception_handler,
)
from app.core.exceptions import AppBaseException
from app.core.metrics import MetricsMiddleware, metrics_endpoint
from app.core.rate_limit import FixedWindowRateLimiter
from app.api.routes import router as api_router
from app.api.frontend import FRONTEND_PATH, frontend
from app.services.relay import RelayClient

# Initialize logger
logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    rate_limiter: FixedWindowRateLimiter = app.state.rate_limiter

    async def sweep_rate_limits():
        while True:
            await asyncio.sleep(rate_limiter.window_seconds)
            try:
                removed = rate_limiter.sweep()
                logger.debug(f"Rate limit sweep removed {removed} records")
            except Exception as e:
                logger.error(f"Error in rate limit sweep: {str(e)}")

    mode = "relay" if settings.has_api_key else "echo"
    logger.info(
        f"{settings.APP_NAME} starting in {mode} mode "
        f"(public dir: {settings.public_root}, model: {settings.OPENAI_MODEL})"
    )
    sweep_task = asyncio.create_task(sweep_rate_limits())

    try:
        yield
    finally:
        sweep_task.cancel()
        try:
            await sweep_task
        except asyncio.CancelledError:
            logger.info("Rate limit sweep task cancelled")

        await app.state.relay_client.aclose()
        logger.info(f"{settings.APP_NAME} stopped")


def create_app(
    settings: Optional[Settings] = None,
    relay_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    settings = settings or default_settings

    app = FastAPI(
        title=settings.APP_NAME,
        description="Status, chat relay and static file gateway",
        version=settings.APP_VERSION,
        docs_url="/docs" if settings.DOCS_ENABLED else None,
        redoc_url="/redoc" if settings.DOCS_ENABLED else None,
        openapi_url="/openapi.json" if settings.DOCS_ENABLED else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.started_at = time.monotonic()
    app.state.rate_limiter = FixedWindowRateLimiter(
        max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
        sweep_windows=settings.RATE_LIMIT_SWEEP_WINDOWS,
    )
    app.state.relay_client = RelayClient(settings, transport=relay_transport)

    # Innermost first: the last middleware added wraps all the others
    app.add_middleware(
        RateLimitMiddleware,
        rate_limiter=app.state.rate_limiter,
        path=f"{settings.API_PREFIX}/chat",
    )
    app.add_middleware(ErrorHandlingMiddleware)
    if settings.METRICS_ENABLED:
        app.add_middleware(MetricsMiddleware)
    app.add_middleware(DefaultHeadersMiddleware, settings=settings)

    # Register exception handlers
    @app.exception_handler(AppBaseException)
    async def app_exception_handler(request: Request, exc: AppBaseException):
        return await exception_handler(request, exc)

    if settings.METRICS_ENABLED:
        @app.get("/metrics", include_in_schema=False)
        def metrics():
            return metrics_endpoint()

    # Routes; the frontend catch-all must come last
    app.include_router(api_router, prefix=settings.API_PREFIX, tags=["API"])
    app.add_route(FRONTEND_PATH, frontend, include_in_schema=False)

    return app


app = create_app()


def run() -> None:
    # uvicorn stops accepting on SIGTERM/SIGINT and drains in-flight requests
    uvicorn.run(
        "app.main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        reload=default_settings.DEBUG,
        timeout_graceful_shutdown=default_settings.SHUTDOWN_GRACE_SECONDS,
        log_level=default_settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
