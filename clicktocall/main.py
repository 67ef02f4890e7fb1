"""
Click-to-call service: app lifecycle, routers and request logging.
"""

import asyncio
import contextlib
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from clicktocall.config import settings
from clicktocall.infrastructure.audit import activity_log
from clicktocall.infrastructure.observability.logging import get_logger, setup_logging
from clicktocall.jobs.log_retention_job import start_log_retention_scheduler
from clicktocall.middleware import RequestContextMiddleware
from clicktocall.routes import actions, health, page
from clicktocall.services.preferences_service import preferences_service
from clicktocall.services.redis_client import fast_redis
from clicktocall.services.vendor_session_client import vendor_session_client

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


async def _sync_debug_logging(changed: dict) -> None:
    """Keep the activity log gate in step with the debugLogging preference."""
    if "debugLogging" in changed:
        activity_log.set_enabled(bool(changed["debugLogging"]))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown with proper resource management."""

    logger.info("Application starting", environment=settings.environment, debug=settings.debug)

    startup_tasks = []

    try:
        logger.info("Initializing Redis connection")
        await fast_redis.initialize()
        startup_tasks.append("redis")

        installed = await preferences_service.install_defaults()
        prefs = await preferences_service.get_preferences()
        activity_log.set_enabled(prefs.debug_logging)
        await activity_log.load()
        preferences_service.subscribe(_sync_debug_logging)
        startup_tasks.append("preferences")

        retention_task = asyncio.create_task(start_log_retention_scheduler())
        startup_tasks.append("log_retention")

        logger.info(
            "All services initialized successfully",
            services=startup_tasks,
            defaults_installed=installed,
        )

    except Exception as e:
        logger.error("Failed to initialize services", error=str(e), completed_tasks=startup_tasks)

        if "redis" in startup_tasks:
            try:
                await fast_redis.close()
            except Exception as cleanup_error:
                logger.error("Error cleaning up Redis", error=str(cleanup_error))

        raise

    yield

    logger.info("Application shutting down")

    shutdown_errors = []

    retention_task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await retention_task

    preferences_service.unsubscribe(_sync_debug_logging)

    try:
        logger.info("Closing vendor HTTP client")
        await vendor_session_client.close()
    except Exception as e:
        logger.error("Error closing vendor HTTP client", error=str(e))
        shutdown_errors.append(f"Vendor client: {e}")

    try:
        logger.info("Closing Redis connection")
        await fast_redis.close()
    except Exception as e:
        logger.error("Error closing Redis", error=str(e))
        shutdown_errors.append(f"Redis: {e}")

    if shutdown_errors:
        logger.warning("Some services had shutdown errors", errors=shutdown_errors)
    else:
        logger.info("All services closed successfully")


app = FastAPI(
    title="One Click Dialer",
    description="Click-to-call bridge for a web-based PBX",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(RequestContextMiddleware)

# Include routers
app.include_router(health.router)
app.include_router(actions.router)
app.include_router(page.router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing."""
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000

    logger.info(
        "HTTP request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(process_time, 2),
    )
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
