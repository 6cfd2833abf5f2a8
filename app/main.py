# app/main.py
"""
FastAPI application for the second brain service, with database pool
lifecycle management.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from app.config import settings
from app.db.pool import db_pool
from app.infrastructure.observability.logging import get_logger, log_request, setup_logging
from app.middleware.request_context import RequestContextMiddleware
from app.routes import brain, health

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown."""

    logger.info(
        "Application starting",
        environment=settings.environment,
        debug=settings.debug,
        ai_configured=settings.ai_configured(),
        model=settings.OPENAI_MODEL,
    )

    if not settings.ai_configured():
        logger.warning("OPENAI_API_KEY not set; enrichment will use offline heuristics only")

    if settings.database_configured():
        logger.info("Initializing database pool")
        await db_pool.initialize()
    else:
        logger.warning("SUPABASE_DB_URL not set; brain item storage is unavailable")

    yield

    logger.info("Application shutting down")

    try:
        await db_pool.close()
    except Exception as e:
        logger.error("Error closing database pool", error=str(e))


app = FastAPI(
    title="Second Brain",
    description="Knowledge capture with AI enrichment and conversational queries",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(brain.router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing."""
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000

    log_request(
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(process_time, 2),
    )
    return response


# Added last so it runs first and the request id is bound for log_requests
app.add_middleware(RequestContextMiddleware)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
