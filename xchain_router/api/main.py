"""FastAPI application for the cross-chain route optimizer.

The depth tracker is created from the configuration file at startup and its
background refresh loop runs for the lifetime of the application.
"""

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from xchain_router import __version__
from xchain_router.api.endpoints import router
from xchain_router.config import load_config
from xchain_router.depth.tracker import DepthTracker
from xchain_router.routing.optimizer import RouteOptimizer

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("XROUTE_HOST", "0.0.0.0")
PORT = int(os.environ.get("XROUTE_PORT", "8000"))
DEBUG = os.environ.get("XROUTE_DEBUG", "false").lower() in ("true", "1", "yes")
LOG_LEVEL = os.environ.get("XROUTE_LOG_LEVEL", "INFO").upper()

# Maximum request body size (1 MB)
MAX_REQUEST_SIZE = 1024 * 1024

logger = structlog.get_logger()


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Configure structlog console output at the given level name."""
    level_no = logging.getLevelName(level)
    if not isinstance(level_no, int):
        level_no = logging.INFO
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_no),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the tracker and optimizer from config; run the refresh loop."""
    configure_logging()
    config = load_config()
    tracker = DepthTracker(config)
    app.state.tracker = tracker
    app.state.optimizer = RouteOptimizer(config, tracker=tracker)
    logger.info(
        "router_starting",
        sources=config.source_ids,
        execution_source=config.execution_source,
        synthetic_fallback=config.synthetic_fallback,
    )
    await tracker.start()
    try:
        yield
    finally:
        await tracker.stop()


app = FastAPI(
    title="Cross-chain Route Optimizer",
    description="Liquidity depth tracking and multi-source swap routing",
    version=__version__,
    lifespan=lifespan,
)


@app.middleware("http")
async def limit_request_size(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with body larger than MAX_REQUEST_SIZE."""
    content_length = request.headers.get("content-length")
    if content_length and int(content_length) > MAX_REQUEST_SIZE:
        return JSONResponse(status_code=413, content={"detail": "Request too large"})
    return await call_next(request)


app.include_router(router)


@app.get("/health")
async def health(request: Request) -> dict[str, object]:
    """Health check endpoint."""
    tracker: DepthTracker | None = getattr(request.app.state, "tracker", None)
    if tracker is None:
        return {"status": "starting"}
    return {
        "status": "ok",
        "sources": len(tracker.config.sources),
        "refreshing": tracker.is_running,
        "refresh_count": tracker.refresh_count,
        "last_refresh": tracker.last_refresh_at,
        "refresh_errors": tracker.error_count,
    }


def run() -> None:
    """Run the route optimizer API server.

    Configuration via environment variables:
    - XROUTE_CONFIG: Path to the JSON router configuration (required)
    - XROUTE_HOST: Host to bind to (default: 0.0.0.0)
    - XROUTE_PORT: Port to bind to (default: 8000)
    - XROUTE_DEBUG: Enable debug/reload mode (default: false)
    - XROUTE_LOG_LEVEL: Log level name (default: INFO)
    """
    uvicorn.run(
        "xchain_router.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
