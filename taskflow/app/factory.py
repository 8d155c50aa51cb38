"""
Builds the HTTP application around a ServiceContainer.
The stdio transport shares setup_logging but not the app.
"""
import os
import sys
import logging
from contextlib import asynccontextmanager
from typing import Optional

from taskflow import __version__
from taskflow.adapters.http_framework import HTTPFrameworkAdapter
from taskflow.api.routes.health import router as health_router
from taskflow.api.routes.mcp import router as mcp_router
from taskflow.config import TaskflowConfig, load_config
from taskflow.dependencies.services import ServiceContainer
from taskflow.exceptions.handlers import setup_exception_handlers
from taskflow.monitoring import MetricsMiddleware, get_request_id
from taskflow.tracing import setup_tracing, instrument_fastapi, instrument_httpx


http_adapter = HTTPFrameworkAdapter()

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] - %(message)s'


class RequestIDFilter(logging.Filter):
    """Filter to add request ID to log records."""

    def filter(self, record):
        record.request_id = get_request_id() or '-'
        return True


class SafeFormatter(logging.Formatter):
    """Formatter that tolerates records without a request_id."""

    def format(self, record):
        if not hasattr(record, 'request_id'):
            record.request_id = '-'
        return super().format(record)


def setup_logging():
    """
    Setup structured logging with request ID support.

    Logs go to stderr so that stdout stays free for the stdio JSON-RPC channel.
    """
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    handler = logging.StreamHandler(sys.stderr)
    handler.addFilter(RequestIDFilter())
    handler.setFormatter(SafeFormatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        handlers=[handler],
        force=True
    )


@asynccontextmanager
async def lifespan(app):
    """Manage application lifespan: tracing on startup, client cleanup on shutdown."""
    logger = logging.getLogger(__name__)
    logger.info("taskflow-mcp HTTP server starting")

    try:
        setup_tracing()
        instrument_fastapi(app)
        instrument_httpx()
        logger.debug("Tracing and instrumentation set up")
    except Exception:
        logger.warning("Failed to initialize tracing, continuing without it", exc_info=True)

    yield

    logger.info("Closing Notion and image clients")
    await app.state.services.close()
    logger.info("taskflow-mcp HTTP server stopped")


def create_app(config: Optional[TaskflowConfig] = None, services: Optional[ServiceContainer] = None):
    """
    Create and configure the FastAPI application.

    Args:
        config: Configuration to use. Loaded from the environment when omitted.
        services: Prebuilt service container (tests inject one with a fake store)

    Returns:
        Configured FastAPI app instance ready to run.

    Raises:
        ConfigurationError: If no services are given and configuration is incomplete
    """
    setup_logging()
    logger = logging.getLogger(__name__)

    if services is None:
        services = ServiceContainer(config or load_config())

    app_adapter = http_adapter.create_app(
        title="Taskflow MCP Service",
        description="Tag-driven task workflow for AI agents, backed by Notion",
        version=__version__,
        lifespan=lifespan
    )
    app = app_adapter.app
    app.state.services = services

    app_adapter.add_middleware(MetricsMiddleware)
    setup_exception_handlers(app)

    app_adapter.include_router(health_router)
    app_adapter.include_router(mcp_router)

    logger.info("Application created")
    return app
