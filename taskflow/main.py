"""
Taskflow MCP Service - entry point.

Runs the FastAPI app with uvicorn, or serves MCP over stdio with ``--stdio``.
All app initialization logic is in app/factory.py.
"""
import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

import uvicorn

from taskflow.app.factory import create_app, setup_logging
from taskflow.config import load_config
from taskflow.dependencies.services import ServiceContainer
from taskflow.exceptions.errors import ConfigurationError
from taskflow.stdio import run_stdio

logger = logging.getLogger(__name__)


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="taskflow-mcp", description="Tag-driven Notion task workflow over MCP")
    parser.add_argument("--stdio", action="store_true", help="Serve newline-delimited JSON-RPC on stdin/stdout")
    parser.add_argument("--env-file", type=str, help="Path to a .env file (default: ./.env)")
    parser.add_argument("--host", type=str, default="0.0.0.0", help="HTTP bind address")
    parser.add_argument("--port", type=int, help="HTTP port (default: TASKFLOW_SERVICE_PORT or 8004)")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    setup_logging()

    try:
        config = load_config(args.env_file)
    except ConfigurationError as e:
        logger.error(str(e))
        return 1

    if args.stdio:
        return asyncio.run(run_stdio(ServiceContainer(config)))

    app = create_app(config)
    server = uvicorn.Server(uvicorn.Config(
        app,
        host=args.host,
        port=args.port or config.service_port,
        log_level=os.getenv("LOG_LEVEL", "INFO").lower(),
        access_log=True,
        timeout_keep_alive=30,
        timeout_graceful_shutdown=30,
    ))
    try:
        server.run()
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
    finally:
        logger.info("Service stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
