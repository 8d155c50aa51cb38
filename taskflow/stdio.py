"""
stdio transport: newline-delimited JSON-RPC over stdin/stdout.

stdout carries only JSON-RPC responses; logging goes to stderr.
"""
import asyncio
import json
import logging
import sys
from typing import Optional, TextIO

from taskflow.dependencies.services import ServiceContainer
from taskflow.mcp.request_handlers import handle_jsonrpc_request

logger = logging.getLogger(__name__)

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
INTERNAL_ERROR = -32603


def _error(request_id, code: int, message: str) -> dict:
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}


async def process_line(line: str, services: ServiceContainer) -> Optional[str]:
    """Handle one input line and return the serialized response, if any."""
    raw = line.strip()
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        return json.dumps(_error(None, PARSE_ERROR, f"Parse error: {e}"))
    if not isinstance(data, dict) or "method" not in data:
        request_id = data.get("id") if isinstance(data, dict) else None
        return json.dumps(_error(request_id, INVALID_REQUEST, "Invalid Request"))

    try:
        response = await handle_jsonrpc_request(data, services)
    except Exception as e:
        # One bad request must not end the session
        logger.error(f"Unhandled error in {data.get('method')!r}: {e}", exc_info=True)
        return json.dumps(_error(data.get("id"), INTERNAL_ERROR, f"Internal error: {e}"))
    if response is None:
        return None
    return json.dumps(response, ensure_ascii=False)


async def run_stdio(services: ServiceContainer, stdin: TextIO = sys.stdin, stdout: TextIO = sys.stdout) -> int:
    """Serve requests from ``stdin`` until EOF."""
    loop = asyncio.get_running_loop()
    logger.info("taskflow-mcp serving on stdio")
    try:
        while True:
            line = await loop.run_in_executor(None, stdin.readline)
            if not line:
                break
            out = await process_line(line, services)
            if out is None:
                continue
            stdout.write(out + "\n")
            stdout.flush()
    finally:
        await services.close()
    logger.info("stdin closed, shutting down")
    return 0
