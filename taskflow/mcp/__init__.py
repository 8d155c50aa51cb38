"""
MCP surface: tool definitions, prompts, resources and JSON-RPC dispatch.
"""
from .functions import MCP_FUNCTIONS
from .prompts import PROMPTS
from .request_handlers import handle_jsonrpc_request, handle_sse_request

__all__ = ["MCP_FUNCTIONS", "PROMPTS", "handle_jsonrpc_request", "handle_sse_request"]
