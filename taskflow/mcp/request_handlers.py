"""Request handlers for JSON-RPC and SSE requests."""

import json
import logging
from typing import Dict, Any, Optional

from pydantic import ValidationError

from taskflow import __version__
from taskflow.dependencies.services import ServiceContainer
from taskflow.mcp.functions import MCP_FUNCTIONS
from taskflow.mcp.prompts import PROMPTS, render_prompt
from taskflow.mcp.resources import list_resources, read_resource
from taskflow.models.task_models import (
    AddCommentRequest,
    ProcessTasksRequest,
    QueryTasksRequest,
    TaskIdRequest,
    UpdateTaskRequest,
)

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"

METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602

TOOL_NAMES = {f["name"] for f in MCP_FUNCTIONS}


def _result(jsonrpc: str, request_id: Any, result: Dict[str, Any]) -> Dict[str, Any]:
    return {"jsonrpc": jsonrpc, "id": request_id, "result": result}


def _error(jsonrpc: str, request_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": jsonrpc, "id": request_id, "error": {"code": code, "message": message}}


def _text_content(payload: Any) -> Dict[str, Any]:
    text = payload if isinstance(payload, str) else json.dumps(payload, indent=2)
    return {"content": [{"type": "text", "text": text}]}


def _validation_message(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", ""))
    return "Invalid arguments: " + "; ".join(parts)


def list_tools() -> list:
    """Build the tools/list payload from the tool definitions."""
    tools = []
    for func_def in MCP_FUNCTIONS:
        tools.append({
            "name": func_def["name"],
            "description": func_def["description"],
            "inputSchema": {
                "type": "object",
                "properties": func_def.get("parameters", {}),
                "required": [k for k, v in func_def.get("parameters", {}).items() if v.get("optional") is not True]
            }
        })
    return tools


async def call_tool(name: str, arguments: Dict[str, Any], services: ServiceContainer) -> Any:
    """
    Run a tool and return its JSON-serializable result.

    Raises:
        ValueError: If the tool does not exist
        ValidationError: If the arguments are invalid
        Exception: Whatever the service raised
    """
    task_service = services.task_service

    if name == "process_tasks":
        args = ProcessTasksRequest.model_validate(arguments)
        return await task_service.process_tasks(args.limit, args.preview_only, args.tag_filter)
    if name == "query_tasks":
        args = QueryTasksRequest.model_validate(arguments)
        return {"tasks": await task_service.query_tasks(args)}
    if name == "get_task":
        args = TaskIdRequest.model_validate(arguments)
        return await task_service.get_task(args.task_id)
    if name == "add_comment":
        args = AddCommentRequest.model_validate(arguments)
        return await task_service.add_comment(args.task_id, args.comment)
    if name == "update_task":
        args = UpdateTaskRequest.model_validate(arguments)
        return await task_service.update_task(args)
    raise ValueError(f"Unknown tool: {name}")


async def handle_jsonrpc_request(request: Dict[str, Any], services: ServiceContainer) -> Optional[Dict[str, Any]]:
    """
    Handle JSON-RPC 2.0 request.

    Args:
        request: JSON-RPC request dictionary
        services: Service container used by tools, prompts and resources

    Returns:
        JSON-RPC response dictionary, or None for notifications
    """
    jsonrpc = request.get("jsonrpc", "2.0")
    request_id = request.get("id")
    method = request.get("method")
    params = request.get("params") or {}

    if isinstance(method, str) and method.startswith("notifications/"):
        logger.debug(f"Notification received: {method}")
        return None

    if not isinstance(params, dict):
        return _error(jsonrpc, request_id, INVALID_PARAMS, "params must be an object")

    if method == "initialize":
        return _result(jsonrpc, request_id, {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {
                "tools": {},
                "resources": {},
                "prompts": {},
            },
            "serverInfo": {
                "name": "taskflow-mcp",
                "version": __version__
            }
        })
    elif method == "ping":
        return _result(jsonrpc, request_id, {})
    elif method == "tools/list":
        return _result(jsonrpc, request_id, {"tools": list_tools()})
    elif method == "tools/call":
        tool_name = params.get("name")
        arguments = params.get("arguments") or {}
        if not isinstance(tool_name, str) or not isinstance(arguments, dict):
            return _error(jsonrpc, request_id, INVALID_PARAMS, "name must be a string and arguments an object")
        if tool_name not in TOOL_NAMES:
            return _error(jsonrpc, request_id, METHOD_NOT_FOUND, f"Method not found: {tool_name}")
        try:
            result = await call_tool(tool_name, arguments, services)
        except ValidationError as e:
            return _error(jsonrpc, request_id, INVALID_PARAMS, _validation_message(e))
        except Exception as e:
            logger.error(f"Tool {tool_name} failed: {e}", exc_info=True)
            return _result(jsonrpc, request_id, {
                "content": [{"type": "text", "text": f"Error: {e}"}],
                "isError": True,
            })
        return _result(jsonrpc, request_id, _text_content(result))
    elif method == "prompts/list":
        return _result(jsonrpc, request_id, {"prompts": PROMPTS})
    elif method == "prompts/get":
        name = params.get("name")
        arguments = params.get("arguments") or {}
        if not isinstance(name, str) or not isinstance(arguments, dict):
            return _error(jsonrpc, request_id, INVALID_PARAMS, "name must be a string and arguments an object")
        try:
            prompt = await render_prompt(name, arguments, services.store, services.images)
        except ValueError as e:
            return _error(jsonrpc, request_id, INVALID_PARAMS, str(e))
        except Exception as e:
            logger.error(f"Prompt {name} failed: {e}", exc_info=True)
            return _result(jsonrpc, request_id, {
                "messages": [{"role": "user", "content": {"type": "text", "text": f"Error: {e}"}}]
            })
        return _result(jsonrpc, request_id, prompt)
    elif method == "resources/list":
        return _result(jsonrpc, request_id, {"resources": await list_resources(services.store)})
    elif method == "resources/read":
        uri = params.get("uri")
        if not uri or not isinstance(uri, str):
            return _error(jsonrpc, request_id, INVALID_PARAMS, "uri is required")
        return _result(jsonrpc, request_id, {"contents": await read_resource(uri, services.store)})
    else:
        return _error(jsonrpc, request_id, METHOD_NOT_FOUND, f"Method not found: {method}")


async def handle_sse_request(request: Dict[str, Any], services: Optional[ServiceContainer] = None) -> str:
    """
    Handle SSE request (returns JSON-RPC response as SSE format string).

    Args:
        request: Request dictionary (may contain method, params, etc.)
        services: Service container, required for JSON-RPC requests

    Returns:
        SSE-formatted string with JSON-RPC response
    """
    if "jsonrpc" in request and services is not None:
        result = await handle_jsonrpc_request(request, services)
        return f"data: {json.dumps(result)}\n\n"

    method = request.get("method", "list_functions")
    if method == "list_functions":
        response = _result("2.0", None, {"functions": [f["name"] for f in MCP_FUNCTIONS]})
    else:
        response = _error("2.0", None, METHOD_NOT_FOUND, f"Method not found: {method}")
    return f"data: {json.dumps(response)}\n\n"
