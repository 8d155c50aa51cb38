"""
MCP (Model Context Protocol) API routes.

``POST /mcp`` is the JSON-RPC endpoint. Each tool is also exposed as a
REST-style ``POST /mcp/<tool>`` route taking the tool arguments as a JSON body.
"""
from typing import Optional, List

from taskflow.adapters.http_framework import HTTPFrameworkAdapter
from taskflow.dependencies.services import get_services
from taskflow.mcp.functions import MCP_FUNCTIONS
from taskflow.mcp.request_handlers import handle_jsonrpc_request, handle_sse_request
from taskflow.models.task_models import QueryTasksRequest, UpdateTaskRequest

# Initialize adapter
http_adapter = HTTPFrameworkAdapter()
Body = http_adapter.Body
Request = http_adapter.Request
Response = http_adapter.Response
StreamingResponse = http_adapter.StreamingResponse

# Create router using adapter, expose underlying router for compatibility
router_adapter = http_adapter.create_router(prefix="/mcp", tags=["mcp"])
router = router_adapter.router


@router.post("/process_tasks")
async def mcp_process_tasks(
    request: Request,
    limit: int = Body(10, embed=True, gt=0),
    preview_only: bool = Body(False, embed=True),
    tag_filter: Optional[str] = Body(None, embed=True)
):
    """MCP: Process tasks carrying workflow tags."""
    task_service = get_services(request).task_service
    return await task_service.process_tasks(limit, preview_only, tag_filter)


@router.post("/query_tasks")
async def mcp_query_tasks(
    request: Request,
    status: Optional[str] = Body(None, embed=True),
    has_tags: bool = Body(True, embed=True),
    tag: Optional[str] = Body(None, embed=True),
    limit: int = Body(100, embed=True)
):
    """MCP: Query tasks by status and tag."""
    query = QueryTasksRequest(status=status, has_tags=has_tags, tag=tag, limit=limit)
    tasks = await get_services(request).task_service.query_tasks(query)
    return {"tasks": tasks}


@router.post("/get_task")
async def mcp_get_task(
    request: Request,
    task_id: str = Body(..., embed=True)
):
    """MCP: Get a task with its content blocks."""
    return await get_services(request).task_service.get_task(task_id)


@router.post("/add_comment")
async def mcp_add_comment(
    request: Request,
    task_id: str = Body(..., embed=True),
    comment: str = Body(..., embed=True)
):
    """MCP: Add a comment to a task."""
    return await get_services(request).task_service.add_comment(task_id, comment)


@router.post("/update_task")
async def mcp_update_task(
    request: Request,
    task_id: str = Body(..., embed=True),
    description: Optional[str] = Body(None, embed=True),
    append_description: Optional[str] = Body(None, embed=True),
    status: Optional[str] = Body(None, embed=True),
    remove_tags: Optional[List[str]] = Body(None, embed=True)
):
    """MCP: Update a task's description, status or tags."""
    update = UpdateTaskRequest(
        task_id=task_id,
        description=description,
        append_description=append_description,
        status=status,
        remove_tags=remove_tags or [],
    )
    return await get_services(request).task_service.update_task(update)


@router.get("/functions")
async def mcp_functions():
    """List all available MCP functions."""
    return {"functions": MCP_FUNCTIONS}


@router.post("")
async def mcp_jsonrpc(request: Request, payload: dict = Body(...)):
    """Generic JSON-RPC 2.0 endpoint for MCP."""
    result = await handle_jsonrpc_request(payload, get_services(request))
    if result is None:
        return Response(status_code=202)
    return result


@router.post("/sse")
async def mcp_sse_post(request: Request, payload: dict = Body(...)):
    """Server-Sent Events endpoint for MCP (POST)."""
    # POST requests with JSON-RPC return JSON, not an SSE stream
    result = await handle_jsonrpc_request(payload, get_services(request))
    if result is None:
        return Response(status_code=202)
    return result


@router.get("/sse")
async def mcp_sse_get():
    """Server-Sent Events endpoint for MCP (GET)."""
    result = await handle_sse_request({"method": "list_functions"})
    return StreamingResponse(content=iter([result]), media_type="text/event-stream")
