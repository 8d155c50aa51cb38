"""
Prometheus metrics, request ids and health reporting.

Every HTTP request gets a short request id (stored in a context var so log
records and error responses can carry it). Workflow and store activity are
counted separately from HTTP traffic because most of it happens over stdio.
"""
import re
import time
import uuid
import logging
from typing import Callable, Dict, Any, Optional
from contextvars import ContextVar

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from prometheus_client import Counter, Histogram, Gauge, generate_latest

request_id_var: ContextVar[str] = ContextVar('request_id', default='')

_HTTP_LABELS = ['method', 'endpoint', 'status_code']

http_requests_total = Counter('taskflow_http_requests_total', 'HTTP requests served', _HTTP_LABELS)
http_request_duration_seconds = Histogram(
    'taskflow_http_request_duration_seconds',
    'HTTP request latency',
    _HTTP_LABELS,
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)
http_errors_total = Counter('taskflow_http_errors_total', 'HTTP responses with status >= 400', _HTTP_LABELS + ['error_type'])
service_uptime_seconds = Gauge('taskflow_uptime_seconds', 'Seconds since the service started')

tags_processed_total = Counter(
    'taskflow_tags_processed_total',
    'Workflow tags processed, by action and outcome',
    ['action', 'status', 'preview'],
)
store_requests_total = Counter(
    'taskflow_store_requests_total',
    'Task store operations, by outcome',
    ['operation', 'outcome'],
)
store_retries_total = Counter(
    'taskflow_store_retries_total',
    'Task store operations retried after a transient failure',
    ['operation'],
)

service_start_time = time.time()

logger = logging.getLogger(__name__)


def get_request_id() -> str:
    """Request id of the HTTP request being handled, or '' outside one."""
    return request_id_var.get()


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def record_tag_result(action: Optional[str], status_: str, preview: bool) -> None:
    tags_processed_total.labels(action=action or "none", status=status_, preview=str(preview).lower()).inc()


def record_store_request(operation: str, outcome: str) -> None:
    store_requests_total.labels(operation=operation, outcome=outcome).inc()


def record_store_retry(operation: str) -> None:
    store_retries_total.labels(operation=operation).inc()


# Notion page ids appear both dashed and as 32 bare hex characters
_ID_PATTERN = re.compile(r'[0-9a-f]{8}-?[0-9a-f]{4}-?[0-9a-f]{4}-?[0-9a-f]{4}-?[0-9a-f]{12}', re.IGNORECASE)


def endpoint_label(path: str) -> str:
    """Collapse page ids in a path so metric label cardinality stays bounded."""
    return _ID_PATTERN.sub('{id}', path)[:100]


class MetricsMiddleware(BaseHTTPMiddleware):
    """Assigns a request id, counts requests and times them."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = uuid.uuid4().hex[:8]
        set_request_id(request_id)
        labels = {"method": request.method, "endpoint": endpoint_label(request.url.path)}
        started = time.perf_counter()
        service_uptime_seconds.set(time.time() - service_start_time)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"{request.method} {request.url.path} raised {type(e).__name__}",
                exc_info=True,
                extra={"request_id": request_id},
            )
            http_errors_total.labels(status_code=500, error_type="exception", **labels).inc()
            raise

        elapsed = time.perf_counter() - started
        code = response.status_code
        logger.info(f"{request.method} {request.url.path} -> {code} ({elapsed:.3f}s)", extra={"request_id": request_id})

        http_requests_total.labels(status_code=code, **labels).inc()
        http_request_duration_seconds.labels(status_code=code, **labels).observe(elapsed)
        if code >= 400:
            kind = "server_error" if code >= 500 else "client_error"
            http_errors_total.labels(status_code=code, error_type=kind, **labels).inc()

        response.headers["X-Request-ID"] = request_id
        return response


def get_metrics() -> str:
    """Get Prometheus metrics in text format."""
    return generate_latest().decode('utf-8')


def get_health_info(config=None) -> Dict[str, Any]:
    """
    Health of the service and its task store.

    The store is reported as configured or not; no Notion call is made, so
    the health endpoint stays cheap and works without network access.
    """
    uptime = time.time() - service_start_time
    if config is None:
        store = {"status": "unhealthy", "error": "Task store is not configured"}
    else:
        store = {
            "status": "healthy",
            "type": "notion",
            "database_id": config.database_id,
            "tag_property": config.tag_property,
        }

    return {
        "status": store["status"],
        "service": "taskflow-mcp",
        "timestamp": time.time(),
        "uptime_seconds": uptime,
        "uptime_formatted": _format_uptime(uptime),
        "components": {"store": store},
    }


def _format_uptime(seconds: float) -> str:
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    days, hours = divmod(hours, 24)
    parts = [(days, "d"), (hours, "h"), (minutes, "m")]
    # Drop leading zero units: 0d 2h 5m 3s -> 2h 5m 3s
    while parts and parts[0][0] == 0:
        parts.pop(0)
    return " ".join(f"{value}{unit}" for value, unit in parts + [(secs, "s")])
