"""
Adapter for the HTTP framework.

Routes, exception handlers and the app factory take FastAPI types from here
instead of importing fastapi themselves; the stdio transport never touches
this module.
"""
from typing import Any, Union

from fastapi import FastAPI, APIRouter, Body, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, StreamingResponse, Response


class RouterAdapter:
    """Holds an APIRouter; route modules decorate ``adapter.router`` directly."""

    def __init__(self, router: APIRouter):
        self.router = router

    def __getattr__(self, name: str) -> Any:
        return getattr(self.router, name)


class AppAdapter:
    """Holds the FastAPI app and accepts either routers or router adapters."""

    def __init__(self, app: FastAPI):
        self.app = app

    def include_router(self, router: Union[RouterAdapter, APIRouter], **kwargs) -> None:
        if isinstance(router, RouterAdapter):
            router = router.router
        self.app.include_router(router, **kwargs)

    def add_middleware(self, middleware_class: type, **kwargs) -> None:
        self.app.add_middleware(middleware_class, **kwargs)


class HTTPFrameworkAdapter:
    """Exposes the framework types used across the service."""

    Body = staticmethod(Body)
    Request = Request
    RequestValidationError = RequestValidationError
    JSONResponse = JSONResponse
    StreamingResponse = StreamingResponse
    Response = Response

    def create_app(self, **kwargs) -> AppAdapter:
        """Create the FastAPI application wrapped in an AppAdapter."""
        return AppAdapter(FastAPI(**kwargs))

    def create_router(self, **kwargs) -> RouterAdapter:
        """Create an APIRouter wrapped in a RouterAdapter."""
        return RouterAdapter(APIRouter(**kwargs))
