"""FastAPI routes for the chatflow engine."""

from fastapi import APIRouter

from .channel import router as channel_router
from .executions import router as executions_router
from .nodes import router as nodes_router
from .stream import router as stream_router
from .workflows import router as workflows_router

api_router = APIRouter(prefix="/api")
api_router.include_router(workflows_router, tags=["Workflows"])
api_router.include_router(executions_router, tags=["Executions"])
api_router.include_router(channel_router, tags=["Channel"])
api_router.include_router(nodes_router, tags=["Nodes"])
api_router.include_router(stream_router, tags=["Streaming"])

__all__ = ["api_router"]
