"""Tool catalog, handlers and dispatcher."""

from .dispatcher import OperationDispatcher, ToolResponse
from .registry import DEFAULT_TOOLS, ToolRegistry, ToolSpec, build_default_registry

__all__ = [
    "OperationDispatcher",
    "ToolResponse",
    "ToolRegistry",
    "ToolSpec",
    "DEFAULT_TOOLS",
    "build_default_registry",
]
