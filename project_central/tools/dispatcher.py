"""Tool dispatch: the single place where tool failures become results."""

import logging
from dataclasses import dataclass
from typing import Any

from mcp.types import CallToolResult, TextContent

from ..core import ToolError
from ..storage import ProjectRepository
from .registry import ToolRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolResponse:
    """Text payload plus failure flag. Produced for every call."""
    text: str
    is_error: bool = False

    def to_call_tool_result(self) -> CallToolResult:
        return CallToolResult(content=[TextContent(type="text", text=self.text)], isError=self.is_error)


class OperationDispatcher:
    """Looks up, validates and runs tools against a repository."""

    def __init__(self, registry: ToolRegistry, repository: ProjectRepository):
        self.registry = registry
        self.repository = repository

    async def execute(self, name: str, arguments: dict[str, Any] | None) -> ToolResponse:
        """Run a tool. Never raises; failures come back with is_error set."""
        try:
            spec = self.registry.get(name)
            params = spec.parse_arguments(arguments)
            text = await spec.handler(self.repository, params)

        except ToolError as e:
            logger.warning(f"Tool error in {name}: {e}")
            return ToolResponse(text=f"Error: {e}", is_error=True)

        except Exception as e:
            logger.error(f"Unexpected error in {name}: {e}", exc_info=True)
            return ToolResponse(text=f"Internal error: {str(e) or type(e).__name__}", is_error=True)

        return ToolResponse(text=text)
