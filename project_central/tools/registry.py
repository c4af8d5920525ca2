"""Static tool catalog: name -> description, argument model, handler."""

from collections.abc import Awaitable, Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Any

from mcp.types import Tool
from pydantic import ValidationError

from ..core import InvalidArgumentsError, UnknownOperationError
from ..storage import ProjectRepository
from . import handlers
from .models import (
    AddIssueArgs,
    AddIssueCommentArgs,
    AddProjectArgs,
    GetProjectDetailsArgs,
    ListIssuesArgs,
    NoArguments,
    ToolArguments,
    UpdateIssueArgs,
    UpdateIssueStatusArgs,
)

ToolHandler = Callable[[ProjectRepository, Any], Awaitable[str]]


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "arguments"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


@dataclass(frozen=True)
class ToolSpec:
    """One operation: its schema descriptor and handler."""
    name: str
    description: str
    arguments: type[ToolArguments]
    handler: ToolHandler

    def input_schema(self) -> dict[str, Any]:
        """JSON schema advertised to clients."""
        schema = self.arguments.model_json_schema()
        schema.pop("title", None)
        schema.setdefault("properties", {})
        return schema

    def parse_arguments(self, arguments: dict[str, Any] | None) -> ToolArguments:
        """Validate a raw argument bag. Raises InvalidArgumentsError."""
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise InvalidArgumentsError(self.name, "arguments must be an object")
        try:
            return self.arguments.model_validate(arguments)
        except ValidationError as e:
            raise InvalidArgumentsError(self.name, _format_validation_error(e)) from e

    def to_tool(self) -> Tool:
        return Tool(name=self.name, description=self.description, inputSchema=self.input_schema())


class ToolRegistry:
    """Lookup of tool specs by name."""

    def __init__(self, specs: Iterable[ToolSpec] = ()):
        self._specs: dict[str, ToolSpec] = {}
        for spec in specs:
            self.register(spec)

    def register(self, spec: ToolSpec):
        if spec.name in self._specs:
            raise ValueError(f"Tool already registered: {spec.name}")
        self._specs[spec.name] = spec

    def get(self, name: str) -> ToolSpec:
        """Raises UnknownOperationError for unregistered names."""
        spec = self._specs.get(name)
        if spec is None:
            raise UnknownOperationError(name)
        return spec

    def names(self) -> list[str]:
        return list(self._specs)

    def list_tools(self) -> list[Tool]:
        return [spec.to_tool() for spec in self._specs.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def __iter__(self) -> Iterator[ToolSpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)


DEFAULT_TOOLS = (
    ToolSpec(
        name="add_project",
        description="Add a new software project to the central management system",
        arguments=AddProjectArgs,
        handler=handlers.add_project,
    ),
    ToolSpec(
        name="add_issue",
        description="Create a new issue, bug or task for a specific project",
        arguments=AddIssueArgs,
        handler=handlers.add_issue,
    ),
    ToolSpec(
        name="update_issue_status",
        description="Update the status of an existing issue",
        arguments=UpdateIssueStatusArgs,
        handler=handlers.update_issue_status,
    ),
    ToolSpec(
        name="update_issue",
        description="Update any property of an existing issue (title, description, priority, status, assignees)",
        arguments=UpdateIssueArgs,
        handler=handlers.update_issue,
    ),
    ToolSpec(
        name="list_all_projects",
        description="List all software projects currently being managed",
        arguments=NoArguments,
        handler=handlers.list_all_projects,
    ),
    ToolSpec(
        name="get_project_details",
        description="Get comprehensive details of a project, including its issues and recent activity",
        arguments=GetProjectDetailsArgs,
        handler=handlers.get_project_details,
    ),
    ToolSpec(
        name="list_issues",
        description="List issues across all projects or filtered by status, priority or project name",
        arguments=ListIssuesArgs,
        handler=handlers.list_issues,
    ),
    ToolSpec(
        name="add_issue_comment",
        description="Add a comment to a specific issue",
        arguments=AddIssueCommentArgs,
        handler=handlers.add_issue_comment,
    ),
)


def build_default_registry() -> ToolRegistry:
    """Registry with every project tracking tool."""
    return ToolRegistry(DEFAULT_TOOLS)
