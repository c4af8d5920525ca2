"""Tests for the tool catalog and argument models."""

import typing

import pytest

from project_central.core import (
    DEFAULT_PRIORITY,
    PRIORITIES,
    STATUSES,
    InvalidArgumentsError,
    UnknownOperationError,
)
from project_central.tools import ToolRegistry, ToolSpec
from project_central.tools.models import AddIssueArgs, Priority, Status

EXPECTED_TOOLS = [
    "add_project",
    "add_issue",
    "update_issue_status",
    "update_issue",
    "list_all_projects",
    "get_project_details",
    "list_issues",
    "add_issue_comment",
]


async def _noop(repo, args):
    return "ok"


class TestCatalog:
    """The default catalog."""

    def test_names(self, registry):
        assert registry.names() == EXPECTED_TOOLS
        assert len(registry) == 8

    def test_list_tools_have_object_schemas(self, registry):
        for tool in registry.list_tools():
            assert tool.description
            assert tool.inputSchema["type"] == "object"
            assert "title" not in tool.inputSchema
            assert "properties" in tool.inputSchema

    def test_required_fields(self, registry):
        schema = registry.get("add_issue").input_schema()
        assert sorted(schema["required"]) == ["project_name", "title"]
        assert schema["properties"]["priority"]["enum"] == list(PRIORITIES)
        assert schema["properties"]["priority"]["default"] == DEFAULT_PRIORITY

        schema = registry.get("add_issue_comment").input_schema()
        assert sorted(schema["required"]) == ["author_name", "content", "issue_id"]

    def test_list_all_projects_takes_no_arguments(self, registry):
        schema = registry.get("list_all_projects").input_schema()
        assert schema["properties"] == {}
        assert "required" not in schema

    def test_enumerations_match_constants(self):
        assert typing.get_args(Priority) == PRIORITIES
        assert typing.get_args(Status) == STATUSES


class TestLookup:

    def test_unknown_name(self, registry):
        with pytest.raises(UnknownOperationError, match="Unknown tool: nope"):
            registry.get("nope")
        assert "nope" not in registry
        assert "add_issue" in registry

    def test_duplicate_registration(self):
        spec = ToolSpec(name="ping", description="Ping", arguments=AddIssueArgs, handler=_noop)
        registry = ToolRegistry([spec])
        with pytest.raises(ValueError):
            registry.register(spec)


class TestParseArguments:

    def test_valid(self, registry):
        args = registry.get("add_issue").parse_arguments({"project_name": "Apollo", "title": "Fix login"})
        assert args.priority == DEFAULT_PRIORITY
        assert args.description is None

    def test_none_means_empty(self, registry):
        args = registry.get("list_issues").parse_arguments(None)
        assert args.project_name is None

    def test_unknown_keys_ignored(self, registry):
        args = registry.get("get_project_details").parse_arguments({"project_name": "Apollo", "extra": 1})
        assert args.project_name == "Apollo"

    def test_missing_required(self, registry):
        with pytest.raises(InvalidArgumentsError) as exc_info:
            registry.get("add_issue").parse_arguments({"project_name": "Apollo"})
        assert "title" in str(exc_info.value)
        assert exc_info.value.tool == "add_issue"

    def test_bad_enum(self, registry):
        with pytest.raises(InvalidArgumentsError, match="status"):
            registry.get("update_issue_status").parse_arguments({"issue_id": "x", "status": "closed"})

    def test_empty_required_string(self, registry):
        with pytest.raises(InvalidArgumentsError):
            registry.get("add_project").parse_arguments({"name": ""})

    def test_non_object(self, registry):
        with pytest.raises(InvalidArgumentsError, match="must be an object"):
            registry.get("add_project").parse_arguments(["Apollo"])
