"""Tests for the MCP protocol binding using an in-memory client."""

import pytest
from mcp.shared.memory import create_connected_server_and_client_session

from project_central.server import create_mcp_server

pytestmark = pytest.mark.anyio


@pytest.fixture
def mcp_server(dispatcher):
    return create_mcp_server(dispatcher)


async def test_lists_every_tool(mcp_server, registry):
    async with create_connected_server_and_client_session(mcp_server) as client:
        result = await client.list_tools()

    assert [tool.name for tool in result.tools] == registry.names()


async def test_call_tool(mcp_server):
    async with create_connected_server_and_client_session(mcp_server) as client:
        created = await client.call_tool("add_project", {"name": "Apollo"})
        listed = await client.call_tool("list_all_projects", {})

    assert not created.isError
    assert listed.content[0].text == "- **Apollo**: Status: active, Progress: 0%"


async def test_errors_come_back_as_results(mcp_server):
    async with create_connected_server_and_client_session(mcp_server) as client:
        missing = await client.call_tool("add_issue", {"project_name": "Phoenix", "title": "X"})
        invalid = await client.call_tool("add_issue", {"title": 42})
        unknown = await client.call_tool("nope", {})

    assert missing.isError
    assert missing.content[0].text == 'Error: Project matching "Phoenix" not found.'
    assert invalid.isError
    assert invalid.content[0].text.startswith("Error: Invalid arguments for add_issue:")
    assert unknown.isError
    assert unknown.content[0].text == "Error: Unknown tool: nope"
