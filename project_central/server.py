"""
MCP protocol binding for the project tracking tools.

The same server object is served over stdio (single client) or over the SSE
transport in mcp_http (one protocol runner per session).
"""

import logging
from typing import Any

from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server
from mcp.types import CallToolResult, Tool

from . import SERVER_NAME, __version__
from .config import ServerConfig
from .storage import create_repository
from .tools import OperationDispatcher, build_default_registry

logger = logging.getLogger(__name__)


def create_mcp_server(dispatcher: OperationDispatcher) -> Server:
    """Build an MCP server whose tools are served by the dispatcher."""
    server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return dispatcher.registry.list_tools()

    # The dispatcher validates arguments and reports failures as results
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict[str, Any] | None) -> CallToolResult:
        response = await dispatcher.execute(name, arguments)
        return response.to_call_tool_result()

    return server


async def run_stdio(config: ServerConfig):
    """Serve one client over stdin/stdout."""
    repository = create_repository(config)
    server = create_mcp_server(OperationDispatcher(build_default_registry(), repository))

    logger.info(f"MCP Project Central Server running on stdio ({repository.name} storage)")
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        await repository.close()
