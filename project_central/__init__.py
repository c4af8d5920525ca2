"""Project Central: MCP server for project and issue tracking."""

__version__ = "1.0.0"

SERVER_NAME = "project-management-server"
