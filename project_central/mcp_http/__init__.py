"""SSE transport for the MCP tool server."""

from .app import SseEndpoint, create_app
from .session import ChannelSession, format_comment, format_event
from .transport import SessionTransportManager

__all__ = [
    "ChannelSession",
    "SessionTransportManager",
    "SseEndpoint",
    "create_app",
    "format_comment",
    "format_event",
]
