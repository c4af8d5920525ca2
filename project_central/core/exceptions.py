"""Custom exceptions for project tracking and the session transport."""


class ProjectCentralError(Exception):
    """Base exception for the server."""
    pass


# ============================================================================
# Tool surface
# ============================================================================

class ToolError(ProjectCentralError):
    """Raised by tool lookup, validation or handlers. Reported inside the tool result."""
    pass


class UnknownOperationError(ToolError):
    """Raised when a tool name is not in the registry."""
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class InvalidArgumentsError(ToolError):
    """Raised when tool arguments are missing or malformed."""
    def __init__(self, tool: str, detail: str):
        self.tool = tool
        self.detail = detail
        super().__init__(f"Invalid arguments for {tool}: {detail}")


class ProjectNotFoundError(ToolError):
    """Raised when no project matches a name query."""
    def __init__(self, query: str):
        self.query = query
        super().__init__(f'Project matching "{query}" not found.')


class IssueNotFoundError(ToolError):
    """Raised when an issue id does not exist."""
    def __init__(self, issue_id: str):
        self.issue_id = issue_id
        super().__init__(f"Issue '{issue_id}' not found.")


class RepositoryError(ToolError):
    """Raised when the backing datastore rejects or cannot serve a call."""
    pass


# ============================================================================
# Transport
# ============================================================================

class TransportError(ProjectCentralError):
    """Base exception for session transport failures."""
    pass


class SessionNotFoundError(TransportError):
    """Raised when a request references a session that is not live."""
    def __init__(self, session_id: str, active_sessions: list[str] | None = None):
        self.session_id = session_id
        self.active_sessions = list(active_sessions or [])
        super().__init__(
            f"No active SSE transport for session: {session_id}. "
            "The session might have expired or you might be hitting a different instance of the server."
        )


class MalformedMessageError(TransportError):
    """Raised when a submitted body is not a JSON-RPC message."""
    def __init__(self, session_id: str, detail: str):
        self.session_id = session_id
        self.detail = detail
        super().__init__(f"Could not parse message for session {session_id}: {detail}")


class DeliveryError(TransportError):
    """Raised when a parsed message cannot be handed to the session's protocol layer."""
    def __init__(self, session_id: str, detail: str = "protocol stream closed"):
        self.session_id = session_id
        self.detail = detail
        super().__init__(f"Failed to deliver message to session {session_id}: {detail}")


class SinkWriteError(TransportError):
    """Raised when a session's push connection no longer accepts writes."""
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Push channel for session {session_id} is closed")


class TransportUnavailableError(TransportError):
    """Raised when a channel is opened while the transport is not running."""
    pass
