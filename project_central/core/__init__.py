"""Core project tracking components."""

from .types import Project, Issue, Comment, Activity, ProjectDetails
from .constants import *
from .exceptions import *
from .persistence import JsonPersistence, empty_tables
from .utils import new_id, utc_now, name_matches, compute_progress

__all__ = [
    # Types
    "Project",
    "Issue",
    "Comment",
    "Activity",
    "ProjectDetails",
    # Constants
    "SSE_PATH",
    "MESSAGE_PATH",
    "KEEPALIVE_INTERVAL_SECONDS",
    "SESSION_GRACE_SECONDS",
    "SINK_BUFFER_SIZE",
    "PRIORITIES",
    "STATUSES",
    "DEFAULT_PRIORITY",
    "DEFAULT_ISSUE_STATUS",
    "DEFAULT_PROJECT_STATUS",
    "DONE_STATUS",
    "RECENT_ACTIVITY_LIMIT",
    "COMMENT_PREVIEW_CHARS",
    "DEFAULT_COMMENT_AUTHOR",
    "SAVE_INTERVAL_SECONDS",
    "MAX_RECENT_BACKUPS",
    "BACKUP_INTERVAL_SECONDS",
    # Exceptions
    "ProjectCentralError",
    "ToolError",
    "UnknownOperationError",
    "InvalidArgumentsError",
    "ProjectNotFoundError",
    "IssueNotFoundError",
    "RepositoryError",
    "TransportError",
    "SessionNotFoundError",
    "MalformedMessageError",
    "DeliveryError",
    "SinkWriteError",
    "TransportUnavailableError",
    # Classes
    "JsonPersistence",
    # Utils
    "empty_tables",
    "new_id",
    "utc_now",
    "name_matches",
    "compute_progress",
]
