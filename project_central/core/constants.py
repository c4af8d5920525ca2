"""Constants for project tracking and the session transport."""

# Transport
SSE_PATH = "/sse"
MESSAGE_PATH = "/messages"
KEEPALIVE_INTERVAL_SECONDS = 30.0
SESSION_GRACE_SECONDS = 10.0
SINK_BUFFER_SIZE = 64

# Tracking vocabulary
PRIORITIES = ("low", "medium", "high", "urgent")
STATUSES = ("todo", "in_progress", "review", "done")
DEFAULT_PRIORITY = "medium"
DEFAULT_ISSUE_STATUS = "todo"
DEFAULT_PROJECT_STATUS = "active"
DONE_STATUS = "done"

# Tool output
RECENT_ACTIVITY_LIMIT = 5
COMMENT_PREVIEW_CHARS = 50
DEFAULT_COMMENT_AUTHOR = "Assistant"

# Local store
SAVE_INTERVAL_SECONDS = 30
MAX_RECENT_BACKUPS = 3
BACKUP_INTERVAL_SECONDS = 3600  # Minimum 1 hour between backups
