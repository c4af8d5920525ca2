"""Server configuration loaded from the environment."""

import os
from dataclasses import dataclass
from pathlib import Path

from .core.constants import (
    KEEPALIVE_INTERVAL_SECONDS,
    SESSION_GRACE_SECONDS,
    SAVE_INTERVAL_SECONDS,
)

MODES = ("sse", "stdio")


@dataclass(frozen=True)
class ServerConfig:
    """Process configuration."""
    mode: str = "sse"
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    keepalive_interval: float = KEEPALIVE_INTERVAL_SECONDS
    grace_period: float = SESSION_GRACE_SECONDS
    supabase_url: str = ""
    supabase_key: str = ""
    data_path: Path = Path.home() / ".project-central/data.json"
    save_interval: int = SAVE_INTERVAL_SECONDS
    request_timeout: float = 30.0

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Create configuration from environment variables."""
        mode = os.getenv("MCP_MODE", "sse").lower()
        if mode not in MODES:
            raise ValueError(f"Invalid MCP_MODE '{mode}', must be one of {MODES}")

        return cls(
            mode=mode,
            host=os.getenv("PC_HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            log_level=os.getenv("PC_LOG_LEVEL", "INFO").upper(),
            keepalive_interval=float(os.getenv("PC_KEEPALIVE_INTERVAL", str(KEEPALIVE_INTERVAL_SECONDS))),
            grace_period=float(os.getenv("PC_SESSION_GRACE_PERIOD", str(SESSION_GRACE_SECONDS))),
            supabase_url=os.getenv("SUPABASE_URL", ""),
            supabase_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY", ""),
            data_path=Path(os.getenv("PC_DATA_PATH", str(cls.data_path))).expanduser(),
            save_interval=int(os.getenv("PC_SAVE_INTERVAL", str(SAVE_INTERVAL_SECONDS))),
            request_timeout=float(os.getenv("PC_REQUEST_TIMEOUT", "30")),
        )

    @property
    def has_datastore_credentials(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)
