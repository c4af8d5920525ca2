"""Backing stores for project tracking data."""

import logging

from ..config import ServerConfig
from .base import ProjectRepository
from .local import LocalProjectStore
from .supabase import SupabaseProjectStore

logger = logging.getLogger(__name__)


def create_repository(config: ServerConfig) -> ProjectRepository:
    """
    Pick the store for this process.
    Without datastore credentials the server still starts, on a local store.
    """
    if config.has_datastore_credentials:
        logger.info(f"Using Supabase datastore at {config.supabase_url}")
        return SupabaseProjectStore(config.supabase_url, config.supabase_key, timeout=config.request_timeout)

    logger.warning(
        "Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY in environment; "
        f"falling back to local store at {config.data_path}"
    )
    return LocalProjectStore(config.data_path, save_interval=config.save_interval)


__all__ = [
    "ProjectRepository",
    "LocalProjectStore",
    "SupabaseProjectStore",
    "create_repository",
]
