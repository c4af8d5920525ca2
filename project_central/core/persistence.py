"""Table persistence with atomic writes and rotating backups."""

import json
import logging
import os
import shutil
import time
from pathlib import Path
from typing import Any

from .constants import MAX_RECENT_BACKUPS, BACKUP_INTERVAL_SECONDS

logger = logging.getLogger(__name__)

TABLES = ("projects", "issues", "comments", "activities")


def empty_tables() -> dict[str, dict[str, Any]]:
    """Fresh set of tables, each keyed by record id."""
    return {table: {} for table in TABLES}


class JsonPersistence:
    """Handles table persistence to a single JSON file."""

    def __init__(self, path: Path):
        self.path = path
        self.backup_marker = path.with_suffix(".last_backup")

    def load(self) -> dict[str, dict[str, Any]]:
        """
        Load tables from disk.
        Returns empty tables if the file is missing or unreadable.
        """
        if not self.path.exists():
            return empty_tables()

        try:
            with open(self.path) as f:
                data = json.load(f)

            tables = empty_tables()
            for table in TABLES:
                rows = data.get(table, [])
                tables[table] = {row["id"]: row for row in rows}

            logger.info(
                f"Loaded data from {self.path}: {len(tables['projects'])} projects, "
                f"{len(tables['issues'])} issues"
            )
            return tables

        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error(f"Failed to load data from {self.path}: {e}")
            return empty_tables()

    def save(self, tables: dict[str, dict[str, Any]]) -> bool:
        """
        Save tables to disk with atomic write.
        Returns True on success, False on failure.
        """
        temp_path = self.path.with_suffix(".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)

            data = {table: list(tables.get(table, {}).values()) for table in TABLES}

            with open(temp_path, 'w') as f:
                json.dump(data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())

            # Atomic rename (POSIX guarantees atomicity)
            temp_path.replace(self.path)

            logger.debug(f"Saved data to {self.path}")
            return True

        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save data to {self.path}: {e}")
            if temp_path.exists():
                temp_path.unlink()
            return False

    def maybe_backup(self) -> bool:
        """
        Rotate backups if enough time has passed since the last one.
        Returns True if a backup was created.
        """
        if not self.path.exists():
            return False

        if self.backup_marker.exists():
            last_backup_time = self.backup_marker.stat().st_mtime
            if time.time() - last_backup_time < BACKUP_INTERVAL_SECONDS:
                return False

        self._rotate_backups()
        self.backup_marker.touch()
        return True

    def _rotate_backups(self):
        """Shift .bak.1 -> .bak.2 -> ... and copy the current file to .bak.1."""
        for i in range(MAX_RECENT_BACKUPS - 1, 0, -1):
            old_backup = self.path.with_suffix(f".json.bak.{i}")
            new_backup = self.path.with_suffix(f".json.bak.{i + 1}")
            if old_backup.exists():
                shutil.copy2(old_backup, new_backup)

        shutil.copy2(self.path, self.path.with_suffix(".json.bak.1"))
        logger.debug(f"Created backup: {self.path.with_suffix('.json.bak.1')}")
