"""Local project store: in-memory tables with periodic JSON persistence."""

import copy
import functools
import logging
import threading
from pathlib import Path
from typing import Any

import anyio

from ..core import (
    Activity,
    Comment,
    Issue,
    IssueNotFoundError,
    JsonPersistence,
    Project,
    ProjectDetails,
    ProjectNotFoundError,
    DEFAULT_ISSUE_STATUS,
    DEFAULT_PROJECT_STATUS,
    SAVE_INTERVAL_SECONDS,
    compute_progress,
    name_matches,
    new_id,
    utc_now,
)

logger = logging.getLogger(__name__)

ISSUE_FIELDS = ("title", "description", "priority", "status", "assigned_to")


def _newest_first(rows: list[dict], key: str) -> list[dict]:
    # reversed() first so that equal timestamps keep newest-inserted first
    return sorted(reversed(rows), key=lambda row: row[key], reverse=True)


class LocalProjectStore:
    """
    Thread-safe project store for running without a remote datastore.

    Tables live in memory under a lock. Every public coroutine does its work
    in a worker thread, so a caller waiting on the lock never blocks the
    event loop. A background thread saves dirty tables every `save_interval`
    seconds and on close; the file write happens outside the table lock.
    """

    name = "local"

    def __init__(self, path: Path, save_interval: int = SAVE_INTERVAL_SECONDS):
        self.persistence = JsonPersistence(path)
        self.save_interval = save_interval
        self.tables = self.persistence.load()

        self.lock = threading.RLock()
        self.dirty = False
        self._save_lock = threading.Lock()

        self._stop = threading.Event()
        self.saver_thread = threading.Thread(target=self._periodic_save, daemon=True)
        self.saver_thread.start()

        logger.info(f"Local project store initialized at {path}")

    async def _run(self, func, *args, **kwargs):
        return await anyio.to_thread.run_sync(functools.partial(func, *args, **kwargs))

    # ========================================================================
    # Persistence
    # ========================================================================

    def _save_to_disk(self) -> bool:
        """Snapshot tables under the lock, then write the snapshot without it."""
        with self._save_lock:
            with self.lock:
                if not self.dirty:
                    return True
                snapshot = copy.deepcopy(self.tables)
                self.dirty = False

            success = self.persistence.save(snapshot)
            if success:
                self.persistence.maybe_backup()
            else:
                with self.lock:
                    self.dirty = True
            return success

    def _periodic_save(self):
        """Background thread for periodic saves."""
        while not self._stop.wait(self.save_interval):
            self._save_to_disk()

    def _shutdown(self):
        self._stop.set()
        self.saver_thread.join(timeout=5)
        self._save_to_disk()

    def _touch_project(self, project_id: str):
        """Refresh a project's progress and updated_at. Caller must hold lock."""
        project = self.tables["projects"].get(project_id)
        if project is None:
            return
        statuses = [i["status"] for i in self.tables["issues"].values() if i["project_id"] == project_id]
        project["progress"] = compute_progress(statuses)
        project["updated_at"] = utc_now()

    # ========================================================================
    # Projects
    # ========================================================================

    def _create_project(self, name: str, description: str | None, repository_url: str | None) -> Project:
        now = utc_now()
        project: Project = {
            "id": new_id(),
            "name": name,
            "description": description,
            "repository_url": repository_url,
            "status": DEFAULT_PROJECT_STATUS,
            "progress": 0,
            "created_at": now,
            "updated_at": now,
        }
        with self.lock:
            self.tables["projects"][project["id"]] = project
            self.dirty = True
            logger.debug(f"Created project '{name}' ({project['id']})")
            return copy.deepcopy(project)

    async def create_project(
        self, name: str, description: str | None = None, repository_url: str | None = None
    ) -> Project:
        return await self._run(self._create_project, name, description, repository_url)

    def _find_project(self, name_query: str) -> Project | None:
        with self.lock:
            for project in self.tables["projects"].values():
                if name_matches(project["name"], name_query):
                    return copy.deepcopy(project)
        return None

    async def find_project(self, name_query: str) -> Project | None:
        return await self._run(self._find_project, name_query)

    def _list_projects(self) -> list[Project]:
        with self.lock:
            rows = list(self.tables["projects"].values())
            return copy.deepcopy(_newest_first(rows, "updated_at"))

    async def list_projects(self) -> list[Project]:
        return await self._run(self._list_projects)

    def _get_project_details(self, project_id: str, activity_limit: int) -> ProjectDetails:
        with self.lock:
            project = self.tables["projects"].get(project_id)
            if project is None:
                raise ProjectNotFoundError(project_id)

            issues = [i for i in self.tables["issues"].values() if i["project_id"] == project_id]
            activities = [a for a in self.tables["activities"].values() if a["project_id"] == project_id]

            return copy.deepcopy({
                "project": project,
                "issues": issues,
                "activities": _newest_first(activities, "created_at")[:activity_limit],
            })

    async def get_project_details(self, project_id: str, activity_limit: int) -> ProjectDetails:
        return await self._run(self._get_project_details, project_id, activity_limit)

    # ========================================================================
    # Issues
    # ========================================================================

    def _create_issue(self, project_id: str, title: str, description: str | None, priority: str) -> Issue:
        now = utc_now()
        issue: Issue = {
            "id": new_id(),
            "project_id": project_id,
            "title": title,
            "description": description,
            "priority": priority,
            "status": DEFAULT_ISSUE_STATUS,
            "assigned_to": [],
            "created_at": now,
            "updated_at": now,
        }
        with self.lock:
            if project_id not in self.tables["projects"]:
                raise ProjectNotFoundError(project_id)
            self.tables["issues"][issue["id"]] = issue
            self._touch_project(project_id)
            self.dirty = True
            return copy.deepcopy(issue)

    async def create_issue(
        self, project_id: str, title: str, description: str | None, priority: str
    ) -> Issue:
        return await self._run(self._create_issue, project_id, title, description, priority)

    def _get_issue(self, issue_id: str) -> Issue | None:
        with self.lock:
            issue = self.tables["issues"].get(issue_id)
            return copy.deepcopy(issue) if issue is not None else None

    async def get_issue(self, issue_id: str) -> Issue | None:
        return await self._run(self._get_issue, issue_id)

    def _update_issue(self, issue_id: str, updates: dict[str, Any]) -> Issue:
        with self.lock:
            issue = self.tables["issues"].get(issue_id)
            if issue is None:
                raise IssueNotFoundError(issue_id)

            for field, value in updates.items():
                if field in ISSUE_FIELDS:
                    issue[field] = value
            issue["updated_at"] = utc_now()

            self._touch_project(issue["project_id"])
            self.dirty = True
            return copy.deepcopy(issue)

    async def update_issue(self, issue_id: str, updates: dict[str, Any]) -> Issue:
        return await self._run(self._update_issue, issue_id, updates)

    def _list_issues(self, status: str | None, priority: str | None, project_id: str | None) -> list[Issue]:
        with self.lock:
            rows = [
                i for i in self.tables["issues"].values()
                if (status is None or i["status"] == status)
                and (priority is None or i["priority"] == priority)
                and (project_id is None or i["project_id"] == project_id)
            ]
            result = copy.deepcopy(_newest_first(rows, "created_at"))

            for issue in result:
                project = self.tables["projects"].get(issue["project_id"])
                issue["project_name"] = project["name"] if project else None
            return result

    async def list_issues(
        self,
        status: str | None = None,
        priority: str | None = None,
        project_id: str | None = None,
    ) -> list[Issue]:
        return await self._run(self._list_issues, status, priority, project_id)

    # ========================================================================
    # Comments and activity
    # ========================================================================

    def _add_comment(self, issue_id: str, author_name: str, content: str) -> Comment:
        comment: Comment = {
            "id": new_id(),
            "issue_id": issue_id,
            "author_name": author_name,
            "content": content,
            "created_at": utc_now(),
        }
        with self.lock:
            if issue_id not in self.tables["issues"]:
                raise IssueNotFoundError(issue_id)
            self.tables["comments"][comment["id"]] = comment
            self.dirty = True
            return copy.deepcopy(comment)

    async def add_comment(self, issue_id: str, author_name: str, content: str) -> Comment:
        return await self._run(self._add_comment, issue_id, author_name, content)

    def _log_activity(
        self, project_id: str, action: str, details: dict[str, Any], issue_id: str | None
    ) -> Activity:
        activity: Activity = {
            "id": new_id(),
            "project_id": project_id,
            "issue_id": issue_id,
            "action": action,
            "details": details,
            "created_at": utc_now(),
        }
        with self.lock:
            self.tables["activities"][activity["id"]] = activity
            self.dirty = True
            return copy.deepcopy(activity)

    async def log_activity(
        self,
        project_id: str,
        action: str,
        details: dict[str, Any],
        issue_id: str | None = None,
    ) -> Activity | None:
        return await self._run(self._log_activity, project_id, action, details, issue_id)

    async def close(self) -> None:
        """Stop the saver thread and flush pending changes."""
        logger.info("Shutting down local project store...")
        await anyio.to_thread.run_sync(self._shutdown)
        logger.info("Local project store shutdown complete")
