"""Supabase project store over the PostgREST HTTP API."""

import logging
from typing import Any

import httpx

from ..core import (
    Activity,
    Comment,
    Issue,
    IssueNotFoundError,
    Project,
    ProjectDetails,
    ProjectNotFoundError,
    RepositoryError,
)

logger = logging.getLogger(__name__)


class SupabaseProjectStore:
    """
    Project store backed by Supabase tables `projects`, `issues`,
    `comments` and `activities`.

    Every call is a single async HTTP request; network and HTTP failures
    surface as RepositoryError so the tool layer can report them.
    """

    name = "supabase"

    def __init__(
        self,
        url: str,
        service_key: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=f"{self.url}/rest/v1",
            headers={
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def _request(
        self,
        method: str,
        table: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> list[dict]:
        """Send one PostgREST request and return the decoded rows."""
        headers = {"Prefer": prefer} if prefer else None
        try:
            response = await self._client.request(method, f"/{table}", params=params, json=json, headers=headers)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise RepositoryError(f"Datastore timeout on {method} {table}") from e
        except httpx.HTTPStatusError as e:
            raise RepositoryError(self._error_message(e.response)) from e
        except httpx.RequestError as e:
            raise RepositoryError(f"Cannot connect to datastore at {self.url}: {e}") from e

        if not response.content:
            return []
        return response.json()

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return f"Datastore error {response.status_code}: {response.text}"
        if isinstance(body, dict) and body.get("message"):
            return body["message"]
        return f"Datastore error {response.status_code}"

    async def _insert(self, table: str, row: dict[str, Any]) -> dict:
        rows = await self._request("POST", table, json=[row], prefer="return=representation")
        if not rows:
            raise RepositoryError(f"Insert into {table} returned no rows")
        return rows[0]

    # ========================================================================
    # Projects
    # ========================================================================

    async def create_project(
        self, name: str, description: str | None = None, repository_url: str | None = None
    ) -> Project:
        return await self._insert("projects", {
            "name": name,
            "description": description,
            "repository_url": repository_url,
        })

    async def find_project(self, name_query: str) -> Project | None:
        rows = await self._request("GET", "projects", params={
            "select": "*",
            "name": f"ilike.*{name_query}*",
            "order": "created_at.asc",
            "limit": "1",
        })
        return rows[0] if rows else None

    async def list_projects(self) -> list[Project]:
        return await self._request("GET", "projects", params={
            "select": "id,name,status,progress,repository_url,updated_at",
            "order": "updated_at.desc",
        })

    async def get_project_details(self, project_id: str, activity_limit: int) -> ProjectDetails:
        projects = await self._request("GET", "projects", params={"select": "*", "id": f"eq.{project_id}"})
        if not projects:
            raise ProjectNotFoundError(project_id)

        issues = await self._request("GET", "issues", params={
            "select": "*",
            "project_id": f"eq.{project_id}",
            "order": "created_at.asc",
        })
        activities = await self._request("GET", "activities", params={
            "select": "*",
            "project_id": f"eq.{project_id}",
            "order": "created_at.desc",
            "limit": str(activity_limit),
        })
        return {"project": projects[0], "issues": issues, "activities": activities}

    # ========================================================================
    # Issues
    # ========================================================================

    async def create_issue(
        self, project_id: str, title: str, description: str | None, priority: str
    ) -> Issue:
        return await self._insert("issues", {
            "project_id": project_id,
            "title": title,
            "description": description,
            "priority": priority,
        })

    async def get_issue(self, issue_id: str) -> Issue | None:
        rows = await self._request("GET", "issues", params={"select": "*", "id": f"eq.{issue_id}", "limit": "1"})
        return rows[0] if rows else None

    async def update_issue(self, issue_id: str, updates: dict[str, Any]) -> Issue:
        rows = await self._request(
            "PATCH", "issues",
            params={"id": f"eq.{issue_id}"},
            json=updates,
            prefer="return=representation",
        )
        if not rows:
            raise IssueNotFoundError(issue_id)
        return rows[0]

    async def list_issues(
        self,
        status: str | None = None,
        priority: str | None = None,
        project_id: str | None = None,
    ) -> list[Issue]:
        params = {"select": "*,projects(name)", "order": "created_at.desc"}
        if status:
            params["status"] = f"eq.{status}"
        if priority:
            params["priority"] = f"eq.{priority}"
        if project_id:
            params["project_id"] = f"eq.{project_id}"

        rows = await self._request("GET", "issues", params=params)
        for row in rows:
            project = row.pop("projects", None) or {}
            row["project_name"] = project.get("name")
        return rows

    # ========================================================================
    # Comments and activity
    # ========================================================================

    async def add_comment(self, issue_id: str, author_name: str, content: str) -> Comment:
        if await self.get_issue(issue_id) is None:
            raise IssueNotFoundError(issue_id)
        return await self._insert("comments", {
            "issue_id": issue_id,
            "author_name": author_name,
            "content": content,
        })

    async def log_activity(
        self,
        project_id: str,
        action: str,
        details: dict[str, Any],
        issue_id: str | None = None,
    ) -> Activity | None:
        row = {"project_id": project_id, "action": action, "details": details}
        if issue_id:
            row["issue_id"] = issue_id
        await self._request("POST", "activities", json=[row], prefer="return=minimal")
        return None

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("Supabase client closed")
