"""Repository interface consumed by the tool handlers."""

from typing import Any, Protocol, runtime_checkable

from ..core.types import Activity, Comment, Issue, Project, ProjectDetails


@runtime_checkable
class ProjectRepository(Protocol):
    """Async access to projects, issues, comments and activity.

    Implementations:
    - SupabaseProjectStore: Supabase/PostgREST over HTTP
    - LocalProjectStore: in-memory tables persisted to a JSON file
    """

    name: str

    async def create_project(
        self, name: str, description: str | None = None, repository_url: str | None = None
    ) -> Project:
        ...

    async def find_project(self, name_query: str) -> Project | None:
        """First project whose name contains the query, case-insensitively."""
        ...

    async def list_projects(self) -> list[Project]:
        """All projects, most recently updated first."""
        ...

    async def get_project_details(self, project_id: str, activity_limit: int) -> ProjectDetails:
        ...

    async def create_issue(
        self, project_id: str, title: str, description: str | None, priority: str
    ) -> Issue:
        ...

    async def get_issue(self, issue_id: str) -> Issue | None:
        ...

    async def update_issue(self, issue_id: str, updates: dict[str, Any]) -> Issue:
        """Apply updates. Raises IssueNotFoundError if the issue does not exist."""
        ...

    async def list_issues(
        self,
        status: str | None = None,
        priority: str | None = None,
        project_id: str | None = None,
    ) -> list[Issue]:
        """Issues matching all given filters, newest first, with project_name set."""
        ...

    async def add_comment(self, issue_id: str, author_name: str, content: str) -> Comment:
        ...

    async def log_activity(
        self,
        project_id: str,
        action: str,
        details: dict[str, Any],
        issue_id: str | None = None,
    ) -> Activity | None:
        ...

    async def close(self) -> None:
        ...
