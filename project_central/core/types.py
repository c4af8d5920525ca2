"""Record types shared by the stores and tool handlers."""

from typing import Any, TypedDict, NotRequired


class Project(TypedDict):
    """Tracked software project."""
    id: str
    name: str
    description: str | None
    repository_url: str | None
    status: str
    progress: int
    created_at: str
    updated_at: str


class Issue(TypedDict):
    """Issue, bug or task belonging to a project."""
    id: str
    project_id: str
    title: str
    description: str | None
    priority: str
    status: str
    assigned_to: list[str]
    created_at: str
    updated_at: str
    project_name: NotRequired[str | None]  # only on list_issues results


class Comment(TypedDict):
    """Comment attached to an issue."""
    id: str
    issue_id: str
    author_name: str
    content: str
    created_at: str


class Activity(TypedDict):
    """Audit record written after each mutation."""
    id: str
    project_id: str
    issue_id: str | None
    action: str
    details: dict[str, Any]
    created_at: str


class ProjectDetails(TypedDict):
    """A project with its issues and most recent activity."""
    project: Project
    issues: list[Issue]
    activities: list[Activity]
