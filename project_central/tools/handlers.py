"""Tool handlers. Each takes the repository and validated arguments and returns text.

Handlers raise ToolError subclasses on failure; the dispatcher reports them.
"""

import json
import logging

from ..core import (
    COMMENT_PREVIEW_CHARS,
    DEFAULT_COMMENT_AUTHOR,
    RECENT_ACTIVITY_LIMIT,
    InvalidArgumentsError,
    Project,
    ProjectNotFoundError,
)
from ..storage import ProjectRepository
from .models import (
    AddIssueArgs,
    AddIssueCommentArgs,
    AddProjectArgs,
    GetProjectDetailsArgs,
    ListIssuesArgs,
    NoArguments,
    UpdateIssueArgs,
    UpdateIssueStatusArgs,
)

logger = logging.getLogger(__name__)


async def _require_project(repo: ProjectRepository, name_query: str) -> Project:
    project = await repo.find_project(name_query)
    if project is None:
        raise ProjectNotFoundError(name_query)
    return project


async def add_project(repo: ProjectRepository, args: AddProjectArgs) -> str:
    project = await repo.create_project(args.name, args.description, args.repository_url)
    await repo.log_activity(project["id"], "project_created", {"name": project["name"]})
    return f'🚀 Project "{project["name"]}" added to Central Management (ID: {project["id"]}).'


async def add_issue(repo: ProjectRepository, args: AddIssueArgs) -> str:
    project = await _require_project(repo, args.project_name)
    issue = await repo.create_issue(project["id"], args.title, args.description, args.priority)
    await repo.log_activity(project["id"], "issue_created", {"title": issue["title"]}, issue_id=issue["id"])
    return f'✅ Issue "{issue["title"]}" (ID: {issue["id"]}) created for {project["name"]}.'


async def update_issue_status(repo: ProjectRepository, args: UpdateIssueStatusArgs) -> str:
    issue = await repo.update_issue(args.issue_id, {"status": args.status})
    await repo.log_activity(
        issue["project_id"],
        "status_updated",
        {"title": issue["title"], "new_status": args.status},
        issue_id=issue["id"],
    )
    return f'✅ Status of issue "{issue["title"]}" updated to {args.status}.'


async def update_issue(repo: ProjectRepository, args: UpdateIssueArgs) -> str:
    # Blank strings mean "leave unchanged"
    updates = {
        field: value
        for field, value in args.model_dump(include={"title", "description", "priority", "status"}).items()
        if value
    }
    if args.assignees is not None:
        updates["assigned_to"] = args.assignees
    if not updates:
        raise InvalidArgumentsError("update_issue", "no fields to update")

    issue = await repo.update_issue(args.issue_id, updates)
    await repo.log_activity(
        issue["project_id"],
        "issue_updated",
        {"title": issue["title"], "updated_fields": list(updates)},
        issue_id=issue["id"],
    )
    return f'✅ Issue "{issue["title"]}" has been updated successfully.'


async def list_all_projects(repo: ProjectRepository, args: NoArguments) -> str:
    projects = await repo.list_projects()
    if not projects:
        return "You don't have any projects yet. Use 'add_project' to start one!"

    lines = []
    for p in projects:
        repo_url = f" ({p['repository_url']})" if p.get("repository_url") else ""
        lines.append(f"- **{p['name']}**: Status: {p['status']}, Progress: {p['progress']}%{repo_url}")
    return "\n".join(lines)


async def get_project_details(repo: ProjectRepository, args: GetProjectDetailsArgs) -> str:
    project = await _require_project(repo, args.project_name)
    details = await repo.get_project_details(project["id"], RECENT_ACTIVITY_LIMIT)
    proj = details["project"]

    issues_list = "\n".join(
        f"  - [{i['status'].upper()}] {i['title']} ({i['priority']})" for i in details["issues"]
    )
    activity_list = "\n".join(
        f"  - {a['action']}: {json.dumps(a['details'])}" for a in details["activities"]
    )

    return (
        f"# {proj['name']}\n"
        f"Status: {proj['status']} | Progress: {proj['progress']}%\n"
        f"Repo: {proj.get('repository_url') or 'N/A'}\n"
        "\n"
        "## Active Issues:\n"
        f"{issues_list or '  No issues found.'}\n"
        "\n"
        "## Recent Activity:\n"
        f"{activity_list or '  No activity logged yet.'}\n"
    )


async def list_issues(repo: ProjectRepository, args: ListIssuesArgs) -> str:
    project_id = None
    if args.project_name:
        project_id = (await _require_project(repo, args.project_name))["id"]

    issues = await repo.list_issues(status=args.status, priority=args.priority, project_id=project_id)
    if not issues:
        return "No issues found matching those filters."

    return "\n".join(
        f"- [{i.get('project_name')}] **{i['title']}** | Status: {i['status'].upper()} | "
        f"Priority: {i['priority'].upper()} (ID: {i['id']})"
        for i in issues
    )


async def add_issue_comment(repo: ProjectRepository, args: AddIssueCommentArgs) -> str:
    author = args.author_name.strip() or DEFAULT_COMMENT_AUTHOR
    comment = await repo.add_comment(args.issue_id, author, args.content)

    issue = await repo.get_issue(args.issue_id)
    if issue is not None:
        await repo.log_activity(
            issue["project_id"],
            "commented",
            {"title": issue["title"], "comment": args.content[:COMMENT_PREVIEW_CHARS]},
            issue_id=comment["issue_id"],
        )
    else:
        logger.warning(f"Issue {args.issue_id} vanished after comment {comment['id']}; activity not logged")

    title = issue["title"] if issue else comment["issue_id"]
    return f'💬 Comment added to issue "{title}".'
