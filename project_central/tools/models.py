"""Argument models for each tool. These double as the advertised input schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ..core import DEFAULT_PRIORITY

Priority = Literal["low", "medium", "high", "urgent"]
Status = Literal["todo", "in_progress", "review", "done"]


class ToolArguments(BaseModel):
    """Base for tool arguments. Unknown keys are ignored."""
    model_config = ConfigDict(extra="ignore")


class NoArguments(ToolArguments):
    pass


class AddProjectArgs(ToolArguments):
    name: str = Field(..., min_length=1, description="Project name")
    description: str | None = Field(None, description="Project description")
    repository_url: str | None = Field(None, description="GitHub/GitLab repository URL")


class AddIssueArgs(ToolArguments):
    project_name: str = Field(..., min_length=1, description="Exact or partial name of the project")
    title: str = Field(..., min_length=1, description="Issue title")
    description: str | None = Field(None, description="Detailed description of the issue")
    priority: Priority = Field(DEFAULT_PRIORITY, description="Issue priority")


class UpdateIssueStatusArgs(ToolArguments):
    issue_id: str = Field(..., min_length=1, description="The UUID of the issue")
    status: Status = Field(..., description="New status")


class UpdateIssueArgs(ToolArguments):
    issue_id: str = Field(..., min_length=1, description="The UUID of the issue")
    title: str | None = Field(None, description="New title")
    description: str | None = Field(None, description="New description")
    priority: Priority | None = Field(None, description="New priority")
    status: Status | None = Field(None, description="New status")
    assignees: list[str] | None = Field(None, description="List of usernames assigned")


class GetProjectDetailsArgs(ToolArguments):
    project_name: str = Field(..., min_length=1, description="Name of the project")


class ListIssuesArgs(ToolArguments):
    project_name: str | None = Field(None, description="Filter by project name (optional)")
    status: Status | None = Field(None, description="Filter by status")
    priority: Priority | None = Field(None, description="Filter by priority")


class AddIssueCommentArgs(ToolArguments):
    issue_id: str = Field(..., min_length=1, description="The UUID of the issue")
    author_name: str = Field(..., description="Name of the comment author")
    content: str = Field(..., min_length=1, description="The content of the comment")
