"""Pydantic models for the GitHub REST payloads the report consumes."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class GitHubUser(BaseModel):
    model_config = ConfigDict(frozen=True)

    login: str


class PullRequestMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    number: int
    title: str
    body: str | None = None
    user: GitHubUser
    created_at: str
    html_url: str
    comments_url: str | None = None
    url: str | None = None

    @property
    def author(self) -> str:
        return self.user.login


class FileChange(BaseModel):
    """One entry of ``GET /repos/{owner}/{repo}/pulls/{number}/files``.

    ``patch`` is omitted by GitHub for binary files and very large diffs.
    """

    model_config = ConfigDict(frozen=True)

    filename: str
    status: str = "modified"
    additions: int = 0
    deletions: int = 0
    changes: int = 0
    patch: str | None = None
    previous_filename: str | None = None

    @property
    def has_patch(self) -> bool:
        return self.patch is not None


class Comment(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    user: GitHubUser
    created_at: str
    body: str = Field(default="")

    @property
    def author(self) -> str:
        return self.user.login
