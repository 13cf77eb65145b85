"""Pytest configuration and fixtures for rubber tests."""

import os
import tempfile

os.environ.setdefault("RUBBER_LOG_DIR", tempfile.mkdtemp(prefix="rubber-logs-"))

from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402

from rubber.config import reset_settings_cache  # noqa: E402
from rubber.github_client import GitHubClient  # noqa: E402
from rubber.models.github import Comment, FileChange, PullRequestMeta  # noqa: E402

_SETTINGS_ENV = (
    "GITHUB_API_BASE_URL",
    "GITHUB_TOKEN",
    "ANTHROPIC_API_KEY",
    "ANTHROPIC_API_BASE_URL",
    "ANTHROPIC_MODEL",
    "ANTHROPIC_MAX_TOKENS",
    "RUBBER_REQUEST_TIMEOUT",
    "RUBBER_REVIEW_TIMEOUT",
    "RUBBER_KEEP_UNCLASSIFIED",
    "RUBBER_DISABLED_RULES",
    "RUBBER_RECENT_LIMIT",
)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    reset_settings_cache()
    yield
    reset_settings_cache()


def make_pull_request(number: int = 42, title: str = "Add parser", body: str | None = "Parses things.") -> PullRequestMeta:
    return PullRequestMeta.model_validate(
        {
            "number": number,
            "title": title,
            "body": body,
            "user": {"login": "octocat"},
            "created_at": "2024-05-01T10:00:00Z",
            "html_url": f"https://github.com/acme/widgets/pull/{number}",
            "comments_url": f"https://api.github.com/repos/acme/widgets/issues/{number}/comments",
        }
    )


def make_file(filename: str = "a.rs", patch: str | None = "@@ -0,0 +1 @@\n+let x = y.unwrap();") -> FileChange:
    return FileChange(
        filename=filename,
        status="modified",
        additions=1,
        deletions=0,
        changes=1,
        patch=patch,
    )


def make_comment(body: str = "Looks good to me", login: str = "hubot") -> Comment:
    return Comment.model_validate(
        {"id": 1, "user": {"login": login}, "created_at": "2024-05-02T09:30:00Z", "body": body}
    )


@pytest.fixture
def github():
    client = AsyncMock(spec=GitHubClient)
    client.get_pull_request.return_value = make_pull_request()
    client.list_pull_request_files.return_value = [make_file()]
    client.list_issue_comments.return_value = []
    client.list_pull_requests.return_value = []
    client.get_comment_count.return_value = 0
    return client
