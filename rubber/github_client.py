"""GitHub API client helpers."""

from __future__ import annotations

from typing import Any, Dict, List

import httpx
from pydantic import BaseModel, ValidationError

from rubber.logger import get_logger, log_with_context
from rubber.models.github import Comment, FileChange, PullRequestMeta

logger = get_logger()


class GitHubAPIError(RuntimeError):
    """Raised when a GitHub API request fails.

    ``status_code`` is 0 when the request never produced a response
    (connection errors, timeouts).
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        response_body: Any | None = None,
        *,
        rate_limit_remaining: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body
        self.rate_limit_remaining = rate_limit_remaining

    @property
    def not_found(self) -> bool:
        return self.status_code == 404

    @property
    def rate_limited(self) -> bool:
        if self.status_code == 429:
            return True
        return self.status_code == 403 and self.rate_limit_remaining == "0"


class MalformedResponseError(GitHubAPIError):
    """Raised when GitHub answers with a body of an unexpected shape."""


DEFAULT_ACCEPT_HEADER = "application/vnd.github+json"
DEFAULT_API_VERSION = "2022-11-28"
DEFAULT_USER_AGENT = "rubber"
PAGE_SIZE = 100


class GitHubClient:
    """Read-only GitHub REST helper for pull-request reports."""

    def __init__(
        self,
        *,
        base_url: str = "https://api.github.com",
        token: str | None = None,
        timeout: float = 10.0,
        user_agent: str = DEFAULT_USER_AGENT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        headers = {
            "User-Agent": user_agent,
            "Accept": DEFAULT_ACCEPT_HEADER,
            "X-GitHub-Api-Version": DEFAULT_API_VERSION,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = client or httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            headers=headers,
        )
        self._owns_client = client is None

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: Dict[str, Any] | None = None,
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, url, params=params)
        except httpx.HTTPError as exc:
            raise GitHubAPIError(f"GitHub API request to {url} failed: {exc}", 0) from exc

        if response.status_code >= 400:
            detail: Any | None
            if response.content:
                try:
                    detail = response.json()
                except ValueError:
                    detail = response.text
            else:
                detail = None
            raise GitHubAPIError(
                f"GitHub API request to {url} failed with status {response.status_code}.",
                response.status_code,
                detail,
                rate_limit_remaining=response.headers.get("x-ratelimit-remaining"),
            )
        return response

    async def _get_json(self, url: str, *, params: Dict[str, Any] | None = None) -> Any:
        response = await self._request("GET", url, params=params)
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponseError(
                f"GitHub API returned invalid JSON for {url}.",
                response.status_code,
                response.text,
            ) from exc

    async def _get_list(self, url: str, *, params: Dict[str, Any] | None = None) -> List[Dict[str, Any]]:
        data = await self._get_json(url, params=params)
        if not isinstance(data, list):
            raise MalformedResponseError(
                f"Expected a JSON array from {url}.",
                200,
                data,
            )
        return data

    async def _get_paginated(self, url: str) -> tuple[List[Dict[str, Any]], int]:
        """Follow ``page`` until GitHub returns a short page; returns entries and pages read."""

        entries: List[Dict[str, Any]] = []
        page = 1
        while True:
            batch = await self._get_list(url, params={"per_page": PAGE_SIZE, "page": page})
            entries.extend(batch)
            if len(batch) < PAGE_SIZE:
                break
            page += 1
        return entries, page

    async def get_pull_request(self, owner: str, repo: str, number: int) -> PullRequestMeta:
        url = f"/repos/{owner}/{repo}/pulls/{number}"
        data = await self._get_json(url)
        return _validate(PullRequestMeta, data, url)

    async def list_pull_requests(self, owner: str, repo: str, *, limit: int = 10) -> List[PullRequestMeta]:
        url = f"/repos/{owner}/{repo}/pulls"
        batch = await self._get_list(
            url,
            params={"state": "all", "sort": "created", "direction": "desc", "per_page": limit},
        )
        return [_validate(PullRequestMeta, entry, url) for entry in batch[:limit]]

    async def list_pull_request_files(self, owner: str, repo: str, number: int) -> List[FileChange]:
        url = f"/repos/{owner}/{repo}/pulls/{number}/files"
        ctx_logger = log_with_context(logger, repository=f"{owner}/{repo}", pull_number=number)

        entries, pages = await self._get_paginated(url)
        files = [_validate(FileChange, entry, url) for entry in entries]
        ctx_logger.debug(f"Fetched {len(files)} file(s) across {pages} page(s)")
        return files

    async def list_issue_comments(self, owner: str, repo: str, number: int) -> List[Comment]:
        url = f"/repos/{owner}/{repo}/issues/{number}/comments"
        entries, _ = await self._get_paginated(url)
        return [_validate(Comment, entry, url) for entry in entries]

    async def get_comment_count(self, comments_url: str) -> int:
        """Count the comments behind a ``comments_url`` taken from a PR payload."""

        entries, _ = await self._get_paginated(comments_url)
        return len(entries)

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None


def _validate(model: type[BaseModel], data: Any, url: str) -> Any:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise MalformedResponseError(
            f"Unexpected {model.__name__} payload from {url}: {exc.error_count()} validation error(s).",
            200,
            data,
        ) from exc
