"""Client wrapper for requesting narrative reviews from the Anthropic Messages API."""

from __future__ import annotations

from typing import Any, Dict

import httpx

from rubber.logger import get_logger, log_failure, log_timing
from rubber.models.review import ReviewOutcome

logger = get_logger()

ANTHROPIC_VERSION = "2023-06-01"


class ReviewServiceError(RuntimeError):
    """Raised when the narrative review service fails or answers unexpectedly."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NarrativeReviewClient:
    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.anthropic.com",
        model: str = "claude-3-5-sonnet-20241022",
        max_tokens: int = 1000,
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._model = model
        self._max_tokens = max_tokens
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            headers={
                "x-api-key": api_key,
                "anthropic-version": ANTHROPIC_VERSION,
                "Content-Type": "application/json",
            },
        )
        self._owns_client = client is None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def review(self, patch: str) -> ReviewOutcome:
        """Request a narrative review, folding any failure into the outcome."""

        try:
            text = await self.generate_review(patch)
        except ReviewServiceError as exc:
            log_failure(logger, "Narrative review unavailable", exc)
            return ReviewOutcome(error=exc)
        return ReviewOutcome(text=text)

    async def generate_review(self, patch: str) -> str:
        request_body = {
            "model": self._model,
            "max_tokens": self._max_tokens,
            "messages": [{"role": "user", "content": build_prompt(patch)}],
        }
        logger.debug(f"Requesting narrative review: model={self._model}, patch_length={len(patch)}")

        with log_timing(logger, "narrative_review", model=self._model):
            try:
                response = await self._client.post("/v1/messages", json=request_body)
            except httpx.HTTPError as exc:
                raise ReviewServiceError(f"Failed to reach review service: {exc}") from exc
            _raise_for_status(response)

            try:
                payload = response.json()
            except ValueError as exc:
                raise ReviewServiceError(
                    "Review service returned invalid JSON.", response.status_code
                ) from exc

        text = _extract_text(payload)
        if text is None:
            raise ReviewServiceError("Failed to get response text", response.status_code)
        logger.debug(f"Narrative review received ({len(text)} characters)")
        return text


def _raise_for_status(response: httpx.Response) -> None:
    if response.status_code < 400:
        return
    detail: Any | None
    try:
        detail = response.json()
    except ValueError:
        detail = response.text
    if response.status_code in (401, 403):
        message = f"Review service rejected the API key: status={response.status_code}"
    elif response.status_code == 429:
        message = "Review service rate limit exceeded"
    else:
        message = f"Review request failed: status={response.status_code}, detail={detail}"
    raise ReviewServiceError(message, response.status_code)


def build_prompt(patch: str) -> str:
    instructions = (
        "Please review this code patch and provide specific, actionable feedback about potential issues, "
        "improvements, and best practices. Consider performance, security, maintainability, and "
        "language idioms.\n"
        "Structure your answer with exactly these markdown headers:\n"
        "## Summary\n"
        "## Feedback\n"
        "## Additional Context Needed\n"
        "List each feedback item as a '- ' bullet."
    )
    return f"{instructions}\n\n```\n{patch}\n```"


def _extract_text(payload: Dict[str, Any]) -> str | None:
    if not isinstance(payload, dict):
        return None
    content = payload.get("content")
    if not isinstance(content, list) or not content:
        return None
    first = content[0]
    if not isinstance(first, dict):
        return None
    text = first.get("text")
    if not isinstance(text, str) or not text.strip():
        return None
    return text
