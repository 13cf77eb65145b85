"""Assemble the review report for a single pull request."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, List, Sequence

from rubber.anthropic_client import NarrativeReviewClient, ReviewServiceError
from rubber.config import Settings
from rubber.github_client import GitHubAPIError, GitHubClient
from rubber.logger import get_logger, log_failure, log_success, log_timing, log_with_context
from rubber.models.github import FileChange, PullRequestMeta
from rubber.models.review import FileReview, RecentListing, ReviewOutcome
from rubber.report import ReportDocument, format_row
from rubber.services import diff_metrics, heuristics
from rubber.services.narrative import narrative_findings, partition_review

logger = get_logger()

FILE_TABLE_HEADERS = ("Filename", "Status", "Additions", "Deletions")
FILE_TABLE_WIDTHS = (50, 10, 10, 10)
RECENT_TABLE_HEADERS = ("PR#", "Title", "Author", "Created At", "Comments")
RECENT_TABLE_WIDTHS = (6, 50, 20, 15, 15)
RECENT_RULE_WIDTH = 106
MAX_TITLE_LENGTH = 47


class ReviewOrchestratorError(RuntimeError):
    """Raised when a step of report generation fails."""

    def __init__(self, message: str, step: str, original_error: Exception | None = None):
        super().__init__(message)
        self.step = step
        self.original_error = original_error

    @property
    def not_found(self) -> bool:
        return isinstance(self.original_error, GitHubAPIError) and self.original_error.not_found


class FatalFetchError(ReviewOrchestratorError):
    """The pull request itself could not be resolved; no report can be produced."""


class DegradedFetchError(ReviewOrchestratorError):
    """Supplementary data could not be fetched; the report continues without it."""


class ReviewOrchestrator:
    def __init__(
        self,
        github: GitHubClient,
        narrative: NarrativeReviewClient | None = None,
        *,
        rules: Sequence[heuristics.Rule] = heuristics.DEFAULT_RULES,
        request_timeout: float = 10.0,
        review_timeout: float = 60.0,
        keep_unclassified: bool = True,
    ) -> None:
        self._github = github
        self._narrative = narrative
        self._rules = tuple(rules)
        self._request_timeout = request_timeout
        self._review_timeout = review_timeout
        self._keep_unclassified = keep_unclassified
        self._owned_clients: List[Any] = []

    @classmethod
    def from_settings(cls, settings: Settings) -> "ReviewOrchestrator":
        """Build an orchestrator with its own HTTP clients; call ``aclose`` when done."""

        github = GitHubClient(
            base_url=settings.normalized_github_api_base_url,
            token=settings.github_token,
            timeout=settings.request_timeout,
        )
        narrative: NarrativeReviewClient | None = None
        if settings.narrative_review_enabled:
            narrative = NarrativeReviewClient(
                settings.require_anthropic_api_key(),
                base_url=settings.normalized_anthropic_api_base_url,
                model=settings.anthropic_model,
                max_tokens=settings.anthropic_max_tokens,
                timeout=settings.review_timeout,
            )
        else:
            logger.warning("ANTHROPIC_API_KEY is not set; narrative reviews are disabled")

        orchestrator = cls(
            github,
            narrative,
            rules=heuristics.select_rules(settings.disabled_rules),
            request_timeout=settings.request_timeout,
            review_timeout=settings.review_timeout,
            keep_unclassified=settings.keep_unclassified_sections,
        )
        orchestrator._owned_clients = [client for client in (github, narrative) if client is not None]
        return orchestrator

    async def aclose(self) -> None:
        for client in self._owned_clients:
            await client.aclose()
        self._owned_clients = []

    async def _fetch(self, step: str, awaitable: Awaitable[Any]) -> Any:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._request_timeout)
        except asyncio.TimeoutError as exc:
            raise DegradedFetchError(
                f"{step} timed out after {self._request_timeout:.1f}s", step, exc
            ) from exc
        except GitHubAPIError as exc:
            raise DegradedFetchError(f"{step} failed: {exc}", step, exc) from exc

    async def generate_report(self, owner: str, repo: str, number: int) -> str:
        document = await self.build_document(owner, repo, number)
        return document.render()

    async def build_document(self, owner: str, repo: str, number: int) -> ReportDocument:
        repository = f"{owner}/{repo}"
        ctx_logger = log_with_context(logger, repository=repository, pull_number=number)

        try:
            with log_timing(ctx_logger, "fetch_pull_request"):
                pr: PullRequestMeta = await self._fetch(
                    "fetch_pull_request", self._github.get_pull_request(owner, repo, number)
                )
        except DegradedFetchError as exc:
            log_failure(logger, f"Unable to fetch PR #{number}", exc, repository=repository)
            raise FatalFetchError(
                f"Unable to fetch PR #{number} from {repository}: {exc}", exc.step, exc.original_error
            ) from exc

        document = ReportDocument()
        document.add_header(f"PR #{pr.number}: {pr.title}")
        document.add_section("Description")
        body = (pr.body or "").strip()
        document.add_box_content(body or "No description provided.")

        reviews = await self._add_files(document, owner, repo, number)
        await self._add_comments(document, owner, repo, number)

        log_success(
            logger,
            f"Report built for PR #{number} ({len(reviews)} file(s) analysed)",
            repository=repository,
        )
        return document

    async def _add_files(
        self, document: ReportDocument, owner: str, repo: str, number: int
    ) -> List[FileReview]:
        ctx_logger = log_with_context(logger, repository=f"{owner}/{repo}", pull_number=number)
        document.add_section("Modified Files")

        try:
            files: List[FileChange] = await self._fetch(
                "fetch_files", self._github.list_pull_request_files(owner, repo, number)
            )
        except DegradedFetchError as exc:
            ctx_logger.warning(f"Error fetching PR details: {exc}")
            document.add_line("Error fetching PR details.")
            document.add_line("Unable to display modified files.")
            return []

        if not files:
            document.add_line("No files modified in this PR.")
            return []

        document.add_table(
            FILE_TABLE_HEADERS,
            [(file.filename, file.status, file.additions, file.deletions) for file in files],
            FILE_TABLE_WIDTHS,
        )

        reviews: List[FileReview] = []
        for file in files:
            if not file.has_patch:
                ctx_logger.debug(f"Skipping analysis of {file.filename}: no patch available")
                continue
            review = await self.analyze_file(file)
            self._add_file_review(document, review)
            reviews.append(review)
        return reviews

    async def analyze_file(self, file: FileChange) -> FileReview:
        patch = file.patch or ""
        review = FileReview(
            file=file,
            stats=diff_metrics.compute(patch),
            findings=heuristics.scan(patch, self._rules),
        )
        if self._narrative is None:
            return review

        outcome = await self._request_narrative(self._narrative, file.filename, patch)
        if outcome.ok:
            review.sections = partition_review(outcome.text or "", keep_unclassified=self._keep_unclassified)
            review.findings.extend(narrative_findings(review.sections))
        return review

    async def _request_narrative(
        self, narrative: NarrativeReviewClient, filename: str, patch: str
    ) -> ReviewOutcome:
        try:
            return await asyncio.wait_for(narrative.review(patch), timeout=self._review_timeout)
        except asyncio.TimeoutError:
            error = ReviewServiceError(f"Narrative review timed out after {self._review_timeout:.1f}s")
            log_failure(logger, f"Narrative review skipped for {filename}", error)
            return ReviewOutcome(error=error)

    @staticmethod
    def _add_file_review(document: ReportDocument, review: FileReview) -> None:
        document.add_section(f"Diff for {review.file.filename}")
        document.add_diff_content(review.file.patch or "")

        document.add_subsection("Analysis")
        stats = review.stats
        document.add_line(
            f"Changed {stats.total} lines ({stats.added} additions, {stats.removed} deletions)"
        )
        findings = review.heuristic_findings
        if findings:
            document.add_line()
            document.add_line("Potential feedback:")
            for finding in findings:
                document.add_line(f"- [{finding.category.value}] {finding.message}")

        if review.sections:
            document.add_subsection("Narrative Review")
            for section in review.sections:
                document.add_box_content(section.body, title=section.kind.value)

    async def _add_comments(self, document: ReportDocument, owner: str, repo: str, number: int) -> None:
        document.add_section(f"Comments for PR #{number}")
        try:
            comments = await self._fetch(
                "fetch_comments", self._github.list_issue_comments(owner, repo, number)
            )
        except DegradedFetchError as exc:
            log_with_context(logger, repository=f"{owner}/{repo}", pull_number=number).warning(
                f"Error fetching comments: {exc}"
            )
            document.add_line("Unable to load comments for this PR.")
            return

        if not comments:
            document.add_line("No comments found for this PR.")
            return

        for comment in comments:
            document.add_box_content(comment.body, title=f"Author: {comment.author} (at {comment.created_at})")

    async def list_recent(self, owner: str, repo: str, limit: int = 10) -> RecentListing:
        repository = f"{owner}/{repo}"
        try:
            prs: List[PullRequestMeta] = await self._fetch(
                "list_pull_requests", self._github.list_pull_requests(owner, repo, limit=limit)
            )
        except DegradedFetchError as exc:
            log_failure(logger, "Unable to list pull requests", exc, repository=repository)
            raise FatalFetchError(
                f"Unable to list pull requests for {repository}: {exc}", exc.step, exc.original_error
            ) from exc

        document = ReportDocument()
        document.add_line(f"Fetching the {limit} most recent PRs for {repository}")
        if not prs:
            document.add_line("No pull requests found.")
            return RecentListing(pull_requests=[], text=document.render())

        document.add_line(format_row(RECENT_TABLE_HEADERS, RECENT_TABLE_WIDTHS))
        document.add_line("-" * RECENT_RULE_WIDTH)
        for pr in prs:
            comments = await self._comment_count(owner, repo, pr)
            document.add_line(
                format_row(
                    (pr.number, truncate_title(pr.title), pr.author, pr.created_at, comments),
                    RECENT_TABLE_WIDTHS,
                )
            )
            document.add_line(f"       URL: {pr.html_url}")
        return RecentListing(pull_requests=prs, text=document.render())

    async def _comment_count(self, owner: str, repo: str, pr: PullRequestMeta) -> str:
        comments_url = pr.comments_url or f"/repos/{owner}/{repo}/issues/{pr.number}/comments"
        try:
            count = await self._fetch("count_comments", self._github.get_comment_count(comments_url))
        except DegradedFetchError as exc:
            logger.warning(f"Could not count comments for PR #{pr.number}: {exc}")
            return "Error"
        return str(count)


def truncate_title(title: str) -> str:
    if len(title) > MAX_TITLE_LENGTH:
        return f"{title[:44]}..."
    return title
