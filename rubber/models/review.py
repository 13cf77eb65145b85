"""Shared data structures for review processing."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List

from rubber.models.github import FileChange, PullRequestMeta

if TYPE_CHECKING:
    from rubber.anthropic_client import ReviewServiceError


class FindingCategory(str, Enum):
    HYGIENE = "hygiene"
    ERROR_HANDLING = "error-handling"
    PERFORMANCE = "performance"
    CONCURRENCY = "concurrency"
    SECURITY = "security"
    TESTING = "testing"
    NARRATIVE = "narrative"


class SectionKind(str, Enum):
    SUMMARY = "Summary"
    FEEDBACK = "Feedback"
    ADDITIONAL_CONTEXT_NEEDED = "Additional Context Needed"
    UNCLASSIFIED = "Unclassified"


@dataclass(frozen=True, slots=True)
class DiffStats:
    added: int
    removed: int

    @property
    def total(self) -> int:
        return self.added + self.removed


@dataclass(frozen=True, slots=True)
class Finding:
    message: str
    category: FindingCategory


@dataclass(frozen=True, slots=True)
class ReviewSection:
    kind: SectionKind
    body: str


@dataclass(frozen=True, slots=True)
class ReviewOutcome:
    """Result-or-error value of one narrative review call."""

    text: str | None = None
    error: ReviewServiceError | None = None

    @property
    def ok(self) -> bool:
        return self.text is not None and self.error is None


@dataclass(slots=True)
class FileReview:
    file: FileChange
    stats: DiffStats
    findings: List[Finding] = field(default_factory=list)
    sections: List[ReviewSection] = field(default_factory=list)

    @property
    def heuristic_findings(self) -> List[Finding]:
        return [finding for finding in self.findings if finding.category is not FindingCategory.NARRATIVE]


@dataclass(slots=True)
class RecentListing:
    pull_requests: List[PullRequestMeta]
    text: str

    def find(self, number: int) -> PullRequestMeta | None:
        return next((pr for pr in self.pull_requests if pr.number == number), None)
