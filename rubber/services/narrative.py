"""Split narrative review text into named sections."""

from __future__ import annotations

import re
from typing import Iterable, List

from rubber.models.review import Finding, FindingCategory, ReviewSection, SectionKind

_HEADER = re.compile(r"^\s{0,3}#{1,6}\s+\**\s*(?P<name>[^*#:]+?)\s*\**\s*:?\s*\**\s*$")
_KNOWN_SECTIONS = {
    "summary": SectionKind.SUMMARY,
    "feedback": SectionKind.FEEDBACK,
    "additional context needed": SectionKind.ADDITIONAL_CONTEXT_NEEDED,
}
_BULLET = re.compile(r"^\s*[-*]\s+(?P<text>.+)$")


def _section_kind(line: str) -> SectionKind | None:
    """Return the section a header line opens (``UNCLASSIFIED`` for unknown names), None for body lines."""

    match = _HEADER.match(line)
    if not match:
        return None
    name = " ".join(match.group("name").split()).lower()
    return _KNOWN_SECTIONS.get(name, SectionKind.UNCLASSIFIED)


def partition_review(text: str, *, keep_unclassified: bool = True) -> List[ReviewSection]:
    sections: List[ReviewSection] = []
    kind = SectionKind.UNCLASSIFIED
    buffer: List[str] = []

    def flush() -> None:
        body = "\n".join(buffer).strip()
        if body and (kind is not SectionKind.UNCLASSIFIED or keep_unclassified):
            sections.append(ReviewSection(kind=kind, body=body))
        buffer.clear()

    in_code = False
    for line in text.splitlines():
        if line.lstrip().startswith("```"):
            in_code = not in_code
        opened = None if in_code else _section_kind(line)
        if opened is None:
            buffer.append(line)
            continue
        flush()
        kind = opened
    flush()
    return sections


def narrative_findings(sections: Iterable[ReviewSection]) -> List[Finding]:
    """Turn each bullet of the Feedback sections into a narrative finding."""

    findings: List[Finding] = []
    for section in sections:
        if section.kind is not SectionKind.FEEDBACK:
            continue
        for line in section.body.splitlines():
            if match := _BULLET.match(line):
                findings.append(Finding(match.group("text").strip(), FindingCategory.NARRATIVE))
    return findings
