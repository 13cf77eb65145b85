"""Append-only document model for rendered review reports.

A report is a tree of nodes owned by a root Header node. Components append
headers, sections, boxed blocks and lines in order; ``render`` walks the tree
depth-first and never mutates it, so rendering the same document twice always
produces the same text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Sequence

RULE_WIDTH = 80


class NodeKind(str, Enum):
    HEADER = "header"
    SECTION = "section"
    BOX = "box"
    LINE = "line"


class LineTag(str, Enum):
    PLAIN = "plain"
    ADDITION = "addition"
    REMOVAL = "removal"
    HUNK = "hunk"


@dataclass(slots=True)
class ReportNode:
    kind: NodeKind
    label: str | None = None
    tag: LineTag = LineTag.PLAIN
    children: List["ReportNode"] = field(default_factory=list)


def tag_diff_line(line: str) -> LineTag:
    if line.startswith("@@"):
        return LineTag.HUNK
    if line.startswith("+") and not line.startswith("+++"):
        return LineTag.ADDITION
    if line.startswith("-") and not line.startswith("---"):
        return LineTag.REMOVAL
    return LineTag.PLAIN


def format_row(values: Sequence[object], widths: Sequence[int]) -> str:
    """Left-align ``values`` into fixed-width columns separated by one space."""

    cells = [f"{str(value):<{width}}" for value, width in zip(values, widths)]
    return " ".join(cells)


class ReportDocument:
    def __init__(self) -> None:
        self._root = ReportNode(NodeKind.HEADER)
        self._section: ReportNode | None = None
        self._container = self._root

    @property
    def root(self) -> ReportNode:
        return self._root

    def _append(self, node: ReportNode, parent: ReportNode | None = None) -> ReportNode:
        (parent or self._container).children.append(node)
        return node

    @staticmethod
    def _lines(text: str, tag: LineTag = LineTag.PLAIN) -> List[ReportNode]:
        return [ReportNode(NodeKind.LINE, label=line, tag=tag) for line in text.splitlines() or [""]]

    def add_header(self, text: str) -> ReportNode:
        node = self._append(ReportNode(NodeKind.HEADER, label=text), self._root)
        self._section = None
        self._container = self._root
        return node

    def add_section(self, text: str) -> ReportNode:
        node = self._append(ReportNode(NodeKind.SECTION, label=text), self._root)
        self._section = node
        self._container = node
        return node

    def add_subsection(self, text: str) -> ReportNode:
        parent = self._section or self._root
        node = self._append(ReportNode(NodeKind.SECTION, label=text), parent)
        self._container = node
        return node

    def add_line(self, text: str = "") -> None:
        self._container.children.extend(self._lines(text))

    def add_box_content(self, text: str, *, title: str | None = None) -> ReportNode:
        box = ReportNode(NodeKind.BOX, label=title, children=self._lines(text))
        return self._append(box)

    def add_diff_content(self, patch_text: str) -> ReportNode:
        lines = [
            ReportNode(NodeKind.LINE, label=line, tag=tag_diff_line(line))
            for line in patch_text.splitlines()
        ]
        return self._append(ReportNode(NodeKind.BOX, children=lines))

    def add_table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[object]],
        widths: Sequence[int],
    ) -> ReportNode:
        lines = [ReportNode(NodeKind.LINE, label=format_row(headers, widths))]
        lines.extend(ReportNode(NodeKind.LINE, label=format_row(row, widths)) for row in rows)
        return self._append(ReportNode(NodeKind.BOX, children=lines))

    def tagged_lines(self) -> List[tuple[LineTag, str]]:
        return list(_walk(self._root))

    def render(self) -> str:
        lines = [text for _, text in _walk(self._root)]
        if not lines:
            return ""
        return "\n".join(lines) + "\n"


def _walk(node: ReportNode) -> Iterator[tuple[LineTag, str]]:
    if node.kind is NodeKind.LINE:
        yield node.tag, node.label or ""
        return

    if node.kind is NodeKind.HEADER and node.label is not None:
        yield LineTag.PLAIN, "=" * RULE_WIDTH
        yield LineTag.PLAIN, node.label
        yield LineTag.PLAIN, "=" * RULE_WIDTH
    elif node.kind is NodeKind.SECTION:
        yield LineTag.PLAIN, ""
        yield LineTag.PLAIN, f"{node.label}:"
    elif node.kind is NodeKind.BOX:
        if node.label is not None:
            yield LineTag.PLAIN, node.label
        yield LineTag.PLAIN, "-" * RULE_WIDTH

    for child in node.children:
        yield from _walk(child)

    if node.kind is NodeKind.BOX:
        yield LineTag.PLAIN, "-" * RULE_WIDTH
