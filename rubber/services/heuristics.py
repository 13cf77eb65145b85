"""Rule-based scanning of patch text for common code smells.

Every rule is an independent predicate over the raw patch; rules never see
each other's results and are evaluated in table order so the findings for a
patch are always emitted in the same sequence.
"""

from __future__ import annotations

import re
from typing import Callable, Iterable, List, NamedTuple, Sequence

from rubber.models.review import Finding, FindingCategory

Predicate = Callable[[str], bool]


class Rule(NamedTuple):
    name: str
    predicate: Predicate
    message: str
    category: FindingCategory


def _contains_any(*needles: str) -> Predicate:
    return lambda patch: any(needle in patch for needle in needles)


def _contains_without(needles: Sequence[str], absent: Sequence[str]) -> Predicate:
    return lambda patch: any(n in patch for n in needles) and not any(a in patch for a in absent)


def _contains_all(*needles: str) -> Predicate:
    return lambda patch: all(needle in patch for needle in needles)


_FUNCTION_DEF = re.compile(
    r"^\+\s*(?:pub(?:\([^)]*\))?\s+)?(?:(?:const|async|unsafe|extern\s+\"[^\"]*\")\s+)*fn\s+(\w+)"
)
_TEST_MARKERS = ("#[test]", "#[tokio::test]", "#[cfg(test)]")


def _adds_untested_function(patch: str) -> bool:
    if any(marker in patch for marker in _TEST_MARKERS):
        return False
    for line in patch.splitlines():
        if line.startswith("+++"):
            continue
        match = _FUNCTION_DEF.match(line)
        if match and not match.group(1).startswith("test"):
            return True
    return False


DEFAULT_RULES: tuple[Rule, ...] = (
    Rule(
        "todo_marker",
        _contains_any("TODO", "FIXME"),
        "Resolve TODO/FIXME markers before merging",
        FindingCategory.HYGIENE,
    ),
    Rule(
        "debug_output",
        _contains_any("println!", "dbg!"),
        "Remove debug output (println!/dbg!) before merging",
        FindingCategory.HYGIENE,
    ),
    Rule(
        "unwrap_call",
        _contains_any("unwrap()"),
        "Replace unwrap() calls with proper error handling",
        FindingCategory.ERROR_HANDLING,
    ),
    Rule(
        "expect_call",
        _contains_any(".expect("),
        "Handle errors gracefully instead of aborting with expect()",
        FindingCategory.ERROR_HANDLING,
    ),
    Rule(
        "panic_call",
        _contains_any("panic!"),
        "Avoid panic!; return a Result or Option so callers can recover",
        FindingCategory.ERROR_HANDLING,
    ),
    Rule(
        "clone_call",
        _contains_any(".clone()", ".to_owned()"),
        "Avoid unnecessary clones; borrow references where possible",
        FindingCategory.PERFORMANCE,
    ),
    Rule(
        "box_allocation",
        _contains_any("Box::new"),
        "Justify heap allocations made with Box::new",
        FindingCategory.PERFORMANCE,
    ),
    Rule(
        "unsized_vec",
        _contains_without(("Vec::new()",), ("Vec::with_capacity",)),
        "Use Vec::with_capacity when the final size is known",
        FindingCategory.PERFORMANCE,
    ),
    Rule(
        "mutex_lock",
        _contains_without(("Mutex<", "Mutex::new"), ("RwLock",)),
        "Consider RwLock if reads outnumber writes on this Mutex",
        FindingCategory.CONCURRENCY,
    ),
    Rule(
        "sequential_await",
        _contains_all(".await", "Vec<"),
        "Consider running independent futures concurrently (e.g. join_all)",
        FindingCategory.CONCURRENCY,
    ),
    Rule(
        "unsafe_block",
        _contains_any("unsafe {", "unsafe{", "unsafe fn"),
        "Document the safety invariants that justify this unsafe code",
        FindingCategory.SECURITY,
    ),
    Rule(
        "raw_pointer",
        _contains_any("*const ", "*mut "),
        "Verify memory safety of raw pointer access",
        FindingCategory.SECURITY,
    ),
    Rule(
        "untested_function",
        _adds_untested_function,
        "New functions were added without accompanying tests",
        FindingCategory.TESTING,
    ),
)

RULE_NAMES = frozenset(rule.name for rule in DEFAULT_RULES)


def select_rules(disabled: Iterable[str] = (), rules: Sequence[Rule] = DEFAULT_RULES) -> tuple[Rule, ...]:
    """Return ``rules`` minus the ones named in ``disabled``, order preserved."""

    skipped = set(disabled)
    return tuple(rule for rule in rules if rule.name not in skipped)


def scan(patch: str, rules: Sequence[Rule] = DEFAULT_RULES) -> List[Finding]:
    return [Finding(rule.message, rule.category) for rule in rules if rule.predicate(patch)]
