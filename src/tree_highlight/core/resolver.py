"""Turn every match of a highlight query into one category per byte.

Precedence is first-declared-wins: when candidates overlap, the one whose
pattern comes first in the query source keeps the overlapping bytes, and a
later candidate only keeps the bytes nobody claimed before it. Pattern authors
rely on this, so catch-all patterns go after the specific ones.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass

from tree_sitter import Node, QueryCursor

from tree_highlight.core.cancellation import CancellationToken
from tree_highlight.core.categories import HighlightCategory, is_highlight_capture, resolve_category
from tree_highlight.core.patterns import PatternSet
from tree_highlight.core.predicates import Match
from tree_highlight.core.spans import SpanList, carve

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    start: int
    end: int
    category: HighlightCategory | str
    pattern_index: int


def iter_matches(
    pattern_set: PatternSet,
    root: Node,
    source: bytes,
    byte_range: tuple[int, int] | None = None,
    cancel: CancellationToken | None = None,
) -> Iterator[Match]:
    """Yield the matches whose predicates pass, with their directives applied."""
    if pattern_set.query is None:
        return
    cursor = QueryCursor(pattern_set.query)
    if byte_range is not None:
        cursor.set_byte_range(*byte_range)

    if cancel is None:
        matches = cursor.matches(root)
    else:
        matches = cursor.matches(root, progress_callback=lambda *_: cancel.cancelled)

    for pattern_index, captures in matches:
        if cancel is not None and cancel.cancelled:
            logger.debug("Cancelled while matching %s %s", pattern_set.language, pattern_set.kind)
            return
        pattern = pattern_set.patterns[pattern_index]
        match = Match(pattern_index=pattern_index, captures={name: list(nodes) for name, nodes in captures.items()})
        if pattern.accepts(match, source):
            yield match


def candidates_from_match(pattern_set: PatternSet, match: Match) -> list[Candidate]:
    candidates = []
    for capture in pattern_set.patterns[match.pattern_index].captures:
        if not is_highlight_capture(capture):
            continue
        category = resolve_category(capture)
        for start, end in match.ranges(capture):
            candidates.append(Candidate(start, end, category, match.pattern_index))
    return candidates


def resolve_candidates(candidates: list[Candidate]) -> SpanList:
    """Reduce candidates to disjoint ``(start, end, category)`` spans sorted by start.

    Inside one pattern the later-starting, then shorter, capture claims its bytes
    first, so an inner capture sits on top of the outer one it is nested in.
    """
    ordered = sorted(candidates, key=lambda c: (c.pattern_index, -c.start, c.end))
    return carve((c.start, c.end, c.category) for c in ordered)


def resolve_highlights(
    pattern_set: PatternSet,
    root: Node,
    source: bytes,
    byte_range: tuple[int, int] | None = None,
    cancel: CancellationToken | None = None,
) -> SpanList:
    candidates: list[Candidate] = []
    for match in iter_matches(pattern_set, root, source, byte_range, cancel):
        candidates.extend(candidates_from_match(pattern_set, match))
    return resolve_candidates(candidates)
