"""Entry points of the highlighting engine.

A pass is parse -> match -> resolve -> inject -> assemble, synchronous and
without shared mutable state apart from the compiled pattern cache. Injected
regions go through the same layer function recursively, one level deeper.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

from tree_sitter import Parser, Tree

from tree_highlight.core.assembler import assemble_layer, to_highlight_spans
from tree_highlight.core.cancellation import CancellationToken
from tree_highlight.core.errors import HighlightError, ParseFailure, QueryError
from tree_highlight.core.injections import InjectionGroup, find_injection_sites, group_sites, highlight_groups
from tree_highlight.core.languages import LanguageRegistry, default_registry
from tree_highlight.core.patterns import PatternSet, load_pattern_set
from tree_highlight.core.resolver import resolve_highlights
from tree_highlight.core.spans import SpanList
from tree_highlight.models import EditHint, HighlightSpan

logger = logging.getLogger(__name__)

MAX_DEPTH_ENV = "TREE_HIGHLIGHT_MAX_DEPTH"
DEFAULT_MAX_DEPTH = 8


def default_max_depth() -> int:
    raw = os.getenv(MAX_DEPTH_ENV)
    if raw is None:
        return DEFAULT_MAX_DEPTH
    try:
        return max(0, int(raw))
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer", MAX_DEPTH_ENV, raw)
        return DEFAULT_MAX_DEPTH


def parse_source(pattern_set: PatternSet, source: bytes, old_tree: Tree | None = None) -> Tree:
    parser = Parser(pattern_set.grammar)
    try:
        tree = parser.parse(source) if old_tree is None else parser.parse(source, old_tree)
    except (ValueError, TypeError, RuntimeError) as exc:
        raise ParseFailure(pattern_set.language, str(exc)) from exc
    if tree is None:
        raise ParseFailure(pattern_set.language, "parser returned no tree")
    return tree


def apply_edit(tree: Tree, edit: EditHint) -> None:
    tree.edit(
        start_byte=edit.start_byte,
        old_end_byte=edit.old_end_byte,
        new_end_byte=edit.new_end_byte,
        start_point=edit.start_point.as_point(),
        old_end_point=edit.old_end_point.as_point(),
        new_end_point=edit.new_end_point.as_point(),
    )


def _intersects(group: InjectionGroup, byte_range: tuple[int, int]) -> bool:
    start, end = byte_range
    return any(range_start < end and start < range_end for range_start, range_end in group.ranges)


@dataclass(frozen=True)
class _Pass:
    registry: LanguageRegistry
    max_depth: int
    cancel: CancellationToken | None

    def layer(
        self,
        source: bytes,
        language: str,
        depth: int,
        tree: Tree | None = None,
        byte_range: tuple[int, int] | None = None,
    ) -> SpanList:
        highlights = load_pattern_set(language, "highlights", self.registry)
        if tree is None:
            tree = parse_source(highlights, source)
        root = tree.root_node
        host = resolve_highlights(highlights, root, source, byte_range, self.cancel)

        try:
            injections = load_pattern_set(language, "injections", self.registry)
        except QueryError as exc:
            logger.debug("Highlighting %s without injections: %s", language, exc)
            return host
        if not injections.patterns:
            return host
        sites = find_injection_sites(injections, root, source, self.cancel)
        if not sites:
            return host
        if depth >= self.max_depth:
            logger.warning(
                "Injection depth limit %d reached inside %s; %d nested region(s) left unhighlighted",
                self.max_depth,
                language,
                len(sites),
            )
            return host

        groups = group_sites(sites, self.registry.normalize)
        if byte_range is not None:
            groups = [group for group in groups if _intersects(group, byte_range)]

        def nested(text: bytes, injected_language: str) -> SpanList:
            return self.layer(text, injected_language, depth + 1)

        injected = highlight_groups(groups, source, nested, self.cancel)
        return assemble_layer(host, injected)


def _encode(text: str | bytes) -> bytes:
    return text.encode("utf-8") if isinstance(text, str) else bytes(text)


def _clip_range(byte_range: tuple[int, int] | None, length: int) -> tuple[int, int]:
    if byte_range is None:
        return (0, length)
    start, end = byte_range
    return (max(0, start), min(length, end))


def _run(
    source: bytes,
    language_id: str,
    tree: Tree | None,
    byte_range: tuple[int, int] | None,
    cancel: CancellationToken | None,
    max_depth: int | None,
    registry: LanguageRegistry | None,
) -> list[HighlightSpan]:
    lower, upper = _clip_range(byte_range, len(source))
    if lower >= upper:
        return []
    highlight_pass = _Pass(
        registry=registry or default_registry(),
        max_depth=default_max_depth() if max_depth is None else max_depth,
        cancel=cancel,
    )
    restrict = None if byte_range is None else (lower, upper)
    spans = highlight_pass.layer(source, language_id, depth=0, tree=tree, byte_range=restrict)
    if cancel is not None and cancel.cancelled:
        logger.info("Highlight pass for %s cancelled; returning %d partial span(s)", language_id, len(spans))
    return to_highlight_spans(spans, lower, upper)


def highlight(
    text: str | bytes,
    language_id: str,
    edit_hint: EditHint | None = None,
    *,
    old_tree: Tree | None = None,
    byte_range: tuple[int, int] | None = None,
    cancel: CancellationToken | None = None,
    max_depth: int | None = None,
    registry: LanguageRegistry | None = None,
) -> list[HighlightSpan]:
    """Highlight ``text`` as ``language_id``.

    Returns sorted, non-overlapping spans whose offsets are UTF-8 byte offsets
    into ``text``. With ``edit_hint`` and the ``old_tree`` of the previous
    pass, the tree is edited in place and re-parsed incrementally.

    Raises ``GrammarMissing``, ``ParseFailure`` or a ``QueryError`` when the
    host language cannot be highlighted. A broken injections query only
    disables injections, and failures inside injected regions only drop
    their spans.
    """
    source = _encode(text)
    tree = None
    if old_tree is not None and edit_hint is not None:
        apply_edit(old_tree, edit_hint)
        tree = parse_source(load_pattern_set(language_id, "highlights", registry), source, old_tree)
    elif edit_hint is not None:
        logger.debug("Edit hint without a previous tree; parsing %s from scratch", language_id)
    return _run(source, language_id, tree, byte_range, cancel, max_depth, registry)


def highlight_or_plain(text: str | bytes, language_id: str, **kwargs: Any) -> list[HighlightSpan]:
    """Like ``highlight`` but degrades to no spans (plain text) on any engine error."""
    try:
        return highlight(text, language_id, **kwargs)
    except HighlightError as exc:
        logger.warning("Rendering %s as plain text: %s", language_id, exc)
        return []


class SyntaxHighlighter:
    """Highlighting session for one document, keeping the last tree for incremental parsing."""

    def __init__(
        self,
        language_id: str,
        registry: LanguageRegistry | None = None,
        max_depth: int | None = None,
    ) -> None:
        self._registry = registry or default_registry()
        self._pattern_set = load_pattern_set(language_id, "highlights", self._registry)
        self.language = self._pattern_set.language
        self._max_depth = max_depth
        self._text = b""
        self._tree: Tree | None = None

    @property
    def text(self) -> bytes:
        return self._text

    @property
    def tree(self) -> Tree | None:
        return self._tree

    def update(self, text: str | bytes, edit_hint: EditHint | None = None) -> bool:
        """Re-parse after an edit; returns False when the text did not change."""
        source = _encode(text)
        if self._tree is not None and source == self._text:
            return False
        old_tree = None
        if self._tree is not None and edit_hint is not None:
            apply_edit(self._tree, edit_hint)
            old_tree = self._tree
        self._tree = parse_source(self._pattern_set, source, old_tree)
        self._text = source
        return True

    def highlight(
        self,
        byte_range: tuple[int, int] | None = None,
        cancel: CancellationToken | None = None,
    ) -> list[HighlightSpan]:
        if self._tree is None:
            return []
        return _run(self._text, self.language, self._tree, byte_range, cancel, self._max_depth, self._registry)
