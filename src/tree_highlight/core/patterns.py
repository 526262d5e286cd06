from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass

from tree_sitter import Language, Query, QueryError

from tree_highlight.core.errors import GrammarMissing, QueryError as HighlightQueryError, QuerySyntaxError
from tree_highlight.core.languages import LanguageConfig, LanguageRegistry, default_registry, load_grammar
from tree_highlight.core.predicates import (
    DirectiveFn,
    Match,
    PredicateFn,
    compile_pattern_calls,
    evaluate_match,
)
from tree_highlight.core.query_source import RawPattern, parse_query_source

logger = logging.getLogger(__name__)

_TS_POSITION = re.compile(r"row:?\s*(\d+),\s*column:?\s*(\d+)")


@dataclass(frozen=True)
class Pattern:
    """One top-level query pattern. ``index`` is its declaration order and its precedence."""

    index: int
    line: int
    captures: tuple[str, ...]
    predicates: tuple[PredicateFn, ...]
    directives: tuple[DirectiveFn, ...]
    raw: RawPattern

    def accepts(self, match: Match, source: bytes) -> bool:
        return evaluate_match(self.predicates, self.directives, match, source)

    def static_settings(self) -> dict[str, str | None]:
        """``#set!`` values known without running the pattern."""
        settings: dict[str, str | None] = {}
        for call in self.raw.directives:
            if call.name == "set!":
                settings[call.args[0].value] = call.args[1].value if len(call.args) > 1 else None
        return settings


@dataclass(frozen=True)
class PatternSet:
    language: str
    kind: str
    grammar: Language
    query: Query | None
    patterns: tuple[Pattern, ...]

    def __len__(self) -> int:
        return len(self.patterns)


def compile_pattern_set(language: str, grammar: Language, source: str, kind: str = "highlights") -> PatternSet:
    """Compile query ``source`` keeping its patterns in exactly the order written."""
    parsed = parse_query_source(source)
    patterns = []
    for raw in parsed.patterns:
        predicates, directives = compile_pattern_calls(raw)
        patterns.append(
            Pattern(
                index=raw.index,
                line=raw.line,
                captures=raw.captures,
                predicates=predicates,
                directives=directives,
                raw=raw,
            )
        )

    if not patterns:
        return PatternSet(language=language, kind=kind, grammar=grammar, query=None, patterns=())

    try:
        query = Query(grammar, parsed.node_source)
    except QueryError as exc:
        position = _TS_POSITION.search(str(exc))
        if position is None:
            raise QuerySyntaxError(f"{language} {kind}: {exc}") from exc
        raise QuerySyntaxError(
            f"{language} {kind}: {exc}", int(position.group(1)) + 1, int(position.group(2)) + 1
        ) from exc

    if query.pattern_count != len(patterns):
        raise QuerySyntaxError(
            f"{language} {kind}: tree-sitter compiled {query.pattern_count} patterns, expected {len(patterns)}"
        )
    return PatternSet(language=language, kind=kind, grammar=grammar, query=query, patterns=tuple(patterns))


_cache: dict[tuple[LanguageConfig, str], PatternSet] = {}
_failures: dict[tuple[LanguageConfig, str], HighlightQueryError] = {}
_cache_lock = threading.Lock()


def load_pattern_set(
    language_id: str,
    kind: str = "highlights",
    registry: LanguageRegistry | None = None,
) -> PatternSet:
    """Return the compiled pattern set for a language, compiling it at most once per process.

    A query that failed to compile stays failed: later calls re-raise the same error.
    """
    registry = registry or default_registry()
    config = registry.get(language_id)
    key = (config, kind)
    cached = _cache.get(key)
    if cached is not None:
        return cached

    with _cache_lock:
        cached = _cache.get(key)
        if cached is not None:
            return cached
        failure = _failures.get(key)
        if failure is not None:
            raise failure

        grammar = load_grammar(config)
        try:
            pattern_set = compile_pattern_set(config.name, grammar, config.query(kind), kind)
        except HighlightQueryError as exc:
            logger.error("Disabling %s %s query: %s", config.name, kind, exc)
            _failures[key] = exc
            raise
        if kind == "highlights" and not pattern_set.patterns:
            raise GrammarMissing(config.name, "highlights query is empty")
        logger.debug("Compiled %d %s patterns for %s", len(pattern_set), kind, config.name)
        _cache[key] = pattern_set
        return pattern_set


def clear_pattern_cache() -> None:
    with _cache_lock:
        _cache.clear()
        _failures.clear()
