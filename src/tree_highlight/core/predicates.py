"""Predicates and directives attached to query patterns.

Each recognised name is registered with a compiler that validates the call's
arguments against the pattern's captures at load time and returns a small
evaluator closure. Unknown names never reach match time: they fail loading.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from tree_highlight.core.errors import MalformedPattern
from tree_highlight.core.query_source import PredicateArg, PredicateCall, RawPattern


class NodeLike(Protocol):
    @property
    def type(self) -> str: ...

    @property
    def start_byte(self) -> int: ...

    @property
    def end_byte(self) -> int: ...


@dataclass
class Match:
    """One satisfied pattern: capture name to nodes, plus what its directives attached."""

    pattern_index: int
    captures: dict[str, list[NodeLike]]
    metadata: dict[str, str | None] = field(default_factory=dict)
    offsets: dict[str, tuple[int, int]] = field(default_factory=dict)

    def texts(self, capture: str, source: bytes) -> list[str]:
        return [node_text(node, source) for node in self.captures.get(capture, ())]

    def ranges(self, capture: str) -> list[tuple[int, int]]:
        start_delta, end_delta = self.offsets.get(capture, (0, 0))
        result = []
        for node in self.captures.get(capture, ()):
            start = max(0, node.start_byte + start_delta)
            end = max(start, node.end_byte + end_delta)
            result.append((start, end))
        return result


def node_text(node: NodeLike, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


PredicateFn = Callable[[Match, bytes], bool]
DirectiveFn = Callable[[Match, bytes], None]

_PredicateCompiler = Callable[[PredicateCall, RawPattern], PredicateFn]
_DirectiveCompiler = Callable[[PredicateCall, RawPattern], DirectiveFn]

_PREDICATES: dict[str, _PredicateCompiler] = {}
_DIRECTIVES: dict[str, _DirectiveCompiler] = {}


def _predicate(*names: str) -> Callable[[_PredicateCompiler], _PredicateCompiler]:
    def register(compiler: _PredicateCompiler) -> _PredicateCompiler:
        for name in names:
            _PREDICATES[name] = compiler
        return compiler

    return register


def _directive(*names: str) -> Callable[[_DirectiveCompiler], _DirectiveCompiler]:
    def register(compiler: _DirectiveCompiler) -> _DirectiveCompiler:
        for name in names:
            _DIRECTIVES[name] = compiler
        return compiler

    return register


def known_predicates() -> list[str]:
    return sorted(_PREDICATES)


def known_directives() -> list[str]:
    return sorted(_DIRECTIVES)


# ---------------------------------------------------------------------------
# Argument validation
# ---------------------------------------------------------------------------


def _fail(call: PredicateCall, pattern: RawPattern, message: str) -> MalformedPattern:
    return MalformedPattern(f"#{call.name} {message}", pattern_index=pattern.index, line=call.line)


def _arity(call: PredicateCall, pattern: RawPattern, minimum: int, maximum: int | None = None) -> None:
    count = len(call.args)
    if count < minimum or (maximum is not None and count > maximum):
        expected = f"{minimum}" if maximum == minimum else f"{minimum}..{'' if maximum is None else maximum}"
        raise _fail(call, pattern, f"expects {expected} arguments, got {count}")


def _capture(call: PredicateCall, pattern: RawPattern, position: int) -> str:
    arg = call.args[position]
    if arg.kind != "capture":
        raise _fail(call, pattern, f"argument {position + 1} must be a capture, got '{arg.value}'")
    if arg.value not in pattern.captures:
        raise _fail(call, pattern, f"references @{arg.value}, which the pattern does not capture")
    return arg.value


def _literal(call: PredicateCall, pattern: RawPattern, position: int) -> str:
    arg = call.args[position]
    if arg.kind != "string":
        raise _fail(call, pattern, f"argument {position + 1} must be a string literal, got '{arg.value}'")
    return arg.value


def _key(call: PredicateCall, pattern: RawPattern, position: int) -> str:
    arg = call.args[position]
    if arg.kind == "capture":
        raise _fail(call, pattern, f"argument {position + 1} must be a property name, got @{arg.value}")
    return arg.value


def _integer(call: PredicateCall, pattern: RawPattern, position: int) -> int:
    arg = call.args[position]
    try:
        return int(arg.value)
    except ValueError:
        raise _fail(call, pattern, f"argument {position + 1} must be an integer, got '{arg.value}'") from None


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


@_predicate("eq?", "not-eq?")
def _compile_eq(call: PredicateCall, pattern: RawPattern) -> PredicateFn:
    _arity(call, pattern, 2, 2)
    subject = _capture(call, pattern, 0)
    other: PredicateArg = call.args[1]
    if other.kind == "capture":
        _capture(call, pattern, 1)
    else:
        _literal(call, pattern, 1)
    negate = call.name.startswith("not-")

    def evaluate(match: Match, source: bytes) -> bool:
        if other.kind == "capture":
            others = match.texts(other.value, source)
            if not others:
                return True
            expected = others[0]
        else:
            expected = other.value
        return all((text == expected) != negate for text in match.texts(subject, source))

    return evaluate


@_predicate("any-of?", "not-any-of?")
def _compile_any_of(call: PredicateCall, pattern: RawPattern) -> PredicateFn:
    _arity(call, pattern, 2)
    subject = _capture(call, pattern, 0)
    choices = frozenset(_literal(call, pattern, i) for i in range(1, len(call.args)))
    negate = call.name.startswith("not-")

    def evaluate(match: Match, source: bytes) -> bool:
        return all((text in choices) != negate for text in match.texts(subject, source))

    return evaluate


@_predicate("match?", "not-match?")
def _compile_match(call: PredicateCall, pattern: RawPattern) -> PredicateFn:
    _arity(call, pattern, 2, 2)
    subject = _capture(call, pattern, 0)
    try:
        regex = re.compile(_literal(call, pattern, 1))
    except re.error as exc:
        raise _fail(call, pattern, f"has an invalid regular expression: {exc}") from None
    negate = call.name.startswith("not-")

    def evaluate(match: Match, source: bytes) -> bool:
        return all((regex.search(text) is not None) != negate for text in match.texts(subject, source))

    return evaluate


# ---------------------------------------------------------------------------
# Directives
# ---------------------------------------------------------------------------


@_directive("set!")
def _compile_set(call: PredicateCall, pattern: RawPattern) -> DirectiveFn:
    _arity(call, pattern, 1, 2)
    key = _key(call, pattern, 0)
    value = _key(call, pattern, 1) if len(call.args) == 2 else None

    def apply(match: Match, source: bytes) -> None:
        match.metadata[key] = value

    return apply


@_directive("set-from!")
def _compile_set_from(call: PredicateCall, pattern: RawPattern) -> DirectiveFn:
    _arity(call, pattern, 2, 2)
    key = _key(call, pattern, 0)
    capture = _capture(call, pattern, 1)

    def apply(match: Match, source: bytes) -> None:
        texts = match.texts(capture, source)
        if texts:
            match.metadata[key] = texts[0].strip()

    return apply


@_directive("offset!")
def _compile_offset(call: PredicateCall, pattern: RawPattern) -> DirectiveFn:
    _arity(call, pattern, 3, 3)
    capture = _capture(call, pattern, 0)
    deltas = (_integer(call, pattern, 1), _integer(call, pattern, 2))

    def apply(match: Match, source: bytes) -> None:
        match.offsets[capture] = deltas

    return apply


# ---------------------------------------------------------------------------
# Compilation and evaluation
# ---------------------------------------------------------------------------


def compile_pattern_calls(pattern: RawPattern) -> tuple[tuple[PredicateFn, ...], tuple[DirectiveFn, ...]]:
    """Validate a pattern's predicates and directives against the allow-list."""
    predicates = []
    for call in pattern.predicates:
        if call.is_directive or not call.name.endswith("?"):
            raise _fail(call, pattern, "is not a predicate (predicate names end with '?')")
        compiler = _PREDICATES.get(call.name)
        if compiler is None:
            raise _fail(call, pattern, f"is not a known predicate; known: {known_predicates()}")
        predicates.append(compiler(call, pattern))

    directives = []
    for call in pattern.directives:
        compiler = _DIRECTIVES.get(call.name)
        if compiler is None:
            raise _fail(call, pattern, f"is not a known directive; known: {known_directives()}")
        directives.append(compiler(call, pattern))

    return tuple(predicates), tuple(directives)


def evaluate_match(
    predicates: Sequence[PredicateFn],
    directives: Sequence[DirectiveFn],
    match: Match,
    source: bytes,
) -> bool:
    """Return whether ``match`` counts; directives run only once every predicate passed."""
    if not all(predicate(match, source) for predicate in predicates):
        return False
    for directive in directives:
        directive(match, source)
    return True
