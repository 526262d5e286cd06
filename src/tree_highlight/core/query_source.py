"""Split tree-sitter query source into ordered patterns.

Tree-sitter only ever sees node shapes: every ``(#name ...)`` form is pulled
out of the source here, blanked in place so row/column positions in any
tree-sitter error still point at the original text, and attached to the
top-level pattern it was written in. Pattern order is the order of the source.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass, field
from typing import Literal

from tree_highlight.core.errors import MalformedPattern, QuerySyntaxError

TokenKind = Literal["open", "close", "string", "capture", "predicate", "symbol"]
ArgKind = Literal["capture", "string", "symbol"]

_OPENERS = {"(": ")", "[": "]"}
_CLOSERS = {")", "]"}
_DELIMITERS = frozenset('()[]";@#')
_QUANTIFIERS = frozenset({"*", "+", "?"})
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", '"': '"', "\\": "\\"}


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    start: int
    end: int


@dataclass(frozen=True)
class PredicateArg:
    kind: ArgKind
    value: str


@dataclass(frozen=True)
class PredicateCall:
    name: str
    args: tuple[PredicateArg, ...]
    line: int
    column: int

    @property
    def is_directive(self) -> bool:
        return self.name.endswith("!")


@dataclass(frozen=True)
class RawPattern:
    index: int
    start: int
    line: int
    column: int
    captures: tuple[str, ...]
    predicates: tuple[PredicateCall, ...]
    directives: tuple[PredicateCall, ...]


@dataclass(frozen=True)
class ParsedQuery:
    patterns: tuple[RawPattern, ...]
    node_source: str


class _LineIndex:
    def __init__(self, source: str) -> None:
        self._starts = [0]
        for offset, char in enumerate(source):
            if char == "\n":
                self._starts.append(offset + 1)

    def position(self, offset: int) -> tuple[int, int]:
        """1-based (line, column) of a character offset."""
        line = bisect.bisect_right(self._starts, offset) - 1
        return line + 1, offset - self._starts[line] + 1


def tokenize(source: str) -> list[Token]:
    lines = _LineIndex(source)
    tokens: list[Token] = []
    pos = 0
    length = len(source)

    def _fail(message: str, offset: int) -> QuerySyntaxError:
        line, column = lines.position(offset)
        return QuerySyntaxError(message, line, column)

    while pos < length:
        char = source[pos]
        if char.isspace():
            pos += 1
        elif char == ";":
            newline = source.find("\n", pos)
            pos = length if newline == -1 else newline + 1
        elif char in _OPENERS:
            tokens.append(Token("open", char, pos, pos + 1))
            pos += 1
        elif char in _CLOSERS:
            tokens.append(Token("close", char, pos, pos + 1))
            pos += 1
        elif char == '"':
            start = pos
            pos += 1
            chars: list[str] = []
            while True:
                if pos >= length:
                    raise _fail("Unterminated string literal", start)
                current = source[pos]
                if current == '"':
                    pos += 1
                    break
                if current == "\\":
                    if pos + 1 >= length:
                        raise _fail("Unterminated string literal", start)
                    escaped = source[pos + 1]
                    chars.append(_ESCAPES.get(escaped, escaped))
                    pos += 2
                    continue
                chars.append(current)
                pos += 1
            tokens.append(Token("string", "".join(chars), start, pos))
        elif char in "@#":
            start = pos
            pos += 1
            while pos < length and not source[pos].isspace() and source[pos] not in _DELIMITERS:
                pos += 1
            name = source[start + 1 : pos]
            if not name:
                raise _fail(f"Expected a name after '{char}'", start)
            tokens.append(Token("capture" if char == "@" else "predicate", name, start, pos))
        else:
            start = pos
            while pos < length and not source[pos].isspace() and source[pos] not in _DELIMITERS:
                pos += 1
            tokens.append(Token("symbol", source[start:pos], start, pos))
    return tokens


@dataclass
class _PatternBuilder:
    start: int
    captures: list[str] = field(default_factory=list)
    predicates: list[PredicateCall] = field(default_factory=list)
    directives: list[PredicateCall] = field(default_factory=list)

    def add_capture(self, name: str) -> None:
        if name not in self.captures:
            self.captures.append(name)


def parse_query_source(source: str) -> ParsedQuery:
    """Tokenize ``source`` and group its tokens into top-level patterns.

    Raises ``QuerySyntaxError`` for unbalanced brackets and stray tokens and
    ``MalformedPattern`` for a predicate written outside any pattern.
    """
    tokens = tokenize(source)
    lines = _LineIndex(source)
    blanked = list(source)
    builders: list[_PatternBuilder] = []
    stack: list[Token] = []
    current: _PatternBuilder | None = None
    i = 0

    while i < len(tokens):
        token = tokens[i]
        depth = len(stack)

        if token.kind == "open" and i + 1 < len(tokens) and tokens[i + 1].kind == "predicate":
            if depth == 0 or current is None:
                line, _ = lines.position(token.start)
                raise MalformedPattern(f"predicate #{tokens[i + 1].value} is outside of any pattern", line=line)
            call, i = _read_predicate(tokens, i, lines)
            end = tokens[i - 1].end
            for offset in range(token.start, end):
                if blanked[offset] != "\n":
                    blanked[offset] = " "
            if call.is_directive:
                current.directives.append(call)
            else:
                current.predicates.append(call)
            continue

        if depth == 0:
            if token.kind == "close":
                line, column = lines.position(token.start)
                raise QuerySyntaxError(f"Unexpected '{token.value}'", line, column)
            if token.kind == "predicate":
                line, column = lines.position(token.start)
                raise QuerySyntaxError(f"Unexpected predicate #{token.value}", line, column)
            attaches = token.kind == "capture" or (token.kind == "symbol" and token.value in _QUANTIFIERS)
            if attaches:
                if current is None:
                    line, column = lines.position(token.start)
                    raise QuerySyntaxError(f"'{token.value}' does not follow a pattern", line, column)
            else:
                current = _PatternBuilder(start=token.start)
                builders.append(current)

        if token.kind == "capture" and current is not None:
            current.add_capture(token.value)
        elif token.kind == "predicate":
            line, column = lines.position(token.start)
            raise QuerySyntaxError(f"Predicate #{token.value} must open a parenthesized form", line, column)
        elif token.kind == "open":
            stack.append(token)
        elif token.kind == "close":
            opener = stack.pop()
            if _OPENERS[opener.value] != token.value:
                line, column = lines.position(token.start)
                raise QuerySyntaxError(f"Mismatched '{token.value}' for '{opener.value}'", line, column)
        i += 1

    if stack:
        line, column = lines.position(stack[-1].start)
        raise QuerySyntaxError(f"Unclosed '{stack[-1].value}'", line, column)

    patterns = []
    for index, builder in enumerate(builders):
        line, column = lines.position(builder.start)
        patterns.append(
            RawPattern(
                index=index,
                start=builder.start,
                line=line,
                column=column,
                captures=tuple(builder.captures),
                predicates=tuple(builder.predicates),
                directives=tuple(builder.directives),
            )
        )
    return ParsedQuery(patterns=tuple(patterns), node_source="".join(blanked))


def _read_predicate(tokens: list[Token], i: int, lines: _LineIndex) -> tuple[PredicateCall, int]:
    """Read ``( #name arg* )`` starting at the opening paren; return the call and the next index."""
    opener = tokens[i]
    name_token = tokens[i + 1]
    args: list[PredicateArg] = []
    j = i + 2
    while True:
        if j >= len(tokens):
            line, column = lines.position(opener.start)
            raise QuerySyntaxError(f"Unclosed predicate #{name_token.value}", line, column)
        token = tokens[j]
        if token.kind == "close":
            if token.value != ")":
                line, column = lines.position(token.start)
                raise QuerySyntaxError(f"Mismatched '{token.value}' in predicate", line, column)
            break
        if token.kind in ("open", "predicate"):
            line, column = lines.position(token.start)
            raise QuerySyntaxError(f"Unexpected '{token.value}' in predicate #{name_token.value}", line, column)
        args.append(PredicateArg(kind=token.kind, value=token.value))  # type: ignore[arg-type]
        j += 1
    line, column = lines.position(opener.start)
    return PredicateCall(name=name_token.value, args=tuple(args), line=line, column=column), j + 1
