"""Unit tests for query matching and first-declared-wins resolution."""

import pytest

from tree_highlight.core import resolver
from tree_highlight.core.cancellation import CancellationToken
from tree_highlight.core.categories import HighlightCategory
from tree_highlight.core.patterns import PatternSet
from tree_highlight.core.resolver import Candidate, iter_matches, resolve_candidates


class _RecordingCursor:
    calls: list[dict] = []

    def __init__(self, query: object) -> None:
        self.query = query

    def matches(self, root: object, **kwargs: object) -> list:
        self.calls.append(kwargs)
        return []


class TestIterMatches:
    @pytest.fixture(autouse=True)
    def _fake_cursor(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _RecordingCursor.calls = []
        monkeypatch.setattr(resolver, "QueryCursor", _RecordingCursor)

    def _pattern_set(self) -> PatternSet:
        return PatternSet(language="js", kind="highlights", grammar=None, query=object(), patterns=())

    def test_cancellation_reaches_the_query_cursor(self) -> None:
        token = CancellationToken()
        assert list(iter_matches(self._pattern_set(), object(), b"", cancel=token)) == []
        (kwargs,) = _RecordingCursor.calls
        progress = kwargs["progress_callback"]
        assert progress(0) is False
        token.cancel()
        assert progress(0) is True

    def test_no_progress_callback_without_a_token(self) -> None:
        list(iter_matches(self._pattern_set(), object(), b""))
        assert _RecordingCursor.calls == [{}]


class TestResolveCandidates:
    def test_first_declared_pattern_wins(self) -> None:
        candidates = [
            Candidate(0, 5, HighlightCategory.VARIABLE, pattern_index=1),
            Candidate(0, 5, HighlightCategory.FUNCTION_BUILTIN, pattern_index=0),
        ]
        assert resolve_candidates(candidates) == [(0, 5, HighlightCategory.FUNCTION_BUILTIN)]

    def test_flipping_declaration_order_flips_the_winner(self) -> None:
        candidates = [
            Candidate(0, 5, HighlightCategory.VARIABLE, pattern_index=0),
            Candidate(0, 5, HighlightCategory.FUNCTION_BUILTIN, pattern_index=1),
        ]
        assert resolve_candidates(candidates) == [(0, 5, HighlightCategory.VARIABLE)]

    def test_outer_node_from_earlier_pattern_hides_inner_captures(self) -> None:
        candidates = [
            Candidate(4, 6, HighlightCategory.VARIABLE, pattern_index=3),
            Candidate(0, 10, HighlightCategory.STRING, pattern_index=0),
        ]
        assert resolve_candidates(candidates) == [(0, 10, HighlightCategory.STRING)]

    def test_later_outer_pattern_keeps_uncovered_bytes(self) -> None:
        candidates = [
            Candidate(0, 10, HighlightCategory.STRING, pattern_index=2),
            Candidate(3, 5, HighlightCategory.ESCAPE, pattern_index=0),
        ]
        assert resolve_candidates(candidates) == [
            (0, 3, HighlightCategory.STRING),
            (3, 5, HighlightCategory.ESCAPE),
            (5, 10, HighlightCategory.STRING),
        ]

    def test_inner_capture_of_one_pattern_sits_on_top(self) -> None:
        candidates = [
            Candidate(2, 4, "b", pattern_index=0),
            Candidate(0, 3, "a", pattern_index=0),
            Candidate(0, 6, "c", pattern_index=0),
        ]
        assert resolve_candidates(candidates) == [(0, 2, "a"), (2, 4, "b"), (4, 6, "c")]

    def test_outer_capture_keeps_the_bytes_around_a_nested_one(self) -> None:
        candidates = [
            Candidate(0, 6, HighlightCategory.VARIABLE, pattern_index=0),
            Candidate(0, 3, HighlightCategory.FUNCTION, pattern_index=0),
        ]
        assert resolve_candidates(candidates) == [
            (0, 3, HighlightCategory.FUNCTION),
            (3, 6, HighlightCategory.VARIABLE),
        ]

    def test_unknown_capture_names_pass_through(self) -> None:
        assert resolve_candidates([Candidate(0, 1, "markup.heading", pattern_index=0)]) == [(0, 1, "markup.heading")]

    def test_no_candidates(self) -> None:
        assert resolve_candidates([]) == []
