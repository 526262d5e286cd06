"""Unit tests for merging host spans with injected layers."""

import pytest
from pydantic import ValidationError

from tree_highlight.core.assembler import assemble_layer, to_highlight_spans
from tree_highlight.core.categories import HighlightCategory
from tree_highlight.models import HighlightSpan


class TestAssembleLayer:
    def test_without_injections_host_is_unchanged(self) -> None:
        host = [(0, 4, "string")]
        assert assemble_layer(host, []) is host

    def test_injected_spans_supersede_host_bytes(self) -> None:
        host = [(0, 20, "string")]
        injected = [[(5, 11, "keyword"), (12, 13, "number")]]
        assert assemble_layer(host, injected) == [
            (0, 5, "string"),
            (5, 11, "keyword"),
            (11, 12, "string"),
            (12, 13, "number"),
            (13, 20, "string"),
        ]

    def test_earlier_injection_wins_over_later(self) -> None:
        assert assemble_layer([], [[(0, 4, "tag")], [(2, 6, "keyword")]]) == [(0, 4, "tag"), (4, 6, "keyword")]


class TestToHighlightSpans:
    def test_clamps_to_range_and_builds_models(self) -> None:
        spans = to_highlight_spans([(0, 4, HighlightCategory.KEYWORD), (6, 9, "custom")], 2, 8)
        assert [(s.start, s.end, s.category) for s in spans] == [
            (2, 4, HighlightCategory.KEYWORD),
            (6, 8, "custom"),
        ]

    def test_span_model_rejects_empty_range(self) -> None:
        with pytest.raises(ValidationError):
            HighlightSpan(start=3, end=3, category="keyword")
