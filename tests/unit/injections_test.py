"""Unit tests for injection grouping, virtual documents and split-back."""

import logging

import pytest

from tree_highlight.core.cancellation import CancellationToken
from tree_highlight.core.errors import GrammarMissing
from tree_highlight.core.injections import (
    InjectionGroup,
    InjectionSite,
    VirtualDocument,
    group_sites,
    highlight_groups,
)
from tree_highlight.core.spans import SpanList


def _site(ranges: tuple[tuple[int, int], ...], language: str | None, combined: bool = False) -> InjectionSite:
    return InjectionSite(content_ranges=ranges, language=language, combined=combined, pattern_index=0)


class TestGroupSites:
    def test_combined_sites_share_one_group_per_language(self) -> None:
        sites = [
            _site(((10, 14),), "html", combined=True),
            _site(((0, 5),), "HTML", combined=True),
            _site(((20, 25),), "css", combined=True),
        ]
        groups = group_sites(sites, str.lower)
        assert groups == [
            InjectionGroup(language="html", ranges=((0, 5), (10, 14)), combined=True),
            InjectionGroup(language="css", ranges=((20, 25),), combined=True),
        ]

    def test_touching_combined_ranges_are_merged(self) -> None:
        groups = group_sites([_site(((0, 5), (5, 9), (3, 4)), "html", combined=True)], str.lower)
        assert groups[0].ranges == ((0, 9),)

    def test_separate_sites_stay_separate(self) -> None:
        groups = group_sites([_site(((0, 5),), "sql"), _site(((8, 12),), "sql")], str.lower)
        assert [g.ranges for g in groups] == [((0, 5),), ((8, 12),)]
        assert not any(g.combined for g in groups)

    def test_sites_without_language_are_dropped(self) -> None:
        assert group_sites([_site(((0, 5),), None)], str.lower) == []


class TestVirtualDocument:
    def test_concatenates_without_separators(self) -> None:
        source = b"<div><?php echo 1; ?></div>"
        document = VirtualDocument(source, [(0, 5), (21, 27)])
        assert document.text == b"<div></div>"
        assert [(f.virtual_start, f.original_start, f.length) for f in document.fragments] == [
            (0, 0, 5),
            (5, 21, 6),
        ]

    def test_spans_map_back_into_their_fragments(self) -> None:
        source = b"<div><?php echo 1; ?></div>"
        document = VirtualDocument(source, [(0, 5), (21, 27)])
        spans: SpanList = [(1, 4, "tag"), (7, 10, "tag")]
        assert document.to_original(spans) == [(1, 4, "tag"), (23, 26, "tag")]

    def test_span_crossing_a_join_is_cut(self) -> None:
        document = VirtualDocument(b"aaaXXXbbb", [(0, 3), (6, 9)])
        assert document.to_original([(1, 5, "string")]) == [(1, 3, "string"), (6, 8, "string")]


class TestHighlightGroups:
    def test_separate_group_is_shifted_into_the_document(self) -> None:
        source = b"xx SELECT yy"

        def layer(text: bytes, language: str) -> SpanList:
            assert (text, language) == (b"SELECT", "sql")
            return [(0, 6, "keyword")]

        layers = highlight_groups([InjectionGroup("sql", ((3, 9),), False)], source, layer)
        assert layers == [[(3, 9, "keyword")]]

    def test_combined_group_is_highlighted_once(self) -> None:
        source = b"<b>..</b>"
        calls = []

        def layer(text: bytes, language: str) -> SpanList:
            calls.append(text)
            return [(0, 3, "tag"), (3, 7, "tag")]

        layers = highlight_groups([InjectionGroup("html", ((0, 3), (5, 9)), True)], source, layer)
        assert calls == [b"<b></b>"]
        assert layers == [[(0, 3, "tag"), (5, 9, "tag")]]

    def test_unknown_language_yields_no_spans(self, caplog: pytest.LogCaptureFixture) -> None:
        def layer(text: bytes, language: str) -> SpanList:
            raise GrammarMissing(language)

        with caplog.at_level(logging.DEBUG, logger="tree_highlight.core.injections"):
            layers = highlight_groups([InjectionGroup("klingon", ((0, 2),), False)], b"ab", layer)
        assert layers == [[]]
        assert "klingon" in caplog.text

    def test_cancellation_stops_between_groups(self) -> None:
        token = CancellationToken()

        def layer(text: bytes, language: str) -> SpanList:
            token.cancel()
            return [(0, 1, "keyword")]

        groups = [InjectionGroup("sql", ((0, 1),), False), InjectionGroup("sql", ((2, 3),), False)]
        assert highlight_groups(groups, b"a b", layer, token) == [[(0, 1, "keyword")]]
