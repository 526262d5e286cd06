"""Find regions of a document written in another language and highlight them.

An injection site comes from a match of the language's injections query:
``@injection.content`` marks the region, the language is either set
statically (``#set! injection.language "html"``), read from another capture
(``#set-from! injection.language @_delimiter``) or taken from an
``@injection.language`` capture. Sites flagged ``injection.combined`` are
grouped per language and parsed as one virtual document.
"""

from __future__ import annotations

import bisect
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from tree_sitter import Node

from tree_highlight.core.cancellation import CancellationToken
from tree_highlight.core.errors import HighlightError
from tree_highlight.core.patterns import PatternSet
from tree_highlight.core.resolver import iter_matches
from tree_highlight.core.spans import SpanList, shift

logger = logging.getLogger(__name__)

CONTENT_CAPTURE = "injection.content"
LANGUAGE_CAPTURE = "injection.language"
LANGUAGE_KEY = "injection.language"
COMBINED_KEY = "injection.combined"

LayerHighlighter = Callable[[bytes, str], SpanList]


@dataclass(frozen=True)
class InjectionSite:
    content_ranges: tuple[tuple[int, int], ...]
    language: str | None
    combined: bool
    pattern_index: int


@dataclass(frozen=True)
class InjectionGroup:
    """Ranges highlighted together under one language; a single range unless combined."""

    language: str
    ranges: tuple[tuple[int, int], ...]
    combined: bool


def find_injection_sites(
    pattern_set: PatternSet,
    root: Node,
    source: bytes,
    cancel: CancellationToken | None = None,
) -> list[InjectionSite]:
    sites = []
    for match in iter_matches(pattern_set, root, source, cancel=cancel):
        ranges = tuple((start, end) for start, end in match.ranges(CONTENT_CAPTURE) if end > start)
        if not ranges:
            continue
        language = match.metadata.get(LANGUAGE_KEY)
        if language is None:
            texts = match.texts(LANGUAGE_CAPTURE, source)
            language = texts[0].strip() if texts else None
        sites.append(
            InjectionSite(
                content_ranges=ranges,
                language=language or None,
                combined=COMBINED_KEY in match.metadata,
                pattern_index=match.pattern_index,
            )
        )
    return sites


def group_sites(sites: Sequence[InjectionSite], normalize: Callable[[str], str]) -> list[InjectionGroup]:
    """Group sites by injection identity: combined sites share one group per language.

    Groups keep the order in which their first site was found.
    """
    entries: list[tuple[str, bool, list[tuple[int, int]]]] = []
    combined_ranges: dict[str, list[tuple[int, int]]] = {}

    for site in sites:
        if site.language is None:
            logger.debug("Skipping injection from pattern %d: no language", site.pattern_index)
            continue
        language = normalize(site.language)
        if site.combined:
            ranges = combined_ranges.get(language)
            if ranges is None:
                ranges = combined_ranges[language] = []
                entries.append((language, True, ranges))
            ranges.extend(site.content_ranges)
        else:
            entries.extend((language, False, [content_range]) for content_range in site.content_ranges)

    return [
        InjectionGroup(
            language=language,
            ranges=_merge_ranges(ranges) if combined else tuple(ranges),
            combined=combined,
        )
        for language, combined, ranges in entries
    ]


def _merge_ranges(ranges: list[tuple[int, int]]) -> tuple[tuple[int, int], ...]:
    merged: list[tuple[int, int]] = []
    for start, end in sorted(ranges):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return tuple(merged)


@dataclass(frozen=True)
class Fragment:
    virtual_start: int
    original_start: int
    length: int

    @property
    def virtual_end(self) -> int:
        return self.virtual_start + self.length


class VirtualDocument:
    """Disjoint ranges of a document concatenated into one buffer, with no separators.

    ``fragments`` maps every virtual offset back to the original range it came
    from; it is only consulted while splitting spans back.
    """

    def __init__(self, source: bytes, ranges: Sequence[tuple[int, int]]) -> None:
        chunks = []
        fragments = []
        virtual_start = 0
        for start, end in ranges:
            chunks.append(source[start:end])
            fragments.append(Fragment(virtual_start, start, end - start))
            virtual_start += end - start
        self.text = b"".join(chunks)
        self.fragments = tuple(fragments)
        self._virtual_starts = [fragment.virtual_start for fragment in fragments]

    def to_original(self, spans: SpanList) -> SpanList:
        """Map virtual spans back; a span crossing a join is cut at the join."""
        result: SpanList = []
        for start, end, category in spans:
            i = max(bisect.bisect_right(self._virtual_starts, start) - 1, 0)
            while i < len(self.fragments) and self.fragments[i].virtual_start < end:
                fragment = self.fragments[i]
                piece_start = max(start, fragment.virtual_start)
                piece_end = min(end, fragment.virtual_end)
                if piece_start < piece_end:
                    offset = fragment.original_start - fragment.virtual_start
                    result.append((piece_start + offset, piece_end + offset, category))
                i += 1
        return result


def highlight_groups(
    groups: Sequence[InjectionGroup],
    source: bytes,
    highlight_layer: LayerHighlighter,
    cancel: CancellationToken | None = None,
) -> list[SpanList]:
    """Highlight every group through ``highlight_layer`` and return spans in document coordinates.

    A group whose language cannot be loaded or parsed yields no spans.
    """
    layers = []
    for group in groups:
        if cancel is not None and cancel.cancelled:
            logger.debug("Cancelled before injection group %s", group.language)
            break
        if group.combined:
            document = VirtualDocument(source, group.ranges)
            spans = _highlight_or_skip(highlight_layer, document.text, group.language)
            layers.append(document.to_original(spans))
        else:
            start, end = group.ranges[0]
            spans = _highlight_or_skip(highlight_layer, source[start:end], group.language)
            layers.append(shift(spans, start))
    return layers


def _highlight_or_skip(highlight_layer: LayerHighlighter, text: bytes, language: str) -> SpanList:
    try:
        return highlight_layer(text, language)
    except HighlightError as exc:
        logger.debug("No injected highlighting for %s: %s", language, exc)
        return []


def static_injection_languages(pattern_set: PatternSet) -> list[str]:
    """Languages an injections query names literally; dynamic ones are only known per document."""
    languages = []
    for pattern in pattern_set.patterns:
        language = pattern.static_settings().get(LANGUAGE_KEY)
        if language and language not in languages:
            languages.append(language)
    return languages
