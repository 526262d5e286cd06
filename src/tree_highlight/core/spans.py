import bisect
from collections.abc import Iterable
from typing import TypeVar

from tree_highlight.core.categories import HighlightCategory

T = TypeVar("T")

SpanList = list[tuple[int, int, HighlightCategory | str]]


def carve(prioritized: Iterable[tuple[int, int, T]]) -> list[tuple[int, int, T]]:
    """Reduce overlapping ranges to disjoint spans, highest priority first.

    Each range claims only the bytes no earlier range claimed, so a later
    range keeps whatever remainder is left, possibly split into pieces.

    From (in priority order):

        ..AAAA....
        BBBBBBBBB.
        .......CCC

    To:

        BBAAAABBCC
    """
    starts: list[int] = []
    ends: list[int] = []
    pieces: list[tuple[int, int, T]] = []

    for start, end, value in prioritized:
        if end <= start:
            continue
        free: list[tuple[int, int]] = []
        cursor = start
        i = bisect.bisect_right(starts, start) - 1
        if i >= 0 and ends[i] > cursor:
            cursor = ends[i]
        j = i + 1
        while j < len(starts) and starts[j] < end:
            if starts[j] > cursor:
                free.append((cursor, starts[j]))
            cursor = max(cursor, ends[j])
            j += 1
        if cursor < end:
            free.append((cursor, end))

        for free_start, free_end in free:
            k = bisect.bisect_left(starts, free_start)
            starts.insert(k, free_start)
            ends.insert(k, free_end)
            pieces.append((free_start, free_end, value))

    pieces.sort(key=lambda piece: piece[0])
    return pieces


def clamp(spans: Iterable[tuple[int, int, T]], lower: int, upper: int) -> list[tuple[int, int, T]]:
    result = []
    for start, end, value in spans:
        start = max(start, lower)
        end = min(end, upper)
        if start < end:
            result.append((start, end, value))
    return result


def shift(spans: Iterable[tuple[int, int, T]], offset: int) -> list[tuple[int, int, T]]:
    return [(start + offset, end + offset, value) for start, end, value in spans]
