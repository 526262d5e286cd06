from collections.abc import Sequence
from itertools import chain

from tree_highlight.core.spans import SpanList, carve, clamp
from tree_highlight.models import HighlightSpan


def assemble_layer(host: SpanList, injected: Sequence[SpanList]) -> SpanList:
    """Merge a layer's own spans with the spans of its injections.

    Injected spans win every byte they cover, earlier injections over later
    ones; host spans keep the bytes left over.
    """
    if not injected:
        return host
    return carve(chain(chain.from_iterable(injected), host))


def to_highlight_spans(spans: SpanList, lower: int, upper: int) -> list[HighlightSpan]:
    return [HighlightSpan(start=start, end=end, category=category) for start, end, category in clamp(spans, lower, upper)]
