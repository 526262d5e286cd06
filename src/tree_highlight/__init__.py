from tree_highlight.core.cancellation import CancellationToken
from tree_highlight.core.categories import HighlightCategory
from tree_highlight.core.errors import (
    GrammarMissing,
    HighlightError,
    MalformedPattern,
    ParseFailure,
    QueryError,
    QuerySyntaxError,
)
from tree_highlight.core.highlighter import SyntaxHighlighter, highlight, highlight_or_plain
from tree_highlight.core.languages import LanguageConfig, LanguageRegistry, default_registry
from tree_highlight.core.patterns import clear_pattern_cache, load_pattern_set

__all__ = [
    "CancellationToken",
    "GrammarMissing",
    "HighlightCategory",
    "HighlightError",
    "LanguageConfig",
    "LanguageRegistry",
    "MalformedPattern",
    "ParseFailure",
    "QueryError",
    "QuerySyntaxError",
    "SyntaxHighlighter",
    "clear_pattern_cache",
    "default_registry",
    "highlight",
    "highlight_or_plain",
    "load_pattern_set",
]
