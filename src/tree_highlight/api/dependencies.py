from tree_highlight.core.languages import LanguageRegistry, default_registry


def get_registry() -> LanguageRegistry:
    """The process-wide registry; tests swap it through ``dependency_overrides``."""
    return default_registry()
