"""Shared fixtures and helpers for tests."""

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path

import pytest

from tree_highlight.core.highlighter import MAX_DEPTH_ENV
from tree_highlight.core.languages import QUERY_PATH_ENV, LanguageConfig, LanguageRegistry
from tree_highlight.core.patterns import clear_pattern_cache

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Isolation: no override directories, no compiled patterns shared across tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _isolated_engine(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.delenv(QUERY_PATH_ENV, raising=False)
    monkeypatch.delenv(MAX_DEPTH_ENV, raising=False)
    clear_pattern_cache()
    yield
    clear_pattern_cache()


# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FakeNode:
    """Just enough of a tree-sitter node for predicates and span mapping."""

    start_byte: int
    end_byte: int
    type: str = "identifier"


@pytest.fixture
def node_at() -> Callable[[bytes, bytes], FakeNode]:
    """Return a factory building a node over the first occurrence of ``needle`` in ``source``."""

    def _node_at(source: bytes, needle: bytes) -> FakeNode:
        start = source.index(needle)
        return FakeNode(start, start + len(needle))

    return _node_at


@pytest.fixture
def registry() -> LanguageRegistry:
    """An empty registry: tests register the languages they need with inline queries."""
    return LanguageRegistry(include_bundled=False)


@pytest.fixture
def register(registry: LanguageRegistry) -> Callable[..., LanguageConfig]:
    """Return a helper registering an inline-query language on ``registry``."""

    def _register(name: str, highlights: str, injections: str = "", grammar: str = "") -> LanguageConfig:
        config = LanguageConfig(name=name, highlights=highlights, injections=injections, grammar=grammar)
        registry.register(config)
        return config

    return _register


@pytest.fixture
def make_node() -> type[FakeNode]:
    return FakeNode
