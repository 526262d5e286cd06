import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import cast

from tree_sitter import Language
from tree_sitter_language_pack import SupportedLanguage, get_language

from tree_highlight.core.errors import GrammarMissing

logger = logging.getLogger(__name__)

QUERIES_DIR = Path(__file__).parent.parent / "queries"
QUERY_PATH_ENV = "TREE_HIGHLIGHT_QUERY_PATH"
QUERY_KINDS = ("highlights", "injections")

_LANGUAGE_ALIASES = {
    "htm": "html",
    "javascript": "javascript",
    "js": "javascript",
    "jsx": "javascript",
    "mysql": "sql",
    "pgsql": "sql",
    "phpdoc": "jsdoc",
    "postgres": "sql",
    "postgresql": "sql",
    "py": "python",
    "python3": "python",
    "re": "regex",
    "sqlite": "sql",
    "xhtml": "html",
}

_EXTENSION_LANGUAGE_MAP = {
    ".css": "css",
    ".htm": "html",
    ".html": "html",
    ".js": "javascript",
    ".cjs": "javascript",
    ".mjs": "javascript",
    ".jsx": "javascript",
    ".json": "json",
    ".php": "php",
    ".phtml": "php",
    ".py": "python",
    ".sql": "sql",
}


@dataclass(frozen=True)
class LanguageConfig:
    """A grammar plus the query sources used to highlight it.

    ``grammar`` names a tree-sitter-language-pack grammar; it defaults to ``name``.
    """

    name: str
    highlights: str
    injections: str = ""
    grammar: str = ""
    aliases: tuple[str, ...] = field(default=())

    @property
    def grammar_name(self) -> str:
        return self.grammar or self.name

    def query(self, kind: str) -> str:
        if kind == "highlights":
            return self.highlights
        if kind == "injections":
            return self.injections
        raise ValueError(f"Unknown query kind '{kind}'. Supported: {list(QUERY_KINDS)}")


def query_search_path() -> list[Path]:
    raw = os.getenv(QUERY_PATH_ENV, "")
    return [Path(entry) for entry in raw.split(os.pathsep) if entry.strip()]


def read_query_source(language: str, kind: str, search_path: list[Path] | None = None) -> str | None:
    """Concatenate override query files (in search-path order) ahead of the bundled one.

    Overrides come first so their patterns take precedence under first-wins resolution.
    Returns None when no file exists anywhere.
    """
    if search_path is None:
        search_path = query_search_path()
    sources = []
    for directory in [*search_path, QUERIES_DIR]:
        query_path = directory / language / f"{kind}.scm"
        if query_path.is_file():
            logger.debug("Loading %s query for %s from %s", kind, language, query_path)
            sources.append(query_path.read_text(encoding="utf-8"))
    if not sources:
        return None
    return "\n".join(sources)


def bundled_languages() -> list[str]:
    return sorted(path.parent.name for path in QUERIES_DIR.glob("*/highlights.scm"))


def load_grammar(config: LanguageConfig) -> Language:
    try:
        return get_language(cast(SupportedLanguage, config.grammar_name))
    except (LookupError, ImportError, ValueError, OSError, RuntimeError) as exc:
        raise GrammarMissing(config.name, f"grammar '{config.grammar_name}' is unavailable ({exc})") from exc


class LanguageRegistry:
    """Language id (or alias) to ``LanguageConfig``.

    Bundled languages are built lazily from the query directories the first
    time they are requested. Registration is the only mutation and is guarded
    by a lock; lookups of an already-built config take no lock.
    """

    def __init__(self, include_bundled: bool = True) -> None:
        self._configs: dict[str, LanguageConfig] = {}
        self._aliases = dict(_LANGUAGE_ALIASES)
        self._include_bundled = include_bundled
        self._lock = threading.Lock()

    def register(self, config: LanguageConfig) -> None:
        with self._lock:
            self._configs[config.name] = config
            self._aliases.pop(config.name.lower(), None)
            for alias in config.aliases:
                self._aliases[alias.lower()] = config.name

    def normalize(self, language: str) -> str:
        normalized = language.strip().lower()
        if normalized in self._configs:
            return normalized
        return self._aliases.get(normalized, normalized)

    def names(self) -> list[str]:
        names = set(self._configs)
        if self._include_bundled:
            names.update(bundled_languages())
            for directory in query_search_path():
                names.update(path.parent.name for path in directory.glob("*/highlights.scm"))
        return sorted(names)

    def get(self, language: str) -> LanguageConfig:
        name = self.normalize(language)
        config = self._configs.get(name)
        if config is not None:
            return config
        if not self._include_bundled:
            raise GrammarMissing(language, "language is not registered")
        with self._lock:
            config = self._configs.get(name)
            if config is None:
                config = self._build_bundled(language, name)
                self._configs[name] = config
        return config

    def _build_bundled(self, language: str, name: str) -> LanguageConfig:
        highlights = read_query_source(name, "highlights")
        if highlights is None:
            raise GrammarMissing(language, "no highlights query found")
        injections = read_query_source(name, "injections") or ""
        return LanguageConfig(name=name, highlights=highlights, injections=injections)


_default_registry = LanguageRegistry()


def default_registry() -> LanguageRegistry:
    return _default_registry


def detect_language_from_path(file_path: Path) -> str:
    suffix = file_path.suffix.lower()
    if suffix in _EXTENSION_LANGUAGE_MAP:
        return _EXTENSION_LANGUAGE_MAP[suffix]
    raise ValueError(f"Unsupported file extension: {suffix}")


def resolve_language(language: str | None, file_path: Path | None) -> str:
    if language:
        return language
    if file_path:
        return detect_language_from_path(file_path)
    raise ValueError("Language must be provided when no file path is available.")
