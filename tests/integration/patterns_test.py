"""Integration tests for compiling query sources against real grammars."""

from collections.abc import Callable

import pytest
from tree_sitter_language_pack import get_language

from tree_highlight.core.errors import GrammarMissing, MalformedPattern, QuerySyntaxError
from tree_highlight.core.languages import LanguageConfig, LanguageRegistry
from tree_highlight.core.patterns import compile_pattern_set, load_pattern_set

Register = Callable[..., LanguageConfig]


class TestCompilePatternSet:
    def test_pattern_indices_follow_declaration_order(self) -> None:
        source = """
        ; builtins first
        ((identifier) @function.builtin
          (#any-of? @function.builtin "print" "println"))

        (call_expression function: (identifier) @function)
        "return" @keyword
        (identifier) @variable
        """
        pattern_set = compile_pattern_set("javascript", get_language("javascript"), source)
        assert len(pattern_set) == 4
        assert pattern_set.query is not None
        assert pattern_set.query.pattern_count == 4
        assert [p.captures for p in pattern_set.patterns] == [
            ("function.builtin",),
            ("function",),
            ("keyword",),
            ("variable",),
        ]
        assert pattern_set.patterns[0].line == 3

    def test_unknown_node_type_is_a_syntax_error(self) -> None:
        with pytest.raises(QuerySyntaxError, match="javascript highlights"):
            compile_pattern_set("javascript", get_language("javascript"), "(comment) @comment\n(not_a_node) @x")

    def test_empty_source_has_no_query(self) -> None:
        pattern_set = compile_pattern_set("javascript", get_language("javascript"), "", kind="injections")
        assert pattern_set.query is None
        assert len(pattern_set) == 0


class TestLoadPatternSet:
    def test_compiled_once_per_process(self, registry: LanguageRegistry, register: Register) -> None:
        register("js", "(identifier) @variable", grammar="javascript")
        assert load_pattern_set("js", registry=registry) is load_pattern_set("JS", registry=registry)

    def test_failure_is_remembered(self, registry: LanguageRegistry, register: Register) -> None:
        register("bad", "((identifier) @x (#frobnicate? @x))", grammar="javascript")
        with pytest.raises(MalformedPattern) as first:
            load_pattern_set("bad", registry=registry)
        with pytest.raises(MalformedPattern) as second:
            load_pattern_set("bad", registry=registry)
        assert first.value is second.value

    def test_empty_highlights_is_grammar_missing(self, registry: LanguageRegistry, register: Register) -> None:
        register("blank", "  ; nothing\n", grammar="javascript")
        with pytest.raises(GrammarMissing, match="empty"):
            load_pattern_set("blank", registry=registry)

    def test_missing_grammar(self, registry: LanguageRegistry, register: Register) -> None:
        register("ghost", "(identifier) @variable", grammar="no-such-grammar")
        with pytest.raises(GrammarMissing, match="no-such-grammar"):
            load_pattern_set("ghost", registry=registry)

    def test_missing_injections_query_is_empty(self, registry: LanguageRegistry, register: Register) -> None:
        register("js", "(identifier) @variable", grammar="javascript")
        assert len(load_pattern_set("js", "injections", registry)) == 0
