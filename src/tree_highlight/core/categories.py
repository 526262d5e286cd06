from enum import Enum


class HighlightCategory(str, Enum):
    """Capture names the renderer is expected to map to a style.

    Capture names outside this set are passed through unchanged as plain strings.
    """

    ATTRIBUTE = "attribute"
    BOOLEAN = "boolean"
    COMMENT = "comment"
    COMMENT_DOC = "comment.doc"
    CONSTANT = "constant"
    CONSTANT_BUILTIN = "constant.builtin"
    CONSTRUCTOR = "constructor"
    EMBEDDED = "embedded"
    ESCAPE = "string.escape"
    FUNCTION = "function"
    FUNCTION_BUILTIN = "function.builtin"
    FUNCTION_METHOD = "function.method"
    KEYWORD = "keyword"
    LABEL = "label"
    NUMBER = "number"
    OPERATOR = "operator"
    PROPERTY = "property"
    PUNCTUATION = "punctuation"
    PUNCTUATION_BRACKET = "punctuation.bracket"
    PUNCTUATION_DELIMITER = "punctuation.delimiter"
    PUNCTUATION_SPECIAL = "punctuation.special"
    STRING = "string"
    STRING_REGEX = "string.regex"
    STRING_SPECIAL = "string.special"
    TAG = "tag"
    TAG_ATTRIBUTE = "tag.attribute"
    TYPE = "type"
    TYPE_BUILTIN = "type.builtin"
    VARIABLE = "variable"
    VARIABLE_BUILTIN = "variable.builtin"
    VARIABLE_PARAMETER = "variable.parameter"

    def __str__(self) -> str:
        return self.value


_BY_NAME: dict[str, HighlightCategory] = {member.value: member for member in HighlightCategory}

_INTERNAL_PREFIXES = ("_", "injection.", "local.")


def resolve_category(capture_name: str) -> HighlightCategory | str:
    return _BY_NAME.get(capture_name, capture_name)


def is_highlight_capture(capture_name: str) -> bool:
    """Internal captures only feed predicates, directives or injections."""
    return not capture_name.startswith(_INTERNAL_PREFIXES) and capture_name != "injection"
