class HighlightError(Exception):
    """Base class for every failure the engine reports to its caller.

    None of these are fatal: callers fall back to rendering plain text.
    """


class GrammarMissing(HighlightError):
    def __init__(self, language: str, reason: str | None = None) -> None:
        self.language = language
        self.reason = reason
        message = f"No grammar or query source for language '{language}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class QueryError(HighlightError):
    """A pattern file is broken; highlighting for that language is disabled."""


class QuerySyntaxError(QueryError):
    def __init__(self, message: str, line: int | None = None, column: int | None = None) -> None:
        self.line = line
        self.column = column
        if line is not None and column is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)


class MalformedPattern(QueryError):
    def __init__(self, message: str, pattern_index: int | None = None, line: int | None = None) -> None:
        self.pattern_index = pattern_index
        self.line = line
        if pattern_index is not None:
            where = f"pattern {pattern_index}"
            if line is not None:
                where = f"{where} at line {line}"
            message = f"{where}: {message}"
        super().__init__(message)


class ParseFailure(HighlightError):
    def __init__(self, language: str, reason: str) -> None:
        self.language = language
        self.reason = reason
        super().__init__(f"Failed to parse {language} source: {reason}")
