from pydantic import BaseModel, ConfigDict, NonNegativeInt, model_validator

from tree_highlight.core.categories import HighlightCategory


class Position(BaseModel):
    model_config = ConfigDict(frozen=True)

    row: NonNegativeInt = 0
    column: NonNegativeInt = 0

    def as_point(self) -> tuple[int, int]:
        return (self.row, self.column)


class HighlightSpan(BaseModel):
    """A byte range of the highlighted text and the category it renders as."""

    model_config = ConfigDict(frozen=True)

    start: NonNegativeInt
    end: NonNegativeInt
    category: HighlightCategory | str

    @model_validator(mode="after")
    def _check_range(self) -> "HighlightSpan":
        if self.end <= self.start:
            raise ValueError(f"empty or inverted span {self.start}..{self.end}")
        return self

    def text(self, source: bytes) -> str:
        return source[self.start : self.end].decode("utf-8", errors="replace")


class EditHint(BaseModel):
    """An incremental edit, in the shape tree-sitter's ``Tree.edit`` expects."""

    start_byte: NonNegativeInt
    old_end_byte: NonNegativeInt
    new_end_byte: NonNegativeInt
    start_point: Position = Position()
    old_end_point: Position = Position()
    new_end_point: Position = Position()
