from __future__ import annotations

from pydantic import BaseModel, Field, NonNegativeInt, model_validator

from tree_highlight.models import HighlightSpan


class HighlightRequest(BaseModel):
    """POST /highlight: ``start``/``end`` are UTF-8 byte offsets into ``code``."""

    code: str
    language: str = Field(min_length=1)
    start: NonNegativeInt | None = None
    end: NonNegativeInt | None = None

    @model_validator(mode="after")
    def _check_range(self) -> HighlightRequest:
        if self.start is not None and self.end is not None and self.end < self.start:
            raise ValueError("end must not be before start")
        return self

    def byte_range(self, length: int) -> tuple[int, int] | None:
        if self.start is None and self.end is None:
            return None
        return (self.start or 0, length if self.end is None else self.end)


class HighlightResponse(BaseModel):
    language: str
    spans: list[HighlightSpan]
    degraded: bool = False
    detail: str | None = None


class LanguageInfo(BaseModel):
    name: str
    injects: list[str]
    available: bool = True


class HealthResponse(BaseModel):
    status: str = "ok"


class ReadinessResponse(BaseModel):
    status: str = "ok"
    languages: int = 0
