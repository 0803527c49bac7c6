"""Search request and result models."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SearchRequest(BaseModel):
    """Validated parameters of a single ``search`` tool call.

    Validation is strict: numbers are never coerced from strings and flags
    never from numbers, so downstream stages can trust the field types.
    """

    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    pattern: str
    path: str | None = None
    fixed_strings: bool = False
    case_sensitive: bool = False
    line_numbers: bool = True
    context_lines: int = Field(default=0, ge=0)
    file_types: tuple[str, ...] = ()
    max_depth: int | None = Field(default=None, ge=0)

    @field_validator("pattern")
    @classmethod
    def _pattern_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("pattern must not be empty")
        return value

    @field_validator("file_types", mode="before")
    @classmethod
    def _normalize_file_types(cls, value: object) -> object:
        # JSON arrays arrive as lists; strict mode only accepts tuples.
        if value is None:
            return ()
        if isinstance(value, list):
            return tuple(value)
        return value

    @field_validator("file_types")
    @classmethod
    def _dedupe_file_types(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if any(not t.strip() for t in value):
            raise ValueError("file type tags must not be empty")
        return tuple(sorted(set(value)))


class SearchStats(BaseModel):
    """Summary statistics for a search."""

    matched_lines: int
    elapsed_ms: int


class SearchResult(BaseModel):
    """Match lines in engine emission order, plus statistics."""

    matches: list[str]
    stats: SearchStats
    context: list[str] = Field(default_factory=list)
    truncated: bool = False
