"""Source positions shared by tokens, AST nodes and errors."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SourcePosition(BaseModel):
    """A location in program source.

    Attributes:
        offset: 0-based character index into the source text
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """

    offset: int = Field(default=0, ge=0)
    line: int = Field(default=1, ge=1)
    column: int = Field(default=1, ge=1)

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


START = SourcePosition()
