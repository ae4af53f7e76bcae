# Finding records handed from the engine to the host: Location, Fix and Finding (pydantic, immutable).

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Severity = Literal["error", "warning", "info"]


class Location(BaseModel):
    """Anchor of a finding: 1-based start/end positions, byte range and the anchored source text."""

    model_config = ConfigDict(frozen=True)

    path: Path
    line: int = Field(..., ge=1)
    column: int = Field(..., ge=1)
    end_line: Optional[int] = Field(None, ge=1)
    end_column: Optional[int] = Field(None, ge=1)
    start_byte: Optional[int] = Field(None, ge=0)
    end_byte: Optional[int] = Field(None, ge=0)
    snippet: Optional[str] = None


class Fix(BaseModel):
    """Recommendation attached to a finding. The engine never applies it."""

    model_config = ConfigDict(frozen=True)

    text: str = ""
    link: Optional[str] = None


class Finding(BaseModel):
    """One reported misuse, e.g. a closeable client never closed at line 42."""

    model_config = ConfigDict(frozen=True)

    rule_id: str
    message: str
    location: Location
    severity: Severity = "warning"
    fix: Optional[Fix] = None

    @property
    def sort_key(self) -> tuple[str, int, int, str]:
        loc = self.location
        return str(loc.path), loc.line, loc.column, self.rule_id
