"""
Scheduler component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal
from uuid import UUID

from src.domain.errors import ErrorDetail

SweepOutcome = Literal["published", "skipped", "failed"]


@dataclass(frozen=True)
class SweepInput:
    """Input for one publication sweep. Defaults come from the clock and rules."""

    now: datetime | None = None
    limit: int | None = None


@dataclass(frozen=True)
class SweepItemResult:
    """What happened to one due article."""

    article_id: UUID
    outcome: SweepOutcome
    message: str = ""


@dataclass(frozen=True)
class SweepOutput:
    """Aggregate result of a sweep."""

    published: int = 0
    skipped: int = 0
    failed: int = 0
    results: list[SweepItemResult] = field(default_factory=list)
    errors: list[ErrorDetail] = field(default_factory=list)
    success: bool = True
