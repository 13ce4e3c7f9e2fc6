"""Reconcile component models."""

from __future__ import annotations

from dataclasses import dataclass, field

from src.domain.errors import ErrorDetail


@dataclass(frozen=True)
class ReconcileInput:
    """Input for a counter reconciliation pass. dry_run only reports drift."""

    dry_run: bool = False


@dataclass(frozen=True)
class CounterDrift:
    """A stored counter that disagrees with its membership rows."""

    table: str
    row_id: str
    column: str
    stored: int
    actual: int


@dataclass(frozen=True)
class ReconcileOutput:
    drift: list[CounterDrift] = field(default_factory=list)
    repaired: int = 0
    errors: list[ErrorDetail] = field(default_factory=list)
    success: bool = True
