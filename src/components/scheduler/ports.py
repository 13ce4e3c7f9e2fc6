"""
Scheduler component ports.
"""

from __future__ import annotations

from typing import Protocol

from src.ports.clock import ClockPort
from src.ports.store import StorePort


class RulesPort(Protocol):
    """Scheduling settings read by the sweep."""

    @property
    def batch_limit(self) -> int: ...


__all__ = ["ClockPort", "RulesPort", "StorePort"]
