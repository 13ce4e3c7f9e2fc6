"""
Engagement component port definitions.
"""

from __future__ import annotations

from typing import Protocol

from src.ports.clock import ClockPort
from src.ports.policy import PolicyPort
from src.ports.store import StorePort


class EngagementRulesPort(Protocol):
    """Limits for folder labels and bookmark paging."""

    @property
    def folder_name_max(self) -> int: ...

    @property
    def bookmark_page_size_default(self) -> int: ...

    @property
    def bookmark_page_size_max(self) -> int: ...


__all__ = ["ClockPort", "EngagementRulesPort", "PolicyPort", "StorePort"]
