"""
Engagement component input/output models.

Reactions and bookmarks are membership records keyed by (user, article);
the article carries a denormalized count for each kind.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal
from uuid import UUID

from src.domain.entities import Article, Bookmark, EngagementKind, ReadingProgress
from src.domain.errors import ErrorDetail

ToggleOutcome = Literal["created", "removed"]


# --- Toggle ---


@dataclass(frozen=True)
class ToggleInput:
    """Flip the caller's reaction or bookmark on an article."""

    kind: EngagementKind
    user_id: UUID | None
    article_id: UUID
    folder_name: str | None = None


@dataclass(frozen=True)
class ToggleOutput:
    """
    Tagged toggle result.

    outcome says which branch ran; active and count are the values after
    the transaction committed.
    """

    outcome: ToggleOutcome | None
    active: bool
    count: int
    errors: list[ErrorDetail] = field(default_factory=list)
    success: bool = True


# --- Status ---


@dataclass(frozen=True)
class StatusInput:
    kind: EngagementKind
    user_id: UUID | None
    article_id: UUID


@dataclass(frozen=True)
class StatusOutput:
    active: bool
    count: int
    errors: list[ErrorDetail] = field(default_factory=list)
    success: bool = True


# --- Bookmark listing ---


@dataclass(frozen=True)
class ListBookmarksInput:
    user_id: UUID | None
    folder_name: str | None = None
    page: int = 1
    limit: int | None = None


@dataclass(frozen=True)
class BookmarkEntry:
    bookmark: Bookmark
    article: Article


@dataclass(frozen=True)
class ListBookmarksOutput:
    items: list[BookmarkEntry]
    total: int
    page: int
    limit: int
    has_more: bool
    errors: list[ErrorDetail] = field(default_factory=list)
    success: bool = True


# --- Reading progress ---


@dataclass(frozen=True)
class RecordProgressInput:
    """One reading-progress report. Reports merge, they never overwrite."""

    user_id: UUID | None
    article_id: UUID
    scroll_percentage: int = 0
    time_spent_seconds: int = 0
    completed: bool = False
    completion_percentage: int = 0


@dataclass(frozen=True)
class GetProgressInput:
    user_id: UUID | None
    article_id: UUID


@dataclass(frozen=True)
class ProgressOutput:
    progress: ReadingProgress | None
    errors: list[ErrorDetail] = field(default_factory=list)
    success: bool = True


# --- Views ---


@dataclass(frozen=True)
class RecordViewInput:
    article_id: UUID


@dataclass(frozen=True)
class RecordViewOutput:
    view_count: int
    errors: list[ErrorDetail] = field(default_factory=list)
    success: bool = True
