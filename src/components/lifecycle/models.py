"""Lifecycle component models - frozen dataclass inputs and outputs."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from src.domain.entities import Article
from src.domain.errors import ErrorDetail


@dataclass(frozen=True)
class CreateDraftInput:
    """Input for creating a new draft article."""

    user_id: UUID | None
    title: str
    slug: str
    summary: str = ""
    body: str = ""


@dataclass(frozen=True)
class UpdateArticleInput:
    """Input for editing article text. None leaves a field unchanged."""

    user_id: UUID | None
    article_id: UUID
    title: str | None = None
    summary: str | None = None
    body: str | None = None


@dataclass(frozen=True)
class ScheduleInput:
    """Input for scheduling a draft for future publication."""

    user_id: UUID | None
    article_id: UUID
    scheduled_for: datetime


@dataclass(frozen=True)
class CancelScheduleInput:
    user_id: UUID | None
    article_id: UUID


@dataclass(frozen=True)
class PublishNowInput:
    user_id: UUID | None
    article_id: UUID


@dataclass(frozen=True)
class ArchiveInput:
    user_id: UUID | None
    article_id: UUID


@dataclass(frozen=True)
class GetArticleInput:
    user_id: UUID | None
    article_id: UUID


@dataclass(frozen=True)
class LifecycleOutput:
    """Output shared by every lifecycle operation."""

    article: Article | None
    errors: list[ErrorDetail]
    success: bool
