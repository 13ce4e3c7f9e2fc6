"""Articles facade models."""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from src.domain.entities import Article
from src.domain.errors import ErrorDetail


@dataclass(frozen=True)
class GetArticleViewInput:
    article_id: UUID
    viewer_id: UUID | None = None


@dataclass(frozen=True)
class ViewerState:
    reacted: bool = False
    bookmarked: bool = False


@dataclass(frozen=True)
class ArticleView:
    """An article composed with its author and the viewer's toggle state."""

    article: Article
    author_id: UUID
    author_display_name: str
    viewer: ViewerState


@dataclass(frozen=True)
class ArticleViewOutput:
    view: ArticleView | None
    errors: list[ErrorDetail] = field(default_factory=list)
    success: bool = True
