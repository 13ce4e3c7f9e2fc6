from collections.abc import Sequence
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from src.domain.entities import (
    Article,
    Bookmark,
    Comment,
    EngagementKind,
    ReadingProgress,
    User,
)


class UserRepoPort(Protocol):
    def get_by_id(self, user_id: UUID) -> User | None:
        ...

    def get_by_email(self, email: str) -> User | None:
        ...

    def save(self, user: User) -> None:
        ...

    def display_names(self, user_ids: Sequence[UUID]) -> dict[UUID, str]:
        ...


class ArticleRepoPort(Protocol):
    def insert(self, article: Article) -> Article:
        ...

    def get_by_id(self, article_id: UUID) -> Article | None:
        ...

    def get_by_slug(self, slug: str) -> Article | None:
        ...

    def update_content(self, article: Article) -> None:
        ...

    def update_lifecycle(self, article: Article, expected_status: str) -> bool:
        ...

    def list_due(self, now_utc: datetime, limit: int = 100) -> list[Article]:
        ...

    def adjust_counter(self, article_id: UUID, column: str, delta: int) -> int:
        ...


class EngagementRepoPort(Protocol):
    def exists(self, kind: EngagementKind, user_id: UUID, article_id: UUID) -> bool:
        ...

    def add(
        self,
        kind: EngagementKind,
        user_id: UUID,
        article_id: UUID,
        now_utc: datetime,
        folder_name: str | None = None,
    ) -> None:
        ...

    def remove(self, kind: EngagementKind, user_id: UUID, article_id: UUID) -> bool:
        ...

    def list_bookmarks(
        self,
        user_id: UUID,
        folder_name: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Bookmark]:
        ...

    def count_bookmarks(self, user_id: UUID, folder_name: str | None = None) -> int:
        ...

    def get_progress(self, user_id: UUID, article_id: UUID) -> ReadingProgress | None:
        ...

    def merge_progress(self, progress: ReadingProgress) -> ReadingProgress:
        ...


class CommentRepoPort(Protocol):
    def insert(self, comment: Comment) -> Comment:
        ...

    def get_by_id(self, comment_id: UUID) -> Comment | None:
        ...

    def update_content(self, comment_id: UUID, content: str, now_utc: datetime) -> bool:
        ...

    def soft_delete(self, comment_id: UUID, now_utc: datetime) -> bool:
        ...

    def set_status(self, comment_id: UUID, status: str, now_utc: datetime) -> bool:
        ...

    def adjust_reply_count(self, comment_id: UUID, delta: int) -> None:
        ...

    def list_roots(
        self, article_id: UUID, newest_first: bool = True, limit: int = 50, offset: int = 0
    ) -> list[Comment]:
        ...

    def count_roots(self, article_id: UUID) -> int:
        ...

    def list_children(self, parent_ids: Sequence[UUID]) -> list[Comment]:
        ...


class CounterRepoPort(Protocol):
    def ping(self) -> bool:
        ...

    def find_article_drift(self) -> list[dict[str, Any]]:
        ...

    def find_reply_drift(self) -> list[dict[str, Any]]:
        ...

    def set_article_counter(self, article_id: str, column: str, value: int) -> None:
        ...

    def set_reply_count(self, comment_id: str, value: int) -> None:
        ...
