from datetime import UTC, datetime
from typing import Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

# --- Enums / Literals ---
RoleType = Literal["reader", "author", "admin"]
ArticleStatus = Literal["draft", "scheduled", "published", "archived"]
CommentStatus = Literal["published", "pending", "approved", "rejected", "spam", "deleted"]
EngagementKind = Literal["reaction", "bookmark"]

# Statuses whose content is only shown to the comment author and admins
HIDDEN_COMMENT_STATUSES: frozenset[str] = frozenset({"pending", "rejected", "spam"})
MODERATION_STATUSES: tuple[str, ...] = ("published", "pending", "approved", "rejected", "spam")


def utcnow() -> datetime:
    return datetime.now(UTC)


# --- Users ---

class User(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    email: str
    display_name: str
    roles: list[RoleType] = Field(default_factory=list)
    status: Literal["active", "disabled"] = "active"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_admin(self) -> bool:
        return "admin" in self.roles


# --- Articles ---

class Article(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    author_user_id: UUID
    slug: str
    title: str
    summary: str = ""
    body: str = ""
    status: ArticleStatus = "draft"
    published_at: datetime | None = None
    scheduled_for: datetime | None = None

    # Denormalized counters, derived from membership rows
    reaction_count: int = 0
    bookmark_count: int = 0
    comment_count: int = 0
    view_count: int = 0

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# --- Engagement ---

class Reaction(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    article_id: UUID
    created_at: datetime = Field(default_factory=utcnow)


class Bookmark(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    article_id: UUID
    folder_name: str | None = None
    created_at: datetime = Field(default_factory=utcnow)


class ReadingProgress(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    article_id: UUID
    scroll_percentage: int = 0
    completion_percentage: int = 0
    time_spent_seconds: int = 0
    completed: bool = False
    first_read_at: datetime = Field(default_factory=utcnow)
    last_read_at: datetime = Field(default_factory=utcnow)


# --- Discussion ---

class Comment(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    article_id: UUID
    author_user_id: UUID
    parent_comment_id: UUID | None = None
    depth: int = 0
    content: str
    status: CommentStatus = "published"
    reply_count: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    deleted_at: datetime | None = None

    @property
    def is_deleted(self) -> bool:
        return self.status == "deleted"
