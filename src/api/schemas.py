from dataclasses import asdict
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from src.components.discussion import CommentView
from src.domain.entities import Article
from src.domain.tree import TreeNode, forest_to_dicts


# --- Articles ---
class ArticleCreateRequest(BaseModel):
    title: str
    slug: str
    summary: str = ""
    body: str = ""


class ArticleUpdateRequest(BaseModel):
    title: str | None = None
    summary: str | None = None
    body: str | None = None


class ScheduleRequest(BaseModel):
    scheduled_for: datetime


# --- Engagement ---
class BookmarkToggleRequest(BaseModel):
    folder_name: str | None = None


class ProgressRequest(BaseModel):
    scroll_percentage: int = 0
    time_spent_seconds: int = 0
    completed: bool = False
    completion_percentage: int = 0


# --- Comments ---
class CommentCreateRequest(BaseModel):
    content: str
    parent_comment_id: UUID | None = None


class CommentEditRequest(BaseModel):
    content: str


class ModerateRequest(BaseModel):
    status: str = Field(description="published, pending, approved, rejected or spam")


# --- Payloads ---
def article_payload(article: Article) -> dict[str, Any]:
    return article.model_dump(mode="json")


def comment_payload(view: CommentView) -> dict[str, Any]:
    return asdict(view)


def threads_payload(threads: list[TreeNode[CommentView]]) -> list[dict[str, Any]]:
    return forest_to_dicts(threads, comment_payload)
