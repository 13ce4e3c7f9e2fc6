"""Discussion component models - frozen dataclass inputs and outputs."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal
from uuid import UUID

from src.domain.errors import ErrorDetail
from src.domain.tree import TreeNode

CommentSort = Literal["newest", "oldest"]


@dataclass(frozen=True)
class CreateCommentInput:
    user_id: UUID | None
    article_id: UUID
    content: str
    parent_comment_id: UUID | None = None


@dataclass(frozen=True)
class EditCommentInput:
    user_id: UUID | None
    comment_id: UUID
    content: str


@dataclass(frozen=True)
class DeleteCommentInput:
    user_id: UUID | None
    comment_id: UUID


@dataclass(frozen=True)
class ModerateCommentInput:
    user_id: UUID | None
    comment_id: UUID
    status: str


@dataclass(frozen=True)
class ListCommentsInput:
    """Page over root comments; replies come attached to their roots."""

    article_id: UUID
    viewer_id: UUID | None = None
    sort: str = "newest"
    limit: int | None = None
    offset: int = 0


@dataclass(frozen=True)
class GetThreadInput:
    comment_id: UUID
    viewer_id: UUID | None = None


@dataclass(frozen=True)
class CommentView:
    """
    A comment as shown to one viewer.

    Tombstones (is_deleted) and hidden moderation states (is_hidden) keep
    their place in the tree with empty content.
    """

    id: UUID
    article_id: UUID
    author_user_id: UUID
    author_display_name: str
    parent_comment_id: UUID | None
    depth: int
    content: str
    status: str
    reply_count: int
    created_at: datetime
    updated_at: datetime
    is_deleted: bool
    is_hidden: bool


@dataclass(frozen=True)
class CommentOutput:
    comment: CommentView | None
    errors: list[ErrorDetail]
    success: bool


@dataclass(frozen=True)
class CommentPage:
    threads: list[TreeNode[CommentView]]
    total_count: int
    limit: int
    offset: int
    has_more: bool
    next_offset: int | None
    errors: list[ErrorDetail] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class ThreadOutput:
    thread: TreeNode[CommentView] | None
    errors: list[ErrorDetail] = field(default_factory=list)
    success: bool = True
