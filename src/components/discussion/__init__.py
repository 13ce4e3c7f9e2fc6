"""Discussion component - threaded comments with tombstones and moderation."""

from src.components.discussion.component import DiscussionComponent
from src.components.discussion.models import (
    CommentOutput,
    CommentPage,
    CommentSort,
    CommentView,
    CreateCommentInput,
    DeleteCommentInput,
    EditCommentInput,
    GetThreadInput,
    ListCommentsInput,
    ModerateCommentInput,
    ThreadOutput,
)
from src.components.discussion.ports import ClockPort, PolicyPort, StorePort

__all__ = [
    # Component
    "DiscussionComponent",
    # Models
    "CreateCommentInput",
    "EditCommentInput",
    "DeleteCommentInput",
    "ModerateCommentInput",
    "ListCommentsInput",
    "GetThreadInput",
    "CommentView",
    "CommentOutput",
    "CommentPage",
    "CommentSort",
    "ThreadOutput",
    # Ports
    "ClockPort",
    "PolicyPort",
    "StorePort",
]
