"""
Discussion routes. Threads are returned as nested `replies` lists.
"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends

from src.api.deps import get_current_user, get_discussion, get_optional_user
from src.api.envelope import ok, raise_for_errors
from src.api.schemas import (
    CommentCreateRequest,
    CommentEditRequest,
    comment_payload,
    threads_payload,
)
from src.components.discussion import (
    CommentOutput,
    CreateCommentInput,
    DeleteCommentInput,
    DiscussionComponent,
    EditCommentInput,
    GetThreadInput,
    ListCommentsInput,
)
from src.domain.entities import User

router = APIRouter()


def _comment_response(result: CommentOutput) -> dict[str, Any]:
    if not result.success or result.comment is None:
        raise_for_errors(result.errors)
    return ok(comment_payload(result.comment))


@router.post("/articles/{article_id}/comments", status_code=201)
def create_comment(
    article_id: UUID,
    req: CommentCreateRequest,
    current_user: User = Depends(get_current_user),
    discussion: DiscussionComponent = Depends(get_discussion),
) -> dict[str, Any]:
    """Post a root comment, or a reply when parent_comment_id is given."""
    result = discussion.run_create(
        CreateCommentInput(
            user_id=current_user.id,
            article_id=article_id,
            content=req.content,
            parent_comment_id=req.parent_comment_id,
        )
    )
    return _comment_response(result)


@router.get("/articles/{article_id}/comments")
def list_comments(
    article_id: UUID,
    sort: str = "newest",
    limit: int | None = None,
    offset: int = 0,
    viewer: User | None = Depends(get_optional_user),
    discussion: DiscussionComponent = Depends(get_discussion),
) -> dict[str, Any]:
    """One page of root comments with their replies nested."""
    page = discussion.run_list(
        ListCommentsInput(
            article_id=article_id,
            viewer_id=viewer.id if viewer else None,
            sort=sort,
            limit=limit,
            offset=offset,
        )
    )
    if not page.success:
        raise_for_errors(page.errors)

    return ok(
        {
            "comments": threads_payload(page.threads),
            "total_count": page.total_count,
            "limit": page.limit,
            "offset": page.offset,
            "has_more": page.has_more,
            "next_offset": page.next_offset,
        }
    )


@router.get("/comments/{comment_id}/thread")
def get_thread(
    comment_id: UUID,
    viewer: User | None = Depends(get_optional_user),
    discussion: DiscussionComponent = Depends(get_discussion),
) -> dict[str, Any]:
    result = discussion.run_thread(
        GetThreadInput(comment_id=comment_id, viewer_id=viewer.id if viewer else None)
    )
    if not result.success or result.thread is None:
        raise_for_errors(result.errors)
    return ok(threads_payload([result.thread])[0])


@router.put("/comments/{comment_id}")
def edit_comment(
    comment_id: UUID,
    req: CommentEditRequest,
    current_user: User = Depends(get_current_user),
    discussion: DiscussionComponent = Depends(get_discussion),
) -> dict[str, Any]:
    """Edit your own comment within the edit window."""
    result = discussion.run_edit(
        EditCommentInput(user_id=current_user.id, comment_id=comment_id, content=req.content)
    )
    return _comment_response(result)


@router.delete("/comments/{comment_id}")
def delete_comment(
    comment_id: UUID,
    current_user: User = Depends(get_current_user),
    discussion: DiscussionComponent = Depends(get_discussion),
) -> dict[str, Any]:
    """Soft-delete: the comment stays in its thread as a tombstone."""
    result = discussion.run_delete(
        DeleteCommentInput(user_id=current_user.id, comment_id=comment_id)
    )
    return _comment_response(result)
