"""
Discussion component - threaded comments on published articles.

Invariants:
- depth(reply) = depth(parent) + 1; roots have depth 0; depth < max_levels.
- parent_comment_id never changes after insert.
- reply_count counts direct children that are not deleted.
- Deleting keeps the row and its replies; only the text is dropped.
- comment_count counts every comment row, tombstones included.
"""

import logging
from collections.abc import Sequence
from datetime import timedelta
from uuid import UUID

from src.components.discussion.models import (
    CommentOutput,
    CommentPage,
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
from src.domain.entities import (
    HIDDEN_COMMENT_STATUSES,
    MODERATION_STATUSES,
    Article,
    Comment,
    User,
)
from src.domain.errors import (
    DEPTH_EXCEEDED,
    EDIT_WINDOW_EXPIRED,
    FORBIDDEN,
    INVALID_TRANSITION,
    NOT_FOUND,
    NOT_PUBLISHED,
    UNAUTHORIZED,
    VALIDATION_ERROR,
    ErrorDetail,
    StoreError,
    internal_error,
)
from src.domain.timeutil import ensure_utc
from src.domain.tree import build_forest
from src.ports.store import UnitOfWorkPort
from src.rules.models import CommentRules

logger = logging.getLogger(__name__)


def _fail(code: str, message: str, field: str = "") -> CommentOutput:
    return CommentOutput(
        comment=None, errors=[ErrorDetail(code=code, message=message, field=field)], success=False
    )


def _page_error(code: str, message: str, field: str, limit: int, offset: int) -> CommentPage:
    return CommentPage(
        threads=[],
        total_count=0,
        limit=limit,
        offset=offset,
        has_more=False,
        next_offset=None,
        errors=[ErrorDetail(code=code, message=message, field=field)],
        success=False,
    )


def _active_user(uow: UnitOfWorkPort, user_id: UUID | None) -> User | None:
    user = uow.users.get_by_id(user_id) if user_id else None
    if user is None or user.status != "active":
        return None
    return user


class DiscussionComponent:
    """Create, edit, delete, moderate and list threaded comments."""

    def __init__(
        self,
        store: StorePort,
        policy: PolicyPort,
        clock: ClockPort,
        rules: CommentRules,
    ) -> None:
        self._store = store
        self._policy = policy
        self._clock = clock
        self._rules = rules

    # --- Helpers ---

    def _validate_content(self, content: str) -> tuple[str, ErrorDetail | None]:
        cleaned = content.strip()
        if not cleaned:
            return cleaned, ErrorDetail(
                code=VALIDATION_ERROR, message="Comment cannot be empty", field="content"
            )
        if len(cleaned) > self._rules.max_length:
            return cleaned, ErrorDetail(
                code=VALIDATION_ERROR,
                message=f"Comment must be at most {self._rules.max_length} characters",
                field="content",
            )
        return cleaned, None

    def _can_view_article(self, article: Article, viewer: User | None) -> bool:
        if article.status == "published":
            return True
        return self._policy.is_allowed(viewer, "article:view_unpublished", article)

    def _views(
        self, uow: UnitOfWorkPort, comments: Sequence[Comment], viewer: User | None
    ) -> list[CommentView]:
        names = uow.users.display_names([c.author_user_id for c in comments])
        return [self._view(c, names.get(c.author_user_id, ""), viewer) for c in comments]

    def _view(self, comment: Comment, author_name: str, viewer: User | None) -> CommentView:
        hidden = comment.status in HIDDEN_COMMENT_STATUSES and not self._policy.is_allowed(
            viewer, "comment:view_hidden", comment
        )
        show_text = not comment.is_deleted and not hidden
        return CommentView(
            id=comment.id,
            article_id=comment.article_id,
            author_user_id=comment.author_user_id,
            author_display_name=author_name,
            parent_comment_id=comment.parent_comment_id,
            depth=comment.depth,
            content=comment.content if show_text else "",
            status=comment.status,
            reply_count=comment.reply_count,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
            is_deleted=comment.is_deleted,
            is_hidden=hidden,
        )

    def _descendants(
        self, uow: UnitOfWorkPort, parent_ids: list[UUID], levels: int
    ) -> list[Comment]:
        """Fetch replies level by level, at most `levels` levels below parent_ids."""
        found: list[Comment] = []
        frontier = parent_ids
        for _ in range(levels):
            if not frontier:
                break
            children = uow.comments.list_children(frontier)
            found.extend(children)
            frontier = [c.id for c in children]
        return found

    # --- Operations ---

    def run_create(self, input_data: CreateCommentInput) -> CommentOutput:
        """Add a root comment or a reply."""
        content, invalid = self._validate_content(input_data.content)
        if invalid:
            return CommentOutput(comment=None, errors=[invalid], success=False)

        now = self._clock.now_utc()
        try:
            with self._store.transaction() as uow:
                user = _active_user(uow, input_data.user_id)
                if user is None:
                    return _fail(UNAUTHORIZED, "Authentication required", "user_id")

                if not self._policy.is_allowed(user, "comment:create"):
                    return _fail(FORBIDDEN, "User not allowed to comment", "user_id")

                article = uow.articles.get_by_id(input_data.article_id)
                if article is None:
                    return _fail(NOT_FOUND, "Article not found", "article_id")
                if article.status != "published":
                    return _fail(NOT_PUBLISHED, "Article is not published", "article_id")

                depth = 0
                parent: Comment | None = None
                if input_data.parent_comment_id is not None:
                    parent = uow.comments.get_by_id(input_data.parent_comment_id)
                    if parent is None or parent.is_deleted:
                        return _fail(NOT_FOUND, "Parent comment not found", "parent_comment_id")
                    if parent.article_id != article.id:
                        return _fail(
                            VALIDATION_ERROR,
                            "Parent comment belongs to a different article",
                            "parent_comment_id",
                        )
                    depth = parent.depth + 1

                if depth >= self._rules.max_levels:
                    return _fail(
                        DEPTH_EXCEEDED,
                        f"Replies are limited to {self._rules.max_levels} levels",
                        "parent_comment_id",
                    )

                comment = uow.comments.insert(
                    Comment(
                        article_id=article.id,
                        author_user_id=user.id,
                        parent_comment_id=parent.id if parent else None,
                        depth=depth,
                        content=content,
                        status=self._rules.default_status,
                        created_at=now,
                        updated_at=now,
                    )
                )
                if parent is not None:
                    uow.comments.adjust_reply_count(parent.id, 1)
                uow.articles.adjust_counter(article.id, "comment_count", 1)

                view = self._view(comment, user.display_name, user)
        except StoreError:
            logger.exception("Creating comment on article %s failed", input_data.article_id)
            return CommentOutput(comment=None, errors=[internal_error()], success=False)

        return CommentOutput(comment=view, errors=[], success=True)

    def run_edit(self, input_data: EditCommentInput) -> CommentOutput:
        """Replace the text of one's own comment within the edit window."""
        content, invalid = self._validate_content(input_data.content)
        if invalid:
            return CommentOutput(comment=None, errors=[invalid], success=False)

        now = self._clock.now_utc()
        window = timedelta(minutes=self._rules.edit_window_minutes)
        try:
            with self._store.transaction() as uow:
                user = _active_user(uow, input_data.user_id)
                if user is None:
                    return _fail(UNAUTHORIZED, "Authentication required", "user_id")

                comment = uow.comments.get_by_id(input_data.comment_id)
                if comment is None or comment.is_deleted:
                    return _fail(NOT_FOUND, "Comment not found", "comment_id")

                # Only the author edits; moderators delete or moderate instead
                if comment.author_user_id != user.id:
                    return _fail(FORBIDDEN, "Only the author can edit a comment", "user_id")

                if now - ensure_utc(comment.created_at) > window:
                    return _fail(
                        EDIT_WINDOW_EXPIRED,
                        f"Comments can only be edited within "
                        f"{self._rules.edit_window_minutes} minutes",
                        "comment_id",
                    )

                if not uow.comments.update_content(comment.id, content, now):
                    return _fail(NOT_FOUND, "Comment not found", "comment_id")

                edited = comment.model_copy(update={"content": content, "updated_at": now})
                view = self._view(edited, user.display_name, user)
        except StoreError:
            logger.exception("Editing comment %s failed", input_data.comment_id)
            return CommentOutput(comment=None, errors=[internal_error()], success=False)

        return CommentOutput(comment=view, errors=[], success=True)

    def run_delete(self, input_data: DeleteCommentInput) -> CommentOutput:
        """Soft-delete a comment, leaving a tombstone in the tree."""
        now = self._clock.now_utc()
        try:
            with self._store.transaction() as uow:
                user = _active_user(uow, input_data.user_id)
                if user is None:
                    return _fail(UNAUTHORIZED, "Authentication required", "user_id")

                comment = uow.comments.get_by_id(input_data.comment_id)
                if comment is None or comment.is_deleted:
                    return _fail(NOT_FOUND, "Comment not found", "comment_id")

                if not self._policy.is_allowed(user, "comment:delete", comment):
                    return _fail(FORBIDDEN, "User not allowed to delete this comment", "user_id")

                if not uow.comments.soft_delete(comment.id, now):
                    return _fail(NOT_FOUND, "Comment not found", "comment_id")
                if comment.parent_comment_id is not None:
                    uow.comments.adjust_reply_count(comment.parent_comment_id, -1)

                deleted = comment.model_copy(
                    update={
                        "status": "deleted",
                        "content": "",
                        "deleted_at": now,
                        "updated_at": now,
                    }
                )
                names = uow.users.display_names([comment.author_user_id])
                view = self._view(deleted, names.get(comment.author_user_id, ""), user)
        except StoreError:
            logger.exception("Deleting comment %s failed", input_data.comment_id)
            return CommentOutput(comment=None, errors=[internal_error()], success=False)

        logger.info("Comment %s deleted by %s", input_data.comment_id, input_data.user_id)
        return CommentOutput(comment=view, errors=[], success=True)

    def run_moderate(self, input_data: ModerateCommentInput) -> CommentOutput:
        """Set the moderation status of a comment (admin only)."""
        if input_data.status not in MODERATION_STATUSES:
            return _fail(
                VALIDATION_ERROR,
                f"Status must be one of: {', '.join(MODERATION_STATUSES)}",
                "status",
            )

        now = self._clock.now_utc()
        try:
            with self._store.transaction() as uow:
                user = _active_user(uow, input_data.user_id)
                if user is None:
                    return _fail(UNAUTHORIZED, "Authentication required", "user_id")

                comment = uow.comments.get_by_id(input_data.comment_id)
                if comment is None:
                    return _fail(NOT_FOUND, "Comment not found", "comment_id")

                if not self._policy.is_allowed(user, "comment:moderate", comment):
                    return _fail(FORBIDDEN, "User not allowed to moderate comments", "user_id")

                if comment.is_deleted or not uow.comments.set_status(
                    comment.id, input_data.status, now
                ):
                    return _fail(
                        INVALID_TRANSITION, "Deleted comments cannot be moderated", "status"
                    )

                moderated = comment.model_copy(
                    update={"status": input_data.status, "updated_at": now}
                )
                names = uow.users.display_names([comment.author_user_id])
                view = self._view(moderated, names.get(comment.author_user_id, ""), user)
        except StoreError:
            logger.exception("Moderating comment %s failed", input_data.comment_id)
            return CommentOutput(comment=None, errors=[internal_error()], success=False)

        logger.info("Comment %s set to %s", input_data.comment_id, input_data.status)
        return CommentOutput(comment=view, errors=[], success=True)

    def run_list(self, input_data: ListCommentsInput) -> CommentPage:
        """
        List one page of threads for an article.

        Pagination applies to root comments only. Replies of the page's roots
        are loaded one level per query, so cost follows the page, not the
        whole discussion.
        """
        limit = input_data.limit or self._rules.page_size_default
        offset = input_data.offset

        if input_data.sort not in ("newest", "oldest"):
            return _page_error(
                VALIDATION_ERROR, "sort must be 'newest' or 'oldest'", "sort", limit, offset
            )
        if limit < 1 or limit > self._rules.page_size_max or offset < 0:
            return _page_error(
                VALIDATION_ERROR,
                f"limit must be 1-{self._rules.page_size_max} and offset >= 0",
                "limit",
                limit,
                offset,
            )

        try:
            with self._store.read() as uow:
                viewer = _active_user(uow, input_data.viewer_id)
                if not self._policy.is_allowed(viewer, "comment:read"):
                    return _page_error(
                        UNAUTHORIZED if viewer is None else FORBIDDEN,
                        "Not allowed to read comments",
                        "viewer_id",
                        limit,
                        offset,
                    )

                article = uow.articles.get_by_id(input_data.article_id)
                if article is None or not self._can_view_article(article, viewer):
                    return _page_error(NOT_FOUND, "Article not found", "article_id", limit, offset)

                roots = uow.comments.list_roots(
                    article.id,
                    newest_first=input_data.sort == "newest",
                    limit=limit,
                    offset=offset,
                )
                total = uow.comments.count_roots(article.id)
                replies = self._descendants(
                    uow, [r.id for r in roots], self._rules.max_levels - 1
                )
                views = self._views(uow, [*roots, *replies], viewer)
        except StoreError:
            logger.exception("Listing comments for article %s failed", input_data.article_id)
            return CommentPage(
                threads=[],
                total_count=0,
                limit=limit,
                offset=offset,
                has_more=False,
                next_offset=None,
                errors=[internal_error()],
                success=False,
            )

        has_more = offset + len(roots) < total
        return CommentPage(
            threads=build_forest(views),
            total_count=total,
            limit=limit,
            offset=offset,
            has_more=has_more,
            next_offset=offset + len(roots) if has_more else None,
        )

    def run_thread(self, input_data: GetThreadInput) -> ThreadOutput:
        """Load the subtree rooted at one comment."""
        try:
            with self._store.read() as uow:
                viewer = _active_user(uow, input_data.viewer_id)
                root = uow.comments.get_by_id(input_data.comment_id)
                article = uow.articles.get_by_id(root.article_id) if root else None
                if root is None or article is None or not self._can_view_article(article, viewer):
                    return ThreadOutput(
                        thread=None,
                        errors=[
                            ErrorDetail(
                                code=NOT_FOUND, message="Comment not found", field="comment_id"
                            )
                        ],
                        success=False,
                    )

                levels = max(self._rules.max_levels - 1 - root.depth, 0)
                replies = self._descendants(uow, [root.id], levels)
                views = self._views(uow, [root, *replies], viewer)
        except StoreError:
            logger.exception("Loading thread %s failed", input_data.comment_id)
            return ThreadOutput(thread=None, errors=[internal_error()], success=False)

        return ThreadOutput(thread=build_forest(views)[0])
