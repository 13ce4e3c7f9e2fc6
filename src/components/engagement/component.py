"""
Engagement component - reactions, bookmarks, reading progress and views.

Invariants:
- At most one reaction and one bookmark per (user, article), enforced by a
  UNIQUE constraint.
- A membership insert or delete and the matching counter delta commit in
  the same write transaction; counters never go below zero.
- Toggles are only accepted while the article is published.
"""

from __future__ import annotations

import logging
from uuid import UUID

from src.domain.entities import Article, ReadingProgress, User
from src.domain.errors import (
    FORBIDDEN,
    NOT_FOUND,
    NOT_PUBLISHED,
    UNAUTHORIZED,
    VALIDATION_ERROR,
    ErrorDetail,
    StoreError,
    internal_error,
)
from src.ports.store import UnitOfWorkPort

from .models import (
    BookmarkEntry,
    GetProgressInput,
    ListBookmarksInput,
    ListBookmarksOutput,
    ProgressOutput,
    RecordProgressInput,
    RecordViewInput,
    RecordViewOutput,
    StatusInput,
    StatusOutput,
    ToggleInput,
    ToggleOutcome,
    ToggleOutput,
)
from .ports import ClockPort, EngagementRulesPort, PolicyPort, StorePort

logger = logging.getLogger(__name__)

COUNTER_COLUMNS = {"reaction": "reaction_count", "bookmark": "bookmark_count"}

# --- Default Configuration ---

DEFAULT_FOLDER_NAME_MAX = 100
DEFAULT_PAGE_SIZE = 20
DEFAULT_PAGE_SIZE_MAX = 100


def _error(code: str, message: str, field: str = "") -> list[ErrorDetail]:
    return [ErrorDetail(code=code, message=message, field=field)]


def _active_user(uow: UnitOfWorkPort, user_id: UUID | None) -> User | None:
    user = uow.users.get_by_id(user_id) if user_id else None
    if user is None or user.status != "active":
        return None
    return user


def normalize_folder_name(
    folder_name: str | None, max_length: int = DEFAULT_FOLDER_NAME_MAX
) -> tuple[str | None, list[ErrorDetail]]:
    """
    Trim a bookmark folder label.

    Blank labels mean "no folder".

    Returns:
        The cleaned label and any validation errors
    """
    if folder_name is None:
        return None, []
    cleaned = folder_name.strip()
    if not cleaned:
        return None, []
    if len(cleaned) > max_length:
        return None, _error(
            VALIDATION_ERROR,
            f"Folder name must be at most {max_length} characters",
            "folder_name",
        )
    return cleaned, []


def validate_progress_input(inp: RecordProgressInput) -> list[ErrorDetail]:
    errors: list[ErrorDetail] = []
    for name in ("scroll_percentage", "completion_percentage"):
        value = getattr(inp, name)
        if value < 0 or value > 100:
            errors.append(
                ErrorDetail(code=VALIDATION_ERROR, message=f"{name} must be 0-100", field=name)
            )
    if inp.time_spent_seconds < 0:
        errors.append(
            ErrorDetail(
                code=VALIDATION_ERROR,
                message="time_spent_seconds cannot be negative",
                field="time_spent_seconds",
            )
        )
    return errors


def _visible(article: Article, user: User | None, policy: PolicyPort) -> bool:
    if article.status == "published":
        return True
    return policy.is_allowed(user, "article:view_unpublished", article)


# --- Component Entry Points ---


def run_toggle(
    inp: ToggleInput,
    *,
    store: StorePort,
    policy: PolicyPort,
    clock: ClockPort,
    rules: EngagementRulesPort | None = None,
) -> ToggleOutput:
    """
    Flip the caller's reaction or bookmark.

    No record: insert it and increment the counter. Existing record: delete
    it and decrement. The delete-or-insert decision is taken under the write
    lock, so two near-simultaneous toggles by the same user serialize and
    end where they started.

    Args:
        inp: Kind, caller and article
        store: Unit of work factory
        policy: Permission checks
        clock: Time source for created_at
        rules: Optional engagement limits

    Returns:
        ToggleOutput with the outcome tag, new membership state and count
    """
    folder_name: str | None = None
    if inp.kind == "bookmark":
        max_length = rules.folder_name_max if rules else DEFAULT_FOLDER_NAME_MAX
        folder_name, errors = normalize_folder_name(inp.folder_name, max_length)
        if errors:
            return ToggleOutput(outcome=None, active=False, count=0, errors=errors, success=False)

    column = COUNTER_COLUMNS[inp.kind]
    now = clock.now_utc()
    outcome: ToggleOutcome

    try:
        with store.transaction() as uow:
            user = _active_user(uow, inp.user_id)
            if user is None:
                return ToggleOutput(
                    outcome=None,
                    active=False,
                    count=0,
                    errors=_error(UNAUTHORIZED, "Authentication required", "user_id"),
                    success=False,
                )

            if not policy.is_allowed(user, f"engagement:{inp.kind}"):
                return ToggleOutput(
                    outcome=None,
                    active=False,
                    count=0,
                    errors=_error(FORBIDDEN, f"User not allowed to {inp.kind}", "user_id"),
                    success=False,
                )

            article = uow.articles.get_by_id(inp.article_id)
            if article is None:
                return ToggleOutput(
                    outcome=None,
                    active=False,
                    count=0,
                    errors=_error(NOT_FOUND, "Article not found", "article_id"),
                    success=False,
                )
            if article.status != "published":
                return ToggleOutput(
                    outcome=None,
                    active=False,
                    count=0,
                    errors=_error(NOT_PUBLISHED, "Article is not published", "article_id"),
                    success=False,
                )

            if uow.engagement.remove(inp.kind, user.id, article.id):
                count = uow.articles.adjust_counter(article.id, column, -1)
                outcome, active = "removed", False
            else:
                uow.engagement.add(inp.kind, user.id, article.id, now, folder_name)
                count = uow.articles.adjust_counter(article.id, column, 1)
                outcome, active = "created", True
    except StoreError:
        logger.exception("Toggling %s on article %s failed", inp.kind, inp.article_id)
        return ToggleOutput(
            outcome=None, active=False, count=0, errors=[internal_error()], success=False
        )

    logger.debug("%s %s on article %s by %s", inp.kind, outcome, inp.article_id, inp.user_id)
    return ToggleOutput(outcome=outcome, active=active, count=count)


def run_status(
    inp: StatusInput,
    *,
    store: StorePort,
    policy: PolicyPort,
) -> StatusOutput:
    """
    Read the caller's membership and the article counter.

    Anonymous callers get active=False with the public count.
    """
    column = COUNTER_COLUMNS[inp.kind]
    try:
        with store.read() as uow:
            user = _active_user(uow, inp.user_id)
            article = uow.articles.get_by_id(inp.article_id)
            if article is None or not _visible(article, user, policy):
                return StatusOutput(
                    active=False,
                    count=0,
                    errors=_error(NOT_FOUND, "Article not found", "article_id"),
                    success=False,
                )
            active = bool(user) and uow.engagement.exists(inp.kind, user.id, article.id)
    except StoreError:
        logger.exception("Reading %s status for article %s failed", inp.kind, inp.article_id)
        return StatusOutput(active=False, count=0, errors=[internal_error()], success=False)

    return StatusOutput(active=active, count=int(getattr(article, column)))


def run_list_bookmarks(
    inp: ListBookmarksInput,
    *,
    store: StorePort,
    rules: EngagementRulesPort | None = None,
) -> ListBookmarksOutput:
    """List the caller's bookmarks, newest first, optionally within one folder."""
    default_limit = rules.bookmark_page_size_default if rules else DEFAULT_PAGE_SIZE
    max_limit = rules.bookmark_page_size_max if rules else DEFAULT_PAGE_SIZE_MAX
    limit = inp.limit or default_limit

    if inp.page < 1 or limit < 1 or limit > max_limit:
        return ListBookmarksOutput(
            items=[],
            total=0,
            page=inp.page,
            limit=limit,
            has_more=False,
            errors=_error(
                VALIDATION_ERROR, f"page must be >= 1 and limit 1-{max_limit}", "limit"
            ),
            success=False,
        )

    folder_name, errors = normalize_folder_name(
        inp.folder_name, rules.folder_name_max if rules else DEFAULT_FOLDER_NAME_MAX
    )
    if errors:
        return ListBookmarksOutput(
            items=[],
            total=0,
            page=inp.page,
            limit=limit,
            has_more=False,
            errors=errors,
            success=False,
        )

    offset = (inp.page - 1) * limit
    try:
        with store.read() as uow:
            user = _active_user(uow, inp.user_id)
            if user is None:
                return ListBookmarksOutput(
                    items=[],
                    total=0,
                    page=inp.page,
                    limit=limit,
                    has_more=False,
                    errors=_error(UNAUTHORIZED, "Authentication required", "user_id"),
                    success=False,
                )

            bookmarks = uow.engagement.list_bookmarks(user.id, folder_name, limit, offset)
            total = uow.engagement.count_bookmarks(user.id, folder_name)
            items: list[BookmarkEntry] = []
            for bookmark in bookmarks:
                article = uow.articles.get_by_id(bookmark.article_id)
                if article is not None:
                    items.append(BookmarkEntry(bookmark=bookmark, article=article))
    except StoreError:
        logger.exception("Listing bookmarks for %s failed", inp.user_id)
        return ListBookmarksOutput(
            items=[],
            total=0,
            page=inp.page,
            limit=limit,
            has_more=False,
            errors=[internal_error()],
            success=False,
        )

    return ListBookmarksOutput(
        items=items,
        total=total,
        page=inp.page,
        limit=limit,
        has_more=offset + len(bookmarks) < total,
    )


def run_record_progress(
    inp: RecordProgressInput,
    *,
    store: StorePort,
    policy: PolicyPort,
    clock: ClockPort,
) -> ProgressOutput:
    """
    Merge a reading-progress report into the stored record.

    Percentages keep their maximum, time spent accumulates and completed
    stays true once reported, so reports can arrive in any order.
    """
    errors = validate_progress_input(inp)
    if errors:
        return ProgressOutput(progress=None, errors=errors, success=False)

    now = clock.now_utc()
    try:
        with store.transaction() as uow:
            user = _active_user(uow, inp.user_id)
            if user is None:
                return ProgressOutput(
                    progress=None,
                    errors=_error(UNAUTHORIZED, "Authentication required", "user_id"),
                    success=False,
                )
            if not policy.is_allowed(user, "progress:record"):
                return ProgressOutput(
                    progress=None,
                    errors=_error(FORBIDDEN, "User not allowed to track progress", "user_id"),
                    success=False,
                )

            article = uow.articles.get_by_id(inp.article_id)
            if article is None:
                return ProgressOutput(
                    progress=None,
                    errors=_error(NOT_FOUND, "Article not found", "article_id"),
                    success=False,
                )
            if article.status != "published":
                return ProgressOutput(
                    progress=None,
                    errors=_error(NOT_PUBLISHED, "Article is not published", "article_id"),
                    success=False,
                )

            progress = uow.engagement.merge_progress(
                ReadingProgress(
                    user_id=user.id,
                    article_id=article.id,
                    scroll_percentage=inp.scroll_percentage,
                    completion_percentage=inp.completion_percentage,
                    time_spent_seconds=inp.time_spent_seconds,
                    completed=inp.completed,
                    first_read_at=now,
                    last_read_at=now,
                )
            )
    except StoreError:
        logger.exception("Recording progress on article %s failed", inp.article_id)
        return ProgressOutput(progress=None, errors=[internal_error()], success=False)

    return ProgressOutput(progress=progress)


def run_get_progress(inp: GetProgressInput, *, store: StorePort) -> ProgressOutput:
    try:
        with store.read() as uow:
            user = _active_user(uow, inp.user_id)
            if user is None:
                return ProgressOutput(
                    progress=None,
                    errors=_error(UNAUTHORIZED, "Authentication required", "user_id"),
                    success=False,
                )
            progress = uow.engagement.get_progress(user.id, inp.article_id)
    except StoreError:
        logger.exception("Reading progress on article %s failed", inp.article_id)
        return ProgressOutput(progress=None, errors=[internal_error()], success=False)

    if progress is None:
        return ProgressOutput(
            progress=None,
            errors=_error(NOT_FOUND, "No reading progress recorded", "article_id"),
            success=False,
        )
    return ProgressOutput(progress=progress)


def run_record_view(inp: RecordViewInput, *, store: StorePort) -> RecordViewOutput:
    """Count one view of a published article."""
    try:
        with store.transaction() as uow:
            article = uow.articles.get_by_id(inp.article_id)
            if article is None:
                return RecordViewOutput(
                    view_count=0,
                    errors=_error(NOT_FOUND, "Article not found", "article_id"),
                    success=False,
                )
            if article.status != "published":
                return RecordViewOutput(
                    view_count=article.view_count,
                    errors=_error(NOT_PUBLISHED, "Article is not published", "article_id"),
                    success=False,
                )
            count = uow.articles.adjust_counter(article.id, "view_count", 1)
    except StoreError:
        logger.exception("Recording view on article %s failed", inp.article_id)
        return RecordViewOutput(view_count=0, errors=[internal_error()], success=False)

    return RecordViewOutput(view_count=count)
