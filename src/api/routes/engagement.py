"""
Engagement routes: reaction and bookmark toggles, bookmark listing and
reading progress.
"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends

from src.adapters.sqlite.store import SQLiteStore
from src.api.deps import (
    get_clock,
    get_current_user,
    get_optional_user,
    get_policy,
    get_rules,
    get_store,
)
from src.api.envelope import ok, raise_for_errors
from src.api.schemas import BookmarkToggleRequest, ProgressRequest, article_payload
from src.components.engagement import (
    GetProgressInput,
    ListBookmarksInput,
    RecordProgressInput,
    StatusInput,
    ToggleInput,
    run_get_progress,
    run_list_bookmarks,
    run_record_progress,
    run_status,
    run_toggle,
)
from src.domain.entities import EngagementKind, User
from src.domain.policy import PolicyEngine
from src.ports.clock import ClockPort
from src.rules.models import Rules

router = APIRouter()


def _toggle(
    kind: EngagementKind,
    article_id: UUID,
    user: User,
    folder_name: str | None,
    store: SQLiteStore,
    policy: PolicyEngine,
    clock: ClockPort,
    rules: Rules,
) -> dict[str, Any]:
    result = run_toggle(
        ToggleInput(kind=kind, user_id=user.id, article_id=article_id, folder_name=folder_name),
        store=store,
        policy=policy,
        clock=clock,
        rules=rules.engagement,
    )
    if not result.success:
        raise_for_errors(result.errors)
    return ok({"outcome": result.outcome, "active": result.active, "count": result.count})


def _status(
    kind: EngagementKind,
    article_id: UUID,
    viewer: User | None,
    store: SQLiteStore,
    policy: PolicyEngine,
) -> dict[str, Any]:
    result = run_status(
        StatusInput(kind=kind, user_id=viewer.id if viewer else None, article_id=article_id),
        store=store,
        policy=policy,
    )
    if not result.success:
        raise_for_errors(result.errors)
    return ok({"active": result.active, "count": result.count})


# --- Reactions ---


@router.post("/articles/{article_id}/reaction")
def toggle_reaction(
    article_id: UUID,
    current_user: User = Depends(get_current_user),
    store: SQLiteStore = Depends(get_store),
    policy: PolicyEngine = Depends(get_policy),
    clock: ClockPort = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> dict[str, Any]:
    """Like the article, or remove the like if already present."""
    return _toggle("reaction", article_id, current_user, None, store, policy, clock, rules)


@router.get("/articles/{article_id}/reaction")
def reaction_status(
    article_id: UUID,
    viewer: User | None = Depends(get_optional_user),
    store: SQLiteStore = Depends(get_store),
    policy: PolicyEngine = Depends(get_policy),
) -> dict[str, Any]:
    return _status("reaction", article_id, viewer, store, policy)


# --- Bookmarks ---


@router.post("/articles/{article_id}/bookmark")
def toggle_bookmark(
    article_id: UUID,
    req: BookmarkToggleRequest | None = None,
    current_user: User = Depends(get_current_user),
    store: SQLiteStore = Depends(get_store),
    policy: PolicyEngine = Depends(get_policy),
    clock: ClockPort = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> dict[str, Any]:
    """Bookmark the article (optionally into a folder), or remove the bookmark."""
    folder_name = req.folder_name if req else None
    return _toggle("bookmark", article_id, current_user, folder_name, store, policy, clock, rules)


@router.get("/articles/{article_id}/bookmark")
def bookmark_status(
    article_id: UUID,
    viewer: User | None = Depends(get_optional_user),
    store: SQLiteStore = Depends(get_store),
    policy: PolicyEngine = Depends(get_policy),
) -> dict[str, Any]:
    return _status("bookmark", article_id, viewer, store, policy)


@router.get("/bookmarks")
def list_bookmarks(
    folder: str | None = None,
    page: int = 1,
    limit: int | None = None,
    current_user: User = Depends(get_current_user),
    store: SQLiteStore = Depends(get_store),
    rules: Rules = Depends(get_rules),
) -> dict[str, Any]:
    """The caller's bookmarks, newest first."""
    result = run_list_bookmarks(
        ListBookmarksInput(user_id=current_user.id, folder_name=folder, page=page, limit=limit),
        store=store,
        rules=rules.engagement,
    )
    if not result.success:
        raise_for_errors(result.errors)

    return ok(
        {
            "items": [
                {
                    "folder_name": entry.bookmark.folder_name,
                    "bookmarked_at": entry.bookmark.created_at,
                    "article": article_payload(entry.article),
                }
                for entry in result.items
            ],
            "total": result.total,
            "page": result.page,
            "limit": result.limit,
            "has_more": result.has_more,
        }
    )


# --- Reading progress ---


@router.post("/articles/{article_id}/progress")
def record_progress(
    article_id: UUID,
    req: ProgressRequest,
    current_user: User = Depends(get_current_user),
    store: SQLiteStore = Depends(get_store),
    policy: PolicyEngine = Depends(get_policy),
    clock: ClockPort = Depends(get_clock),
) -> dict[str, Any]:
    """Merge a progress report into the caller's reading progress."""
    result = run_record_progress(
        RecordProgressInput(
            user_id=current_user.id,
            article_id=article_id,
            scroll_percentage=req.scroll_percentage,
            time_spent_seconds=req.time_spent_seconds,
            completed=req.completed,
            completion_percentage=req.completion_percentage,
        ),
        store=store,
        policy=policy,
        clock=clock,
    )
    if not result.success or result.progress is None:
        raise_for_errors(result.errors)
    return ok(result.progress.model_dump(mode="json"))


@router.get("/articles/{article_id}/progress")
def get_progress(
    article_id: UUID,
    current_user: User = Depends(get_current_user),
    store: SQLiteStore = Depends(get_store),
) -> dict[str, Any]:
    result = run_get_progress(
        GetProgressInput(user_id=current_user.id, article_id=article_id), store=store
    )
    if not result.success or result.progress is None:
        raise_for_errors(result.errors)
    return ok(result.progress.model_dump(mode="json"))
