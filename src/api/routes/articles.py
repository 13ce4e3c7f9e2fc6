"""
Article lifecycle routes.

Drafts are created and edited by their author; scheduling, publishing and
archiving go through the lifecycle component, which owns the state machine.
"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends

from src.adapters.sqlite.store import SQLiteStore
from src.api.deps import (
    get_current_user,
    get_lifecycle,
    get_optional_user,
    get_policy,
    get_store,
)
from src.api.envelope import ok, raise_for_errors
from src.api.schemas import (
    ArticleCreateRequest,
    ArticleUpdateRequest,
    ScheduleRequest,
    article_payload,
)
from src.components.articles import GetArticleViewInput, run_get_view
from src.components.engagement import RecordViewInput, run_record_view
from src.components.lifecycle import (
    ArchiveInput,
    CancelScheduleInput,
    CreateDraftInput,
    LifecycleComponent,
    LifecycleOutput,
    PublishNowInput,
    ScheduleInput,
    UpdateArticleInput,
)
from src.domain.entities import User
from src.domain.policy import PolicyEngine

router = APIRouter()


def _article_response(result: LifecycleOutput) -> dict[str, Any]:
    if not result.success or result.article is None:
        raise_for_errors(result.errors)
    return ok(article_payload(result.article))


@router.post("", status_code=201)
def create_article(
    req: ArticleCreateRequest,
    current_user: User = Depends(get_current_user),
    lifecycle: LifecycleComponent = Depends(get_lifecycle),
) -> dict[str, Any]:
    """Create a draft owned by the caller."""
    result = lifecycle.run_create_draft(
        CreateDraftInput(
            user_id=current_user.id,
            title=req.title,
            slug=req.slug,
            summary=req.summary,
            body=req.body,
        )
    )
    return _article_response(result)


@router.get("/{article_id}")
def get_article(
    article_id: UUID,
    viewer: User | None = Depends(get_optional_user),
    store: SQLiteStore = Depends(get_store),
    policy: PolicyEngine = Depends(get_policy),
) -> dict[str, Any]:
    """Article with author, counters and the viewer's reaction/bookmark state."""
    result = run_get_view(
        GetArticleViewInput(article_id=article_id, viewer_id=viewer.id if viewer else None),
        store=store,
        policy=policy,
    )
    if not result.success or result.view is None:
        raise_for_errors(result.errors)

    view = result.view
    return ok(
        {
            "article": article_payload(view.article),
            "author": {"id": view.author_id, "display_name": view.author_display_name},
            "viewer": {"reacted": view.viewer.reacted, "bookmarked": view.viewer.bookmarked},
        }
    )


@router.patch("/{article_id}")
def update_article(
    article_id: UUID,
    req: ArticleUpdateRequest,
    current_user: User = Depends(get_current_user),
    lifecycle: LifecycleComponent = Depends(get_lifecycle),
) -> dict[str, Any]:
    """Edit title, summary or body. Archived articles are read-only."""
    result = lifecycle.run_update(
        UpdateArticleInput(
            user_id=current_user.id,
            article_id=article_id,
            title=req.title,
            summary=req.summary,
            body=req.body,
        )
    )
    return _article_response(result)


@router.post("/{article_id}/schedule")
def schedule_article(
    article_id: UUID,
    req: ScheduleRequest,
    current_user: User = Depends(get_current_user),
    lifecycle: LifecycleComponent = Depends(get_lifecycle),
) -> dict[str, Any]:
    """Schedule a draft for future publication."""
    result = lifecycle.run_schedule(
        ScheduleInput(
            user_id=current_user.id,
            article_id=article_id,
            scheduled_for=req.scheduled_for,
        )
    )
    return _article_response(result)


@router.delete("/{article_id}/schedule")
def cancel_schedule(
    article_id: UUID,
    current_user: User = Depends(get_current_user),
    lifecycle: LifecycleComponent = Depends(get_lifecycle),
) -> dict[str, Any]:
    """Return a scheduled article to draft."""
    result = lifecycle.run_cancel_schedule(
        CancelScheduleInput(user_id=current_user.id, article_id=article_id)
    )
    return _article_response(result)


@router.post("/{article_id}/publish")
def publish_article(
    article_id: UUID,
    current_user: User = Depends(get_current_user),
    lifecycle: LifecycleComponent = Depends(get_lifecycle),
) -> dict[str, Any]:
    """Publish a draft or scheduled article immediately."""
    result = lifecycle.run_publish_now(
        PublishNowInput(user_id=current_user.id, article_id=article_id)
    )
    return _article_response(result)


@router.post("/{article_id}/archive")
def archive_article(
    article_id: UUID,
    current_user: User = Depends(get_current_user),
    lifecycle: LifecycleComponent = Depends(get_lifecycle),
) -> dict[str, Any]:
    """Archive a published article (admin only)."""
    result = lifecycle.run_archive(ArchiveInput(user_id=current_user.id, article_id=article_id))
    return _article_response(result)


@router.post("/{article_id}/view")
def record_view(
    article_id: UUID,
    store: SQLiteStore = Depends(get_store),
) -> dict[str, Any]:
    """Count one view of a published article."""
    result = run_record_view(RecordViewInput(article_id=article_id), store=store)
    if not result.success:
        raise_for_errors(result.errors)
    return ok({"view_count": result.view_count})
