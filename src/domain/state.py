from datetime import datetime
from typing import Any

from src.domain.entities import Article, ArticleStatus
from src.domain.errors import InvalidTransitionError

# Fixed lifecycle graph. published and archived never return to draft/scheduled.
TRANSITIONS: dict[ArticleStatus, frozenset[ArticleStatus]] = {
    "draft": frozenset({"scheduled", "published"}),
    "scheduled": frozenset({"draft", "published"}),
    "published": frozenset({"archived"}),
    "archived": frozenset(),
}


def can_transition(
    current: ArticleStatus,
    new: ArticleStatus,
    scheduled_for: datetime | None = None,
    now: datetime | None = None,
) -> bool:
    """
    Determine if a lifecycle edge is allowed.

    Entering scheduled additionally needs a publication time strictly after now.
    """
    if new not in TRANSITIONS.get(current, frozenset()):
        return False

    if new == "scheduled":
        if not scheduled_for or not now:
            return False
        return scheduled_for > now

    return True


def transition(
    article: Article,
    new_status: ArticleStatus,
    now: datetime,
    scheduled_for: datetime | None = None,
) -> Article:
    """
    Return a NEW Article with the updated status and timestamps.
    Raises InvalidTransitionError if the edge is not allowed.
    """
    if not can_transition(article.status, new_status, scheduled_for, now):
        raise InvalidTransitionError(
            f"Cannot move article from {article.status} to {new_status}"
        )

    updates: dict[str, Any] = {
        "status": new_status,
        "updated_at": now,
        "scheduled_for": None,
    }

    if new_status == "scheduled":
        updates["scheduled_for"] = scheduled_for

    if new_status == "published" and article.published_at is None:
        # Set exactly once, never cleared afterwards
        updates["published_at"] = now

    return article.model_copy(update=updates)
