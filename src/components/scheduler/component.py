"""
Scheduler component - periodic promotion of due scheduled articles.

Each due article is published in its own transaction. The write re-reads
the article and re-checks status = scheduled and scheduled_for <= now, so a
concurrent cancel, a user publish_now or a second sweep makes this one a
no-op instead of a double publish. Store failures are logged and left for
the next sweep; nothing is dead-lettered.
"""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from src.domain.errors import INTERNAL, ErrorDetail, StoreError, internal_error
from src.domain.state import transition
from src.domain.timeutil import ensure_utc

from .models import SweepInput, SweepItemResult, SweepOutput
from .ports import ClockPort, RulesPort, StorePort

logger = logging.getLogger(__name__)

DEFAULT_BATCH_LIMIT = 100


def _publish_one(article_id: UUID, now: datetime, store: StorePort) -> SweepItemResult:
    try:
        with store.transaction() as uow:
            current = uow.articles.get_by_id(article_id)
            if (
                current is None
                or current.status != "scheduled"
                or current.scheduled_for is None
                or current.scheduled_for > now
            ):
                return SweepItemResult(article_id, "skipped", "No longer due")

            updated = transition(current, "published", now)
            if not uow.articles.update_lifecycle(updated, expected_status="scheduled"):
                return SweepItemResult(article_id, "skipped", "Status changed concurrently")
    except StoreError as e:
        logger.exception("Scheduled publish of article %s failed", article_id)
        return SweepItemResult(article_id, "failed", str(e))

    logger.info("Article %s published by scheduler", article_id)
    return SweepItemResult(article_id, "published")


def run_sweep(
    inp: SweepInput,
    *,
    store: StorePort,
    clock: ClockPort,
    rules: RulesPort | None = None,
) -> SweepOutput:
    """Publish every scheduled article whose time has come."""
    now = ensure_utc(inp.now) if inp.now else clock.now_utc()
    limit = inp.limit or (rules.batch_limit if rules else DEFAULT_BATCH_LIMIT)

    try:
        with store.read() as uow:
            due = uow.articles.list_due(now, limit)
    except StoreError:
        logger.exception("Listing due articles failed")
        return SweepOutput(errors=[internal_error()], success=False)

    results = [_publish_one(article.id, now, store) for article in due]

    published = sum(1 for r in results if r.outcome == "published")
    skipped = sum(1 for r in results if r.outcome == "skipped")
    failed = sum(1 for r in results if r.outcome == "failed")

    errors = [
        ErrorDetail(
            code=INTERNAL,
            message=f"Failed to publish article {r.article_id}",
            field="article_id",
        )
        for r in results
        if r.outcome == "failed"
    ]

    if due:
        logger.info(
            "Sweep at %s: %d due, %d published, %d skipped, %d failed",
            now.isoformat(),
            len(due),
            published,
            skipped,
            failed,
        )

    return SweepOutput(
        published=published,
        skipped=skipped,
        failed=failed,
        results=results,
        errors=errors,
        success=not errors,
    )
