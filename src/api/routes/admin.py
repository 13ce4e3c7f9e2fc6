"""
Admin routes: comment moderation, the publication scheduler and counter
reconciliation. Every route requires a user holding the matching
permission (admins hold `*`).
"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends

from src.adapters.scheduler_loop import PublicationSchedulerLoop
from src.adapters.sqlite.store import SQLiteStore
from src.api.deps import (
    get_clock,
    get_current_user,
    get_discussion,
    get_policy,
    get_rules,
    get_scheduler_loop,
    get_store,
)
from src.api.envelope import ApiError, ok, raise_for_errors
from src.api.schemas import ModerateRequest, comment_payload
from src.components.discussion import DiscussionComponent, ModerateCommentInput
from src.components.reconcile import ReconcileInput, run_reconcile
from src.components.scheduler import SweepInput, run_sweep
from src.domain.entities import User
from src.domain.errors import FORBIDDEN
from src.domain.policy import PolicyEngine
from src.ports.clock import ClockPort
from src.rules.models import Rules

router = APIRouter()


def _require(policy: PolicyEngine, user: User, action: str) -> None:
    if not policy.is_allowed(user, action):
        raise ApiError(FORBIDDEN, "Access denied")


@router.post("/comments/{comment_id}/moderate")
def moderate_comment(
    comment_id: UUID,
    req: ModerateRequest,
    current_user: User = Depends(get_current_user),
    discussion: DiscussionComponent = Depends(get_discussion),
) -> dict[str, Any]:
    """Set a comment's moderation status."""
    result = discussion.run_moderate(
        ModerateCommentInput(user_id=current_user.id, comment_id=comment_id, status=req.status)
    )
    if not result.success or result.comment is None:
        raise_for_errors(result.errors)
    return ok(comment_payload(result.comment))


@router.post("/scheduler/sweep")
def trigger_sweep(
    current_user: User = Depends(get_current_user),
    policy: PolicyEngine = Depends(get_policy),
    store: SQLiteStore = Depends(get_store),
    clock: ClockPort = Depends(get_clock),
    rules: Rules = Depends(get_rules),
    loop: PublicationSchedulerLoop | None = Depends(get_scheduler_loop),
) -> dict[str, Any]:
    """
    Run one publication sweep now.

    Goes through the background loop when it is running, so the sweep is
    counted in its stats.
    """
    _require(policy, current_user, "scheduler:run")

    if loop is not None:
        result = loop.trigger_now()
    else:
        result = run_sweep(SweepInput(), store=store, clock=clock, rules=rules.scheduling)

    return ok(
        {
            "published": result.published,
            "skipped": result.skipped,
            "failed": result.failed,
            "results": result.results,
            "success": result.success,
        }
    )


@router.get("/scheduler/status")
def scheduler_status(
    current_user: User = Depends(get_current_user),
    policy: PolicyEngine = Depends(get_policy),
    rules: Rules = Depends(get_rules),
    loop: PublicationSchedulerLoop | None = Depends(get_scheduler_loop),
) -> dict[str, Any]:
    _require(policy, current_user, "scheduler:read")
    if loop is None:
        return ok(
            {"running": False, "interval_seconds": rules.scheduling.sweep_interval_seconds}
        )
    return ok(loop.stats())


@router.post("/counters/reconcile")
def reconcile_counters(
    dry_run: bool = False,
    current_user: User = Depends(get_current_user),
    policy: PolicyEngine = Depends(get_policy),
    store: SQLiteStore = Depends(get_store),
) -> dict[str, Any]:
    """Recompute denormalized counters; with dry_run, only report drift."""
    _require(policy, current_user, "counters:reconcile")

    result = run_reconcile(ReconcileInput(dry_run=dry_run), store=store)
    if not result.success:
        raise_for_errors(result.errors)
    return ok({"drift": result.drift, "repaired": result.repaired, "dry_run": dry_run})
