"""
Reconcile component - repair drift in denormalized counters.

Counters are maintained in the same transaction as membership changes, so
drift only appears after manual edits or restores. The pass recomputes
every counter from membership inside one write transaction.
"""

from __future__ import annotations

import logging

from src.domain.errors import StoreError, internal_error

from .models import CounterDrift, ReconcileInput, ReconcileOutput
from .ports import StorePort

logger = logging.getLogger(__name__)


def run_reconcile(inp: ReconcileInput, *, store: StorePort) -> ReconcileOutput:
    """Recompute reaction, bookmark, comment and reply counters."""
    drift: list[CounterDrift] = []
    try:
        with store.transaction() as uow:
            for row in uow.counters.find_article_drift():
                drift.append(
                    CounterDrift(
                        table="articles",
                        row_id=row["article_id"],
                        column=row["column"],
                        stored=row["stored"],
                        actual=row["actual"],
                    )
                )
            for row in uow.counters.find_reply_drift():
                drift.append(
                    CounterDrift(
                        table="comments",
                        row_id=row["comment_id"],
                        column="reply_count",
                        stored=row["stored"],
                        actual=row["actual"],
                    )
                )

            if not inp.dry_run:
                for d in drift:
                    if d.table == "articles":
                        uow.counters.set_article_counter(d.row_id, d.column, d.actual)
                    else:
                        uow.counters.set_reply_count(d.row_id, d.actual)
    except StoreError:
        logger.exception("Counter reconciliation failed")
        return ReconcileOutput(errors=[internal_error()], success=False)

    for d in drift:
        logger.warning(
            "Counter drift %s.%s for %s: stored=%d actual=%d",
            d.table,
            d.column,
            d.row_id,
            d.stored,
            d.actual,
        )

    repaired = 0 if inp.dry_run else len(drift)
    return ReconcileOutput(drift=drift, repaired=repaired)
