"""
Tests for the background publication scheduler loop.

The sweep and reconcile callables are fakes; the loop only aggregates
their outputs and manages the thread.
"""

from __future__ import annotations

import threading
from datetime import UTC, datetime
from uuid import uuid4

from src.adapters.clock import FrozenClock
from src.adapters.scheduler_loop import PublicationSchedulerLoop
from src.components.reconcile import ReconcileOutput
from src.components.scheduler import SweepItemResult, SweepOutput
from src.domain.errors import ErrorDetail

T0 = datetime(2025, 3, 1, 9, 0, tzinfo=UTC)


class FakeSweep:
    def __init__(self, *outputs: SweepOutput) -> None:
        self.outputs = list(outputs)
        self.calls = 0
        self.called = threading.Event()

    def __call__(self) -> SweepOutput:
        self.calls += 1
        self.called.set()
        if self.outputs:
            return self.outputs.pop(0)
        return SweepOutput()


def _published(count: int) -> SweepOutput:
    return SweepOutput(
        published=count,
        results=[SweepItemResult(article_id=uuid4(), outcome="published") for _ in range(count)],
    )


class TestTriggerNow:
    def test_accumulates_stats(self) -> None:
        sweep = FakeSweep(_published(2), SweepOutput(skipped=1))
        loop = PublicationSchedulerLoop(sweep=sweep, clock=FrozenClock(T0))

        first = loop.trigger_now()
        loop.trigger_now()

        assert first.published == 2
        stats = loop.stats()
        assert stats["sweeps"] == 2
        assert stats["published"] == 2
        assert stats["skipped"] == 1
        assert stats["last_sweep_at"] == T0
        assert stats["running"] is False

    def test_records_last_error(self) -> None:
        failing = SweepOutput(
            failed=1,
            success=False,
            errors=[ErrorDetail(code="INTERNAL", message="Internal error, please retry")],
        )
        loop = PublicationSchedulerLoop(sweep=FakeSweep(failing), clock=FrozenClock(T0))

        loop.trigger_now()

        stats = loop.stats()
        assert stats["failures"] == 1
        assert stats["last_error"] == "Internal error, please retry"

    def test_reconcile_every_n_sweeps(self) -> None:
        reconcile_calls = []

        def reconcile() -> ReconcileOutput:
            reconcile_calls.append(1)
            return ReconcileOutput(repaired=3)

        loop = PublicationSchedulerLoop(
            sweep=FakeSweep(),
            clock=FrozenClock(T0),
            reconcile=reconcile,
            reconcile_every=2,
        )

        for _ in range(5):
            loop.trigger_now()

        assert len(reconcile_calls) == 2
        assert loop.stats()["reconciliations"] == 2
        assert loop.stats()["counters_repaired"] == 6

    def test_reconcile_disabled_by_default(self) -> None:
        called = []
        loop = PublicationSchedulerLoop(
            sweep=FakeSweep(),
            clock=FrozenClock(T0),
            reconcile=lambda: called.append(1) or ReconcileOutput(),
        )
        loop.trigger_now()
        assert called == []


class TestBackgroundThread:
    def test_start_and_stop(self) -> None:
        sweep = FakeSweep()
        loop = PublicationSchedulerLoop(sweep=sweep, clock=FrozenClock(T0), interval_seconds=0.01)

        loop.start()
        loop.start()  # second start is a no-op
        assert sweep.called.wait(timeout=2.0)
        assert loop.is_running is True

        loop.stop()
        assert loop.is_running is False
        assert sweep.calls >= 1

        loop.stop()  # stopping twice is harmless

    def test_exception_does_not_kill_loop(self) -> None:
        calls = []
        second_call = threading.Event()

        def flaky() -> SweepOutput:
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("database is locked")
            second_call.set()
            return SweepOutput()

        loop = PublicationSchedulerLoop(sweep=flaky, clock=FrozenClock(T0), interval_seconds=0.01)
        loop.start()
        try:
            assert second_call.wait(timeout=2.0)
        finally:
            loop.stop()

        assert len(calls) >= 2
