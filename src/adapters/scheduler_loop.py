"""
Publication scheduler loop.

Runs the publication sweep on a fixed interval in a background thread.
The sweep itself is idempotent, so several loops (or a loop plus a cron
invocation of the CLI) can run against the same database.

Key behaviors:
- start()/stop() are idempotent and restartable
- trigger_now() runs one sweep in the caller's thread
- aggregate statistics are kept for the admin status endpoint
- optional counter reconciliation every N sweeps
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from src.components.reconcile import ReconcileOutput
from src.components.scheduler import SweepOutput
from src.ports.clock import ClockPort

logger = logging.getLogger(__name__)


@dataclass
class SchedulerStats:
    sweeps: int = 0
    published: int = 0
    skipped: int = 0
    failures: int = 0
    reconciliations: int = 0
    counters_repaired: int = 0
    last_sweep_at: datetime | None = None
    last_error: str | None = None


class PublicationSchedulerLoop:
    """
    Background sweep runner.

    Args:
        sweep: Runs one sweep and returns its output
        clock: Time source for last_sweep_at
        interval_seconds: Pause between sweeps
        reconcile: Optional counter reconciliation callable
        reconcile_every: Run reconcile after every N sweeps (0 disables)
    """

    def __init__(
        self,
        sweep: Callable[[], SweepOutput],
        clock: ClockPort,
        interval_seconds: float = 60.0,
        reconcile: Callable[[], ReconcileOutput] | None = None,
        reconcile_every: int = 0,
    ) -> None:
        self._sweep = sweep
        self._clock = clock
        self._interval = interval_seconds
        self._reconcile = reconcile
        self._reconcile_every = reconcile_every
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._stats = SchedulerStats()

    def start(self) -> None:
        """Start the background loop."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop, name="publication-scheduler", daemon=True
        )
        self._thread.start()
        logger.info("Publication scheduler started (interval: %.1fs)", self._interval)

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the loop and wait for the current sweep to finish."""
        if self._thread is None:
            return

        self._stop_event.set()
        self._thread.join(timeout=timeout)
        self._thread = None
        logger.info("Publication scheduler stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def trigger_now(self) -> SweepOutput:
        """Run one sweep immediately and record it."""
        return self._tick()

    def run_forever(self) -> None:
        """Sweep in the calling thread until stop() is called from elsewhere."""
        self._stop_event.clear()
        self._poll_loop()

    def stats(self) -> dict[str, Any]:
        with self._lock:
            data = asdict(self._stats)
        data["running"] = self.is_running
        data["interval_seconds"] = self._interval
        return data

    def _tick(self) -> SweepOutput:
        result = self._sweep()
        with self._lock:
            self._stats.sweeps += 1
            self._stats.published += result.published
            self._stats.skipped += result.skipped
            self._stats.failures += result.failed
            self._stats.last_sweep_at = self._clock.now_utc()
            self._stats.last_error = result.errors[0].message if result.errors else None
            run_reconcile = (
                self._reconcile is not None
                and self._reconcile_every > 0
                and self._stats.sweeps % self._reconcile_every == 0
            )

        if run_reconcile and self._reconcile is not None:
            outcome = self._reconcile()
            with self._lock:
                self._stats.reconciliations += 1
                self._stats.counters_repaired += outcome.repaired

        return result

    def _poll_loop(self) -> None:
        """Sweep, then wait for the interval or a stop request."""
        while not self._stop_event.is_set():
            try:
                self._tick()
            except Exception as e:
                logger.exception("Error in publication scheduler loop")
                with self._lock:
                    self._stats.last_error = str(e)
            self._stop_event.wait(timeout=self._interval)
