"""Reconcile component - recompute denormalized counters."""

from .component import run_reconcile
from .models import CounterDrift, ReconcileInput, ReconcileOutput
from .ports import StorePort

__all__ = ["run_reconcile", "CounterDrift", "ReconcileInput", "ReconcileOutput", "StorePort"]
