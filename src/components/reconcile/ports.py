"""Reconcile component ports."""

from src.ports.store import StorePort

__all__ = ["StorePort"]
