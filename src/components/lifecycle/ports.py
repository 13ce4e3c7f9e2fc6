"""Lifecycle component port definitions - protocols for dependencies."""

from src.ports.clock import ClockPort
from src.ports.policy import PolicyPort
from src.ports.store import StorePort

__all__ = ["ClockPort", "PolicyPort", "StorePort"]
