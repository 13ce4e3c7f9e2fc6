"""Articles facade ports."""

from src.ports.policy import PolicyPort
from src.ports.store import StorePort

__all__ = ["PolicyPort", "StorePort"]
