from typing import Any, Protocol

from src.domain.entities import User


class PolicyPort(Protocol):
    def is_allowed(self, user: User | None, action: str, resource: Any = None) -> bool:
        """Check if user may perform action, optionally on a specific resource."""
        ...
