from contextlib import AbstractContextManager
from typing import Protocol

from src.ports.repo import (
    ArticleRepoPort,
    CommentRepoPort,
    CounterRepoPort,
    EngagementRepoPort,
    UserRepoPort,
)


class UnitOfWorkPort(Protocol):
    """Repositories bound to one transaction; commit on clean exit."""

    users: UserRepoPort
    articles: ArticleRepoPort
    engagement: EngagementRepoPort
    comments: CommentRepoPort
    counters: CounterRepoPort


class StorePort(Protocol):
    def transaction(self) -> AbstractContextManager[UnitOfWorkPort]:
        """Open a write transaction (serialized against other writers)."""
        ...

    def read(self) -> AbstractContextManager[UnitOfWorkPort]:
        """Open a read-only snapshot."""
        ...

    def ping(self) -> bool:
        ...
