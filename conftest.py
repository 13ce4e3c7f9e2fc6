"""
Shared fixtures: a migrated temporary database, the real rules.yaml, a
frozen clock and factories for users and articles.
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import uuid4

import pytest

from src.adapters.clock import FrozenClock
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.store import SQLiteStore
from src.domain.entities import Article, ArticleStatus, RoleType, User
from src.domain.policy import PolicyEngine
from src.rules.loader import load_rules
from src.rules.models import Rules

ROOT = Path(__file__).parent
RULES_PATH = ROOT / "rules.yaml"
MIGRATIONS_DIR = ROOT / "migrations"

T0 = datetime(2025, 3, 1, 9, 0, 0, tzinfo=UTC)


@pytest.fixture
def rules() -> Rules:
    return load_rules(RULES_PATH)


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    path = str(tmp_path / "newsdesk.db")
    SQLiteMigrator(path, str(MIGRATIONS_DIR)).run_migrations()
    return path


@pytest.fixture
def store(db_path: str, rules: Rules) -> SQLiteStore:
    return SQLiteStore(db_path, timeout=rules.ops.db_busy_timeout_seconds)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(T0)


@pytest.fixture
def policy(rules: Rules) -> PolicyEngine:
    return PolicyEngine(rules)


@pytest.fixture
def make_user(store: SQLiteStore, clock: FrozenClock) -> Callable[..., User]:
    """Persist a user with one role."""

    def _make(
        role: RoleType = "reader",
        display_name: str | None = None,
        status: str = "active",
    ) -> User:
        now = clock.now_utc()
        user = User(
            email=f"{role}-{uuid4().hex[:8]}@example.com",
            display_name=display_name or role.title(),
            roles=[role],
            status=status,
            created_at=now,
            updated_at=now,
        )
        with store.transaction() as uow:
            uow.users.save(user)
        return user

    return _make


@pytest.fixture
def make_article(store: SQLiteStore, clock: FrozenClock) -> Callable[..., Article]:
    """Persist an article directly in the given status."""

    def _make(
        author: User,
        status: ArticleStatus = "published",
        title: str = "Quarterly results are in",
        scheduled_for: datetime | None = None,
    ) -> Article:
        now = clock.now_utc()
        if status == "scheduled" and scheduled_for is None:
            scheduled_for = now + timedelta(hours=1)
        article = Article(
            author_user_id=author.id,
            slug=f"article-{uuid4().hex[:8]}",
            title=title,
            body="Body text.",
            status=status,
            published_at=now if status in ("published", "archived") else None,
            scheduled_for=scheduled_for if status == "scheduled" else None,
            created_at=now,
            updated_at=now,
        )
        with store.transaction() as uow:
            uow.articles.insert(article)
        return article

    return _make


@pytest.fixture
def author(make_user: Callable[..., User]) -> User:
    return make_user("author", display_name="Ada Author")


@pytest.fixture
def reader(make_user: Callable[..., User]) -> User:
    return make_user("reader", display_name="Rae Reader")


@pytest.fixture
def admin(make_user: Callable[..., User]) -> User:
    return make_user("admin", display_name="Ann Admin")
