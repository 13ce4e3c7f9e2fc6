"""
HTTP-level fixtures: the real application with its store, rules and
clock swapped for the per-test ones.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

from src.api.auth_utils import create_user_token
from src.api.deps import get_clock, get_rules, get_store
from src.api.main import app
from src.domain.entities import User


@pytest.fixture
def client(store, rules, clock) -> Iterator[TestClient]:
    # No context manager: the lifespan would migrate the configured database
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_rules] = lambda: rules
    app.dependency_overrides[get_clock] = lambda: clock
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth() -> Callable[[User], dict[str, str]]:
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_user_token(user.id)}"}

    return _headers
