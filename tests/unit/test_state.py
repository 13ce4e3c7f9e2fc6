from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from src.domain.entities import Article
from src.domain.errors import InvalidTransitionError
from src.domain.state import TRANSITIONS, can_transition, transition

NOW = datetime(2025, 3, 1, 9, 0, tzinfo=UTC)


@pytest.fixture
def draft() -> Article:
    return Article(author_user_id=uuid4(), slug="draft", title="Draft", created_at=NOW)


def test_graph_is_closed():
    for targets in TRANSITIONS.values():
        assert targets <= set(TRANSITIONS)


@pytest.mark.parametrize(
    ("current", "new", "allowed"),
    [
        ("draft", "published", True),
        ("scheduled", "draft", True),
        ("scheduled", "published", True),
        ("published", "archived", True),
        ("published", "draft", False),
        ("published", "scheduled", False),
        ("archived", "published", False),
        ("archived", "draft", False),
        ("draft", "archived", False),
    ],
)
def test_edges(current, new, allowed):
    assert can_transition(current, new) is allowed


def test_scheduling_needs_future_time():
    assert can_transition("draft", "scheduled", NOW + timedelta(seconds=1), NOW) is True
    assert can_transition("draft", "scheduled", NOW, NOW) is False
    assert can_transition("draft", "scheduled", None, NOW) is False


def test_schedule_sets_and_cancel_clears(draft):
    at = NOW + timedelta(hours=1)
    scheduled = transition(draft, "scheduled", NOW, at)
    assert scheduled.status == "scheduled"
    assert scheduled.scheduled_for == at
    assert draft.status == "draft"  # original untouched

    back = transition(scheduled, "draft", NOW)
    assert back.scheduled_for is None


def test_published_at_set_once(draft):
    published = transition(draft, "published", NOW)
    assert published.published_at == NOW
    assert published.scheduled_for is None

    archived = transition(published, "archived", NOW + timedelta(days=3))
    assert archived.published_at == NOW


def test_invalid_edge_raises(draft):
    with pytest.raises(InvalidTransitionError):
        transition(draft, "archived", NOW)
