"""
Unit tests for Engagement component.

Covers reaction/bookmark toggles, status queries, bookmark listing,
reading progress and view counting.
"""

from __future__ import annotations

from uuid import uuid4

import pytest

from src.components.engagement import (
    GetProgressInput,
    ListBookmarksInput,
    RecordProgressInput,
    RecordViewInput,
    StatusInput,
    ToggleInput,
    normalize_folder_name,
    run_get_progress,
    run_list_bookmarks,
    run_record_progress,
    run_record_view,
    run_status,
    run_toggle,
    validate_progress_input,
)

# --- Helpers ---


@pytest.fixture
def toggle(store, policy, clock, rules):
    def _toggle(kind, user, article, folder_name=None):
        return run_toggle(
            ToggleInput(
                kind=kind,
                user_id=user.id if user else None,
                article_id=article.id,
                folder_name=folder_name,
            ),
            store=store,
            policy=policy,
            clock=clock,
            rules=rules.engagement,
        )

    return _toggle


@pytest.fixture
def status(store, policy):
    def _status(kind, user, article):
        return run_status(
            StatusInput(kind=kind, user_id=user.id if user else None, article_id=article.id),
            store=store,
            policy=policy,
        )

    return _status


@pytest.fixture
def article(make_article, author):
    return make_article(author)


# --- Pure functions ---


class TestNormalizeFolderName:
    def test_none_and_blank_mean_no_folder(self) -> None:
        assert normalize_folder_name(None) == (None, [])
        assert normalize_folder_name("   ") == (None, [])

    def test_trims(self) -> None:
        assert normalize_folder_name("  Read later ") == ("Read later", [])

    def test_too_long(self) -> None:
        cleaned, errors = normalize_folder_name("x" * 11, max_length=10)
        assert cleaned is None
        assert errors[0].field == "folder_name"


class TestValidateProgressInput:
    def test_valid(self) -> None:
        inp = RecordProgressInput(user_id=uuid4(), article_id=uuid4(), scroll_percentage=50)
        assert validate_progress_input(inp) == []

    def test_out_of_range(self) -> None:
        inp = RecordProgressInput(
            user_id=uuid4(),
            article_id=uuid4(),
            scroll_percentage=101,
            completion_percentage=-1,
            time_spent_seconds=-5,
        )
        fields = {e.field for e in validate_progress_input(inp)}
        assert fields == {"scroll_percentage", "completion_percentage", "time_spent_seconds"}


# --- Toggles ---


class TestToggle:
    def test_reaction_toggle_twice_restores_state(self, toggle, status, reader, article) -> None:
        on = toggle("reaction", reader, article)
        assert (on.outcome, on.active, on.count) == ("created", True, 1)

        off = toggle("reaction", reader, article)
        assert (off.outcome, off.active, off.count) == ("removed", False, 0)

        after = status("reaction", reader, article)
        assert after.active is False
        assert after.count == 0

    def test_bookmark_two_users(self, toggle, status, make_user, article) -> None:
        a = make_user("reader")
        b = make_user("reader")

        assert toggle("bookmark", a, article).count == 1
        assert toggle("bookmark", b, article).count == 2

        removed = toggle("bookmark", a, article)
        assert removed.active is False
        assert removed.count == 1

        assert status("bookmark", a, article).active is False
        assert status("bookmark", b, article).active is True

    def test_reaction_and_bookmark_are_independent(self, toggle, reader, article) -> None:
        toggle("reaction", reader, article)
        bookmark = toggle("bookmark", reader, article)
        assert bookmark.count == 1
        assert bookmark.active is True

    def test_anonymous_is_unauthorized(self, toggle, article) -> None:
        result = toggle("reaction", None, article)
        assert result.errors[0].code == "UNAUTHORIZED"

    def test_disabled_user_is_unauthorized(self, toggle, make_user, article) -> None:
        disabled = make_user("reader", status="disabled")
        assert toggle("reaction", disabled, article).errors[0].code == "UNAUTHORIZED"

    def test_missing_article(self, toggle, reader, make_article, author) -> None:
        ghost = make_article(author).model_copy(update={"id": uuid4()})
        assert toggle("reaction", reader, ghost).errors[0].code == "NOT_FOUND"

    @pytest.mark.parametrize("article_status", ["draft", "scheduled", "archived"])
    def test_not_published(self, toggle, reader, make_article, author, article_status) -> None:
        target = make_article(author, status=article_status)
        result = toggle("bookmark", reader, target)
        assert result.success is False
        assert result.errors[0].code == "NOT_PUBLISHED"

    def test_folder_name_too_long(self, toggle, reader, article, rules) -> None:
        result = toggle("bookmark", reader, article, "f" * (rules.engagement.folder_name_max + 1))
        assert result.errors[0].code == "VALIDATION_ERROR"


class TestStatus:
    def test_anonymous_sees_count_only(self, toggle, status, reader, article) -> None:
        toggle("reaction", reader, article)
        result = status("reaction", None, article)
        assert result.success is True
        assert result.active is False
        assert result.count == 1

    def test_draft_hidden(self, status, reader, make_article, author) -> None:
        draft = make_article(author, status="draft")
        assert status("reaction", reader, draft).errors[0].code == "NOT_FOUND"


# --- Bookmarks listing ---


class TestListBookmarks:
    def test_lists_newest_first_and_filters_folder(
        self, toggle, store, rules, clock, reader, make_article, author
    ) -> None:
        first = make_article(author, title="First story")
        clock.advance(minutes=1)
        second = make_article(author, title="Second story")

        toggle("bookmark", reader, first, "Work")
        clock.advance(minutes=1)
        toggle("bookmark", reader, second)

        everything = run_list_bookmarks(
            ListBookmarksInput(user_id=reader.id), store=store, rules=rules.engagement
        )
        assert everything.total == 2
        assert [e.article.id for e in everything.items] == [second.id, first.id]

        work = run_list_bookmarks(
            ListBookmarksInput(user_id=reader.id, folder_name=" Work "),
            store=store,
            rules=rules.engagement,
        )
        assert [e.article.id for e in work.items] == [first.id]
        assert work.items[0].bookmark.folder_name == "Work"

    def test_pagination(self, toggle, store, rules, clock, reader, make_article, author) -> None:
        for _ in range(3):
            toggle("bookmark", reader, make_article(author))
            clock.advance(seconds=1)

        page = run_list_bookmarks(
            ListBookmarksInput(user_id=reader.id, page=1, limit=2),
            store=store,
            rules=rules.engagement,
        )
        assert len(page.items) == 2
        assert page.has_more is True

        last = run_list_bookmarks(
            ListBookmarksInput(user_id=reader.id, page=2, limit=2),
            store=store,
            rules=rules.engagement,
        )
        assert len(last.items) == 1
        assert last.has_more is False

    def test_invalid_page(self, store, rules, reader) -> None:
        result = run_list_bookmarks(
            ListBookmarksInput(user_id=reader.id, page=0), store=store, rules=rules.engagement
        )
        assert result.errors[0].code == "VALIDATION_ERROR"

    def test_requires_user(self, store, rules) -> None:
        result = run_list_bookmarks(
            ListBookmarksInput(user_id=None), store=store, rules=rules.engagement
        )
        assert result.errors[0].code == "UNAUTHORIZED"


# --- Reading progress ---


class TestProgress:
    def test_merge_keeps_max_and_sums_time(self, store, policy, clock, reader, article) -> None:
        def record(**kwargs):
            return run_record_progress(
                RecordProgressInput(user_id=reader.id, article_id=article.id, **kwargs),
                store=store,
                policy=policy,
                clock=clock,
            )

        record(scroll_percentage=60, completion_percentage=40, time_spent_seconds=30)
        clock.advance(minutes=5)
        merged = record(scroll_percentage=20, completion_percentage=80, time_spent_seconds=45)

        progress = merged.progress
        assert progress.scroll_percentage == 60
        assert progress.completion_percentage == 80
        assert progress.time_spent_seconds == 75
        assert progress.completed is False
        assert progress.last_read_at > progress.first_read_at

        done = record(completed=True)
        assert done.progress.completed is True
        assert record(completed=False).progress.completed is True

    def test_get_progress(self, store, policy, clock, reader, article) -> None:
        missing = run_get_progress(
            GetProgressInput(user_id=reader.id, article_id=article.id), store=store
        )
        assert missing.errors[0].code == "NOT_FOUND"

        run_record_progress(
            RecordProgressInput(user_id=reader.id, article_id=article.id, scroll_percentage=10),
            store=store,
            policy=policy,
            clock=clock,
        )
        found = run_get_progress(
            GetProgressInput(user_id=reader.id, article_id=article.id), store=store
        )
        assert found.progress.scroll_percentage == 10

    def test_draft_rejected(self, store, policy, clock, reader, make_article, author) -> None:
        draft = make_article(author, status="draft")
        result = run_record_progress(
            RecordProgressInput(user_id=reader.id, article_id=draft.id),
            store=store,
            policy=policy,
            clock=clock,
        )
        assert result.errors[0].code == "NOT_PUBLISHED"


# --- Views ---


class TestRecordView:
    def test_increments(self, store, article) -> None:
        run_record_view(RecordViewInput(article_id=article.id), store=store)
        result = run_record_view(RecordViewInput(article_id=article.id), store=store)
        assert result.view_count == 2

    def test_draft_not_counted(self, store, make_article, author) -> None:
        draft = make_article(author, status="draft")
        result = run_record_view(RecordViewInput(article_id=draft.id), store=store)
        assert result.errors[0].code == "NOT_PUBLISHED"
        assert result.view_count == 0
