"""
Articles facade unit tests.
"""

from __future__ import annotations

from uuid import uuid4

from src.components.articles import GetArticleViewInput, run_get_view
from src.components.engagement import ToggleInput, run_toggle


class TestGetView:
    def test_anonymous_view(self, store, policy, author, make_article) -> None:
        article = make_article(author)

        result = run_get_view(
            GetArticleViewInput(article_id=article.id), store=store, policy=policy
        )

        assert result.success is True
        assert result.view.author_id == author.id
        assert result.view.author_display_name == "Ada Author"
        assert result.view.viewer.reacted is False
        assert result.view.viewer.bookmarked is False

    def test_viewer_state_matches_counters(
        self, store, policy, clock, rules, reader, author, make_article
    ) -> None:
        article = make_article(author)
        run_toggle(
            ToggleInput(kind="reaction", user_id=reader.id, article_id=article.id),
            store=store,
            policy=policy,
            clock=clock,
            rules=rules.engagement,
        )

        result = run_get_view(
            GetArticleViewInput(article_id=article.id, viewer_id=reader.id),
            store=store,
            policy=policy,
        )

        assert result.view.viewer.reacted is True
        assert result.view.viewer.bookmarked is False
        assert result.view.article.reaction_count == 1

    def test_draft_only_for_author_and_admin(
        self, store, policy, reader, author, admin, make_article
    ) -> None:
        draft = make_article(author, status="draft")

        def view_as(user):
            return run_get_view(
                GetArticleViewInput(article_id=draft.id, viewer_id=user.id if user else None),
                store=store,
                policy=policy,
            )

        assert view_as(None).errors[0].code == "NOT_FOUND"
        assert view_as(reader).errors[0].code == "NOT_FOUND"
        assert view_as(author).success is True
        assert view_as(admin).success is True

    def test_missing(self, store, policy) -> None:
        result = run_get_view(GetArticleViewInput(article_id=uuid4()), store=store, policy=policy)
        assert result.errors[0].code == "NOT_FOUND"
