"""
Reconcile component unit tests.

Counters are corrupted with raw SQL, then repaired from membership rows.
"""

from __future__ import annotations

from src.components.discussion import CreateCommentInput, DiscussionComponent
from src.components.engagement import ToggleInput, run_toggle
from src.components.reconcile import ReconcileInput, run_reconcile


def _seed(store, policy, clock, rules, reader, article):
    run_toggle(
        ToggleInput(kind="reaction", user_id=reader.id, article_id=article.id),
        store=store,
        policy=policy,
        clock=clock,
        rules=rules.engagement,
    )
    discussion = DiscussionComponent(store=store, policy=policy, clock=clock, rules=rules.comments)
    root = discussion.run_create(
        CreateCommentInput(user_id=reader.id, article_id=article.id, content="Root")
    ).comment
    discussion.run_create(
        CreateCommentInput(
            user_id=reader.id, article_id=article.id, content="Reply", parent_comment_id=root.id
        )
    )
    return root


def _corrupt(store, article, root):
    with store.transaction() as uow:
        uow.counters.set_article_counter(str(article.id), "reaction_count", 7)
        uow.counters.set_article_counter(str(article.id), "comment_count", 0)
        uow.counters.set_reply_count(str(root.id), 5)


class TestReconcile:
    def test_clean_database_has_no_drift(
        self, store, policy, clock, rules, reader, author, make_article
    ) -> None:
        article = make_article(author)
        _seed(store, policy, clock, rules, reader, article)

        result = run_reconcile(ReconcileInput(), store=store)

        assert result.success is True
        assert result.drift == []
        assert result.repaired == 0

    def test_repairs_corrupted_counters(
        self, store, policy, clock, rules, reader, author, make_article
    ) -> None:
        article = make_article(author)
        root = _seed(store, policy, clock, rules, reader, article)
        _corrupt(store, article, root)

        result = run_reconcile(ReconcileInput(), store=store)

        found = {(d.table, d.column): (d.stored, d.actual) for d in result.drift}
        assert found == {
            ("articles", "reaction_count"): (7, 1),
            ("articles", "comment_count"): (0, 2),
            ("comments", "reply_count"): (5, 1),
        }
        assert result.repaired == 3

        with store.read() as uow:
            fixed = uow.articles.get_by_id(article.id)
            fixed_root = uow.comments.get_by_id(root.id)
        assert fixed.reaction_count == 1
        assert fixed.comment_count == 2
        assert fixed_root.reply_count == 1

    def test_dry_run_reports_without_writing(
        self, store, policy, clock, rules, reader, author, make_article
    ) -> None:
        article = make_article(author)
        root = _seed(store, policy, clock, rules, reader, article)
        _corrupt(store, article, root)

        result = run_reconcile(ReconcileInput(dry_run=True), store=store)

        assert len(result.drift) == 3
        assert result.repaired == 0
        with store.read() as uow:
            assert uow.articles.get_by_id(article.id).reaction_count == 7
