"""
End-to-end article journey through the components: drafting, scheduling,
unscheduling, the sweep, engagement, discussion and reconciliation.
"""

from datetime import timedelta

from src.components.articles import GetArticleViewInput, run_get_view
from src.components.discussion import (
    CreateCommentInput,
    DeleteCommentInput,
    DiscussionComponent,
)
from src.components.engagement import ToggleInput, run_toggle
from src.components.lifecycle import (
    ArchiveInput,
    CancelScheduleInput,
    CreateDraftInput,
    LifecycleComponent,
    ScheduleInput,
)
from src.components.reconcile import ReconcileInput, run_reconcile
from src.components.scheduler import SweepInput, run_sweep


def test_article_journey(store, policy, clock, rules, author, reader, admin):
    lifecycle = LifecycleComponent(
        store=store,
        policy=policy,
        clock=clock,
        article_rules=rules.articles,
        scheduling_rules=rules.scheduling,
    )
    discussion = DiscussionComponent(store=store, policy=policy, clock=clock, rules=rules.comments)

    draft = lifecycle.run_create_draft(
        CreateDraftInput(user_id=author.id, title="Council budget", slug="council-budget")
    ).article
    article_id = draft.id

    # Schedule, change our mind, schedule again
    first_slot = clock.now_utc() + timedelta(hours=1)
    assert lifecycle.run_schedule(
        ScheduleInput(user_id=author.id, article_id=article_id, scheduled_for=first_slot)
    ).success
    assert lifecycle.run_cancel_schedule(
        CancelScheduleInput(user_id=author.id, article_id=article_id)
    ).article.status == "draft"
    assert lifecycle.run_schedule(
        ScheduleInput(user_id=author.id, article_id=article_id, scheduled_for=first_slot)
    ).success

    # Nothing is due yet
    assert run_sweep(SweepInput(), store=store, clock=clock, rules=rules.scheduling).published == 0

    clock.advance(hours=2)
    swept = run_sweep(SweepInput(), store=store, clock=clock, rules=rules.scheduling)
    assert swept.published == 1
    published_at = clock.now_utc()

    # A second sweep later does not touch it again
    clock.advance(minutes=5)
    assert run_sweep(SweepInput(), store=store, clock=clock, rules=rules.scheduling).published == 0

    toggled = run_toggle(
        ToggleInput(kind="reaction", user_id=reader.id, article_id=article_id),
        store=store,
        policy=policy,
        clock=clock,
        rules=rules.engagement,
    )
    assert toggled.count == 1

    root = discussion.run_create(
        CreateCommentInput(user_id=reader.id, article_id=article_id, content="Finally.")
    ).comment
    reply = discussion.run_create(
        CreateCommentInput(
            user_id=author.id, article_id=article_id, content="Thanks", parent_comment_id=root.id
        )
    ).comment
    assert discussion.run_delete(DeleteCommentInput(user_id=author.id, comment_id=reply.id)).success

    view = run_get_view(
        GetArticleViewInput(article_id=article_id, viewer_id=reader.id), store=store, policy=policy
    ).view
    assert view.article.status == "published"
    assert view.article.published_at == published_at
    assert view.article.reaction_count == 1
    assert view.article.comment_count == 2
    assert view.viewer.reacted is True
    assert view.viewer.bookmarked is False

    archived = lifecycle.run_archive(ArchiveInput(user_id=admin.id, article_id=article_id))
    assert archived.article.status == "archived"
    assert archived.article.published_at == published_at

    # Counters were maintained in step, so there is nothing to repair
    reconciled = run_reconcile(ReconcileInput(), store=store)
    assert reconciled.drift == []
