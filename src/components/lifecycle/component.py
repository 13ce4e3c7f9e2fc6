"""
Lifecycle component - article creation and publication state machine.

Every transition is checked in the order: article exists, requester is
allowed, input is valid, edge exists. The status write is conditional on
the status that was read, inside the same write transaction.
"""

import logging
import re
from datetime import datetime, timedelta
from uuid import UUID

from src.components.lifecycle.models import (
    ArchiveInput,
    CancelScheduleInput,
    CreateDraftInput,
    GetArticleInput,
    LifecycleOutput,
    PublishNowInput,
    ScheduleInput,
    UpdateArticleInput,
)
from src.components.lifecycle.ports import ClockPort, PolicyPort, StorePort
from src.domain.entities import Article, ArticleStatus
from src.domain.errors import (
    CONFLICT,
    FORBIDDEN,
    INVALID_TRANSITION,
    NOT_FOUND,
    UNAUTHORIZED,
    VALIDATION_ERROR,
    ErrorDetail,
    InvalidTransitionError,
    StoreError,
    internal_error,
)
from src.domain.state import transition
from src.domain.timeutil import ensure_utc
from src.rules.models import ArticleRules, SchedulingRules

logger = logging.getLogger(__name__)

LifecycleInput = (
    CreateDraftInput
    | UpdateArticleInput
    | ScheduleInput
    | CancelScheduleInput
    | PublishNowInput
    | ArchiveInput
    | GetArticleInput
)


def _fail(code: str, message: str, field: str = "") -> LifecycleOutput:
    return LifecycleOutput(
        article=None, errors=[ErrorDetail(code=code, message=message, field=field)], success=False
    )


class LifecycleComponent:
    """Component for managing the article lifecycle."""

    def __init__(
        self,
        store: StorePort,
        policy: PolicyPort,
        clock: ClockPort,
        article_rules: ArticleRules,
        scheduling_rules: SchedulingRules,
    ) -> None:
        self._store = store
        self._policy = policy
        self._clock = clock
        self._article_rules = article_rules
        self._scheduling_rules = scheduling_rules

    def run(self, input_data: LifecycleInput) -> LifecycleOutput:
        """Main dispatcher - routes to appropriate handler based on input type."""
        if isinstance(input_data, CreateDraftInput):
            return self.run_create_draft(input_data)
        elif isinstance(input_data, UpdateArticleInput):
            return self.run_update(input_data)
        elif isinstance(input_data, ScheduleInput):
            return self.run_schedule(input_data)
        elif isinstance(input_data, CancelScheduleInput):
            return self.run_cancel_schedule(input_data)
        elif isinstance(input_data, PublishNowInput):
            return self.run_publish_now(input_data)
        elif isinstance(input_data, ArchiveInput):
            return self.run_archive(input_data)
        elif isinstance(input_data, GetArticleInput):
            return self.run_get(input_data)
        else:
            raise TypeError(f"Unknown input type: {type(input_data)}")

    # --- Validation ---

    def _validate_text(
        self, title: str | None, slug: str | None, summary: str | None
    ) -> list[ErrorDetail]:
        errors: list[ErrorDetail] = []
        rules = self._article_rules

        if title is not None:
            length = len(title.strip())
            if length < rules.title.min or length > rules.title.max:
                errors.append(
                    ErrorDetail(
                        code=VALIDATION_ERROR,
                        message=(
                            f"Title must be {rules.title.min}-{rules.title.max} characters"
                        ),
                        field="title",
                    )
                )

        if slug is not None:
            if (
                len(slug) < rules.slug.min
                or len(slug) > rules.slug.max
                or not re.match(rules.slug.pattern, slug)
            ):
                errors.append(
                    ErrorDetail(
                        code=VALIDATION_ERROR,
                        message="Slug must be lowercase words separated by single hyphens",
                        field="slug",
                    )
                )

        if summary is not None and len(summary) > rules.summary_max:
            errors.append(
                ErrorDetail(
                    code=VALIDATION_ERROR,
                    message=f"Summary must be at most {rules.summary_max} characters",
                    field="summary",
                )
            )

        return errors

    def _validate_schedule_time(self, at: datetime, now: datetime) -> ErrorDetail | None:
        if at <= now:
            return ErrorDetail(
                code=VALIDATION_ERROR,
                message="Scheduled time must be in the future",
                field="scheduled_for",
            )
        horizon = now + timedelta(days=self._scheduling_rules.max_scheduled_days_ahead)
        if at > horizon:
            return ErrorDetail(
                code=VALIDATION_ERROR,
                message=(
                    "Cannot schedule more than "
                    f"{self._scheduling_rules.max_scheduled_days_ahead} days ahead"
                ),
                field="scheduled_for",
            )
        return None

    # --- Operations ---

    def run_create_draft(self, input_data: CreateDraftInput) -> LifecycleOutput:
        """Create a new article in draft."""
        errors = self._validate_text(input_data.title, input_data.slug, input_data.summary)
        if errors:
            return LifecycleOutput(article=None, errors=errors, success=False)

        now = self._clock.now_utc()
        try:
            with self._store.transaction() as uow:
                user = uow.users.get_by_id(input_data.user_id) if input_data.user_id else None
                if user is None or user.status != "active":
                    return _fail(UNAUTHORIZED, "Authentication required", "user_id")

                if not self._policy.is_allowed(user, "article:create"):
                    return _fail(FORBIDDEN, "User not allowed to create articles", "user_id")

                if uow.articles.get_by_slug(input_data.slug) is not None:
                    return _fail(CONFLICT, "Slug already in use", "slug")

                article = uow.articles.insert(
                    Article(
                        author_user_id=user.id,
                        slug=input_data.slug,
                        title=input_data.title.strip(),
                        summary=input_data.summary,
                        body=input_data.body,
                        created_at=now,
                        updated_at=now,
                    )
                )
        except StoreError:
            logger.exception("Creating draft %s failed", input_data.slug)
            return LifecycleOutput(article=None, errors=[internal_error()], success=False)

        logger.info("Draft %s created by %s", article.id, article.author_user_id)
        return LifecycleOutput(article=article, errors=[], success=True)

    def run_update(self, input_data: UpdateArticleInput) -> LifecycleOutput:
        """Edit title, summary or body of a non-archived article."""
        errors = self._validate_text(input_data.title, None, input_data.summary)
        if errors:
            return LifecycleOutput(article=None, errors=errors, success=False)

        now = self._clock.now_utc()
        try:
            with self._store.transaction() as uow:
                user = uow.users.get_by_id(input_data.user_id) if input_data.user_id else None
                if user is None or user.status != "active":
                    return _fail(UNAUTHORIZED, "Authentication required", "user_id")

                article = uow.articles.get_by_id(input_data.article_id)
                if article is None:
                    return _fail(NOT_FOUND, "Article not found", "article_id")

                if not self._policy.is_allowed(user, "article:edit", article):
                    return _fail(FORBIDDEN, "User not allowed to edit this article", "user_id")

                if article.status == "archived":
                    return _fail(INVALID_TRANSITION, "Archived articles are read-only", "status")

                updates: dict[str, object] = {"updated_at": now}
                if input_data.title is not None:
                    updates["title"] = input_data.title.strip()
                if input_data.summary is not None:
                    updates["summary"] = input_data.summary
                if input_data.body is not None:
                    updates["body"] = input_data.body

                updated = article.model_copy(update=updates)
                uow.articles.update_content(updated)
        except StoreError:
            logger.exception("Updating article %s failed", input_data.article_id)
            return LifecycleOutput(article=None, errors=[internal_error()], success=False)

        return LifecycleOutput(article=updated, errors=[], success=True)

    def run_schedule(self, input_data: ScheduleInput) -> LifecycleOutput:
        """Schedule a draft for publication at a future time."""
        return self._apply(
            input_data.user_id,
            input_data.article_id,
            target="scheduled",
            action="article:publish",
            scheduled_for=ensure_utc(input_data.scheduled_for),
        )

    def run_cancel_schedule(self, input_data: CancelScheduleInput) -> LifecycleOutput:
        """Return a scheduled article to draft."""
        return self._apply(
            input_data.user_id, input_data.article_id, target="draft", action="article:publish"
        )

    def run_publish_now(self, input_data: PublishNowInput) -> LifecycleOutput:
        """Publish a draft or scheduled article immediately."""
        return self._apply(
            input_data.user_id, input_data.article_id, target="published", action="article:publish"
        )

    def run_archive(self, input_data: ArchiveInput) -> LifecycleOutput:
        """Archive a published article."""
        return self._apply(
            input_data.user_id, input_data.article_id, target="archived", action="article:archive"
        )

    def run_get(self, input_data: GetArticleInput) -> LifecycleOutput:
        """Fetch an article in any status, for its author or an admin."""
        try:
            with self._store.read() as uow:
                user = uow.users.get_by_id(input_data.user_id) if input_data.user_id else None
                article = uow.articles.get_by_id(input_data.article_id)
        except StoreError:
            logger.exception("Loading article %s failed", input_data.article_id)
            return LifecycleOutput(article=None, errors=[internal_error()], success=False)

        if article is None:
            return _fail(NOT_FOUND, "Article not found", "article_id")
        if article.status != "published" and not self._policy.is_allowed(
            user, "article:view_unpublished", article
        ):
            return _fail(NOT_FOUND, "Article not found", "article_id")

        return LifecycleOutput(article=article, errors=[], success=True)

    def _apply(
        self,
        user_id: UUID | None,
        article_id: UUID,
        target: ArticleStatus,
        action: str,
        scheduled_for: datetime | None = None,
    ) -> LifecycleOutput:
        now = self._clock.now_utc()
        try:
            with self._store.transaction() as uow:
                user = uow.users.get_by_id(user_id) if user_id else None
                if user is None or user.status != "active":
                    return _fail(UNAUTHORIZED, "Authentication required", "user_id")

                article = uow.articles.get_by_id(article_id)
                if article is None:
                    return _fail(NOT_FOUND, "Article not found", "article_id")

                if not self._policy.is_allowed(user, action, article):
                    return _fail(FORBIDDEN, "User not allowed to change this article", "user_id")

                if target == "scheduled" and scheduled_for is not None:
                    invalid = self._validate_schedule_time(scheduled_for, now)
                    if invalid:
                        return LifecycleOutput(article=None, errors=[invalid], success=False)

                try:
                    updated = transition(article, target, now, scheduled_for)
                except InvalidTransitionError as e:
                    return _fail(INVALID_TRANSITION, str(e), "status")

                if not uow.articles.update_lifecycle(updated, expected_status=article.status):
                    return _fail(
                        INVALID_TRANSITION, "Article status changed concurrently", "status"
                    )
        except StoreError:
            logger.exception("Moving article %s to %s failed", article_id, target)
            return LifecycleOutput(article=None, errors=[internal_error()], success=False)

        logger.info("Article %s moved %s -> %s", article_id, article.status, target)
        return LifecycleOutput(article=updated, errors=[], success=True)
