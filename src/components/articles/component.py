"""
Articles facade - read-side composition of one article.

Everything is read in a single snapshot, so counters and the viewer's
reacted/bookmarked flags agree with each other.
"""

from __future__ import annotations

import logging

from src.domain.errors import NOT_FOUND, ErrorDetail, StoreError, internal_error

from .models import ArticleView, ArticleViewOutput, GetArticleViewInput, ViewerState
from .ports import PolicyPort, StorePort

logger = logging.getLogger(__name__)


def _not_found() -> ArticleViewOutput:
    return ArticleViewOutput(
        view=None,
        errors=[ErrorDetail(code=NOT_FOUND, message="Article not found", field="article_id")],
        success=False,
    )


def run_get_view(
    inp: GetArticleViewInput,
    *,
    store: StorePort,
    policy: PolicyPort,
) -> ArticleViewOutput:
    """
    Compose an article with author, counters and viewer state.

    Non-published articles are reported as not found unless the viewer is
    their author or an admin. Anonymous viewers get both flags false.
    """
    try:
        with store.read() as uow:
            viewer = uow.users.get_by_id(inp.viewer_id) if inp.viewer_id else None
            if viewer is not None and viewer.status != "active":
                viewer = None

            article = uow.articles.get_by_id(inp.article_id)
            if article is None or not policy.is_allowed(viewer, "article:read", article):
                return _not_found()
            if article.status != "published" and not policy.is_allowed(
                viewer, "article:view_unpublished", article
            ):
                return _not_found()

            names = uow.users.display_names([article.author_user_id])
            state = ViewerState()
            if viewer is not None:
                state = ViewerState(
                    reacted=uow.engagement.exists("reaction", viewer.id, article.id),
                    bookmarked=uow.engagement.exists("bookmark", viewer.id, article.id),
                )
    except StoreError:
        logger.exception("Loading article view %s failed", inp.article_id)
        return ArticleViewOutput(view=None, errors=[internal_error()], success=False)

    return ArticleViewOutput(
        view=ArticleView(
            article=article,
            author_id=article.author_user_id,
            author_display_name=names.get(article.author_user_id, ""),
            viewer=state,
        )
    )
