"""Articles facade - article view with author, counters and viewer state."""

from .component import run_get_view
from .models import ArticleView, ArticleViewOutput, GetArticleViewInput, ViewerState
from .ports import PolicyPort, StorePort

__all__ = [
    "run_get_view",
    "ArticleView",
    "ArticleViewOutput",
    "GetArticleViewInput",
    "ViewerState",
    "PolicyPort",
    "StorePort",
]
