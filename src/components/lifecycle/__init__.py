"""Lifecycle component - article drafts and the publication state machine."""

from src.components.lifecycle.component import LifecycleComponent
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

__all__ = [
    # Component
    "LifecycleComponent",
    # Models
    "CreateDraftInput",
    "UpdateArticleInput",
    "ScheduleInput",
    "CancelScheduleInput",
    "PublishNowInput",
    "ArchiveInput",
    "GetArticleInput",
    "LifecycleOutput",
    # Ports
    "ClockPort",
    "PolicyPort",
    "StorePort",
]
