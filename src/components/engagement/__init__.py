"""
Engagement component - reaction and bookmark toggles, reading progress, views.
"""

from .component import (
    normalize_folder_name,
    run_get_progress,
    run_list_bookmarks,
    run_record_progress,
    run_record_view,
    run_status,
    run_toggle,
    validate_progress_input,
)
from .models import (
    BookmarkEntry,
    GetProgressInput,
    ListBookmarksInput,
    ListBookmarksOutput,
    ProgressOutput,
    RecordProgressInput,
    RecordViewInput,
    RecordViewOutput,
    StatusInput,
    StatusOutput,
    ToggleInput,
    ToggleOutcome,
    ToggleOutput,
)
from .ports import ClockPort, EngagementRulesPort, PolicyPort, StorePort

__all__ = [
    # Entry points
    "run_toggle",
    "run_status",
    "run_list_bookmarks",
    "run_record_progress",
    "run_get_progress",
    "run_record_view",
    # Pure functions
    "normalize_folder_name",
    "validate_progress_input",
    # Models
    "ToggleInput",
    "ToggleOutput",
    "ToggleOutcome",
    "StatusInput",
    "StatusOutput",
    "ListBookmarksInput",
    "ListBookmarksOutput",
    "BookmarkEntry",
    "RecordProgressInput",
    "GetProgressInput",
    "ProgressOutput",
    "RecordViewInput",
    "RecordViewOutput",
    # Ports
    "ClockPort",
    "EngagementRulesPort",
    "PolicyPort",
    "StorePort",
]
