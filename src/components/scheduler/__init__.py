"""
Scheduler component - publication sweep for scheduled articles.
"""

from .component import DEFAULT_BATCH_LIMIT, run_sweep
from .models import SweepInput, SweepItemResult, SweepOutcome, SweepOutput
from .ports import ClockPort, RulesPort, StorePort

__all__ = [
    # Entry point
    "run_sweep",
    "DEFAULT_BATCH_LIMIT",
    # Models
    "SweepInput",
    "SweepItemResult",
    "SweepOutcome",
    "SweepOutput",
    # Ports
    "ClockPort",
    "RulesPort",
    "StorePort",
]
