"""Recompute scheduling for the path analysis.

- RecomputeStateMachine: python-statemachine model of the recompute lifecycle
- RecomputeScheduler: debounce, token/signature staleness guard, publishing
- AnalysisListener: rendering-layer callback interface
"""

from azimuth_planner.scheduler.listeners import AnalysisListener, LoggingAnalysisListener
from azimuth_planner.scheduler.recompute_scheduler import RecomputeScheduler
from azimuth_planner.scheduler.state_machine import (
    RecomputeContext,
    RecomputeStateMachine,
    TransitionLogListener,
)

__all__ = [
    "AnalysisListener",
    "LoggingAnalysisListener",
    "RecomputeScheduler",
    "RecomputeContext",
    "RecomputeStateMachine",
    "TransitionLogListener",
]
