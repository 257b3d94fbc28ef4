"""State machine for the debounced path recompute lifecycle.

Uses python-statemachine for explicit state management with:
- Clear state definitions
- Explicit event-driven transitions
- before_* hooks that keep the shared context consistent
- Listeners for side effects (transition logging)

States (5 states):
    IDLE: Nothing pending, last outcome published
    PENDING_LIGHT: Waypoints changed, light path (bearings/distances) being published
    PENDING_HEAVY: Debounce timer armed for the current token
    COMPUTING: Densify -> fetch -> aggregate in flight for the current token
    COMMITTED: Result accepted for the current signature, about to settle

Transitions:
    IDLE/PENDING_HEAVY/COMPUTING/COMMITTED -> PENDING_LIGHT: change
    PENDING_LIGHT -> PENDING_HEAVY: debounce (new token minted)
    PENDING_LIGHT -> IDLE: settle (geometry equals last committed signature)
    PENDING_LIGHT -> COMMITTED: commit (fewer than two waypoints, empty result)
    PENDING_LIGHT -> COMPUTING: resume (geometry equals the computation in flight)
    PENDING_HEAVY -> COMPUTING: fire (timer expired)
    COMPUTING -> COMMITTED: commit (result still current)
    COMPUTING -> IDLE: fail (too short / unavailable, still current)
    COMMITTED -> IDLE: settle

Stale completions (token superseded or signature changed) trigger no
transition at all: a newer change already moved the machine elsewhere.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from statemachine import State, StateMachine

from azimuth_planner.model.analysis_result import AnalysisResult
from azimuth_planner.model.waypoint import Waypoint

logger = logging.getLogger(__name__)


@dataclass
class RecomputeContext:
    """Shared context/model for the recompute state machine.

    Note: The 'state' field is managed by python-statemachine when this
    object is passed as the model.
    """

    # State managed by python-statemachine (model pattern)
    state: Optional[str] = None

    waypoints: tuple[Waypoint, ...] = ()
    declination_deg: float = 0.0

    # Latest issued token; completions carrying an older token are stale
    token: int = 0
    # Signature captured when the current computation started
    running_signature: Optional[str] = None
    committed_signature: Optional[str] = None
    # Last accepted result; last_result may hold a newer failure
    committed_result: Optional[AnalysisResult] = None
    last_result: Optional[AnalysisResult] = None

    def __repr__(self) -> str:
        return (
            f"RecomputeContext(state={self.state}, waypoints={len(self.waypoints)}, "
            f"token={self.token}, committed={self.committed_signature!r})"
        )


class TransitionLogListener:
    """Logs every transition of the recompute state machine.

    Usage:
        sm = RecomputeStateMachine(context=context)
        sm.add_listener(TransitionLogListener())
    """

    def after_transition(self, event: str, source: State, target: State) -> None:
        logger.debug(f"[STATE] {source.name} --({event})--> {target.name}")


class RecomputeStateMachine(StateMachine):
    """State machine for the light/heavy recompute workflow.

    See module docstring for the complete transition table.
    """

    # ==========================================================================
    # State Definitions
    # ==========================================================================

    idle = State("Idle", initial=True)
    pending_light = State("PendingLight")
    pending_heavy = State("PendingHeavy")
    computing = State("Computing")
    committed = State("Committed")

    # ==========================================================================
    # Transitions
    # ==========================================================================

    change = (
        idle.to(pending_light)
        | pending_heavy.to(pending_light)
        | computing.to(pending_light)
        | committed.to(pending_light)
    )
    debounce = pending_light.to(pending_heavy)
    fire = pending_heavy.to(computing)
    resume = pending_light.to(computing)
    commit = computing.to(committed) | pending_light.to(committed)
    fail = computing.to(idle)
    settle = pending_light.to(idle) | committed.to(idle)

    # ==========================================================================
    # State Check Properties
    # ==========================================================================

    @property
    def is_idle(self) -> bool:
        return self.idle.is_active

    @property
    def is_pending(self) -> bool:
        """Check if a heavy recompute is armed but not started."""
        return self.pending_heavy.is_active

    @property
    def is_computing(self) -> bool:
        return self.computing.is_active

    # ==========================================================================
    # Transition Actions (before_* hooks)
    # ==========================================================================

    def before_change(self, waypoints: tuple[Waypoint, ...]) -> None:
        """Record the newest snapshot before the light path runs."""
        self.context.waypoints = waypoints

    def before_debounce(self, token: int) -> None:
        self.context.token = token

    def before_fire(self, signature: str) -> None:
        self.context.running_signature = signature

    def before_commit(self, result: AnalysisResult) -> None:
        self.context.committed_signature = result.signature
        self.context.committed_result = result
        self.context.last_result = result

    def before_fail(self, result: AnalysisResult) -> None:
        """Failures are published but leave the committed signature untouched."""
        self.context.last_result = result

    def on_enter_idle(self) -> None:
        self.context.running_signature = None

    # ==========================================================================
    # Initialization
    # ==========================================================================

    def __init__(self, context: RecomputeContext | None = None, start_value: str | None = None) -> None:
        """Initialize state machine with model pattern.

        Args:
            context: Shared context/model (creates new if None)
            start_value: Optional initial state value (for restoring state)
        """
        model = context or RecomputeContext()
        super().__init__(model=model, start_value=start_value)

    @property
    def context(self) -> RecomputeContext:
        """Alias for model."""
        return self.model

    def get_state_name(self) -> str:
        """Get current state name for display."""
        return self.current_state.name

    def __repr__(self) -> str:
        return f"RecomputeStateMachine(state={self.get_state_name()}, model={self.context!r})"
