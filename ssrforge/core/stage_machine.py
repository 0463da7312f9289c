"""Deterministic deploy stage state machine.

Enforces:
- Valid state transitions only (VALID_TRANSITIONS table)
- Prerequisites checked before RUNNING
- Cascade blocking on failure
- Every transition recorded in order
"""

from __future__ import annotations

import logging

from ssrforge.core.prerequisite_graph import PrerequisiteGraph, PrerequisiteNotMetError
from ssrforge.models.stages import (
    VALID_TRANSITIONS,
    StageState,
    StageTransition,
)

logger = logging.getLogger(__name__)


class InvalidTransitionError(RuntimeError):
    """Raised when a requested state transition is not valid."""


class StageMachine:
    """Tracks the stage states of a single deploy.

    Parameters
    ----------
    graph:
        The prerequisite graph for dependency checking.
    """

    def __init__(self, graph: PrerequisiteGraph) -> None:
        self._graph = graph
        self._states: dict[str, StageState] = {
            sid: StageState.NOT_STARTED for sid in graph.stage_ids
        }
        self.transitions: list[StageTransition] = []

    def get_state(self, stage_id: str) -> StageState:
        return self._states.get(stage_id, StageState.NOT_STARTED)

    def get_all_states(self) -> dict[str, StageState]:
        """Return a snapshot of all stage states, in topological order."""
        return dict(self._states)

    def transition(
        self,
        stage_id: str,
        target_state: StageState,
        *,
        stage_hash: str = "",
        reason: str | None = None,
    ) -> StageTransition:
        """Move *stage_id* to *target_state*.

        Validates:
        1. The transition is allowed by VALID_TRANSITIONS.
        2. If target is RUNNING, prerequisites are met.
        3. If transition is to FAILED, cascade-block dependents.
        """
        current = self.get_state(stage_id)
        allowed = VALID_TRANSITIONS.get(current, set())
        if target_state not in allowed:
            raise InvalidTransitionError(
                f"Cannot transition {stage_id} from {current.value} to {target_state.value}. "
                f"Allowed: {sorted(s.value for s in allowed)}"
            )

        if target_state == StageState.RUNNING and not self._graph.are_prerequisites_met(
            stage_id, self._states
        ):
            reasons = self._graph.get_blocking_reasons(stage_id, self._states)
            raise PrerequisiteNotMetError(
                f"Cannot start {stage_id}: prerequisites not met. "
                f"Blocked by: {'; '.join(reasons)}"
            )

        record = StageTransition(
            stage_id=stage_id,
            from_state=current,
            to_state=target_state,
            stage_hash=stage_hash,
            reason=reason,
        )
        self.transitions.append(record)
        self._states[stage_id] = target_state
        logger.debug("%s: %s -> %s", stage_id, current.value, target_state.value)

        if target_state == StageState.FAILED:
            for blocked_id in self._graph.cascade_block(stage_id, self._states):
                self.transitions.append(
                    StageTransition(
                        stage_id=blocked_id,
                        from_state=StageState.NOT_STARTED,
                        to_state=StageState.BLOCKED,
                        reason=f"upstream {stage_id} failed",
                    )
                )
        return record

    def can_start(self, stage_id: str) -> tuple[bool, list[str]]:
        """Check if a stage can transition to RUNNING.

        Returns (can_start, blocking_reasons).
        """
        current = self.get_state(stage_id)
        if current != StageState.NOT_STARTED:
            return False, [f"Stage is currently {current.value}, not not_started"]
        if not self._graph.are_prerequisites_met(stage_id, self._states):
            return False, self._graph.get_blocking_reasons(stage_id, self._states)
        return True, []
