"""Deploy stage DAG with cascade blocking.

The graph is fixed at construction: its topological order (ties broken
by ordinal) is computed once, and a cycle is rejected up front.  At run
time it answers two questions for the stage machine:

- may this stage start?  Only if every prerequisite is PASSED, WARNED or
  SKIPPED.
- what does a failure take down?  Every transitive dependent that has
  not started yet, so nothing downstream of a failed provisioning step
  touches resources.
"""

from __future__ import annotations

import heapq
from collections import defaultdict

from ssrforge.models.stages import SATISFYING_STATES, StageDefinition, StageState


class PrerequisiteNotMetError(RuntimeError):
    """Raised when a stage cannot run because prerequisites are not met."""


class CyclicDependencyError(ValueError):
    """Raised when the prerequisite graph contains a cycle."""


class PrerequisiteGraph:
    """Directed acyclic graph of deploy stage prerequisites."""

    def __init__(self, stage_definitions: list[StageDefinition]) -> None:
        self._stages: dict[str, StageDefinition] = {
            sd.stage_id: sd for sd in stage_definitions
        }
        self._dependents: dict[str, list[str]] = defaultdict(list)
        for sd in stage_definitions:
            for prereq in sd.prerequisites:
                self._dependents[prereq].append(sd.stage_id)
        self._order = self._topological_order()

    def _topological_order(self) -> list[str]:
        """Kahn's algorithm; a priority queue on ordinal keeps ties stable."""
        pending = {
            sid: sum(1 for p in sd.prerequisites if p in self._stages)
            for sid, sd in self._stages.items()
        }
        ready = [(self._stages[sid].ordinal, sid) for sid, n in pending.items() if n == 0]
        heapq.heapify(ready)

        order: list[str] = []
        while ready:
            _, stage_id = heapq.heappop(ready)
            order.append(stage_id)
            for dependent in self._dependents.get(stage_id, []):
                pending[dependent] -= 1
                if pending[dependent] == 0:
                    heapq.heappush(ready, (self._stages[dependent].ordinal, dependent))

        if len(order) != len(self._stages):
            stuck = sorted(sid for sid in self._stages if sid not in order)
            raise CyclicDependencyError(
                f"Deploy stages form a cycle: {', '.join(stuck)} can never start."
            )
        return order

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    @property
    def stage_ids(self) -> list[str]:
        """All stage ids in execution order."""
        return list(self._order)

    def get_stage_definition(self, stage_id: str) -> StageDefinition:
        return self._stages[stage_id]

    def get_dependents(self, stage_id: str) -> list[str]:
        """Transitive dependents of *stage_id*, in execution order."""
        reached = {stage_id}
        for sid in self._order:
            if any(p in reached for p in self._stages[sid].prerequisites):
                reached.add(sid)
        return [sid for sid in self._order if sid in reached and sid != stage_id]

    # ------------------------------------------------------------------
    # Run-time checks
    # ------------------------------------------------------------------

    def _unsatisfied(
        self, stage_id: str, states: dict[str, StageState]
    ) -> list[tuple[str, StageState]]:
        return [
            (prereq, states.get(prereq, StageState.NOT_STARTED))
            for prereq in self._stages[stage_id].prerequisites
            if states.get(prereq) not in SATISFYING_STATES
        ]

    def are_prerequisites_met(
        self, stage_id: str, states: dict[str, StageState]
    ) -> bool:
        return not self._unsatisfied(stage_id, states)

    def get_blocking_reasons(
        self, stage_id: str, states: dict[str, StageState]
    ) -> list[str]:
        """Human-readable reasons why *stage_id* cannot start."""
        return [
            f"{self._stages[prereq].display_name if prereq in self._stages else prereq} "
            f"({prereq}) is {state.value}"
            for prereq, state in self._unsatisfied(stage_id, states)
        ]

    def cascade_block(
        self, failed_stage_id: str, states: dict[str, StageState]
    ) -> list[str]:
        """Mark not-yet-started dependents of a failed stage BLOCKED in *states*.

        Returns the newly blocked stage ids.
        """
        blocked = [
            sid
            for sid in self.get_dependents(failed_stage_id)
            if states.get(sid, StageState.NOT_STARTED) == StageState.NOT_STARTED
        ]
        for sid in blocked:
            states[sid] = StageState.BLOCKED
        return blocked
