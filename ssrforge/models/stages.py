"""Deploy stage state models — deterministic transitions."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class StageState(str, Enum):
    """State of one deploy stage."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    BLOCKED = "blocked"
    FAILED = "failed"
    PASSED = "passed"
    WARNED = "warned"  # finished with a non-fatal failure
    SKIPPED = "skipped"


# Terminal states (PASSED, WARNED, SKIPPED) have no outgoing transitions.
VALID_TRANSITIONS: dict[StageState, set[StageState]] = {
    StageState.NOT_STARTED: {StageState.RUNNING, StageState.BLOCKED, StageState.SKIPPED},
    StageState.RUNNING: {StageState.PASSED, StageState.FAILED, StageState.WARNED},
    StageState.BLOCKED: set(),
    StageState.FAILED: set(),
    StageState.PASSED: set(),
    StageState.WARNED: set(),
    StageState.SKIPPED: set(),
}

# States that satisfy a dependent stage's prerequisite.
SATISFYING_STATES: frozenset[StageState] = frozenset(
    {StageState.PASSED, StageState.WARNED, StageState.SKIPPED}
)


class StageDefinition(BaseModel):
    """A deploy stage and the stages it depends on."""

    model_config = ConfigDict(frozen=True)

    stage_id: str
    display_name: str
    ordinal: float
    prerequisites: list[str] = []
    fail_open: bool = False  # failure downgrades to WARNED instead of aborting


class StageTransition(BaseModel):
    """Records a single state transition of a deploy stage."""

    model_config = ConfigDict(frozen=True)

    stage_id: str
    from_state: StageState
    to_state: StageState
    stage_hash: str = ""
    reason: str | None = None  # populated for FAILED, WARNED and BLOCKED


# The standard deploy stages.
DEFAULT_STAGE_DEFINITIONS: list[StageDefinition] = [
    StageDefinition(
        stage_id="load_build",
        display_name="Load Build Output",
        ordinal=0.0,
    ),
    StageDefinition(
        stage_id="build_plan",
        display_name="Build Plan",
        ordinal=1.0,
        prerequisites=["load_build"],
    ),
    StageDefinition(
        stage_id="validate_plan",
        display_name="Validate Plan",
        ordinal=2.0,
        prerequisites=["build_plan"],
    ),
    StageDefinition(
        stage_id="provision",
        display_name="Provision Resources",
        ordinal=3.0,
        prerequisites=["validate_plan"],
    ),
    StageDefinition(
        stage_id="sync_assets",
        display_name="Sync Assets",
        ordinal=4.0,
        prerequisites=["provision"],
    ),
    StageDefinition(
        stage_id="invalidate",
        display_name="Invalidate Cache",
        ordinal=5.0,
        prerequisites=["sync_assets"],
        fail_open=True,
    ),
]
