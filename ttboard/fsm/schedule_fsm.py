# ttboard/fsm/schedule_fsm.py
"""Scheduling FSM of a subtask (scheduling dimension only).

  not_assigned -> assigned        (assign: projector after a commit)
  assigned     -> assigned        (assign with override: re-scheduled)
  *            -> not_assigned    (unassign: removal coordinator)

isExecuted is owned by the execution tracker. Once true it is absorbing:
assign is refused regardless of executionStatus.
"""

from __future__ import annotations

from enum import Enum

from ttboard.schemas.tt_task import ExecutionStatus, TTSubtask


class TransitionNotAllowed(Exception):
    pass


class Action(str, Enum):
    ASSIGN = "assign"
    UNASSIGN = "unassign"


ASSIGNABLE_FROM = {s for s in ExecutionStatus if s is not ExecutionStatus.executed}

# action -> allowed from statuses + to status
TRANSITIONS: dict[Action, tuple[set[ExecutionStatus], ExecutionStatus]] = {
    Action.ASSIGN: (ASSIGNABLE_FROM, ExecutionStatus.assigned),
    Action.UNASSIGN: (set(ExecutionStatus), ExecutionStatus.not_assigned),
}


def next_status(subtask: TTSubtask, action_raw: str) -> ExecutionStatus:
    """Returns the execution status ``subtask`` moves to under ``action_raw``."""
    try:
        action = Action(action_raw.strip())
    except ValueError:
        allowed = ", ".join(a.value for a in Action)
        raise TransitionNotAllowed(f"Unknown action: '{action_raw}'. Allowed actions: {allowed}")

    if action is Action.ASSIGN and subtask.is_executed:
        raise TransitionNotAllowed(f"Subtask {subtask.id} is executed and cannot be assigned")

    allowed_from, to_status = TRANSITIONS[action]
    current = subtask.execution_status
    if current not in allowed_from:
        allowed_from_str = ", ".join(sorted(s.value for s in allowed_from))
        raise TransitionNotAllowed(
            f"Action '{action.value}' not allowed from execution status '{current.value}'. "
            f"Allowed from: {allowed_from_str}."
        )

    return to_status
