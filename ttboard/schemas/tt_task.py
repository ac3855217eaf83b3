# ttboard/schemas/tt_task.py
"""TT task aggregate: task + subtasks + date assignment ledger.

Stored and served as one camelCase JSON document; Python code works with the
snake_case attributes.
"""
from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, SerializationInfo, model_serializer, model_validator
from pydantic.alias_generators import to_camel


class AssignmentType(str, enum.Enum):
    single_day = "single_day"
    date_range = "date_range"
    duration_days = "duration_days"


class ExecutionStatus(str, enum.Enum):
    not_assigned = "not_assigned"
    assigned = "assigned"
    # written by the execution-tracking side, accepted here so documents round-trip
    in_execution = "in_execution"
    executed = "executed"
    failed_execution = "failed_execution"


class SubtaskStatus(str, enum.Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"
    failed = "failed"


class TaskStatus(str, enum.Enum):
    active = "active"
    paused = "paused"
    completed = "completed"


class Document(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class DateAssignment(Document):
    id: str
    assignment_type: AssignmentType

    # single_day
    date: Optional[str] = None

    # date_range / duration_days (end_date is derived and stored for duration_days)
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    duration_days: Optional[int] = None

    subtask_ids: list[str] = Field(default_factory=list)
    assigned_by: str
    assigned_at: str
    notes: Optional[str] = None

    title: Optional[str] = None
    is_active: bool = True
    estimated_effort: Optional[float] = None

    @model_validator(mode="before")
    @classmethod
    def _read_pre_typed_record(cls, data: Any) -> Any:
        """Records written before assignment types existed: ``{date, subtaskIds, assignedBy, assignedAt, notes}``.

        They are single-day records, at most one per date, so the date doubles as a stable id.
        """
        if not isinstance(data, dict):
            return data
        if data.get("assignmentType") or data.get("assignment_type"):
            return data
        day = data.get("date")
        if not day:
            return data
        data = dict(data)
        data["assignmentType"] = AssignmentType.single_day.value
        if not data.get("id"):
            data["id"] = f"legacy-{day}"
        return data

    @property
    def first_day(self) -> str | None:
        if self.assignment_type == AssignmentType.single_day:
            return self.date
        return self.start_date

    @property
    def last_day(self) -> str | None:
        if self.assignment_type == AssignmentType.single_day:
            return self.date
        return self.end_date


class TTSubtask(Document):
    id: str

    # test case description (CSV columns), opaque to the scheduler
    category: Optional[str] = None
    regulation: Optional[str] = None
    scenario: Optional[str] = None
    lighting: Optional[str] = None
    street_lights: Optional[str] = Field(default=None, alias="street_lights")
    beam: Optional[str] = None
    overlap: Optional[str] = None
    target_speed: Optional[str] = Field(default=None, alias="target_speed")
    ego_speed: Optional[str] = Field(default=None, alias="ego_speed")
    number_of_runs: Optional[str] = Field(default=None, alias="number_of_runs")
    headway: Optional[str] = None
    brake: Optional[str] = None
    priority: Optional[str] = None
    jira_subtask_number: Optional[str] = Field(default=None, alias="jira_subtask_number")

    status: SubtaskStatus = SubtaskStatus.pending
    executed_runs: Optional[int] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    version: int = 1
    last_edited_by: Optional[str] = None

    # execution tracking (owned by an external collaborator)
    is_executed: bool = False
    execution_date: Optional[str] = None
    execution_notes: Optional[str] = None
    execution_status: ExecutionStatus = ExecutionStatus.not_assigned

    # scheduling
    is_assigned: bool = False
    assignment_id: Optional[str] = None
    assigned_start_date: Optional[str] = None
    assigned_end_date: Optional[str] = None
    assignment_type: Optional[AssignmentType] = None
    assignment_conflict: bool = False

    # Pre-ledger single date. Only read for items without a ledger reference;
    # see ``assigned_date``.
    legacy_assigned_date: Optional[str] = Field(default=None, alias="assignedDate")

    @property
    def assigned_date(self) -> str | None:
        """Legacy single-date view, derived from the structured fields when present."""
        if self.assignment_id is not None and self.assigned_start_date is not None:
            return self.assigned_start_date
        return self.legacy_assigned_date

    @property
    def is_completed(self) -> bool:
        return (
            self.is_executed
            or self.status == SubtaskStatus.completed
            or self.execution_status == ExecutionStatus.executed
        )

    @model_serializer(mode="wrap")
    def _project_legacy_date(self, handler, info: SerializationInfo):
        data = handler(self)
        key = "assignedDate" if info.by_alias else "legacy_assigned_date"
        projected = self.assigned_date
        if projected is None:
            data.pop(key, None)
        else:
            data[key] = projected
        return data


class TTTask(Document):
    id: str
    title: str
    description: Optional[str] = None
    category: str = "TT"
    location: str = ""
    status: TaskStatus = TaskStatus.active
    priority: str = "medium"
    created_by: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    version: int = 1
    last_edited_by: Optional[str] = None

    subtasks: list[TTSubtask] = Field(default_factory=list)
    total_subtasks: int = 0
    completed_subtasks: int = 0
    csv_file_name: Optional[str] = None
    progress: int = 0

    change_log: list[dict[str, Any]] = Field(default_factory=list)

    date_assignments: list[DateAssignment] = Field(default_factory=list)

    def subtask(self, subtask_id: str) -> TTSubtask | None:
        for s in self.subtasks:
            if s.id == subtask_id:
                return s
        return None

    def recount(self) -> None:
        self.total_subtasks = len(self.subtasks)
        self.completed_subtasks = sum(1 for s in self.subtasks if s.status == SubtaskStatus.completed)
        self.progress = round(self.completed_subtasks / self.total_subtasks * 100) if self.total_subtasks else 0
