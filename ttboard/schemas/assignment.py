# ttboard/schemas/assignment.py
from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ttboard.schemas.conflict import AssignmentConflict
from ttboard.schemas.tt_task import DateAssignment


class StrictBaseModel(BaseModel):
    """Strict request models: forbid unknown fields, accept camelCase or snake_case keys."""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)


class AssignmentCreateRequest(StrictBaseModel):
    """Body of POST /tasks/tt/{task_id}/assignments.

    Types are checked by pydantic, the cross-field rules (required fields per
    assignment type, start <= end, duration bounds) by
    ``ttboard.scheduling.validator.validate_request`` so that every problem
    comes back as one field-level error list.
    """

    # kept as str: an unknown type is reported as a field error, not a parse error
    assignment_type: Optional[str] = Field(
        None,
        description="single_day | date_range | duration_days",
        examples=["date_range"],
    )
    date: Optional[str] = Field(None, description="YYYY-MM-DD, single_day only", examples=["2024-01-10"])
    start_date: Optional[str] = Field(None, examples=["2024-01-10"])
    end_date: Optional[str] = Field(None, examples=["2024-01-12"])
    duration_days: Optional[int] = Field(None, examples=[3])

    subtask_ids: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("subtaskIds", "workItemIds", "subtask_ids"),
        serialization_alias="subtaskIds",
    )

    title: Optional[str] = None
    notes: Optional[str] = None
    estimated_effort: Optional[float] = Field(None, ge=0)
    override_conflicts: bool = False


class AssignmentRemoveRequest(StrictBaseModel):
    """Body of DELETE /tasks/tt/{task_id}/assignments."""

    assignment_id: str
    subtask_id: str = Field(
        ...,
        validation_alias=AliasChoices("subtaskId", "workItemId", "subtask_id"),
        serialization_alias="subtaskId",
    )


class ResponseModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AssignmentOut(ResponseModel):
    assignment: DateAssignment
    covered_dates: list[str]
    summary: str


class AssignmentCreateResponse(ResponseModel):
    success: bool = True
    assignment: DateAssignment
    covered_dates: list[str]
    summary_message: str


class ConflictResponse(ResponseModel):
    success: bool = False
    error: str
    conflicts: list[AssignmentConflict]
    requires_confirmation: bool = False


class RemovalResponse(ResponseModel):
    success: bool = True
    changed: bool
    assignment_deleted: bool = False
    message: str


class CalendarDay(ResponseModel):
    date: str
    subtask_ids: list[str]
    assignment_ids: list[str]


class CalendarResponse(ResponseModel):
    start: str
    end: str
    days: list[CalendarDay]
