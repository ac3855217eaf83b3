# ttboard/schemas/conflict.py
from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class ConflictType(str, enum.Enum):
    date_overlap = "date_overlap"
    capacity_exceed = "capacity_exceed"
    resource_conflict = "resource_conflict"


class Severity(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"


class Resolution(str, enum.Enum):
    """Closed two-way classification every conflict falls into."""

    blocking = "blocking"
    overridable = "overridable"


class AssignmentConflict(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    type: ConflictType
    message: str
    affected_dates: list[str] = Field(default_factory=list)
    affected_subtasks: list[str] = Field(default_factory=list)
    severity: Severity
    can_override: bool

    # pre-existing assignment the conflict refers to; None for legacy date overlaps
    # and for conflicts on the item itself (executed/completed)
    assignment_id: Optional[str] = None

    @computed_field
    @property
    def resolution(self) -> Resolution:
        if self.severity == Severity.high or not self.can_override:
            return Resolution.blocking
        return Resolution.overridable

    @property
    def is_blocking(self) -> bool:
        return self.resolution is Resolution.blocking
