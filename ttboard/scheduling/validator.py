# ttboard/scheduling/validator.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from ttboard.scheduling.date_range import parse_day
from ttboard.schemas.assignment import AssignmentCreateRequest
from ttboard.schemas.tt_task import AssignmentType


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


REQUIRED_FIELDS: dict[AssignmentType, tuple[str, ...]] = {
    AssignmentType.single_day: ("date",),
    AssignmentType.date_range: ("startDate", "endDate"),
    AssignmentType.duration_days: ("startDate", "durationDays"),
}

_ATTR = {
    "date": "date",
    "startDate": "start_date",
    "endDate": "end_date",
    "durationDays": "duration_days",
}


def _parse(errors: list[FieldError], field: str, value: str | None) -> date | None:
    if not value:
        return None
    try:
        return parse_day(value)
    except ValueError:
        errors.append(FieldError(field, f"'{value}' is not a valid date (expected YYYY-MM-DD)"))
        return None


def validate_request(req: AssignmentCreateRequest, *, max_days: int) -> list[FieldError]:
    """Structural checks before any conflict analysis. Returns every problem found."""
    errors: list[FieldError] = []

    if not req.subtask_ids:
        errors.append(FieldError("subtaskIds", "at least one subtask id is required"))
    elif any(not (sid or "").strip() for sid in req.subtask_ids):
        errors.append(FieldError("subtaskIds", "subtask ids must be non-empty strings"))

    if req.assignment_type is None:
        errors.append(FieldError("assignmentType", "assignmentType is required"))
        return errors

    try:
        kind = AssignmentType(req.assignment_type)
    except ValueError:
        allowed = ", ".join(t.value for t in AssignmentType)
        errors.append(
            FieldError("assignmentType", f"Unknown assignmentType '{req.assignment_type}'. Allowed: {allowed}")
        )
        return errors

    missing = [f for f in REQUIRED_FIELDS[kind] if getattr(req, _ATTR[f]) in (None, "")]
    for f in missing:
        errors.append(FieldError(f, f"{f} is required when assignmentType='{kind.value}'"))

    if kind is AssignmentType.single_day:
        _parse(errors, "date", req.date)

    elif kind is AssignmentType.date_range:
        start = _parse(errors, "startDate", req.start_date)
        end = _parse(errors, "endDate", req.end_date)
        if start is not None and end is not None:
            if start > end:
                errors.append(FieldError("endDate", "endDate must not be before startDate"))
            elif (end - start).days + 1 > max_days:
                errors.append(FieldError("endDate", f"date range must not exceed {max_days} days"))

    elif kind is AssignmentType.duration_days:
        _parse(errors, "startDate", req.start_date)
        if req.duration_days is not None:
            if req.duration_days < 1:
                errors.append(FieldError("durationDays", "durationDays must be at least 1"))
            elif req.duration_days > max_days:
                errors.append(FieldError("durationDays", f"durationDays must not exceed {max_days}"))

    return errors
