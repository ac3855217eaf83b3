# ttboard/api/assignments.py

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from ttboard.api.deps import ActorContext, get_actor_context, get_actor_role, get_assignment_service
from ttboard.core.errors import BlockingConflict, NotFoundError, PersistenceError, ValidationError, VersionConflict
from ttboard.core.logging import get_logger
from ttboard.core.rbac import Forbidden, ensure_allowed
from ttboard.fsm.schedule_fsm import TransitionNotAllowed
from ttboard.schemas.assignment import (
    AssignmentCreateRequest,
    AssignmentCreateResponse,
    AssignmentOut,
    AssignmentRemoveRequest,
    CalendarDay,
    CalendarResponse,
    ConflictResponse,
    RemovalResponse,
)
from ttboard.schemas.conflict import AssignmentConflict
from ttboard.services.assignment_service import AssignmentService

log = get_logger("api.assignments")

router = APIRouter(prefix="/tasks/tt", tags=["assignments"])


def _conflict_response(conflicts: list[AssignmentConflict], *, requires_confirmation: bool) -> JSONResponse:
    body = ConflictResponse(
        error=(
            "Conflicts found, resubmit with overrideConflicts=true to proceed"
            if requires_confirmation
            else "Conflicts found that cannot be overridden"
        ),
        conflicts=conflicts,
        requires_confirmation=requires_confirmation,
    )
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=body.model_dump(mode="json", by_alias=True),
    )


def _ensure(permission: str, role: str) -> None:
    try:
        ensure_allowed(permission, role)
    except Forbidden as e:
        raise HTTPException(status_code=403, detail=str(e))


def _http_error(e: Exception) -> HTTPException:
    """Map engine errors to HTTP. Conflicts are rendered separately (structured body)."""
    if isinstance(e, ValidationError):
        return HTTPException(status_code=422, detail={"errors": [err.as_dict() for err in e.errors]})
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, VersionConflict):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, TransitionNotAllowed):
        return HTTPException(status_code=422, detail=str(e))
    if isinstance(e, PersistenceError):
        log.error("persistence failure: %s", e)
        return HTTPException(status_code=503, detail=f"Persistence error: {e}")
    raise e


@router.get("/{task_id}")
def get_task(
    task_id: str,
    role: str = Depends(get_actor_role),
    service: AssignmentService = Depends(get_assignment_service),
):
    _ensure("assignment.read", role)
    try:
        return service.get_task(task_id).to_document()
    except (NotFoundError, PersistenceError) as e:
        raise _http_error(e)


@router.get("/{task_id}/assignments", response_model=list[AssignmentOut])
def list_assignments(
    task_id: str,
    role: str = Depends(get_actor_role),
    service: AssignmentService = Depends(get_assignment_service),
):
    _ensure("assignment.read", role)
    try:
        rows = service.list_assignments(task_id)
    except (NotFoundError, PersistenceError) as e:
        raise _http_error(e)
    return [AssignmentOut(assignment=a, covered_dates=days, summary=summary) for a, days, summary in rows]


@router.post(
    "/{task_id}/assignments",
    response_model=AssignmentCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ConflictResponse}},
)
def create_assignment(
    task_id: str,
    req: AssignmentCreateRequest,
    ctx: ActorContext = Depends(get_actor_context),
    service: AssignmentService = Depends(get_assignment_service),
):
    _ensure("assignment.create", ctx.role)

    try:
        result = service.create_assignment(task_id, req, actor=ctx.actor)
    except BlockingConflict as e:
        return _conflict_response(e.conflicts, requires_confirmation=False)
    except (ValidationError, NotFoundError, VersionConflict, TransitionNotAllowed, PersistenceError) as e:
        raise _http_error(e)

    if result.requires_confirmation:
        return _conflict_response(result.conflicts, requires_confirmation=True)

    return AssignmentCreateResponse(
        assignment=result.assignment,
        covered_dates=result.covered_dates,
        summary_message=result.summary_message,
    )


@router.delete("/{task_id}/assignments", response_model=RemovalResponse)
def remove_assignment(
    task_id: str,
    req: AssignmentRemoveRequest,
    ctx: ActorContext = Depends(get_actor_context),
    service: AssignmentService = Depends(get_assignment_service),
):
    _ensure("assignment.remove", ctx.role)

    try:
        result = service.remove_assignment(task_id, req.assignment_id, req.subtask_id, actor=ctx.actor)
    except (NotFoundError, VersionConflict, PersistenceError) as e:
        raise _http_error(e)

    return RemovalResponse(
        changed=result.changed,
        assignment_deleted=result.assignment_deleted,
        message="Assignment removed successfully" if result.changed else "Subtask was not assigned",
    )


@router.delete("/{task_id}/subtasks/{subtask_id}/assignment", response_model=RemovalResponse)
def remove_legacy_assignment(
    task_id: str,
    subtask_id: str,
    ctx: ActorContext = Depends(get_actor_context),
    service: AssignmentService = Depends(get_assignment_service),
):
    """Unassign a subtask by id only (items scheduled before the assignment ledger existed)."""
    _ensure("assignment.remove", ctx.role)

    try:
        result = service.remove_legacy_assignment(task_id, subtask_id, actor=ctx.actor)
    except (NotFoundError, VersionConflict, PersistenceError) as e:
        raise _http_error(e)

    return RemovalResponse(
        changed=result.changed,
        assignment_deleted=result.assignment_deleted,
        message="Assignment removed successfully" if result.changed else "Subtask was not assigned",
    )


@router.get("/{task_id}/calendar", response_model=CalendarResponse)
def calendar(
    task_id: str,
    start: str = Query(..., examples=["2024-01-08"]),
    end: str = Query(..., examples=["2024-01-14"]),
    role: str = Depends(get_actor_role),
    service: AssignmentService = Depends(get_assignment_service),
):
    _ensure("assignment.read", role)
    try:
        entries = service.calendar(task_id, start, end)
    except (ValidationError, NotFoundError, PersistenceError) as e:
        raise _http_error(e)

    return CalendarResponse(
        start=start,
        end=end,
        days=[CalendarDay(date=e.date, subtask_ids=e.subtask_ids, assignment_ids=e.assignment_ids) for e in entries],
    )
