# ttboard/api/deps.py
from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from ttboard.core.db import get_db
from ttboard.repositories.tt_task_repository import TTTaskRepository
from ttboard.services.assignment_service import AssignmentService


# -----------------------------------------------------------------------------
# Auth context headers (the token gate in front of the API fills them in)
# -----------------------------------------------------------------------------


def get_actor_user_id(
    x_actor_user_id: str | None = Header(
        default=None,
        alias="X-Actor-User-Id",
        description="Username of the actor; recorded as assignedBy / lastEditedBy.",
        examples=["jdoe"],
    ),
) -> str:
    if not x_actor_user_id or not x_actor_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-Actor-User-Id header")
    return x_actor_user_id.strip()


def get_actor_role(
    x_role: str | None = Header(
        default=None,
        alias="X-Role",
        description="RBAC role: admin, data_manager or viewer.",
        examples=["admin", "data_manager", "viewer"],
    )
) -> str:
    if not x_role or not x_role.strip():
        raise HTTPException(status_code=401, detail="Missing X-Role header")
    return x_role.strip()


@dataclass(frozen=True)
class ActorContext:
    actor: str
    role: str


def get_actor_context(
    actor: str = Depends(get_actor_user_id),
    role: str = Depends(get_actor_role),
) -> ActorContext:
    return ActorContext(actor=actor, role=role)


def get_assignment_service(db: Session = Depends(get_db)) -> AssignmentService:
    return AssignmentService(TTTaskRepository(db))
