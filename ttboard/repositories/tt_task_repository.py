# ttboard/repositories/tt_task_repository.py
"""Whole-aggregate load/save for TT tasks.

Everything about the storage shape stays in this module: the scheduling code
only ever sees ``TTTask`` objects.
"""
from __future__ import annotations

from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ttboard.core.errors import NotFoundError, PersistenceError, VersionConflict
from ttboard.core.logging import get_logger
from ttboard.models.tt_task import TTTaskRecord
from ttboard.schemas.tt_task import TTTask

log = get_logger("repositories.tt_task")


def parse_documents(raw: Any) -> list[dict[str, Any]]:
    """Task documents out of any file shape the dashboard has written.

    Accepted: a bare list, ``{"ttTasks": [...]}`` and ``{"tasks": [...]}``.
    """
    if isinstance(raw, list):
        return raw
    if isinstance(raw, dict):
        for key in ("ttTasks", "tasks"):
            value = raw.get(key)
            if isinstance(value, list):
                return value
    raise PersistenceError("Unrecognized TT tasks file: expected a list, {'ttTasks': [...]} or {'tasks': [...]}")


class TTTaskRepository:
    def __init__(self, db: Session):
        self.db = db

    def load(self, task_id: str) -> TTTask:
        try:
            row = self.db.execute(
                select(TTTaskRecord)
                .where(TTTaskRecord.id == task_id)
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise PersistenceError(str(e)) from e

        if row is None:
            raise NotFoundError(f"Task not found: {task_id}")

        try:
            task = TTTask.model_validate(row.document)
        except PydanticValidationError as e:
            raise PersistenceError(f"Stored document for task {task_id} is invalid: {e}") from e

        # the column is authoritative for concurrency control
        task.version = row.row_version
        return task

    def save(self, task: TTTask, *, expected_version: int) -> None:
        """Replace the stored aggregate if nobody wrote it since ``expected_version`` was loaded.

        ``task.version`` must already be the new version.
        """
        task.recount()
        try:
            res = self.db.execute(
                update(TTTaskRecord)
                .where(
                    TTTaskRecord.id == task.id,
                    TTTaskRecord.row_version == expected_version,
                )
                .values(
                    title=task.title,
                    location=task.location,
                    document=task.to_document(),
                    row_version=task.version,
                )
                .execution_options(synchronize_session=False)
            )
            if res.rowcount != 1:
                self.db.rollback()
                log.warning("version conflict on task %s (expected row_version=%s)", task.id, expected_version)
                raise VersionConflict(
                    f"Task {task.id} was modified concurrently (expected row_version={expected_version})"
                )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(str(e)) from e

    def add(self, task: TTTask) -> None:
        task.recount()
        try:
            self.db.add(
                TTTaskRecord(
                    id=task.id,
                    title=task.title,
                    location=task.location,
                    document=task.to_document(),
                    row_version=task.version,
                )
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(str(e)) from e

    def import_documents(self, raw: Any) -> int:
        """Insert or replace tasks from a legacy JSON file payload. Returns how many were written."""
        count = 0
        try:
            for doc in parse_documents(raw):
                task = TTTask.model_validate(doc)
                task.recount()
                self.db.merge(
                    TTTaskRecord(
                        id=task.id,
                        title=task.title,
                        location=task.location,
                        document=task.to_document(),
                        row_version=task.version,
                    )
                )
                count += 1
            self.db.commit()
        except PydanticValidationError as e:
            self.db.rollback()
            raise PersistenceError(f"Invalid task document in import: {e}") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(str(e)) from e
        return count
