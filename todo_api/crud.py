import dataclasses
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError

from . import schemas
from .errors import TaskLocked, TaskNotFound, TaskValidationError
from .filters import TaskFilter, build_predicate
from .models import Task, is_locked

logger = logging.getLogger(__name__)

# Stands in for a body that could not be decoded; rejected at validation time.
MALFORMED_BODY = object()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _validate(schema: Type[BaseModel], payload: Any) -> Dict[str, Any]:
    """Validate a raw payload and return only the fields it actually set."""
    if payload is MALFORMED_BODY:
        raise TaskValidationError(["body"], "Request body is not valid JSON")
    if not isinstance(payload, dict):
        raise TaskValidationError(["body"], "Payload must be a JSON object")
    try:
        model = schema.model_validate(payload)
    except ValidationError as exc:
        fields = [str(err["loc"][0]) if err["loc"] else "body" for err in exc.errors()]
        raise TaskValidationError(fields) from exc
    data = model.model_dump(exclude_unset=schema is schemas.TaskPatch)
    if "tags" in data:
        data["tags"] = tuple(data["tags"])
    return data


class TaskRepository:
    """
    In-memory store of Task records.

    Every read and write runs under one lock, id assignment included.
    Records are frozen and swapped whole, so readers never see a half
    applied update.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._tasks: Dict[int, Task] = {}
        self._last_id = 0
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    def count(self) -> int:
        return len(self)

    # ---- reads ----

    def list(self, criteria: Optional[TaskFilter] = None) -> List[Task]:
        criteria = criteria or TaskFilter()
        with self._lock:
            if criteria.is_empty():
                return list(self._tasks.values())
            predicate = build_predicate(criteria, self._clock())
            return [t for t in self._tasks.values() if predicate(t)]

    def get(self, task_id: int) -> Task:
        with self._lock:
            return self._require(task_id)

    # ---- writes ----

    def create(self, payload: Any) -> Task:
        data = _validate(schemas.TaskCreate, payload)
        with self._lock:
            self._last_id += 1
            task = Task(id=self._last_id, created_at=self._clock(), **data)
            self._tasks[task.id] = task
        logger.info("Created task id=%s title=%r", task.id, task.title)
        return task

    def replace(self, task_id: int, payload: Any) -> Task:
        with self._lock:
            current = self._guard_unlocked(self._require(task_id))
            data = _validate(schemas.TaskReplace, payload)
            return self._store(dataclasses.replace(current, **data), "Replaced")

    def patch(self, task_id: int, payload: Any) -> Task:
        with self._lock:
            current = self._guard_unlocked(self._require(task_id))
            data = _validate(schemas.TaskPatch, payload)
            return self._store(dataclasses.replace(current, **data), "Patched")

    def delete(self, task_id: int) -> None:
        with self._lock:
            self._guard_unlocked(self._require(task_id))
            del self._tasks[task_id]
        logger.info("Deleted task id=%s", task_id)

    def lock(self, task_id: int) -> Task:
        return self._set_locked(task_id, True)

    def unlock(self, task_id: int) -> Task:
        return self._set_locked(task_id, False)

    # ---- helpers ----

    def _require(self, task_id: int) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFound(task_id)
        return task

    def _guard_unlocked(self, task: Task) -> Task:
        if is_locked(task):
            logger.warning("Rejected write to locked task id=%s", task.id)
            raise TaskLocked(task.id)
        return task

    def _store(self, task: Task, action: str) -> Task:
        self._tasks[task.id] = task
        logger.debug("%s task id=%s", action, task.id)
        return task

    def _set_locked(self, task_id: int, locked: bool) -> Task:
        with self._lock:
            task = self._require(task_id)
            if task.locked != locked:
                task = self._store(dataclasses.replace(task, locked=locked), "Locked" if locked else "Unlocked")
        logger.info("Task id=%s locked=%s", task_id, locked)
        return task
