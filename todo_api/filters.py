from datetime import datetime
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import TaskValidationError
from .models import Priority, Task

Predicate = Callable[[Task], bool]


class TaskFilter(BaseModel):
    # Unknown criteria are dropped so older clients keep working.
    model_config = ConfigDict(extra="ignore")

    completed: Optional[bool] = None
    priority: Optional[Priority] = None
    tags: List[str] = Field(default_factory=list)
    overdue: Optional[bool] = None

    def is_empty(self) -> bool:
        return self.completed is None and self.priority is None and not self.tags and not self.overdue


def parse_filter(params: Union[Mapping[str, Any], Iterable[Tuple[str, str]], None]) -> TaskFilter:
    """
    Build a TaskFilter from query-string pairs.

    ``tags`` may repeat; every other key keeps its last value.
    """
    if params is None:
        return TaskFilter()
    pairs = params.items() if isinstance(params, Mapping) else params

    data: dict = {}
    for key, value in pairs:
        if key == "tags":
            if isinstance(value, (list, tuple)):
                data.setdefault("tags", []).extend(value)
            else:
                data.setdefault("tags", []).append(value)
        else:
            data[key] = value

    try:
        return TaskFilter.model_validate(data)
    except ValidationError as exc:
        fields = [str(err["loc"][0]) for err in exc.errors() if err["loc"]]
        raise TaskValidationError(fields, "Invalid filter value") from exc


def build_predicate(criteria: TaskFilter, now: datetime) -> Predicate:
    checks: List[Predicate] = []

    if criteria.completed is not None:
        checks.append(lambda t: t.completed == criteria.completed)
    if criteria.priority is not None:
        checks.append(lambda t: t.priority == criteria.priority)
    for tag in criteria.tags:
        checks.append(lambda t, tag=tag: tag in t.tags)
    if criteria.overdue:
        checks.append(lambda t: t.due_date is not None and t.due_date < now)

    return lambda task: all(check(task) for check in checks)
