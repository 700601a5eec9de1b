from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class Priority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


@dataclass(frozen=True)
class Task:
    id: int
    title: str
    created_at: datetime
    description: str = ""
    completed: bool = False
    priority: Priority = Priority.medium
    due_date: Optional[datetime] = None
    tags: Tuple[str, ...] = field(default_factory=tuple)
    locked: bool = False


def is_locked(task: Task) -> bool:
    return task.locked
