from typing import Iterable

LOCKED_MESSAGE = "This task is locked and cannot be modified."


class TaskError(Exception):
    """Base class for every error the task repository raises."""


class TaskValidationError(TaskError):
    def __init__(self, fields: Iterable[str], message: str = "Invalid task payload"):
        self.fields = sorted(set(fields))
        self.message = message
        super().__init__(f"{message}: {', '.join(self.fields)}")


class TaskNotFound(TaskError):
    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


class TaskLocked(TaskError):
    def __init__(self, task_id: int):
        self.task_id = task_id
        self.message = LOCKED_MESSAGE
        super().__init__(LOCKED_MESSAGE)
