from datetime import datetime, timezone
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator

from .models import Priority

Tag = Annotated[str, Field(min_length=1, max_length=50)]


class _Payload(BaseModel):
    # Incoming bodies use the JSON names; attribute names are accepted too.
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("title", check_fields=False)
    @classmethod
    def _title_not_blank(cls, value):
        if value is not None and not value.strip():
            raise ValueError("title must not be blank")
        return value

    @field_validator("due_date", check_fields=False)
    @classmethod
    def _due_date_utc(cls, value):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_validator("tags", check_fields=False)
    @classmethod
    def _unique_tags(cls, value):
        if value is None:
            return value
        return list(dict.fromkeys(value))


class TaskBase(_Payload):
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    completed: StrictBool = False
    priority: Priority = Priority.medium
    due_date: Optional[datetime] = Field(default=None, alias="dueDate")
    tags: List[Tag] = Field(default_factory=list)
    locked: StrictBool = False


class TaskCreate(TaskBase):
    pass


class TaskReplace(TaskBase):
    """Full replacement: every writable field must be supplied."""

    description: str
    completed: StrictBool
    priority: Priority
    due_date: Optional[datetime] = Field(alias="dueDate")
    tags: List[Tag]
    locked: StrictBool


class TaskPatch(_Payload):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    completed: Optional[StrictBool] = None
    priority: Optional[Priority] = None
    due_date: Optional[datetime] = Field(default=None, alias="dueDate")
    tags: Optional[List[Tag]] = None
    locked: Optional[StrictBool] = None

    @field_validator("title", "description", "completed", "priority", "tags", "locked", mode="before")
    @classmethod
    def _not_null(cls, value):
        # dueDate is the only field that may be cleared with null
        if value is None:
            raise ValueError("may not be null")
        return value


class TaskOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: int
    title: str
    description: str
    completed: bool
    priority: Priority
    created_at: datetime = Field(alias="createdAt")
    due_date: Optional[datetime] = Field(alias="dueDate")
    tags: List[str]
    locked: bool
