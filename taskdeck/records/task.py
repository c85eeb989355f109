"""TaskRecord — the task item held in the view-model's working set."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from taskdeck.records.enums import TaskCategory, TaskPriority, TaskStatus


class TaskRecord(BaseModel):
    """
    A single task as delivered by the task backend.

    Records are immutable: mutations come back from the data source as new
    records and replace the old entry by id. Backend payloads use camelCase
    keys (dueDate, createdAt, assignedTo); both spellings are accepted.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )

    id: str = Field(min_length=1, description="Stable unique identifier")
    title: str = Field(max_length=200)
    description: str = Field(default="", max_length=5000)
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    category: TaskCategory = TaskCategory.PERSONAL
    due_date: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)
    assigned_to: Optional[str] = None
    created_by: Optional[str] = None
    progress: Optional[float] = Field(default=None, ge=0.0, le=1.0)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("title must not be empty")
        return v

    @field_validator("description", mode="before")
    @classmethod
    def none_description_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @model_validator(mode="after")
    def check_timestamps(self) -> "TaskRecord":
        if self.updated_at is None:
            # frozen model: bypass __setattr__ for the defaulted field
            object.__setattr__(self, "updated_at", self.created_at)
        elif _comparable(self.updated_at, self.created_at) and self.updated_at < self.created_at:
            raise ValueError("updated_at must not be earlier than created_at")
        return self

    @property
    def last_modified(self) -> datetime:
        return self.updated_at or self.created_at

    def has_tag(self, tag: str) -> bool:
        wanted = tag.lower()
        return any(t.lower() == wanted for t in self.tags)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with backend (camelCase) keys and ISO timestamps."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TaskRecord":
        return cls.model_validate(data)


def _comparable(a: datetime, b: datetime) -> bool:
    """Naive and aware datetimes cannot be ordered against each other."""
    return (a.tzinfo is None) == (b.tzinfo is None)
