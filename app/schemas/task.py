"""
Pydantic v2 request / response schemas for tasks.

Tasks are owned by the caller; ``owner_id`` never appears in a payload and is
taken from the authenticated request instead.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.orm import TaskPriority, TaskStatus


class TaskCreate(BaseModel):
    """
    Payload for creating a task.

    Example::

        {
            "title": "Draft release notes",
            "priority": "high",
            "due_date": "2026-11-01T17:00:00"
        }
    """

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "title": "Draft release notes",
                    "description": "Collect merged changes since the last tag",
                    "status": "todo",
                    "priority": "high",
                    "due_date": "2026-11-01T17:00:00",
                }
            ]
        }
    )


class TaskUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v


class TaskSummary(BaseModel):
    """Minimal task projection embedded in dependency responses."""

    id: int
    title: str
    status: TaskStatus
    priority: TaskPriority
    due_date: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TaskResponse(TaskSummary):
    """Full task representation returned by the API."""

    description: Optional[str]
    created_at: datetime
    updated_at: datetime
