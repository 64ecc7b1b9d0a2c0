"""ORM models package."""

from app.models.orm import (
    DependencyType,
    Task,
    TaskDependency,
    TaskPriority,
    TaskStatus,
)

__all__ = ["DependencyType", "Task", "TaskDependency", "TaskPriority", "TaskStatus"]
