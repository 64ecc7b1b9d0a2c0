"""SQLAlchemy ORM models for the task dependency service."""

import enum
from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class TaskStatus(str, enum.Enum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    IN_REVIEW = "in-review"
    COMPLETED = "completed"


class TaskPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class DependencyType(str, enum.Enum):
    """
    Kind of relationship stored on a dependency edge.

    ``blocks`` on (A, B) and ``blocked_by`` on (B, A) describe the same
    ordering: A must complete before B.  ``relates_to`` carries no ordering.
    """

    BLOCKS = "blocks"
    BLOCKED_BY = "blocked_by"
    RELATES_TO = "relates_to"


# ── Task ──────────────────────────────────────────────────────────────────────

class Task(Base):
    """A unit of work owned by a single user."""

    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # opaque id issued by the upstream auth service
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[TaskStatus] = mapped_column(
        Enum(TaskStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=TaskStatus.TODO,
    )
    priority: Mapped[TaskPriority] = mapped_column(
        Enum(TaskPriority, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=TaskPriority.MEDIUM,
    )
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    # ── Relationships ──────────────────────────────────────────────────────
    # Edges stored on this task
    outgoing_edges: Mapped[List["TaskDependency"]] = relationship(
        "TaskDependency",
        foreign_keys="TaskDependency.task_id",
        back_populates="task",
        cascade="all, delete-orphan",
        lazy="select",
    )

    # Edges stored on other tasks that point at this one
    incoming_edges: Mapped[List["TaskDependency"]] = relationship(
        "TaskDependency",
        foreign_keys="TaskDependency.depends_on_task_id",
        back_populates="depends_on_task",
        cascade="all, delete-orphan",
        lazy="select",
    )

    __table_args__ = (Index("ix_tasks_owner_status", "owner_id", "status"),)

    def __repr__(self) -> str:
        return f"<Task id={self.id} title={self.title!r}>"


# ── TaskDependency ────────────────────────────────────────────────────────────

class TaskDependency(Base):
    """
    Typed edge between two tasks of the same owner.

    ``task_id`` is the task the edge is stored on, ``depends_on_task_id`` the
    peer it points at.  The direction of the ordering depends on
    ``dependency_type`` (see :class:`DependencyType`).
    """

    __tablename__ = "task_dependencies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    task_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False
    )
    depends_on_task_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False
    )
    dependency_type: Mapped[DependencyType] = mapped_column(
        Enum(DependencyType, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    task: Mapped["Task"] = relationship(
        "Task", foreign_keys=[task_id], back_populates="outgoing_edges"
    )
    depends_on_task: Mapped["Task"] = relationship(
        "Task", foreign_keys=[depends_on_task_id], back_populates="incoming_edges"
    )

    __table_args__ = (
        UniqueConstraint(
            "task_id",
            "depends_on_task_id",
            "dependency_type",
            name="uq_task_dependency_edge",
        ),
        CheckConstraint("task_id != depends_on_task_id", name="ck_no_self_dependency"),
        Index("ix_task_dependencies_task", "task_id"),
        Index("ix_task_dependencies_depends_on", "depends_on_task_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<TaskDependency {self.task_id} {self.dependency_type.value} "
            f"{self.depends_on_task_id}>"
        )
