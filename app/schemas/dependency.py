"""
Pydantic v2 request / response schemas for task dependencies.

Field names are snake_case in Python and in JSON.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.orm import DependencyType, TaskPriority, TaskStatus
from app.schemas.task import TaskSummary


# ── Edges ─────────────────────────────────────────────────────────────────────

class DependencyCreate(BaseModel):
    """
    Payload for adding an edge to the task named in the URL.

    Example::

        {"depends_on_task_id": 42, "dependency_type": "blocked_by"}
    """

    depends_on_task_id: int = Field(..., gt=0)
    dependency_type: DependencyType

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [{"depends_on_task_id": 42, "dependency_type": "blocked_by"}]
        }
    )


class DependencyEdgeResponse(BaseModel):
    """A stored dependency edge."""

    id: int
    task_id: int
    depends_on_task_id: int
    dependency_type: DependencyType
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DependencyInfo(DependencyEdgeResponse):
    """Edge enriched with the task on the other end of it."""

    dependency_task: TaskSummary


class TaskDependenciesResponse(BaseModel):
    """
    Edges touching one task, grouped by their meaning for that task.

    ``blocked_by``: tasks that must finish first
    ``blocks``:     tasks waiting on this one
    ``relates_to``: non-blocking links
    """

    blocked_by: List[DependencyInfo] = Field(default_factory=list)
    blocks: List[DependencyInfo] = Field(default_factory=list)
    relates_to: List[DependencyInfo] = Field(default_factory=list)


class DependencyDeleteResponse(BaseModel):
    message: str
    dependency: DependencyEdgeResponse


class CycleCheckResponse(BaseModel):
    """Dry-run answer for a prospective edge."""

    would_create_cycle: bool
    path: List[int] = Field(
        default_factory=list,
        description="Existing blocking path the edge would close, each task blocking the next",
    )


# ── Chain ─────────────────────────────────────────────────────────────────────

class StoredDependency(BaseModel):
    """Outgoing edge as stored on a chain task."""

    task_id: int
    dependency_type: DependencyType


class ChainTask(BaseModel):
    """A task inside a dependency chain, positioned by ``level``."""

    id: int
    title: str
    status: TaskStatus
    priority: TaskPriority
    due_date: Optional[datetime] = None
    level: int = Field(description="Negative = upstream of the root, positive = downstream")
    dependencies: List[StoredDependency] = Field(default_factory=list)
    blocked_by: List[int] = Field(default_factory=list)
    blocks: List[int] = Field(default_factory=list)


class DependencyChainResponse(BaseModel):
    """Everything transitively blocking, or blocked by, a root task."""

    root_task: ChainTask
    upstream_dependencies: List[ChainTask]
    downstream_dependencies: List[ChainTask]
    all_tasks_in_chain: List[ChainTask]
    critical_path: List[int]
    max_depth: int
