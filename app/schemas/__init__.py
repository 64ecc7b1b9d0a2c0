"""Pydantic schemas package."""

from app.schemas.dependency import (
    ChainTask,
    CycleCheckResponse,
    DependencyChainResponse,
    DependencyCreate,
    DependencyDeleteResponse,
    DependencyEdgeResponse,
    DependencyInfo,
    StoredDependency,
    TaskDependenciesResponse,
)
from app.schemas.task import TaskCreate, TaskResponse, TaskSummary, TaskUpdate

__all__ = [
    "ChainTask",
    "CycleCheckResponse",
    "DependencyChainResponse",
    "DependencyCreate",
    "DependencyDeleteResponse",
    "DependencyEdgeResponse",
    "DependencyInfo",
    "StoredDependency",
    "TaskCreate",
    "TaskDependenciesResponse",
    "TaskResponse",
    "TaskSummary",
    "TaskUpdate",
]
