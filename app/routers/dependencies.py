"""Task dependency router: edge CRUD, cycle dry-run and dependency chain."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session

from app.auth import get_current_owner
from app.database import get_db
from app.exceptions import BadRequestError, ConflictError, CycleError, NotFoundError
from app.models.orm import DependencyType
from app.schemas.dependency import (
    CycleCheckResponse,
    DependencyChainResponse,
    DependencyCreate,
    DependencyDeleteResponse,
    DependencyEdgeResponse,
    TaskDependenciesResponse,
)
from app.services.dependency_service import DependencyService
from app.services.edge_store import SqlEdgeStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["Dependencies"])


def get_dependency_service(
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
) -> DependencyService:
    """Build a per-request service around an owner-scoped store."""
    return DependencyService(SqlEdgeStore(db, owner_id))


def _error(status_code: int, exc: ValueError, **extra) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"error": str(exc), "code": exc.code, **extra},
    )


@router.get(
    "/{task_id}/dependencies",
    response_model=TaskDependenciesResponse,
    summary="List a task's dependencies",
    description=(
        "Returns every edge touching the task, grouped into ``blocked_by``, "
        "``blocks`` and ``relates_to`` from the task's point of view."
    ),
)
def list_dependencies(
    task_id: int = Path(..., gt=0),
    service: DependencyService = Depends(get_dependency_service),
) -> TaskDependenciesResponse:
    try:
        return service.list_dependencies(task_id)
    except NotFoundError as exc:
        raise _error(status.HTTP_404_NOT_FOUND, exc)


@router.post(
    "/{task_id}/dependencies",
    response_model=DependencyEdgeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a dependency",
    description=(
        "Store an edge from the task to ``depends_on_task_id``. "
        "Self-dependencies, exact duplicates and blocking cycles are rejected."
    ),
)
def create_dependency(
    payload: DependencyCreate,
    task_id: int = Path(..., gt=0),
    service: DependencyService = Depends(get_dependency_service),
) -> DependencyEdgeResponse:
    try:
        edge = service.create_dependency(
            task_id, payload.depends_on_task_id, payload.dependency_type
        )
        return DependencyEdgeResponse.model_validate(edge)
    except CycleError as exc:
        raise _error(
            status.HTTP_422_UNPROCESSABLE_ENTITY, exc, path=getattr(exc, "path", [])
        )
    except ConflictError as exc:
        raise _error(
            status.HTTP_409_CONFLICT,
            exc,
            existing_edge_id=getattr(exc, "existing_edge_id", None),
        )
    except NotFoundError as exc:
        raise _error(status.HTTP_404_NOT_FOUND, exc)
    except BadRequestError as exc:
        raise _error(status.HTTP_400_BAD_REQUEST, exc)


@router.get(
    "/{task_id}/dependencies/check",
    response_model=CycleCheckResponse,
    summary="Check whether a dependency would create a cycle",
    description="Runs the cycle guard for a prospective edge without storing it.",
)
def check_dependency(
    task_id: int = Path(..., gt=0),
    depends_on_task_id: int = Query(..., gt=0),
    dependency_type: DependencyType = Query(...),
    service: DependencyService = Depends(get_dependency_service),
) -> CycleCheckResponse:
    try:
        return service.check_cycle(task_id, depends_on_task_id, dependency_type)
    except NotFoundError as exc:
        raise _error(status.HTTP_404_NOT_FOUND, exc)
    except BadRequestError as exc:
        raise _error(status.HTTP_400_BAD_REQUEST, exc)


@router.get(
    "/{task_id}/dependency-chain",
    response_model=DependencyChainResponse,
    summary="Get the full dependency chain of a task",
    description=(
        "Returns every task transitively blocking or blocked by this one, each "
        "with a signed ``level`` relative to it, plus the longest blocking "
        "chain (``critical_path``)."
    ),
)
def get_dependency_chain(
    task_id: int = Path(..., gt=0),
    service: DependencyService = Depends(get_dependency_service),
) -> DependencyChainResponse:
    try:
        return service.get_dependency_chain(task_id)
    except NotFoundError as exc:
        raise _error(status.HTTP_404_NOT_FOUND, exc)


@router.delete(
    "/dependencies/{dependency_id}",
    response_model=DependencyDeleteResponse,
    summary="Remove a dependency",
)
def delete_dependency(
    dependency_id: int = Path(..., gt=0),
    service: DependencyService = Depends(get_dependency_service),
) -> DependencyDeleteResponse:
    try:
        deleted = service.delete_dependency(dependency_id)
    except NotFoundError as exc:
        raise _error(status.HTTP_404_NOT_FOUND, exc)
    return DependencyDeleteResponse(
        message="Task dependency deleted successfully", dependency=deleted
    )
