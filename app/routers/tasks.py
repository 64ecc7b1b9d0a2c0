"""Task CRUD router."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session

from app.auth import get_current_owner
from app.config import settings
from app.database import get_db
from app.exceptions import NotFoundError
from app.models.orm import TaskPriority, TaskStatus
from app.schemas.task import TaskCreate, TaskResponse, TaskUpdate
from app.services import task_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["Tasks"])


def _not_found(exc: NotFoundError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": str(exc), "code": exc.code},
    )


@router.post(
    "",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a task",
)
def create_task(
    payload: TaskCreate,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
) -> TaskResponse:
    task = task_service.create_task(db, owner_id, payload)
    return TaskResponse.model_validate(task)


@router.get(
    "",
    response_model=List[TaskResponse],
    summary="List tasks",
    description="Filter by ``status`` / ``priority`` and search titles with ``q``.",
)
def list_tasks(
    status_filter: Optional[TaskStatus] = Query(default=None, alias="status"),
    priority: Optional[TaskPriority] = Query(default=None),
    q: Optional[str] = Query(default=None, max_length=200, description="Title search"),
    skip: int = Query(default=0, ge=0, description="Offset for pagination"),
    limit: int = Query(
        default=settings.default_page_size,
        ge=1,
        le=settings.max_page_size,
        description="Page size",
    ),
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
) -> List[TaskResponse]:
    tasks = task_service.list_tasks(
        db, owner_id, status=status_filter, priority=priority, q=q, skip=skip, limit=limit
    )
    return [TaskResponse.model_validate(t) for t in tasks]


@router.get(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Get a task",
)
def get_task(
    task_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
) -> TaskResponse:
    task = task_service.get_task(db, owner_id, task_id)
    if not task:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": f"Task {task_id} not found.", "code": "TASK_NOT_FOUND"},
        )
    return TaskResponse.model_validate(task)


@router.patch(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Update a task",
)
def update_task(
    payload: TaskUpdate,
    task_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
) -> TaskResponse:
    try:
        task = task_service.update_task(db, owner_id, task_id, payload)
        return TaskResponse.model_validate(task)
    except NotFoundError as exc:
        raise _not_found(exc)


@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a task",
    description="Deletes the task and every dependency edge it participates in.",
)
def delete_task(
    task_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner),
) -> None:
    try:
        task_service.delete_task(db, owner_id, task_id)
    except NotFoundError as exc:
        raise _not_found(exc)
