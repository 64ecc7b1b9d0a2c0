"""Task CRUD service, scoped to a single owner."""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.exceptions import TaskNotFoundError
from app.models.orm import Task, TaskPriority, TaskStatus
from app.schemas.task import TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)


def get_task(db: Session, owner_id: str, task_id: int) -> Optional[Task]:
    """Return a task by id if it belongs to ``owner_id``, else None."""
    return db.scalar(select(Task).where(Task.id == task_id, Task.owner_id == owner_id))


def list_tasks(
    db: Session,
    owner_id: str,
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    q: Optional[str] = None,
    skip: int = 0,
    limit: int = 50,
) -> List[Task]:
    """Return the owner's tasks, optionally filtered, ordered by id."""
    stmt = select(Task).where(Task.owner_id == owner_id)
    if status is not None:
        stmt = stmt.where(Task.status == status)
    if priority is not None:
        stmt = stmt.where(Task.priority == priority)
    if q:
        stmt = stmt.where(Task.title.ilike(f"%{q}%"))
    stmt = stmt.order_by(Task.id).offset(skip).limit(limit)
    return list(db.scalars(stmt).all())


def create_task(db: Session, owner_id: str, payload: TaskCreate) -> Task:
    task = Task(
        owner_id=owner_id,
        title=payload.title,
        description=payload.description,
        status=payload.status,
        priority=payload.priority,
        due_date=payload.due_date,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    logger.info("Created task %d for owner %s", task.id, owner_id)
    return task


def update_task(db: Session, owner_id: str, task_id: int, payload: TaskUpdate) -> Task:
    """
    Apply the fields present in ``payload``.

    Raises
    ------
    TaskNotFoundError
        If the task does not exist for this owner.
    """
    task = get_task(db, owner_id, task_id)
    if not task:
        raise TaskNotFoundError(f"Task {task_id} not found.")

    for name, value in payload.model_dump(exclude_unset=True).items():
        # description and due_date may be cleared, the rest are required columns
        if value is None and name not in ("description", "due_date"):
            continue
        setattr(task, name, value)

    db.commit()
    db.refresh(task)
    logger.info("Updated task %d", task_id)
    return task


def delete_task(db: Session, owner_id: str, task_id: int) -> None:
    """
    Delete a task together with every dependency edge touching it.

    Raises
    ------
    TaskNotFoundError
        If the task does not exist for this owner.
    """
    task = get_task(db, owner_id, task_id)
    if not task:
        raise TaskNotFoundError(f"Task {task_id} not found.")

    db.delete(task)
    db.commit()
    logger.info("Deleted task %d", task_id)
