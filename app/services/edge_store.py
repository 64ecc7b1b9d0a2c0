"""
Edge store adapter: the only place the dependency engine touches the database.

The engine depends on the :class:`EdgeStore` protocol; :class:`SqlEdgeStore`
implements it over a SQLAlchemy session scoped to a single owner.
"""

import logging
from typing import Iterable, List, Optional, Protocol

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.exceptions import DuplicateEdgeError
from app.models.orm import DependencyType, Task, TaskDependency

logger = logging.getLogger(__name__)


class EdgeStore(Protocol):
    """Lookups and single-edge writes the dependency service relies on."""

    def fetch_edges_for_task(self, task_id: int) -> List[TaskDependency]: ...

    def fetch_tasks_by_ids(self, ids: Iterable[int]) -> List[Task]: ...

    def get_task(self, task_id: int) -> Optional[Task]: ...

    def find_edge(
        self, task_id: int, depends_on_task_id: int, dependency_type: DependencyType
    ) -> Optional[TaskDependency]: ...

    def get_edge(self, edge_id: int) -> Optional[TaskDependency]: ...

    def insert_edge(
        self, task_id: int, depends_on_task_id: int, dependency_type: DependencyType
    ) -> TaskDependency: ...

    def delete_edge(self, edge: TaskDependency) -> None: ...


class SqlEdgeStore:
    """
    :class:`EdgeStore` backed by a SQLAlchemy session.

    Task lookups are restricted to ``owner_id``.  Edge lookups by endpoint are
    not, since callers only ever pass ids of tasks they already resolved
    through this store.
    """

    def __init__(self, db: Session, owner_id: str):
        self.db = db
        self.owner_id = owner_id

    def fetch_edges_for_task(self, task_id: int) -> List[TaskDependency]:
        stmt = (
            select(TaskDependency)
            .where(
                or_(
                    TaskDependency.task_id == task_id,
                    TaskDependency.depends_on_task_id == task_id,
                )
            )
            .order_by(TaskDependency.id)
        )
        return list(self.db.scalars(stmt).all())

    def fetch_tasks_by_ids(self, ids: Iterable[int]) -> List[Task]:
        ids = list(ids)
        if not ids:
            return []
        stmt = select(Task).where(Task.owner_id == self.owner_id, Task.id.in_(ids))
        return list(self.db.scalars(stmt).all())

    def get_task(self, task_id: int) -> Optional[Task]:
        return self.db.scalar(
            select(Task).where(Task.id == task_id, Task.owner_id == self.owner_id)
        )

    def find_edge(
        self, task_id: int, depends_on_task_id: int, dependency_type: DependencyType
    ) -> Optional[TaskDependency]:
        return self.db.scalar(
            select(TaskDependency).where(
                TaskDependency.task_id == task_id,
                TaskDependency.depends_on_task_id == depends_on_task_id,
                TaskDependency.dependency_type == dependency_type,
            )
        )

    def get_edge(self, edge_id: int) -> Optional[TaskDependency]:
        # The edge is visible when the task it is stored on belongs to the owner.
        return self.db.scalar(
            select(TaskDependency)
            .join(Task, Task.id == TaskDependency.task_id)
            .where(TaskDependency.id == edge_id, Task.owner_id == self.owner_id)
        )

    def insert_edge(
        self, task_id: int, depends_on_task_id: int, dependency_type: DependencyType
    ) -> TaskDependency:
        edge = TaskDependency(
            task_id=task_id,
            depends_on_task_id=depends_on_task_id,
            dependency_type=dependency_type,
        )
        self.db.add(edge)
        try:
            self.db.commit()
        except IntegrityError as exc:
            # A concurrent insert won the race past the service's duplicate check.
            self.db.rollback()
            logger.warning(
                "Edge insert rejected by database: %s %s %s (%s)",
                task_id,
                dependency_type.value,
                depends_on_task_id,
                exc.orig,
            )
            raise DuplicateEdgeError(
                f"Dependency {task_id} {dependency_type.value} {depends_on_task_id} "
                f"already exists."
            ) from exc
        self.db.refresh(edge)
        return edge

    def delete_edge(self, edge: TaskDependency) -> None:
        self.db.delete(edge)
        self.db.commit()
