"""
Dependency service. Validates, stores and analyses task dependency edges.

Structural safety (no blocking cycles) is enforced here, using the graph
engine in :mod:`app.utils.graph`, before any edge is written.

The service holds no state of its own: build one per request around an
:class:`~app.services.edge_store.EdgeStore` scoped to the calling user.

Concurrency
-----------
Duplicate and cycle checks run before the insert, not inside the same
transaction, so two concurrent requests can each pass the cycle check and
jointly close a cycle.  Exact duplicates are still stopped by the database's
unique constraint.
"""

import logging
from typing import Dict, List, Tuple

from app.exceptions import (
    CircularDependencyError,
    DependencyNotFoundError,
    DependencyTaskNotFoundError,
    DuplicateEdgeError,
    InvalidDependencyTypeError,
    InvalidIdError,
    SelfDependencyError,
    TaskNotFoundError,
)
from app.models.orm import DependencyType, Task, TaskDependency
from app.schemas.dependency import (
    ChainTask,
    CycleCheckResponse,
    DependencyChainResponse,
    DependencyEdgeResponse,
    DependencyInfo,
    StoredDependency,
    TaskDependenciesResponse,
)
from app.schemas.task import TaskSummary
from app.services.edge_store import EdgeStore
from app.utils.graph import (
    assign_levels,
    blocking_pair,
    collect_chain,
    find_critical_path,
    find_cycle_path,
    max_depth,
)

logger = logging.getLogger(__name__)


def parse_id(value, label: str = "id") -> int:
    """
    Coerce a task / edge id to a positive int.

    Accepts ints and digit strings; anything else raises ``InvalidIdError``.
    """
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidIdError(f"Valid {label} is required, got {value!r}.")
    return value


def parse_dependency_type(value) -> DependencyType:
    try:
        return DependencyType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in DependencyType)
        raise InvalidDependencyTypeError(
            f"dependency_type must be one of: {allowed} (got {value!r})."
        )


class DependencyService:
    """Dependency CRUD and chain analysis for one owner's tasks."""

    def __init__(self, store: EdgeStore):
        self.store = store

    # ── Helpers ──────────────────────────────────────────────────────────────

    def _require_task(self, task_id: int) -> Task:
        task = self.store.get_task(task_id)
        if not task:
            raise TaskNotFoundError(f"Task {task_id} not found.")
        return task

    def _validate_edge(
        self, task_id, depends_on_task_id, dependency_type
    ) -> Tuple[int, int, DependencyType]:
        task_id = parse_id(task_id, "task id")
        depends_on_task_id = parse_id(depends_on_task_id, "depends_on_task_id")
        dependency_type = parse_dependency_type(dependency_type)

        if task_id == depends_on_task_id:
            raise SelfDependencyError("A task cannot depend on itself.")

        self._require_task(task_id)
        if not self.store.get_task(depends_on_task_id):
            raise DependencyTaskNotFoundError(
                f"Dependency task {depends_on_task_id} not found."
            )
        return task_id, depends_on_task_id, dependency_type

    # ── Queries ──────────────────────────────────────────────────────────────

    def list_dependencies(self, task_id) -> TaskDependenciesResponse:
        """
        Return every edge touching ``task_id``, grouped by meaning for that task.

        Grouping follows the normalized direction, so ``A blocks B`` stored on
        A and ``B blocked_by A`` stored on B both list A under B's
        ``blocked_by``.
        """
        task_id = parse_id(task_id, "task id")
        self._require_task(task_id)

        edges = self.store.fetch_edges_for_task(task_id)
        peer_ids = {
            edge.depends_on_task_id if edge.task_id == task_id else edge.task_id
            for edge in edges
        }
        peers = {task.id: task for task in self.store.fetch_tasks_by_ids(peer_ids)}

        result = TaskDependenciesResponse()
        for edge in edges:
            peer_id = edge.depends_on_task_id if edge.task_id == task_id else edge.task_id
            peer = peers.get(peer_id)
            if peer is None:
                continue

            info = DependencyInfo(
                **DependencyEdgeResponse.model_validate(edge).model_dump(),
                dependency_task=TaskSummary.model_validate(peer),
            )
            pair = blocking_pair(edge)
            if pair is None:
                result.relates_to.append(info)
            elif pair[1] == task_id:
                result.blocked_by.append(info)
            else:
                result.blocks.append(info)
        return result

    def check_cycle(self, task_id, depends_on_task_id, dependency_type) -> CycleCheckResponse:
        """Dry-run the cycle guard for a prospective edge."""
        task_id, depends_on_task_id, dependency_type = self._validate_edge(
            task_id, depends_on_task_id, dependency_type
        )
        path = find_cycle_path(
            task_id, depends_on_task_id, dependency_type, self.store.fetch_edges_for_task
        )
        return CycleCheckResponse(would_create_cycle=path is not None, path=path or [])

    def would_create_cycle(self, task_id, depends_on_task_id, dependency_type) -> bool:
        return self.check_cycle(task_id, depends_on_task_id, dependency_type).would_create_cycle

    def get_dependency_chain(self, root_task_id) -> DependencyChainResponse:
        """
        Return every task transitively blocking, or blocked by, ``root_task_id``.

        Each task is positioned by its level relative to the root, and the
        longest blocking chain through the collected tasks is reported as the
        critical path.
        """
        root_task_id = parse_id(root_task_id, "task id")
        self._require_task(root_task_id)

        chain = collect_chain(root_task_id, self.store.fetch_edges_for_task)
        levels = assign_levels(chain)
        critical_path = find_critical_path(chain)

        blocked_by: Dict[int, List[int]] = {task_id: [] for task_id in chain.task_ids}
        blocks: Dict[int, List[int]] = {task_id: [] for task_id in chain.task_ids}
        stored: Dict[int, List[StoredDependency]] = {task_id: [] for task_id in chain.task_ids}
        for edge in chain.edges:
            if edge.task_id in stored:
                stored[edge.task_id].append(
                    StoredDependency(
                        task_id=edge.depends_on_task_id,
                        dependency_type=edge.dependency_type,
                    )
                )
            pair = blocking_pair(edge)
            if pair is None:
                continue
            blocker, blocked = pair
            if blocked in blocked_by and blocker not in blocked_by[blocked]:
                blocked_by[blocked].append(blocker)
            if blocker in blocks and blocked not in blocks[blocker]:
                blocks[blocker].append(blocked)

        tasks = {task.id: task for task in self.store.fetch_tasks_by_ids(chain.task_ids)}
        chain_tasks = [
            ChainTask(
                **TaskSummary.model_validate(tasks[task_id]).model_dump(),
                level=levels.get(task_id, 0),
                dependencies=stored[task_id],
                blocked_by=blocked_by[task_id],
                blocks=blocks[task_id],
            )
            for task_id in chain.task_ids
            if task_id in tasks
        ]

        root = next(task for task in chain_tasks if task.id == root_task_id)
        upstream = sorted(
            (task for task in chain_tasks if task.level < 0), key=lambda t: -t.level
        )
        downstream = sorted(
            (task for task in chain_tasks if task.level > 0), key=lambda t: t.level
        )

        logger.debug(
            "Chain for task %d: %d upstream, %d downstream, critical path %s",
            root_task_id,
            len(upstream),
            len(downstream),
            critical_path,
        )
        return DependencyChainResponse(
            root_task=root,
            upstream_dependencies=upstream,
            downstream_dependencies=downstream,
            all_tasks_in_chain=sorted(chain_tasks, key=lambda t: t.level),
            critical_path=critical_path,
            max_depth=max_depth(levels),
        )

    # ── Mutations ────────────────────────────────────────────────────────────

    def create_dependency(
        self, task_id, depends_on_task_id, dependency_type
    ) -> TaskDependency:
        """
        Store a new edge after validating it.

        Raises
        ------
        InvalidIdError, InvalidDependencyTypeError, SelfDependencyError
            Malformed request.
        TaskNotFoundError, DependencyTaskNotFoundError
            Either endpoint is missing or owned by someone else.
        DuplicateEdgeError
            The identical edge already exists.
        CircularDependencyError
            The edge would close a blocking cycle.
        """
        task_id, depends_on_task_id, dependency_type = self._validate_edge(
            task_id, depends_on_task_id, dependency_type
        )

        existing = self.store.find_edge(task_id, depends_on_task_id, dependency_type)
        if existing:
            logger.warning(
                "Rejected duplicate dependency: %d %s %d",
                task_id,
                dependency_type.value,
                depends_on_task_id,
            )
            raise DuplicateEdgeError(
                f"Dependency {task_id} {dependency_type.value} {depends_on_task_id} "
                f"already exists.",
                existing_edge_id=existing.id,
            )

        path = find_cycle_path(
            task_id, depends_on_task_id, dependency_type, self.store.fetch_edges_for_task
        )
        if path is not None:
            logger.warning(
                "Rejected circular dependency: %d %s %d closes %s",
                task_id,
                dependency_type.value,
                depends_on_task_id,
                path,
            )
            raise CircularDependencyError(
                f"Cannot add dependency {task_id} {dependency_type.value} "
                f"{depends_on_task_id}: this would create a circular dependency "
                f"through tasks {' → '.join(str(t) for t in path)}.",
                task_id=task_id,
                depends_on_task_id=depends_on_task_id,
                path=path,
            )

        edge = self.store.insert_edge(task_id, depends_on_task_id, dependency_type)
        logger.info(
            "Created dependency %d: %d %s %d",
            edge.id,
            task_id,
            dependency_type.value,
            depends_on_task_id,
        )
        return edge

    def delete_dependency(self, edge_id) -> DependencyEdgeResponse:
        """
        Remove an edge.  Removing an edge can never create a cycle, so no
        structural check is made.

        Raises
        ------
        DependencyNotFoundError
            If the edge does not exist or belongs to another owner.
        """
        edge_id = parse_id(edge_id, "dependency id")
        edge = self.store.get_edge(edge_id)
        if not edge:
            raise DependencyNotFoundError(f"Task dependency {edge_id} not found.")

        snapshot = DependencyEdgeResponse.model_validate(edge)
        self.store.delete_edge(edge)
        logger.info("Deleted dependency %d", edge_id)
        return snapshot
