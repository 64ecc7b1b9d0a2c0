"""
Custom application exceptions.

Using distinct exception types lets routers map them to the right HTTP status
codes without resorting to string-matching on messages.  Every concrete error
also carries a stable ``code`` that clients can switch on.
"""

from typing import List, Optional


class BadRequestError(ValueError):
    """Raised when the input is well-formed but semantically invalid."""

    code = "BAD_REQUEST"


class NotFoundError(ValueError):
    """Raised when a requested resource does not exist."""

    code = "NOT_FOUND"


class ConflictError(ValueError):
    """Raised when the operation would violate a uniqueness constraint."""

    code = "CONFLICT"


class CycleError(ValueError):
    """Raised when a dependency edge would create a cycle in the blocking DAG."""

    code = "CYCLE"


# ── Validation ────────────────────────────────────────────────────────────────

class InvalidIdError(BadRequestError):
    code = "INVALID_ID"


class InvalidDependencyTypeError(BadRequestError):
    code = "INVALID_DEPENDENCY_TYPE"


class SelfDependencyError(BadRequestError):
    code = "SELF_DEPENDENCY"


# ── Lookups ───────────────────────────────────────────────────────────────────

class TaskNotFoundError(NotFoundError):
    code = "TASK_NOT_FOUND"


class DependencyTaskNotFoundError(NotFoundError):
    code = "DEPENDENCY_TASK_NOT_FOUND"


class DependencyNotFoundError(NotFoundError):
    code = "DEPENDENCY_NOT_FOUND"


# ── Structural ────────────────────────────────────────────────────────────────

class DuplicateEdgeError(ConflictError):
    """The exact ``(task_id, depends_on_task_id, dependency_type)`` edge exists."""

    code = "DEPENDENCY_EXISTS"

    def __init__(self, message: str, existing_edge_id: Optional[int] = None):
        super().__init__(message)
        self.existing_edge_id = existing_edge_id


class CircularDependencyError(CycleError):
    """
    The new edge would close a blocking cycle.

    ``path`` is the existing chain of blocking edges, listed so that each task
    blocks the next one, which the new edge would join end-to-start.
    """

    code = "CIRCULAR_DEPENDENCY"

    def __init__(
        self,
        message: str,
        task_id: int,
        depends_on_task_id: int,
        path: Optional[List[int]] = None,
    ):
        super().__init__(message)
        self.task_id = task_id
        self.depends_on_task_id = depends_on_task_id
        self.path = path or []
