"""
Graph engine for task dependency edges.

Every stored edge is first normalized to an ordered ``(blocker, blocked)``
pair, meaning "blocker must complete before blocked":

    blocks      on (task_id=A, depends_on_task_id=B)  →  (A, B)
    blocked_by  on (task_id=A, depends_on_task_id=B)  →  (B, A)
    relates_to                                        →  no pair

All algorithms below work on those pairs only, so the two encodings of the
same relationship behave identically everywhere.

Edges are read through a ``fetch_edges(task_id)`` callable returning every
edge touching the task.  Objects with ``task_id`` / ``depends_on_task_id`` /
``dependency_type`` attributes and plain ``(task_id, depends_on_task_id,
dependency_type)`` tuples are both accepted.

Algorithms
----------
Cycle guard
    Adding ``blocker → blocked`` closes a cycle iff ``blocked`` is already an
    ancestor of ``blocker``.  BFS upstream from ``blocker`` answers that in
    O(V + E) over the reachable component.

Chain collector
    Direction-tagged BFS from the root: upstream entries walk to blockers,
    downstream entries walk to dependents.  The result is the root plus all
    of its ancestors and descendants.

Level assigner
    Monotone relaxation from the root (0): upstream proposals only ever get
    more negative, downstream proposals only more positive.  On a DAG this is
    the longest-path distance from the root in each direction.

Critical path
    Longest path in the chain DAG via memoized longest-distance-to-sink,
    O(V + E).  Ties resolve to the first source in chain order and the first
    dependent in edge order.

Example::

    edges = [(1, 2, "blocks"), (3, 2, "blocked_by")]   # 1 → 2 → 3
    chain = collect_chain(2, fetcher_for(edges))
    assign_levels(chain)       # {2: 0, 1: -1, 3: 1}
    find_critical_path(chain)  # [1, 2, 3]
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, Iterable, List, Optional, Set, Tuple

from app.models.orm import DependencyType

logger = logging.getLogger(__name__)

EdgeFetcher = Callable[[int], Iterable]

UPSTREAM = "upstream"
DOWNSTREAM = "downstream"


# ── Normalization ─────────────────────────────────────────────────────────────

def _fields(edge) -> Tuple[int, int, str]:
    if isinstance(edge, tuple):
        task_id, depends_on_task_id, dependency_type = edge[:3]
    else:
        task_id = edge.task_id
        depends_on_task_id = edge.depends_on_task_id
        dependency_type = edge.dependency_type
    return task_id, depends_on_task_id, DependencyType(dependency_type)


def normalize(
    task_id: int, depends_on_task_id: int, dependency_type
) -> Optional[Tuple[int, int]]:
    """
    Return the ``(blocker, blocked)`` pair for an edge, or None for ``relates_to``.

    >>> normalize(1, 2, "blocks")
    (1, 2)
    >>> normalize(1, 2, "blocked_by")
    (2, 1)
    >>> normalize(1, 2, "relates_to") is None
    True
    """
    dependency_type = DependencyType(dependency_type)
    if dependency_type is DependencyType.BLOCKS:
        return task_id, depends_on_task_id
    if dependency_type is DependencyType.BLOCKED_BY:
        return depends_on_task_id, task_id
    return None


def blocking_pair(edge) -> Optional[Tuple[int, int]]:
    """``normalize`` applied to an edge object or tuple."""
    return normalize(*_fields(edge))


def edge_key(edge):
    """Identity used to de-duplicate edges seen from both endpoints."""
    if isinstance(edge, tuple):
        return _fields(edge)
    return edge.id


def fetcher_for(edges: Iterable) -> EdgeFetcher:
    """
    Build an in-memory ``fetch_edges`` callable over a fixed edge list.

    Edges keep their input order, which makes results deterministic.
    """
    by_task: Dict[int, List] = {}
    for edge in edges:
        task_id, depends_on_task_id, _ = _fields(edge)
        by_task.setdefault(task_id, []).append(edge)
        by_task.setdefault(depends_on_task_id, []).append(edge)
    return lambda task_id: by_task.get(task_id, [])


# ── Cycle guard ───────────────────────────────────────────────────────────────

def find_cycle_path(
    task_id: int,
    depends_on_task_id: int,
    dependency_type,
    fetch_edges: EdgeFetcher,
) -> Optional[List[int]]:
    """
    Return the existing blocking path the proposed edge would close, or None.

    The path is listed in blocking order: each task blocks the next, starting
    at the proposed *blocked* task and ending at the proposed *blocker*.

    >>> fetch = fetcher_for([(1, 2, "blocks"), (2, 3, "blocks")])
    >>> find_cycle_path(3, 1, "blocks", fetch)
    [1, 2, 3]
    >>> find_cycle_path(1, 3, "blocks", fetch) is None
    True
    """
    pair = normalize(task_id, depends_on_task_id, dependency_type)
    if pair is None:
        return None

    blocker, blocked = pair
    if blocker == blocked:
        return [blocker]

    # BFS upstream from the blocker; parent[x] is the task x blocks on the way back.
    parent: Dict[int, int] = {}
    visited: Set[int] = {blocker}
    queue: Deque[int] = deque([blocker])

    while queue:
        current = queue.popleft()
        for edge in fetch_edges(current):
            edge_pair = blocking_pair(edge)
            if edge_pair is None or edge_pair[1] != current:
                continue
            upstream = edge_pair[0]
            if upstream in visited:
                continue
            parent[upstream] = current
            if upstream == blocked:
                path = [blocked]
                while path[-1] != blocker:
                    path.append(parent[path[-1]])
                return path
            visited.add(upstream)
            queue.append(upstream)

    logger.debug("No cycle: %d → %d (%d tasks visited)", blocker, blocked, len(visited))
    return None


def would_create_cycle(
    task_id: int,
    depends_on_task_id: int,
    dependency_type,
    fetch_edges: EdgeFetcher,
) -> bool:
    """
    Return True if storing this edge would create a blocking cycle.

    ``relates_to`` edges never do.

    >>> fetch = fetcher_for([(1, 2, "blocks"), (2, 3, "blocks")])
    >>> would_create_cycle(3, 1, "blocks", fetch)
    True
    >>> would_create_cycle(1, 3, "blocked_by", fetch)
    True
    >>> would_create_cycle(3, 1, "relates_to", fetch)
    False
    """
    return find_cycle_path(task_id, depends_on_task_id, dependency_type, fetch_edges) is not None


# ── Chain collector ───────────────────────────────────────────────────────────

@dataclass
class DependencyChain:
    """
    Tasks transitively connected to ``root_id`` through blocking edges.

    ``task_ids`` is in discovery order with the root first.  ``edges`` holds
    every edge touching a collected task, including ``relates_to`` edges and
    edges whose other endpoint lies outside the chain.
    """

    root_id: int
    task_ids: List[int]
    edges: List = field(default_factory=list)

    def __post_init__(self):
        members = set(self.task_ids)
        self._blockers: Dict[int, List[int]] = {task_id: [] for task_id in self.task_ids}
        self._dependents: Dict[int, List[int]] = {task_id: [] for task_id in self.task_ids}
        for edge in self.edges:
            pair = blocking_pair(edge)
            if pair is None:
                continue
            blocker, blocked = pair
            if blocker not in members or blocked not in members:
                continue
            if blocker not in self._blockers[blocked]:
                self._blockers[blocked].append(blocker)
            if blocked not in self._dependents[blocker]:
                self._dependents[blocker].append(blocked)

    def __contains__(self, task_id: int) -> bool:
        return task_id in self._blockers

    def __len__(self) -> int:
        return len(self.task_ids)

    def blockers_of(self, task_id: int) -> List[int]:
        """In-chain tasks that must complete before ``task_id``."""
        return self._blockers.get(task_id, [])

    def dependents_of(self, task_id: int) -> List[int]:
        """In-chain tasks waiting on ``task_id``."""
        return self._dependents.get(task_id, [])


def collect_chain(root_id: int, fetch_edges: EdgeFetcher) -> DependencyChain:
    """
    Expand the blocking ancestors and descendants of ``root_id``.

    Each collected task is fetched exactly once, so the edge list comes for
    free and never needs a second round of queries.  A task already collected
    is never expanded again, which keeps legacy cyclic data from looping.

    >>> chain = collect_chain(9, fetcher_for([]))
    >>> chain.task_ids
    [9]
    """
    task_ids: List[int] = [root_id]
    collected: Set[int] = {root_id}
    edges: List = []
    seen_edges: Set = set()
    fetched: Dict[int, List] = {}

    frontier: Deque[Tuple[int, str]] = deque([(root_id, UPSTREAM), (root_id, DOWNSTREAM)])

    while frontier:
        current, direction = frontier.popleft()
        if current not in fetched:
            fetched[current] = list(fetch_edges(current))
            for edge in fetched[current]:
                key = edge_key(edge)
                if key not in seen_edges:
                    seen_edges.add(key)
                    edges.append(edge)

        for edge in fetched[current]:
            pair = blocking_pair(edge)
            if pair is None:
                continue
            blocker, blocked = pair
            if direction == UPSTREAM and blocked == current:
                neighbour = blocker
            elif direction == DOWNSTREAM and blocker == current:
                neighbour = blocked
            else:
                continue
            if neighbour not in collected:
                collected.add(neighbour)
                task_ids.append(neighbour)
                frontier.append((neighbour, direction))

    logger.debug(
        "Collected chain for task %d: %d tasks, %d edges", root_id, len(task_ids), len(edges)
    )
    return DependencyChain(root_id=root_id, task_ids=task_ids, edges=edges)


# ── Level assigner ────────────────────────────────────────────────────────────

def assign_levels(chain: DependencyChain) -> Dict[int, int]:
    """
    Assign each chain task a signed depth relative to the root.

    Negative levels are upstream (must happen first), positive downstream.
    For every in-chain blocking pair ``level(blocked) >= level(blocker) + 1``.

    >>> chain = collect_chain(1, fetcher_for(
    ...     [(1, 2, "blocks"), (1, 3, "blocks"), (2, 4, "blocks"), (3, 4, "blocks")]))
    >>> assign_levels(chain)[4]
    2
    """
    root = chain.root_id
    levels: Dict[int, int] = {root: 0}
    # |level| < len(chain) on any DAG; the cap only bites on legacy cycles.
    bound = len(chain)

    queue: Deque[Tuple[int, str]] = deque([(root, UPSTREAM), (root, DOWNSTREAM)])
    while queue:
        current, direction = queue.popleft()
        level = levels[current]

        if direction == UPSTREAM:
            proposed = level - 1
            neighbours = chain.blockers_of(current)
        else:
            proposed = level + 1
            neighbours = chain.dependents_of(current)
        if abs(proposed) >= bound:
            continue

        for neighbour in neighbours:
            if neighbour == root:
                continue
            existing = levels.get(neighbour)
            if (
                existing is None
                or (direction == UPSTREAM and proposed < existing)
                or (direction == DOWNSTREAM and proposed > existing)
            ):
                levels[neighbour] = proposed
                queue.append((neighbour, direction))

    return levels


def max_depth(levels: Dict[int, int]) -> int:
    """Largest absolute level, 0 for a lone root."""
    return max((abs(level) for level in levels.values()), default=0)


# ── Critical path ─────────────────────────────────────────────────────────────

def find_critical_path(chain: DependencyChain) -> List[int]:
    """
    Return the longest sequence of tasks linked by blocking edges.

    The path starts at a source (no in-chain blockers) and ends at a sink (no
    in-chain dependents).  Falls back to ``[root]`` when the chain has no
    source, which only happens on legacy cyclic data.

    >>> find_critical_path(collect_chain(2, fetcher_for([(1, 2, "blocks"), (2, 3, "blocks")])))
    [1, 2, 3]
    """
    sources = [task_id for task_id in chain.task_ids if not chain.blockers_of(task_id)]
    if not sources:
        return [chain.root_id]

    # length[x]: number of tasks on the longest path starting at x
    length: Dict[int, int] = {}
    successor: Dict[int, Optional[int]] = {}
    on_stack: Set[int] = set()

    for source in sources:
        if source in length:
            continue
        stack: List[Tuple[int, int]] = [(source, 0)]
        on_stack.add(source)
        while stack:
            node, child_index = stack[-1]
            children = chain.dependents_of(node)
            if child_index < len(children):
                stack[-1] = (node, child_index + 1)
                child = children[child_index]
                if child not in length and child not in on_stack:
                    on_stack.add(child)
                    stack.append((child, 0))
                continue

            best, best_child = 1, None
            for child in children:
                # Children still on the stack are back edges from legacy cycles.
                if child in length and length[child] + 1 > best:
                    best, best_child = length[child] + 1, child
            length[node] = best
            successor[node] = best_child
            on_stack.discard(node)
            stack.pop()

    start = sources[0]
    for source in sources[1:]:
        if length[source] > length[start]:
            start = source

    path = [start]
    while successor[path[-1]] is not None:
        path.append(successor[path[-1]])
    return path
