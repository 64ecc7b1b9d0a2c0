"""Tests for the dependency graph engine (unit tests, no DB required)."""

import random

import pytest

from app.utils.graph import (
    DependencyChain,
    assign_levels,
    blocking_pair,
    collect_chain,
    fetcher_for,
    find_critical_path,
    find_cycle_path,
    max_depth,
    normalize,
    would_create_cycle,
)

# 1 blocks 2 blocks 3
LINEAR = [(1, 2, "blocks"), (2, 3, "blocks")]

# A=1 blocks B=2 and C=3, both block D=4
DIAMOND = [(1, 2, "blocks"), (1, 3, "blocks"), (2, 4, "blocks"), (3, 4, "blocks")]


def _is_acyclic(edges) -> bool:
    """Kahn's algorithm over normalized pairs, independent of the engine."""
    pairs = {blocking_pair(e) for e in edges} - {None}
    nodes = {n for pair in pairs for n in pair}
    indegree = {n: 0 for n in nodes}
    for _, blocked in pairs:
        indegree[blocked] += 1
    ready = [n for n, d in indegree.items() if d == 0]
    removed = 0
    while ready:
        node = ready.pop()
        removed += 1
        for blocker, blocked in pairs:
            if blocker == node:
                indegree[blocked] -= 1
                if indegree[blocked] == 0:
                    ready.append(blocked)
    return removed == len(nodes)


def _random_dag(seed: int, nodes: int = 9, attempts: int = 40):
    """Insert random edges the way the service does: checked one at a time."""
    rng = random.Random(seed)
    edges = []
    for _ in range(attempts):
        a, b = rng.sample(range(1, nodes + 1), 2)
        edge = (a, b, rng.choice(["blocks", "blocked_by", "relates_to"]))
        if edge in edges:
            continue
        if not would_create_cycle(*edge, fetcher_for(edges)):
            edges.append(edge)
    return edges


class TestNormalize:
    def test_blocks_keeps_direction(self):
        assert normalize(1, 2, "blocks") == (1, 2)

    def test_blocked_by_is_mirrored(self):
        assert normalize(1, 2, "blocked_by") == (2, 1)

    def test_relates_to_has_no_direction(self):
        assert normalize(1, 2, "relates_to") is None

    def test_unknown_type_raises(self):
        with pytest.raises(ValueError):
            normalize(1, 2, "depends")


class TestCycleGuard:
    def test_empty_graph_no_cycle(self):
        assert not would_create_cycle(1, 2, "blocks", fetcher_for([]))

    def test_closing_a_chain_is_rejected(self):
        # 1 → 2 → 3, proposed: 3 blocks 1
        assert would_create_cycle(3, 1, "blocks", fetcher_for(LINEAR))

    def test_redundant_shortcut_is_accepted(self):
        # 1 → 2 → 3, proposed: 1 blocks 3
        assert not would_create_cycle(1, 3, "blocks", fetcher_for(LINEAR))

    def test_blocked_by_encoding_is_checked_too(self):
        # "1 blocked_by 3" means 3 → 1, which closes 1 → 2 → 3
        assert would_create_cycle(1, 3, "blocked_by", fetcher_for(LINEAR))
        assert not would_create_cycle(3, 1, "blocked_by", fetcher_for(LINEAR))

    def test_stored_blocked_by_edges_are_followed(self):
        edges = [(2, 1, "blocked_by"), (3, 2, "blocked_by")]  # 1 → 2 → 3
        assert would_create_cycle(3, 1, "blocks", fetcher_for(edges))

    def test_relates_to_never_cycles(self):
        assert not would_create_cycle(3, 1, "relates_to", fetcher_for(LINEAR))

    def test_relates_to_edges_are_not_followed(self):
        edges = [(1, 2, "blocks"), (2, 3, "relates_to")]
        assert not would_create_cycle(3, 1, "blocks", fetcher_for(edges))

    def test_direct_reverse_is_cycle(self):
        assert would_create_cycle(2, 1, "blocks", fetcher_for([(1, 2, "blocks")]))

    def test_diamond(self):
        fetch = fetcher_for(DIAMOND)
        assert not would_create_cycle(4, 5, "blocks", fetch)
        assert would_create_cycle(4, 1, "blocks", fetch)

    def test_cycle_path_lists_blocking_order(self):
        edges = [(1, 2, "blocks"), (2, 3, "blocks"), (3, 4, "blocks")]
        assert find_cycle_path(4, 1, "blocks", fetcher_for(edges)) == [1, 2, 3, 4]

    def test_cycle_path_none_when_safe(self):
        assert find_cycle_path(1, 3, "blocks", fetcher_for(LINEAR)) is None

    def test_terminates_on_legacy_cycles(self):
        edges = [(1, 2, "blocks"), (2, 3, "blocks"), (3, 1, "blocks")]
        assert not would_create_cycle(5, 4, "blocks", fetcher_for(edges + [(4, 1, "relates_to")]))
        assert would_create_cycle(3, 2, "blocks", fetcher_for(edges))

    @pytest.mark.parametrize("seed", range(10))
    def test_checked_insertions_stay_acyclic(self, seed):
        rng = random.Random(seed)
        edges = []
        for _ in range(60):
            a, b = rng.sample(range(1, 11), 2)
            edge = (a, b, rng.choice(["blocks", "blocked_by", "relates_to"]))
            if edge in edges or would_create_cycle(*edge, fetcher_for(edges)):
                continue
            edges.append(edge)
            assert _is_acyclic(edges)

    @pytest.mark.parametrize("seed", range(5))
    def test_rejection_is_exact(self, seed):
        edges = _random_dag(seed)
        for a in range(1, 10):
            for b in range(1, 10):
                if a == b:
                    continue
                predicted = would_create_cycle(a, b, "blocks", fetcher_for(edges))
                assert predicted == (not _is_acyclic(edges + [(a, b, "blocks")]))


class TestCollectChain:
    def test_isolated_task_is_singleton(self):
        chain = collect_chain(7, fetcher_for([]))
        assert chain.task_ids == [7]
        assert chain.edges == []

    def test_both_directions_are_collected(self):
        chain = collect_chain(2, fetcher_for(LINEAR))
        assert chain.task_ids[0] == 2
        assert set(chain.task_ids) == {1, 2, 3}
        assert len(chain.edges) == 2

    def test_siblings_are_not_collected(self):
        # 1 blocks 2 and 5; from 2, task 5 is neither ancestor nor descendant
        edges = [(1, 2, "blocks"), (1, 5, "blocks")]
        chain = collect_chain(2, fetcher_for(edges))
        assert set(chain.task_ids) == {1, 2}
        # ...but the edge touching a collected task is kept
        assert (1, 5, "blocks") in chain.edges

    def test_relates_to_is_not_traversed(self):
        edges = [(1, 2, "relates_to"), (2, 3, "blocks")]
        chain = collect_chain(2, fetcher_for(edges))
        assert set(chain.task_ids) == {2, 3}
        assert (1, 2, "relates_to") in chain.edges

    def test_blocked_by_is_traversed(self):
        chain = collect_chain(1, fetcher_for([(2, 1, "blocked_by")]))
        assert chain.task_ids == [1, 2]
        assert chain.dependents_of(1) == [2]

    def test_each_task_fetched_once(self):
        calls = []
        fetch = fetcher_for(DIAMOND)

        def counting(task_id):
            calls.append(task_id)
            return fetch(task_id)

        collect_chain(1, counting)
        assert sorted(calls) == [1, 2, 3, 4]

    def test_terminates_on_legacy_cycles(self):
        edges = [(1, 2, "blocks"), (2, 3, "blocks"), (3, 1, "blocks")]
        chain = collect_chain(1, fetcher_for(edges))
        assert set(chain.task_ids) == {1, 2, 3}


class TestAssignLevels:
    def test_root_is_zero(self):
        assert assign_levels(collect_chain(4, fetcher_for([]))) == {4: 0}

    def test_linear(self):
        levels = assign_levels(collect_chain(2, fetcher_for(LINEAR)))
        assert levels == {1: -1, 2: 0, 3: 1}
        assert max_depth(levels) == 1

    def test_diamond_is_consistent(self):
        levels = assign_levels(collect_chain(1, fetcher_for(DIAMOND)))
        assert levels == {1: 0, 2: 1, 3: 1, 4: 2}

    def test_diamond_from_the_bottom(self):
        levels = assign_levels(collect_chain(4, fetcher_for(DIAMOND)))
        assert levels == {4: 0, 2: -1, 3: -1, 1: -2}

    def test_diamond_edge_order_does_not_matter(self):
        for edges in (DIAMOND, list(reversed(DIAMOND))):
            assert assign_levels(collect_chain(1, fetcher_for(edges)))[4] == 2

    def test_uneven_paths_take_the_longest(self):
        # 1 → 2 → 3 → 4 and the shortcut 1 → 4
        edges = [(1, 2, "blocks"), (2, 3, "blocks"), (3, 4, "blocks"), (1, 4, "blocks")]
        levels = assign_levels(collect_chain(1, fetcher_for(edges)))
        assert levels[4] == 3

    def test_upstream_uneven_paths(self):
        # 1 → 4 directly and 1 → 2 → 3 → 4
        edges = [(1, 4, "blocks"), (1, 2, "blocks"), (2, 3, "blocks"), (3, 4, "blocks")]
        levels = assign_levels(collect_chain(4, fetcher_for(edges)))
        assert levels == {4: 0, 3: -1, 2: -2, 1: -3}

    @pytest.mark.parametrize("seed", range(8))
    def test_every_blocking_edge_points_down(self, seed):
        edges = _random_dag(seed)
        for root in range(1, 10):
            chain = collect_chain(root, fetcher_for(edges))
            levels = assign_levels(chain)
            assert levels[root] == 0
            assert set(levels) == set(chain.task_ids)
            for task_id in chain.task_ids:
                for blocked in chain.dependents_of(task_id):
                    assert levels[blocked] >= levels[task_id] + 1

    def test_terminates_on_legacy_cycles(self):
        edges = [(1, 2, "blocks"), (2, 3, "blocks"), (3, 1, "blocks")]
        levels = assign_levels(collect_chain(1, fetcher_for(edges)))
        assert levels[1] == 0
        assert max_depth(levels) < 3


class TestCriticalPath:
    def test_linear(self):
        assert find_critical_path(collect_chain(2, fetcher_for(LINEAR))) == [1, 2, 3]

    def test_isolated_task(self):
        assert find_critical_path(collect_chain(5, fetcher_for([]))) == [5]

    def test_picks_longest_branch(self):
        # 1 → 2 → 3 → 4 and 1 → 5
        edges = [(1, 5, "blocks"), (1, 2, "blocks"), (2, 3, "blocks"), (3, 4, "blocks")]
        assert find_critical_path(collect_chain(1, fetcher_for(edges))) == [1, 2, 3, 4]

    def test_ties_resolve_in_edge_order(self):
        assert find_critical_path(collect_chain(1, fetcher_for(DIAMOND))) == [1, 2, 4]

    def test_ties_across_sources_resolve_in_chain_order(self):
        # 1 → 3 and 2 → 3; from 3 both sources are equally long
        edges = [(1, 3, "blocks"), (2, 3, "blocks")]
        chain = collect_chain(3, fetcher_for(edges))
        assert find_critical_path(chain) == [chain.task_ids[1], 3]

    def test_relates_to_is_ignored(self):
        edges = LINEAR + [(3, 9, "relates_to")]
        assert find_critical_path(collect_chain(2, fetcher_for(edges))) == [1, 2, 3]

    def test_no_source_falls_back_to_root(self):
        edges = [(1, 2, "blocks"), (2, 1, "blocks")]
        assert find_critical_path(collect_chain(1, fetcher_for(edges))) == [1]

    def test_manual_chain(self):
        chain = DependencyChain(root_id=2, task_ids=[2, 1, 3], edges=LINEAR)
        assert find_critical_path(chain) == [1, 2, 3]

    @pytest.mark.parametrize("seed", range(8))
    def test_path_is_a_blocking_chain_within_level_span(self, seed):
        edges = _random_dag(seed)
        for root in range(1, 10):
            chain = collect_chain(root, fetcher_for(edges))
            levels = assign_levels(chain)
            path = find_critical_path(chain)
            assert len(path) == len(set(path))
            assert len(path) <= max(levels.values()) - min(levels.values()) + 1
            assert not chain.blockers_of(path[0])
            assert not chain.dependents_of(path[-1])
            for blocker, blocked in zip(path, path[1:]):
                assert blocked in chain.dependents_of(blocker)


class TestSymmetry:
    def test_blocks_and_blocked_by_are_interchangeable(self):
        as_blocks = [(1, 2, "blocks"), (2, 3, "blocks")]
        as_blocked_by = [(2, 1, "blocked_by"), (3, 2, "blocked_by")]
        mixed = [(1, 2, "blocks"), (3, 2, "blocked_by")]

        results = []
        for edges in (as_blocks, as_blocked_by, mixed):
            chain = collect_chain(2, fetcher_for(edges))
            results.append(
                (set(chain.task_ids), assign_levels(chain), find_critical_path(chain))
            )
        assert results[0] == results[1] == results[2]
