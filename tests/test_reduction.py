"""Tests for msn.reduction module."""

from __future__ import annotations

import pytest

from msn.errors import UnsupportedTopologyError
from msn.network import Network
from msn.reduction import (
    bridge_sequence,
    check_isolated_bridge,
    has_duplicate_paths,
    parallel_reduction,
    reduce_paths,
    series_reduction,
    unique_sequence,
    user_structure_function,
)
from msn.structure import Bridge, Hop, Leaf, Parallel, Series


def hops(*leaves: Leaf) -> list[Hop]:
    return [Hop((leaf,)) for leaf in leaves]


class TestDetection:
    def test_duplicates(self):
        assert has_duplicate_paths([[1, 2], [1, 2]])
        assert not has_duplicate_paths([[1, 2], [1, 3, 2]])

    def test_unique_sequence_chains_windows(self):
        npaths = [[9, 1, 2, 3, 5], [9, 4, 5]]
        assert unique_sequence(npaths) == [9, 1, 2, 3, 5]

    def test_unique_sequence_stops_at_shared_node(self):
        npaths = [[9, 1, 3, 4], [9, 2, 3, 4]]
        assert unique_sequence(npaths) == [9, 1, 3]

    def test_no_unique_sequence_in_bridge(self):
        npaths = [[5, 1, 2, 3, 4], [5, 1, 2, 4], [5, 1, 3, 2, 4], [5, 1, 3, 4]]
        assert unique_sequence(npaths) is None

    def test_bridge_sequence(self):
        npaths = [[5, 1, 2, 3, 4], [5, 1, 2, 4], [5, 1, 3, 2, 4], [5, 1, 3, 4]]
        assert bridge_sequence(npaths) == (0, 2, 1, 3, 2)

    def test_one_way_bridge_sequence(self):
        npaths = [[5, 1, 2, 3, 4], [5, 1, 2, 4], [5, 1, 3, 4]]
        assert bridge_sequence(npaths) == (0, None, 1, 2, 2)

    def test_bridge_needs_short_paths(self):
        assert bridge_sequence([[5, 1, 2, 3, 4], [5, 1, 3, 2, 4]]) is None


class TestRules:
    def test_parallel_reduction(self):
        a, b, c = Leaf(0, 0), Leaf(1, 1), Leaf(2, 2)
        npaths = [[4, 1, 2], [4, 1, 2]]
        cpaths = [hops(c, a), hops(c, b)]
        parallel_reduction(npaths, cpaths)
        assert npaths == [[4, 1, 2]]
        assert cpaths == [[Hop((c,)), Hop((Parallel((a, b)),))]]

    def test_parallel_reduction_keeps_common_terms(self):
        a, b, shared = Leaf(0, 0), Leaf(1, 1), Leaf(2, 2)
        npaths = [[3, 1], [3, 1]]
        cpaths = [[Hop((a, shared))], [Hop((b, shared))]]
        parallel_reduction(npaths, cpaths)
        assert cpaths == [[Hop((Parallel((a, b)), shared))]]

    def test_series_reduction(self):
        s, a, b, c = Leaf(3, 3), Leaf(0, 0), Leaf(1, 1), Leaf(2, 2)
        npaths = [[9, 1, 2, 3], [9, 3]]
        other = Leaf(4, 4)
        cpaths = [hops(s, a, b), [Hop((other,))]]
        series_reduction(npaths, cpaths, [9, 1, 2, 3])
        assert npaths == [[9, 3], [9, 3]]
        assert cpaths[0] == [Hop((Series((s, a, b)),))]

    def test_series_reduction_keeps_shared_terms(self):
        s, a, shared = Leaf(0, 0), Leaf(1, 1), Leaf(2, 2)
        npaths = [[9, 1, 3], [9, 3]]
        cpaths = [[Hop((s,)), Hop((a, shared))], [Hop((Leaf(3, 3), shared))]]
        series_reduction(npaths, cpaths, [9, 1, 3])
        assert cpaths[0] == [Hop((Series((s, a)), shared))]

    def test_shared_inner_nodes_are_unsupported(self):
        npaths = [[6, 1, 3, 4, 5], [6, 1, 3, 5], [6, 1, 4, 5], [6, 2, 3, 5]]
        cpaths = [hops(*(Leaf(i, i) for i in range(len(p) - 1))) for p in npaths]
        with pytest.raises(UnsupportedTopologyError, match=r"path \[6, 2, 3, 5\] shares"):
            check_isolated_bridge(npaths, cpaths, (0, None, 1, 2, 2))

    def test_no_rule_applies(self):
        npaths = [[5, 1, 2, 4], [5, 1, 3, 4], [5, 2, 3, 4]]
        cpaths = [hops(*(Leaf(i, i) for i in range(3))) for _ in npaths]
        with pytest.raises(UnsupportedTopologyError, match="no parallel, series or bridge"):
            reduce_paths(npaths, cpaths)

    def test_double_bridge_unsupported(self, double_bridge: Network):
        with pytest.raises(UnsupportedTopologyError, match="inner nodes"):
            user_structure_function(double_bridge, 5)


class TestStructureFunctions:
    def test_single_path(self):
        network = Network()
        network.add_source(node=1)
        network.add_component(edge=(1, 2))
        network.add_user(node=2)
        assert user_structure_function(network, 2) == Series((Leaf(1, 1), Leaf(0, 0)))

    def test_series_parallel(self, flow_transmission: Network):
        expr = user_structure_function(flow_transmission, 3)
        s, c1, c2, c3 = Leaf(3, 3), Leaf(0, 0), Leaf(1, 1), Leaf(2, 2)
        assert expr == Series((s, Parallel((c1, c2)), c3))

    def test_bridge(self, bridge_network: Network):
        expr = user_structure_function(bridge_network, 4)
        c12, c24, c13, c34 = (Leaf(i, i) for i in range(4))
        c23, c32 = Leaf(4, 4), Leaf(5, 4)
        source = Leaf(6, 6)
        bridge = Bridge(c12, c24, c13, c34, c23, c32)
        assert expr == Series((source, bridge, Parallel((c24, c34))))

    def test_one_way_diagonal(self):
        network = Network()
        network.add_source(node=1)
        network.add_components(edge=[(1, 2), (1, 3), (2, 3), (2, 4), (3, 4)])
        network.add_user(node=4)
        c12, c13, c23, c24, c34, source = (Leaf(i, i) for i in range(6))
        bridge = Bridge(c12, c24, c13, c34, c23)
        expr = user_structure_function(network, 4)
        assert expr == Series((source, bridge, Parallel((c24, c34))))

    def test_no_source(self):
        network = Network()
        network.add_source(node=2)
        network.add_component(edge=(1, 2))
        network.add_user(node=1)
        assert user_structure_function(network, 1) is None

    def test_reduce_paths_single(self):
        a = Leaf(0, 0)
        assert reduce_paths([[2, 1]], [[Hop((a,))]]) == a
