"""Extended graph, nodal path enumeration and component paths."""

from __future__ import annotations

import itertools
from typing import TYPE_CHECKING

import networkx as nx

from msn.structure import Hop, Leaf

if TYPE_CHECKING:
    from msn.models import Element
    from msn.network import Network


def extended_graph(network: Network, user_node: int) -> tuple[nx.DiGraph, int]:
    """Simple digraph of ``network`` plus a virtual node feeding every useful source.

    Edge weights are multiplicities; the virtual node ``nv + 1`` gets an edge
    to each source node that has a path to ``user_node``, weighted by the
    number of sources there.
    """
    graph = nx.DiGraph()
    graph.add_nodes_from(network.graph.nodes)
    for u, v in network.graph.edges():
        graph.add_edge(u, v, weight=network.multiplicity(u, v))

    virtual = network.nv + 1
    graph.add_node(virtual)
    for node in sorted(network.source_index):
        if network.has_path(node, user_node):
            graph.add_edge(virtual, node, weight=len(network.source_index[node]))
    return graph, virtual


def max_paths(graph: nx.DiGraph) -> int:
    """Vertex count plus edge count with multiplicity."""
    return graph.number_of_nodes() + int(graph.size(weight="weight"))


def nodal_paths(graph: nx.DiGraph, virtual: int, user_node: int) -> list[list[int]]:
    """Simple paths from the virtual node to the user, sorted."""
    if user_node not in graph or not nx.has_path(graph, virtual, user_node):
        return []
    paths = nx.shortest_simple_paths(graph, virtual, user_node, weight="weight")
    return sorted(itertools.islice(paths, max_paths(graph)))


def component_paths(
    network: Network,
    user_node: int,
) -> tuple[list[list[int]], list[list[Hop]]]:
    """Nodal paths and their component paths for one user node.

    A nodal path expands into one component path per combination of
    parallel-edge multiplicities; on the first hop the combination picks
    which of the sources at the source node feeds the path. Both returned
    lists are aligned, so a nodal path repeats once per expansion.
    """
    graph, virtual = extended_graph(network, user_node)
    leaves: dict[int, Leaf] = {}

    def leaf(record: Element) -> Leaf:
        if id(record) not in leaves:
            leaves[id(record)] = network.leaf(record)
        return leaves[id(record)]

    def node_terms(node: int) -> tuple[Leaf, ...]:
        return tuple(leaf(c) for c in network.node_components(node))

    npaths: list[list[int]] = []
    cpaths: list[list[Hop]] = []
    for path in nodal_paths(graph, virtual, user_node):
        first = path[1]
        choices: list[list[Hop]] = [
            [Hop((leaf(s),), node_terms(first)) for s in network.sources_at(first)]
        ]
        for u, v in zip(path[1:], path[2:]):
            arrival = node_terms(v)
            choices.append([
                Hop(tuple(leaf(c) for c in network.edge_components((u, v, m))), arrival)
                for m in range(1, network.multiplicity(u, v) + 1)
            ])
        for hops in itertools.product(*choices):
            npaths.append(list(path))
            cpaths.append(list(hops))
    return npaths, cpaths
