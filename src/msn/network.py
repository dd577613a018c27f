"""Network data model: a directed multigraph with element registries."""

from __future__ import annotations

import itertools
from collections.abc import Iterator, Sequence
from typing import Any

import networkx as nx

from msn.errors import ConfigurationError, TopologyError
from msn.models import Component, Edge, Element, Location, Source, User
from msn.structure import Leaf
from msn.ugf import UGF


# keyword arguments whose per-record value is itself a sequence of names
NAME_SEQUENCES = ("indices",)


def _per_element(key: str, value: Any) -> bool:
    if not isinstance(value, list):
        return False
    if key in NAME_SEQUENCES:
        return not all(isinstance(v, str) for v in value)
    return True


def split_batch(n: int, props: dict[str, Any]) -> list[dict[str, Any]]:
    """Per-element keyword arguments of a batch call.

    A ``list`` value is taken element-wise and must have length ``n``; any
    other value is shared by all elements. For ``indices`` a flat list of
    names is one value shared by all users, so per-user indices are given
    as a list of tuples, e.g. ``[("EENS",), ("EENS", "GRA")]``.
    """
    for key, value in props.items():
        if _per_element(key, value) and len(value) != n:
            raise ConfigurationError(
                f"{key!r} has {len(value)} entries, expected {n} (one per location)"
            )
    return [
        {key: value[i] if _per_element(key, value) else value for key, value in props.items()}
        for i in range(n)
    ]


def _batch_locations(node: Any, edge: Any) -> tuple[str, list[Any]]:
    if (node is None) == (edge is None):
        raise ConfigurationError("a batch needs exactly one of node= or edge=")
    key, locations = ("node", node) if node is not None else ("edge", edge)
    if not isinstance(locations, list):
        raise ConfigurationError(f"batch {key}= must be a list, got {type(locations).__name__}")
    return key, locations


class Network:
    """Multi-state network over vertices ``1..nv``.

    Elements are kept in three ordered registries; ``component_index``,
    ``source_index`` and ``user_index`` map a location (vertex id or edge
    triple) to the registry indices placed there. ``groups`` maps an
    evaluation-dependent group id to its members, leader first.
    """

    def __init__(self, name: str | None = None) -> None:
        self.name = name
        self.graph = nx.MultiDiGraph()
        self.components: list[Component] = []
        self.sources: list[Source] = []
        self.users: list[User] = []
        self.component_index: dict[Location, list[int]] = {}
        self.source_index: dict[int, list[int]] = {}
        self.user_index: dict[int, list[int]] = {}
        self.groups: dict[int, list[Element]] = {}
        self.measure: str | None = None
        self.solved = False
        self.dependent_sources = False
        self.source_ugf: UGF | None = None
        self._group_ids = itertools.count(1)

    def __repr__(self) -> str:
        label = f" {self.name!r}" if self.name else ""
        return (
            f"<Network{label} nv={self.nv} ne={self.ne} components={len(self.components)} "
            f"sources={len(self.sources)} users={len(self.users)} solved={self.solved}>"
        )

    # -- graph ---------------------------------------------------------------

    @property
    def nv(self) -> int:
        return self.graph.number_of_nodes()

    @property
    def ne(self) -> int:
        return self.graph.number_of_edges()

    def multiplicity(self, u: int, v: int) -> int:
        return self.graph.number_of_edges(u, v)

    def add_vertex(self, node: int) -> None:
        """Grow the vertex set up to ``node``."""
        if node < 1:
            raise ConfigurationError(f"node ids start at 1, got {node}")
        self.graph.add_nodes_from(range(self.nv + 1, node + 1))

    def has_path(self, u: int, v: int) -> bool:
        if u not in self.graph or v not in self.graph:
            return False
        return nx.has_path(self.graph, u, v)

    def _next_edge(self, edge: Sequence[int]) -> Edge:
        if len(edge) != 2:
            raise ConfigurationError(f"an edge is given as (from, to), got {tuple(edge)}")
        u, v = int(edge[0]), int(edge[1])
        if u == v:
            raise TopologyError(f"self-loop on node {u} cannot carry an element")
        return (u, v, self.multiplicity(u, v) + 1)

    # -- registries ----------------------------------------------------------

    def _new_group(self) -> int:
        group = next(self._group_ids)
        self.groups[group] = []
        return group

    def _register(self, registry: list, index: dict, record: Element) -> None:
        if record.edge is not None:
            u, v, m = record.edge
            self.add_vertex(max(u, v))
            self.graph.add_edge(u, v, key=m)
        else:
            self.add_vertex(record.node)  # type: ignore[arg-type]
        index.setdefault(record.location, []).append(len(registry))
        registry.append(record)
        if record.group is not None:
            self.groups.setdefault(record.group, []).append(record)

    def add_component(
        self,
        *,
        node: int | None = None,
        edge: Sequence[int] | None = None,
        **props: Any,
    ) -> Component:
        """Place a component on a node or on a new parallel edge ``(from, to)``."""
        located = self._next_edge(edge) if edge is not None else None
        record = Component(node=node, edge=located, **props)
        self._register(self.components, self.component_index, record)
        return record

    def add_components(
        self,
        *,
        node: list[int] | None = None,
        edge: list[Sequence[int]] | None = None,
        evaluation_dependent: bool = False,
        **props: Any,
    ) -> list[Component]:
        key, locations = _batch_locations(node, edge)
        per_element = split_batch(len(locations), props)
        group = self._new_group() if evaluation_dependent else None
        return [
            self.add_component(**{key: loc}, group=group, **p)
            for loc, p in zip(locations, per_element)
        ]

    def add_bidirectional_component(
        self,
        *,
        edge: Sequence[int] | None = None,
        **props: Any,
    ) -> tuple[Component, Component]:
        """Forward and reverse edge components of one physical link.

        Both directions form an evaluation-dependent group of size 2 and so
        always share their state.
        """
        if edge is None or len(edge) != 2:
            raise TopologyError("a bidirectional component needs an edge (from, to)")
        u, v = edge
        if u == v:
            raise TopologyError(f"bidirectional component on self-loop at node {u}")
        group = self._new_group()
        forward = self.add_component(edge=(u, v), group=group, **props)
        backward = self.add_component(edge=(v, u), group=group, **props)
        return forward, backward

    def add_bidirectional_components(
        self,
        *,
        edge: list[Sequence[int]],
        **props: Any,
    ) -> list[tuple[Component, Component]]:
        _, locations = _batch_locations(None, edge)
        per_element = split_batch(len(locations), props)
        return [
            self.add_bidirectional_component(edge=loc, **p)
            for loc, p in zip(locations, per_element)
        ]

    def add_source(self, *, node: int, dependent: bool = False, **props: Any) -> Source:
        record = Source(node=node, dependent=dependent, **props)
        self._register(self.sources, self.source_index, record)
        if dependent:
            self.dependent_sources = True
        return record

    def add_sources(
        self,
        *,
        node: list[int],
        evaluation_dependent: bool = False,
        **props: Any,
    ) -> list[Source]:
        _, locations = _batch_locations(node, None)
        per_element = split_batch(len(locations), props)
        group = self._new_group() if evaluation_dependent else None
        return [
            self.add_source(node=loc, group=group, **p)
            for loc, p in zip(locations, per_element)
        ]

    def add_user(self, *, node: int, **props: Any) -> User:
        record = User(node=node, **props)
        self._register(self.users, self.user_index, record)
        return record

    def add_users(
        self,
        *,
        node: list[int],
        evaluation_dependent: bool = False,
        **props: Any,
    ) -> list[User]:
        _, locations = _batch_locations(node, None)
        per_element = split_batch(len(locations), props)
        group = self._new_group() if evaluation_dependent else None
        return [
            self.add_user(node=loc, group=group, **p)
            for loc, p in zip(locations, per_element)
        ]

    # -- lookups -------------------------------------------------------------

    def elements(self) -> list[Element]:
        """Components followed by sources: the order of the index space."""
        return [*self.components, *self.sources]

    def leader(self, record: Element) -> Element:
        if record.group is None:
            return record
        return self.groups[record.group][0]

    def leaf(self, record: Element) -> Leaf:
        """Structure-function leaf of a component or source."""
        position = self._position(record)
        dimension = self._position(self.leader(record))
        if isinstance(record, Source):
            label = record.name or f"s{self.sources.index(record) + 1}"
        else:
            label = record.name or f"c{self.components.index(record) + 1}"
        return Leaf(position, dimension, label)

    def _position(self, record: Element) -> int:
        for position, element in enumerate(self.elements()):
            if element is record:
                return position
        raise ConfigurationError(f"{record!r} is not a component or source of this network")

    def node_components(self, node: int) -> list[Component]:
        return [self.components[i] for i in self.component_index.get(node, [])]

    def edge_components(self, edge: Edge) -> list[Component]:
        return [self.components[i] for i in self.component_index.get(edge, [])]

    def sources_at(self, node: int) -> list[Source]:
        return [self.sources[i] for i in self.source_index.get(node, [])]

    def user_nodes(self) -> list[int]:
        return sorted(self.user_index)

    def user_groups(self) -> list[list[int]]:
        """User indices to evaluate together: one list per group, singletons otherwise."""
        grouped: list[list[int]] = []
        seen: dict[int, list[int]] = {}
        for index, user in enumerate(self.users):
            if user.group is None:
                grouped.append([index])
            elif user.group in seen:
                seen[user.group].append(index)
            else:
                seen[user.group] = [index]
                grouped.append(seen[user.group])
        return grouped

    # -- nesting -------------------------------------------------------------

    def subnetworks(self) -> Iterator[Network]:
        """Networks referenced directly by this network's elements."""
        seen: set[int] = set()
        for element in self.elements():
            if element.network is not None and id(element.network.network) not in seen:
                seen.add(id(element.network.network))
                yield element.network.network

    def collect_subnetworks(self) -> list[Network]:
        """All transitively referenced networks, innermost first, ``self`` last."""
        order: list[Network] = []
        state: dict[int, str] = {}

        def visit(network: Network) -> None:
            mark = state.get(id(network))
            if mark == "done":
                return
            if mark == "active":
                raise TopologyError("circular sub-network reference")
            state[id(network)] = "active"
            for sub in network.subnetworks():
                visit(sub)
            state[id(network)] = "done"
            order.append(network)

        visit(self)
        return order
