"""Network solver: nested networks, measures, structure functions, user UGFs."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TypeVar

from msn import indices
from msn.errors import ConfigurationError, TopologyError
from msn.measure import DEFAULT_REGISTRY, MeasureRegistry
from msn.network import Network
from msn.probability import (
    DEFAULT_MAX_CELLS,
    IndexSpace,
    characterization_ugf,
    compose_dependent_sources,
    element_ugf,
    evaluate_group,
    evaluate_ugf,
)
from msn.reduction import user_structure_function
from msn.structure import Expr
from msn.ugf import UGF

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class SolverConfig:
    """Solver tuning.

    Attributes:
        max_workers: Threads for per-user derivation and evaluation; 1 runs inline.
        max_cells: Upper bound on grid cells evaluated at once.
        registry: Measure registry supplying units and ceilings.
        hours: Period used for energy-not-supplied indices.
    """

    max_workers: int = 1
    max_cells: int = DEFAULT_MAX_CELLS
    registry: MeasureRegistry = field(default_factory=lambda: DEFAULT_REGISTRY)
    hours: float = indices.HOURS_PER_YEAR

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.max_cells < 1:
            raise ValueError(f"max_cells must be >= 1, got {self.max_cells}")
        if self.hours <= 0:
            raise ValueError(f"hours must be positive, got {self.hours}")


def _map(func: Callable[[T], R], items: Iterable[T], max_workers: int) -> list[R]:
    items = list(items)
    if max_workers == 1 or len(items) <= 1:
        return [func(item) for item in items]
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(func, items))


def set_measure(network: Network) -> str:
    """The single measure carried by the network's characterised elements."""
    measures = {e.measure() for e in network.elements()}
    measures.discard(None)
    if len(measures) > 1:
        raise ConfigurationError(f"a network carries one measure, found {sorted(measures)}")
    if not measures:
        raise ConfigurationError("no element characterises a measure")
    network.measure = measures.pop()
    return network.measure


def element_ugfs(network: Network, config: SolverConfig | None = None) -> list[UGF]:
    """UGF of every component and source, in index-space order."""
    config = config or SolverConfig()
    measure = network.measure or set_measure(network)
    return [element_ugf(e, measure, config.registry) for e in network.elements()]


def structure_functions(network: Network, config: SolverConfig | None = None) -> dict[int, Expr]:
    """Structure function per user node; raises if a user cannot be reached."""
    config = config or SolverConfig()
    nodes = network.user_nodes()
    exprs = _map(lambda node: user_structure_function(network, node), nodes, config.max_workers)
    for node, expr in zip(nodes, exprs):
        if expr is None:
            raise TopologyError(f"no source has a path to the user at node {node}")
    return dict(zip(nodes, exprs))  # type: ignore[arg-type]


def solve_network(network: Network, config: SolverConfig | None = None) -> Network:
    """Solve one network whose sub-networks are already solved."""
    config = config or SolverConfig()
    measure = set_measure(network)
    space = IndexSpace.from_network(network, element_ugfs(network, config))
    exprs = structure_functions(network, config)

    def evaluate(users: list[int]) -> list[UGF]:
        nodes = [network.users[u].node for u in users]
        if len(users) == 1:
            return [evaluate_ugf(exprs[nodes[0]], space, measure, config.max_cells)]
        return evaluate_group([exprs[n] for n in nodes], space, measure, config.max_cells)

    groups = network.user_groups()
    for users, ugfs in zip(groups, _map(evaluate, groups, config.max_workers)):
        for u, ugf in zip(users, ugfs):
            network.users[u].ugf = ugf

    network.solved = True
    logger.info(
        "Solved network %s: %d users, %d components, %d sources (%s)",
        network.name or hex(id(network)), len(network.users),
        len(network.components), len(network.sources), measure,
    )
    return network


def dependent_source_ugf(networks: list[Network], config: SolverConfig) -> UGF | None:
    """Shared UGF of the dependent sources of ``networks``; None if there are none.

    Dependent sources enter their networks as unit counts that the root
    scales by one output level afterwards. They must therefore share one
    ugf or std characterisation, and no independent source may feed the
    same tree. Sources standing for a nested network pass its counts on.
    """
    dependent = [s for n in networks for s in n.sources if s.dependent]
    if not dependent:
        return None
    independent = [
        s for n in networks for s in n.sources if not s.dependent and s.network is None
    ]
    if independent:
        raise ConfigurationError(
            f"{len(dependent)} dependent sources mixed with {len(independent)} independent "
            "ones; scaling by the shared output level would apply to both"
        )
    ugfs = []
    for source in dependent:
        if source.ugf is None and source.std is None:
            raise ConfigurationError("a dependent source needs a ugf or std characterisation")
        ugfs.append(characterization_ugf(source, source.measure(), config.registry))
    if any(ugf != ugfs[0] for ugf in ugfs[1:]):
        raise ConfigurationError("dependent sources must share one characterisation")
    return ugfs[0]


def compute_indices(network: Network, hours: float = indices.HOURS_PER_YEAR) -> None:
    for user in network.users:
        if user.ugf is None:
            continue
        if "EENS" in user.indices:
            user.eens = indices.eens(user.ugf, hours)
        if "GRA" in user.indices:
            user.gra = indices.gra_curve(user.ugf)


def solve(network: Network, config: SolverConfig | None = None) -> Network:
    """Solve ``network`` and every network nested in it.

    Nested networks are solved innermost first. Dependent sources are
    validated up front; if the tree has any, the root's user UGFs are
    combined with the shared source UGF afterwards. Requested indices are
    computed last.
    """
    config = config or SolverConfig()
    networks = network.collect_subnetworks()
    source_ugf = dependent_source_ugf(networks, config)
    for sub in networks:
        solve_network(sub, config)

    if source_ugf is not None:
        network.dependent_sources = True
        network.source_ugf = source_ugf
        for user in network.users:
            assert user.ugf is not None
            user.ugf = compose_dependent_sources(user.ugf, source_ugf)

    for sub in networks:
        compute_indices(sub, config.hours)
    return network
