"""Element UGFs, the joint index space and structure-function evaluation.

Every component and source owns a value table. Elements outside any
evaluation-dependent group own a dimension of the index space; group
members read their own table at their leader's index, so the group
contributes one joint probability factor instead of several independent
ones. Dependent sources enter the space as unit counts and are folded back
in afterwards with :func:`compose_dependent_sources`.
"""

from __future__ import annotations

import itertools
import math
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from msn.errors import ConfigurationError
from msn.measure import DEFAULT_REGISTRY, MeasureRegistry
from msn.models import Element, Source
from msn.structure import Expr
from msn.ugf import UGF, reduce_rows

if TYPE_CHECKING:
    from msn.network import Network

DEFAULT_MAX_CELLS = 1 << 20


def element_ugf(
    element: Element,
    measure: str,
    registry: MeasureRegistry = DEFAULT_REGISTRY,
) -> UGF:
    """UGF an element contributes to the index space."""
    if isinstance(element, Source) and element.dependent:
        return UGF.unit(measure)
    return characterization_ugf(element, measure, registry)


def characterization_ugf(
    element: Element,
    measure: str,
    registry: MeasureRegistry = DEFAULT_REGISTRY,
) -> UGF:
    """UGF of the element's own characterisation, unconstrained if it has none."""
    if element.ugf is not None:
        return element.ugf
    if element.std is not None:
        return UGF.from_std(measure, element.std)
    if element.network is not None:
        return element.network.resolve()
    return UGF.from_measure(measure, registry)


@dataclass
class IndexSpace:
    """Value tables per element and probability vectors per dimension.

    Attributes:
        tables: Values of element ``i`` (components first, then sources).
        probabilities: Probability vector of each dimension, keyed by the
            position of the dimension's leading element.
    """

    tables: list[np.ndarray]
    probabilities: dict[int, np.ndarray]

    @classmethod
    def from_network(cls, network: Network, ugfs: Sequence[UGF]) -> IndexSpace:
        elements = network.elements()
        if len(ugfs) != len(elements):
            raise ConfigurationError(f"expected {len(elements)} UGFs, got {len(ugfs)}")
        position = {id(e): i for i, e in enumerate(elements)}

        tables = [np.asarray(u.values, dtype=float) for u in ugfs]
        probabilities: dict[int, np.ndarray] = {}
        for i, element in enumerate(elements):
            leader = position[id(network.leader(element))]
            if leader == i:
                probabilities[i] = np.asarray(ugfs[i].probabilities, dtype=float)
            elif len(ugfs[i]) != len(ugfs[leader]):
                raise ConfigurationError(
                    f"evaluation-dependent group member has {len(ugfs[i])} states, "
                    f"its leader {len(ugfs[leader])}"
                )
        return cls(tables, probabilities)

    def size(self, dimension: int) -> int:
        return len(self.probabilities[dimension])


def _partitions(sizes: Sequence[int], max_cells: int) -> tuple[int, Iterator[tuple[int, ...]]]:
    """Split the grid over leading dimensions so each block has at most max_cells."""
    fixed = 0
    while fixed < len(sizes) and math.prod(sizes[fixed:]) > max_cells:
        fixed += 1
    return fixed, itertools.product(*(range(s) for s in sizes[:fixed]))


def evaluate(
    exprs: Sequence[Expr],
    space: IndexSpace,
    max_cells: int = DEFAULT_MAX_CELLS,
) -> tuple[np.ndarray, np.ndarray]:
    """Evaluate several structure functions jointly over the index space.

    Only the dimensions the expressions read are enumerated. Each block of
    the grid is reduced on its own and the partial results merged.

    Returns:
        Unique value rows (one column per expression) and their probabilities.
    """
    dims = sorted(frozenset().union(*(e.dimensions() for e in exprs)))
    sizes = [space.size(d) for d in dims]
    fixed, blocks = _partitions(sizes, max_cells)
    free = dims[fixed:]

    partial_values: list[np.ndarray] = []
    partial_probs: list[np.ndarray] = []
    for block in blocks:
        grid: dict[int, int | np.ndarray] = dict(zip(dims[:fixed], block))
        shape = tuple(sizes[fixed:])
        for axis, dim in enumerate(free):
            index_shape = [1] * len(free)
            index_shape[axis] = sizes[fixed + axis]
            grid[dim] = np.arange(sizes[fixed + axis]).reshape(index_shape)

        prob = np.ones(shape)
        for dim in dims:
            prob = prob * space.probabilities[dim][grid[dim]]
        columns = [
            np.broadcast_to(e.evaluate(grid, space.tables), shape).reshape(-1)
            for e in exprs
        ]
        values, probs = reduce_rows(np.column_stack(columns), prob.reshape(-1))
        partial_values.append(values)
        partial_probs.append(probs)

    if len(partial_values) == 1:
        return partial_values[0], partial_probs[0]
    return reduce_rows(np.vstack(partial_values), np.concatenate(partial_probs))


def evaluate_ugf(
    expr: Expr,
    space: IndexSpace,
    measure: str,
    max_cells: int = DEFAULT_MAX_CELLS,
) -> UGF:
    values, probs = evaluate([expr], space, max_cells)
    return UGF(measure, tuple(values[:, 0].tolist()), tuple(probs.tolist()))


def evaluate_group(
    exprs: Sequence[Expr],
    space: IndexSpace,
    measure: str,
    max_cells: int = DEFAULT_MAX_CELLS,
) -> list[UGF]:
    """Aligned, non-reduced UGFs of jointly distributed users."""
    values, probs = evaluate(exprs, space, max_cells)
    probabilities = tuple(probs.tolist())
    return [UGF(measure, tuple(values[:, k].tolist()), probabilities) for k in range(len(exprs))]


def compose_dependent_sources(ugf: UGF, source_ugf: UGF) -> UGF:
    """Scale the count of available dependent sources by their shared output."""
    return ugf.kron(source_ugf)
