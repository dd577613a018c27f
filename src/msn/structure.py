"""Structure-function expression trees.

A structure function maps the chosen state index of every element to the
value a user receives. Leaves read an element's value table at the index of
their dimension; ``Series`` takes the weakest link, ``Parallel`` adds
capacities and ``Bridge`` resolves a Wheatstone bridge. Evaluation is
vectorised: a grid maps each dimension either to a scalar index or to an
index array shaped for broadcasting (see ``numpy.ix_``).
"""

from __future__ import annotations

import functools
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

import numpy as np

Grid = Mapping[int, "int | np.ndarray"]
Tables = Sequence[np.ndarray]


class Expr(ABC):
    """Node of a structure-function tree."""

    @abstractmethod
    def evaluate(self, grid: Grid, tables: Tables) -> np.ndarray | float:
        """Value at every grid point."""

    @abstractmethod
    def dimensions(self) -> frozenset[int]:
        """Dimensions of the index space the expression reads."""


@dataclass(frozen=True)
class Leaf(Expr):
    """Value of element ``element`` at the index chosen for ``dimension``.

    Members of an evaluation-dependent group share their leader's dimension
    but read their own value table.
    """

    element: int
    dimension: int
    label: str = field(default="", compare=False)

    def evaluate(self, grid: Grid, tables: Tables) -> np.ndarray | float:
        return tables[self.element][grid[self.dimension]]

    def dimensions(self) -> frozenset[int]:
        return frozenset((self.dimension,))

    def __str__(self) -> str:
        return self.label or f"e{self.element}"


@dataclass(frozen=True)
class Series(Expr):
    terms: tuple[Expr, ...]

    def evaluate(self, grid: Grid, tables: Tables) -> np.ndarray | float:
        return functools.reduce(np.minimum, (t.evaluate(grid, tables) for t in self.terms))

    def dimensions(self) -> frozenset[int]:
        return frozenset().union(*(t.dimensions() for t in self.terms))

    def __str__(self) -> str:
        return "min(" + ", ".join(str(t) for t in self.terms) + ")"


@dataclass(frozen=True)
class Parallel(Expr):
    terms: tuple[Expr, ...]

    def evaluate(self, grid: Grid, tables: Tables) -> np.ndarray | float:
        return functools.reduce(np.add, (t.evaluate(grid, tables) for t in self.terms))

    def dimensions(self) -> frozenset[int]:
        return frozenset().union(*(t.dimensions() for t in self.terms))

    def __str__(self) -> str:
        return "(" + " + ".join(str(t) for t in self.terms) + ")"


@dataclass(frozen=True)
class Bridge(Expr):
    """Two branches a->p->d and a->q->d joined by a diagonal p<->q.

    Each branch carries ``min(top, bottom)``. When one branch has spare
    supply (top > bottom) and the other spare demand (top < bottom), the
    diagonal in that direction moves ``min(surplus, deficit, diagonal)``.
    Without a ``backward`` element the diagonal only carries p->q.
    """

    left_top: Expr
    left_bottom: Expr
    right_top: Expr
    right_bottom: Expr
    forward: Expr
    backward: Expr | None = None

    def evaluate(self, grid: Grid, tables: Tables) -> np.ndarray | float:
        lt = self.left_top.evaluate(grid, tables)
        lb = self.left_bottom.evaluate(grid, tables)
        rt = self.right_top.evaluate(grid, tables)
        rb = self.right_bottom.evaluate(grid, tables)
        fw = self.forward.evaluate(grid, tables)
        bw = self.backward.evaluate(grid, tables) if self.backward is not None else 0.0

        # inf - inf gives nan; the comparisons below treat it as balanced
        with np.errstate(invalid="ignore"):
            dl = np.subtract(lt, lb)
            dr = np.subtract(rt, rb)
            across = np.where(
                (dl > 0) & (dr < 0),
                np.minimum(np.minimum(dl, -dr), fw),
                np.where((dl < 0) & (dr > 0), np.minimum(np.minimum(-dl, dr), bw), 0.0),
            )
        return np.minimum(lt, lb) + np.minimum(rt, rb) + across

    def dimensions(self) -> frozenset[int]:
        return frozenset().union(*(t.dimensions() for t in self._parts()))

    def _parts(self) -> tuple[Expr, ...]:
        parts = (
            self.left_top, self.left_bottom, self.right_top,
            self.right_bottom, self.forward,
        )
        return parts + ((self.backward,) if self.backward is not None else ())

    def __str__(self) -> str:
        return "bridge(" + ", ".join(str(t) for t in self._parts()) + ")"


def _unique(terms: Iterable[Expr]) -> list[Expr]:
    seen: list[Expr] = []
    for term in terms:
        if term not in seen:
            seen.append(term)
    return seen


def series(terms: Iterable[Expr]) -> Expr:
    """``min`` over terms; nested series are flattened and repeats dropped."""
    flat: list[Expr] = []
    for term in terms:
        flat.extend(term.terms if isinstance(term, Series) else (term,))
    unique = _unique(flat)
    if not unique:
        raise ValueError("series of no terms")
    return unique[0] if len(unique) == 1 else Series(tuple(unique))


def parallel(terms: Iterable[Expr]) -> Expr:
    """Sum over terms after dropping identical repeats of the same element."""
    unique = _unique(terms)
    if not unique:
        raise ValueError("parallel of no terms")
    return unique[0] if len(unique) == 1 else Parallel(tuple(unique))


@dataclass(frozen=True)
class Hop:
    """One edge of a nodal path.

    Attributes:
        terms: Expressions of the element(s) carrying the edge (the source on
            the first hop of a path).
        node: Expressions of the components on the hop's arrival node.
    """

    terms: tuple[Expr, ...]
    node: tuple[Expr, ...] = ()

    def exprs(self) -> tuple[Expr, ...]:
        return self.terms + self.node
