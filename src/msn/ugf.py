"""Universal generating functions: discrete distributions over one measure.

A UGF pairs a sequence of output levels with their probabilities. Direct
construction keeps the rows as given, which is how the joint table of an
evaluation-dependent group is expressed; ``UGF.reduce`` merges equal values
into a sorted, duplicate-free distribution.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from msn.errors import ConfigurationError
from msn.measure import DEFAULT_REGISTRY, MeasureRegistry

if TYPE_CHECKING:
    from msn.std import StateTransitionDiagram

PROBABILITY_TOL = 1e-6


def reduce_states(
    values: Sequence[float] | np.ndarray,
    probabilities: Sequence[float] | np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """Group by value and sum probabilities; values come back sorted."""
    values = np.asarray(values, dtype=float)
    probabilities = np.asarray(probabilities, dtype=float)
    if values.shape != probabilities.shape:
        raise ConfigurationError(
            f"values and probabilities must have the same length, "
            f"got {values.size} and {probabilities.size}"
        )
    unique, inverse = np.unique(values, return_inverse=True)
    summed = np.bincount(inverse.reshape(-1), weights=probabilities, minlength=unique.size)
    return unique, summed


def reduce_rows(
    matrix: np.ndarray,
    probabilities: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """Joint version of :func:`reduce_states` for rows of several values."""
    matrix = np.asarray(matrix, dtype=float)
    if matrix.ndim == 1:
        matrix = matrix[:, np.newaxis]
    unique, inverse = np.unique(matrix, axis=0, return_inverse=True)
    summed = np.bincount(
        inverse.reshape(-1), weights=np.asarray(probabilities, dtype=float),
        minlength=unique.shape[0],
    )
    return unique, summed


@dataclass(frozen=True)
class UGF:
    """Probability mass function of one measure.

    Attributes:
        measure: Name of the measure the values are expressed in.
        values: Output levels.
        probabilities: Probability of each output level.
    """

    measure: str
    values: tuple[float, ...]
    probabilities: tuple[float, ...]

    def __post_init__(self) -> None:
        values = tuple(float(v) for v in self.values)
        probabilities = tuple(float(p) for p in self.probabilities)
        if len(values) != len(probabilities):
            raise ConfigurationError(
                f"values and probabilities must have the same length, "
                f"got {len(values)} and {len(probabilities)}"
            )
        if not values:
            raise ConfigurationError("a UGF needs at least one state")
        if any(math.isnan(v) for v in values):
            raise ConfigurationError("UGF values must not be NaN")
        if any(p < -PROBABILITY_TOL for p in probabilities):
            raise ConfigurationError(f"probabilities must be non-negative, got {probabilities}")

        total = math.fsum(probabilities)
        if abs(total - 1.0) > PROBABILITY_TOL:
            raise ConfigurationError(f"probabilities must sum to 1, got {total:.10f}")
        probabilities = tuple(max(p, 0.0) / total for p in probabilities)

        object.__setattr__(self, "values", values)
        object.__setattr__(self, "probabilities", probabilities)

    @classmethod
    def reduce(
        cls,
        measure: str,
        values: Sequence[float] | np.ndarray,
        probabilities: Sequence[float] | np.ndarray,
    ) -> UGF:
        """Build a reduced UGF: sorted unique values with merged probabilities."""
        unique, summed = reduce_states(values, probabilities)
        return cls(measure, tuple(unique.tolist()), tuple(summed.tolist()))

    @classmethod
    def from_measure(cls, measure: str, registry: MeasureRegistry = DEFAULT_REGISTRY) -> UGF:
        """Degenerate UGF of an unconstrained element: the measure's ceiling w.p. 1."""
        return cls(measure, (registry.get_max(measure),), (1.0,))

    @classmethod
    def from_std(cls, measure: str, std: StateTransitionDiagram) -> UGF:
        """Reduce the terminal state probabilities of a solved STD."""
        if not std.solved:
            raise ConfigurationError("state-transition diagram has not been solved")
        if std.measure != measure:
            raise ConfigurationError(
                f"state-transition diagram carries measure {std.measure!r}, not {measure!r}"
            )
        return cls.reduce(measure, std.values, std.state_probability_at_end())

    @classmethod
    def unit(cls, measure: str) -> UGF:
        """Value 1 with probability 1; counts one available dependent source."""
        return cls(measure, (1.0,), (1.0,))

    def __len__(self) -> int:
        return len(self.values)

    @property
    def is_reduced(self) -> bool:
        return all(a < b for a, b in zip(self.values, self.values[1:]))

    @property
    def maximum(self) -> float:
        return max(self.values)

    def expected_value(self) -> float:
        return float(np.dot(self.values, self.probabilities))

    def kron(self, other: UGF) -> UGF:
        """Outer product with ``other``: values and probabilities multiplied pairwise."""
        values = np.kron(np.asarray(self.values), np.asarray(other.values))
        probabilities = np.kron(np.asarray(self.probabilities), np.asarray(other.probabilities))
        return UGF.reduce(self.measure, values, probabilities)

    def as_dict(self) -> dict[float, float]:
        """Value -> probability, merging duplicate values."""
        merged: dict[float, float] = {}
        for value, probability in zip(self.values, self.probabilities):
            merged[value] = merged.get(value, 0.0) + probability
        return merged
