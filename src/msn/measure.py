"""Scalar measures propagated through a network and their registry."""

from __future__ import annotations

import math
from dataclasses import dataclass

from msn.errors import ConfigurationError


@dataclass(frozen=True)
class Measure:
    """A scalar performance quantity.

    Attributes:
        name: Identifier used by UGFs and state-transition diagrams.
        unit: Unit label of the measure's values.
        ceiling: Value of an unconstrained element (neutral for ``min``).
    """

    name: str
    unit: str
    ceiling: float = math.inf

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("measure name must be non-empty")
        if self.ceiling <= 0:
            raise ValueError(f"ceiling must be positive, got {self.ceiling}")


class MeasureRegistry:
    """Maps measure names to their unit and ceiling."""

    def __init__(self, measures: list[Measure] | None = None) -> None:
        self._measures: dict[str, Measure] = {}
        for measure in measures or []:
            self.register(measure)

    def register(self, measure: Measure) -> None:
        self._measures[measure.name] = measure

    def get(self, name: str) -> Measure:
        try:
            return self._measures[name]
        except KeyError:
            raise ConfigurationError(f"unknown measure {name!r}") from None

    def get_max(self, name: str) -> float:
        return self.get(name).ceiling

    def get_unit(self, name: str) -> str:
        return self.get(name).unit

    def __contains__(self, name: object) -> bool:
        return name in self._measures

    def names(self) -> list[str]:
        return sorted(self._measures)


FLOW = Measure("flow", "m^3/hr")
POWER = Measure("power", "MW")

DEFAULT_REGISTRY = MeasureRegistry([FLOW, POWER])
