"""Element records placed on a network: components, sources and users."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

from msn.errors import ConfigurationError
from msn.std import StateTransitionDiagram
from msn.ugf import UGF

if TYPE_CHECKING:
    from msn.network import Network

Edge = tuple[int, int, int]  # (from, to, multiplicity), multiplicity 1-based
Location = Union[int, Edge]

INDICES = ("EENS", "GRA")


@dataclass(frozen=True)
class NetworkRef:
    """Points at user ``user`` of a nested network whose solved UGF is reused."""

    network: Network
    user: int

    def __post_init__(self) -> None:
        if self.user < 0:
            raise ConfigurationError(f"user index must be non-negative, got {self.user}")

    def resolve(self) -> UGF:
        if not self.network.solved:
            raise ConfigurationError("referenced sub-network has not been solved")
        if self.user >= len(self.network.users):
            raise ConfigurationError(
                f"sub-network has {len(self.network.users)} users, no index {self.user}"
            )
        ugf = self.network.users[self.user].ugf
        assert ugf is not None
        return ugf


@dataclass(eq=False)
class Element:
    """Common part of all element records.

    Exactly one of ``node`` / ``edge`` gives the location. At most one of
    ``ugf``, ``std`` and ``network`` characterises the element; without one
    the element is unconstrained.
    """

    node: int | None = None
    edge: Edge | None = None
    name: str | None = None
    ugf: UGF | None = None
    std: StateTransitionDiagram | None = None
    network: NetworkRef | None = None
    group: int | None = None

    def __post_init__(self) -> None:
        if (self.node is None) == (self.edge is None):
            raise ConfigurationError("an element needs exactly one location: node or edge")
        if self.node is not None and self.node < 1:
            raise ConfigurationError(f"node ids start at 1, got {self.node}")
        if isinstance(self.network, tuple):
            self.network = NetworkRef(*self.network)
        given = [c for c in (self.ugf, self.std, self.network) if c is not None]
        if len(given) > 1:
            raise ConfigurationError("an element takes at most one of ugf, std or network")

    @property
    def location(self) -> Location:
        return self.node if self.node is not None else self.edge  # type: ignore[return-value]

    @property
    def characterized(self) -> bool:
        return self.ugf is not None or self.std is not None or self.network is not None

    def measure(self) -> str | None:
        """Measure implied by the characterisation, if any."""
        if self.ugf is not None:
            return self.ugf.measure
        if self.std is not None:
            return self.std.measure
        if self.network is not None:
            return self.network.network.measure
        return None


@dataclass(eq=False)
class Component(Element):
    """A node or edge element that limits what passes through it."""


@dataclass(eq=False)
class Source(Element):
    """A node element injecting the measure; ``dependent`` sources are fully correlated."""

    dependent: bool = False

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.node is None:
            raise ConfigurationError("sources are placed on nodes")


@dataclass(eq=False)
class User(Element):
    """A node consuming the measure; receives its UGF and indices on solve."""

    indices: tuple[str, ...] = ()
    eens: float | None = None
    gra: dict[float, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.node is None:
            raise ConfigurationError("users are placed on nodes")
        if self.std is not None or self.network is not None:
            raise ConfigurationError("users take no std or network characterisation")
        if isinstance(self.indices, str):
            self.indices = (self.indices,)
        self.indices = tuple(self.indices)
        unknown = [i for i in self.indices if i not in INDICES]
        if unknown:
            raise ConfigurationError(f"unknown indices {unknown}, expected a subset of {INDICES}")
