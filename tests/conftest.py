"""Shared test fixtures for the MSN test suite."""

from __future__ import annotations

import pytest

from msn.network import Network
from msn.ugf import UGF


def binary(measure: str = "power", up: float = 1.0, availability: float = 0.9) -> UGF:
    """Two-state UGF: 0 or ``up``."""
    return UGF(measure, (0.0, up), (1.0 - availability, availability))


@pytest.fixture
def flow_transmission() -> Network:
    """Two parallel pipes followed by one pipe in series.

    Topology:
        S(1) =(c1, c2)=> 2 --c3--> U(3)
    """
    network = Network("flow transmission")
    network.add_source(node=1)
    network.add_components(
        edge=[(1, 2), (1, 2), (2, 3)],
        ugf=[
            UGF("flow", (0.0, 1500.0), (0.2, 0.8)),
            UGF("flow", (0.0, 2000.0), (0.4, 0.6)),
            UGF("flow", (0.0, 1800.0, 4000.0), (0.1, 0.2, 0.7)),
        ],
    )
    network.add_user(node=3)
    return network


@pytest.fixture
def bridge_network() -> Network:
    """Wheatstone bridge with a bidirectional diagonal.

    Topology:
        S(1) -> 2 -> U(4)
        S(1) -> 3 -> U(4)
        2 <-> 3
    """
    network = Network("bridge")
    network.add_source(node=1)
    network.add_components(edge=[(1, 2), (2, 4), (1, 3), (3, 4)], ugf=binary())
    network.add_bidirectional_component(edge=(2, 3), ugf=binary())
    network.add_user(node=4)
    return network


@pytest.fixture
def wind_farm() -> Network:
    """Four correlated turbines feeding the PCC through two cable strings.

    Topology:
        T(1) -> T(2) -> PCC(3) <- T(4) <- T(5)
    """
    network = Network("wind farm")
    network.add_sources(
        node=[1, 2, 4, 5],
        ugf=UGF("power", (0.0, 2.0), (0.3, 0.7)),
        dependent=True,
    )
    network.add_components(
        edge=[(1, 2), (2, 3), (5, 4), (4, 3)],
        ugf=UGF("power", (0.0, 4.0), (0.1, 0.9)),
    )
    network.add_user(node=3, indices=("EENS", "GRA"))
    return network


@pytest.fixture
def double_feeder() -> Network:
    """Two disconnected single-feeder systems in one network."""
    network = Network("double feeder")
    network.add_sources(node=[1, 2])
    network.add_components(edge=[(1, 3), (2, 4)], ugf=binary())
    network.add_users(node=[3, 4])
    return network


@pytest.fixture
def double_bridge() -> Network:
    """Two sources sharing a bridge towards one user.

    Topology:
        S(1), S(2) -> 3, 4 -> U(5), with 3 <-> 4
    """
    network = Network("double bridge")
    network.add_sources(node=[1, 2])
    network.add_components(
        edge=[(1, 3), (1, 4), (2, 3), (2, 4), (3, 5), (4, 5)],
        ugf=binary(),
    )
    network.add_bidirectional_component(edge=(3, 4), ugf=binary())
    network.add_user(node=5)
    return network
