"""Tests for msn.simulation module."""

from __future__ import annotations

import pytest

from msn.errors import ConfigurationError
from msn.network import Network
from msn.simulation import NetworkSimulator
from msn.solver import solve


class TestNetworkSimulator:
    def test_requires_solved_network(self, flow_transmission: Network):
        with pytest.raises(ConfigurationError, match="after solving"):
            NetworkSimulator(flow_transmission)

    def test_single_trial(self, flow_transmission: Network):
        solve(flow_transmission)
        sim = NetworkSimulator(flow_transmission, seed=42)
        outcome = sim.simulate_trial()
        assert set(outcome) == {0}
        assert outcome[0] in flow_transmission.users[0].ugf.values

    def test_reproducible(self, bridge_network: Network):
        solve(bridge_network)
        first = NetworkSimulator(bridge_network, seed=7).run(n_trials=200)
        second = NetworkSimulator(bridge_network, seed=7).run(n_trials=200)
        assert first.ugfs == second.ugfs

    def test_matches_analytical(self, flow_transmission: Network):
        solve(flow_transmission)
        result = NetworkSimulator(flow_transmission, seed=1).run(n_trials=5000)
        analytical = flow_transmission.users[0].ugf.as_dict()
        empirical = result.ugfs[0].as_dict()
        assert set(empirical) <= set(analytical)
        for value, probability in analytical.items():
            assert abs(empirical.get(value, 0.0) - probability) < 0.03
        expected_mean = flow_transmission.users[0].ugf.expected_value()
        assert abs(result.means[0] - expected_mean) / expected_mean < 0.05

    def test_dependent_sources(self, wind_farm: Network):
        solve(wind_farm)
        result = NetworkSimulator(wind_farm, seed=3).run(n_trials=4000)
        analytical = wind_farm.users[0].ugf.as_dict()
        assert set(result.ugfs[0].values) <= set(analytical)
        assert abs(result.ugfs[0].as_dict().get(0.0, 0.0) - analytical[0.0]) < 0.03

    def test_invalid_trials(self, bridge_network: Network):
        solve(bridge_network)
        with pytest.raises(ValueError, match="n_trials"):
            NetworkSimulator(bridge_network).run(n_trials=0)
