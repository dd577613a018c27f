"""Monte Carlo simulation of a solved multi-state network.

Samples element states independently (evaluation-dependent groups share one
draw) and evaluates each user's structure function, giving an empirical UGF
to compare against the analytical one.
"""

from __future__ import annotations

import random
from dataclasses import dataclass

from msn.errors import ConfigurationError
from msn.network import Network
from msn.probability import IndexSpace
from msn.solver import SolverConfig, element_ugfs, structure_functions
from msn.ugf import UGF


@dataclass
class SimulationResult:
    """Aggregated results from a Monte Carlo simulation run.

    Attributes:
        n_trials: Number of simulation trials.
        ugfs: Empirical UGF per user index.
        means: Mean delivered value per user index.
    """

    n_trials: int
    ugfs: dict[int, UGF]
    means: dict[int, float]


class NetworkSimulator:
    """Monte Carlo sampler over the element states of a solved network.

    Args:
        network: A solved network (its sub-networks are solved with it).
        seed: RNG seed for reproducibility.
        config: Solver configuration used to rebuild element UGFs.
    """

    def __init__(
        self,
        network: Network,
        seed: int | None = None,
        config: SolverConfig | None = None,
    ) -> None:
        if not network.solved:
            raise ConfigurationError("simulate a network after solving it")
        self.network = network
        self.rng = random.Random(seed)
        self.config = config or SolverConfig()
        self.space = IndexSpace.from_network(network, element_ugfs(network, self.config))
        self.exprs = structure_functions(network, self.config)
        self._dimensions = {
            d: (range(len(p)), p.tolist()) for d, p in self.space.probabilities.items()
        }
        self._source_states: tuple[list[float], list[float]] | None = None
        if network.source_ugf is not None:
            self._source_states = (
                list(network.source_ugf.values), list(network.source_ugf.probabilities)
            )

    def sample_state(self) -> dict[int, int]:
        """One state index per dimension of the index space."""
        return {
            d: self.rng.choices(states, weights=weights)[0]
            for d, (states, weights) in self._dimensions.items()
        }

    def simulate_trial(self) -> dict[int, float]:
        """Delivered value per user index for one sampled state."""
        state = self.sample_state()
        scale = 1.0
        if self._source_states is not None:
            values, weights = self._source_states
            scale = self.rng.choices(values, weights=weights)[0]
        return {
            u: float(self.exprs[user.node].evaluate(state, self.space.tables)) * scale
            for u, user in enumerate(self.network.users)
        }

    def run(self, n_trials: int = 10_000) -> SimulationResult:
        """Run ``n_trials`` trials and aggregate an empirical UGF per user."""
        if n_trials < 1:
            raise ValueError(f"n_trials must be >= 1, got {n_trials}")
        samples: dict[int, list[float]] = {u: [] for u in range(len(self.network.users))}
        for _ in range(n_trials):
            for u, value in self.simulate_trial().items():
                samples[u].append(value)

        measure = self.network.measure or ""
        weight = [1.0 / n_trials] * n_trials
        ugfs = {u: UGF.reduce(measure, values, weight) for u, values in samples.items()}
        means = {u: sum(values) / n_trials for u, values in samples.items()}
        return SimulationResult(n_trials=n_trials, ugfs=ugfs, means=means)
