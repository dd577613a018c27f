"""State-transition diagrams feeding element UGFs.

Only the parts the network engine relies on are modelled: a set of states
with one measure value each, transition rates between them, and per-state
probabilities obtained either directly, from the steady state of the
continuous-time Markov chain, or from its transient solution.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np
from scipy.linalg import expm, null_space

from msn.errors import ConfigurationError

logger = logging.getLogger(__name__)


class StateTransitionDiagram:
    """Continuous-time Markov model of one element.

    Args:
        measure: Measure the state values are expressed in.
        values: Measure value of each state (state ``i`` is ``values[i]``).
        probabilities: Known state probabilities; marks the diagram solved.
    """

    def __init__(
        self,
        measure: str,
        values: Sequence[float],
        probabilities: Sequence[float] | None = None,
    ) -> None:
        if len(values) == 0:
            raise ConfigurationError("a state-transition diagram needs at least one state")
        self.measure = measure
        self.values = tuple(float(v) for v in values)
        self.rates: dict[tuple[int, int], float] = {}
        self.times: np.ndarray | None = None
        self.trajectory: np.ndarray | None = None
        self._probabilities: np.ndarray | None = None
        if probabilities is not None:
            self._set_probabilities(np.asarray(probabilities, dtype=float))

    @property
    def n_states(self) -> int:
        return len(self.values)

    @property
    def solved(self) -> bool:
        return self._probabilities is not None

    def _check_state(self, state: int) -> None:
        if not 0 <= state < self.n_states:
            raise ConfigurationError(f"state {state} outside 0..{self.n_states - 1}")

    def _set_probabilities(self, probabilities: np.ndarray) -> None:
        if probabilities.shape != (self.n_states,):
            raise ConfigurationError(
                f"expected {self.n_states} state probabilities, got {probabilities.size}"
            )
        self._probabilities = probabilities

    def add_transition(self, from_state: int, to_state: int, rate: float) -> None:
        self._check_state(from_state)
        self._check_state(to_state)
        if from_state == to_state:
            raise ConfigurationError("a transition must change state")
        if rate < 0:
            raise ConfigurationError(f"rate must be non-negative, got {rate}")
        self.rates[(from_state, to_state)] = float(rate)

    def add_transitions(
        self,
        transitions: Sequence[tuple[int, int]],
        rates: Sequence[float],
    ) -> None:
        if len(transitions) != len(rates):
            raise ConfigurationError(
                f"got {len(transitions)} transitions but {len(rates)} rates"
            )
        for (from_state, to_state), rate in zip(transitions, rates):
            self.add_transition(from_state, to_state, rate)

    def generator(self) -> np.ndarray:
        """Infinitesimal generator Q (rows sum to zero)."""
        q = np.zeros((self.n_states, self.n_states))
        for (i, j), rate in self.rates.items():
            q[i, j] = rate
        q[np.diag_indices_from(q)] = -q.sum(axis=1)
        return q

    def solve_steady_state(self) -> np.ndarray:
        """Stationary distribution: left null space of Q, normalised."""
        basis = null_space(self.generator().T)
        if basis.shape[1] != 1:
            raise ConfigurationError(
                f"steady state is not unique ({basis.shape[1]} closed classes)"
            )
        pi = basis[:, 0].real
        pi = np.abs(pi / pi.sum())
        self._set_probabilities(pi)
        logger.debug("Steady state of %d-state diagram: %s", self.n_states, pi)
        return pi

    def solve_markov(
        self,
        times: Sequence[float],
        initial: Sequence[float] | None = None,
    ) -> np.ndarray:
        """Transient state probabilities p(t) = p0 expm(Q t) at each time.

        Args:
            times: Increasing, non-negative evaluation times.
            initial: Initial distribution; defaults to state 0 with probability 1.

        Returns:
            Array of shape (len(times), n_states); the last row becomes the
            diagram's terminal state probabilities.
        """
        times_arr = np.asarray(times, dtype=float)
        if times_arr.ndim != 1 or times_arr.size == 0:
            raise ConfigurationError("times must be a non-empty 1-D sequence")
        if np.any(times_arr < 0) or np.any(np.diff(times_arr) < 0):
            raise ConfigurationError("times must be non-negative and increasing")
        if initial is None:
            p0 = np.zeros(self.n_states)
            p0[0] = 1.0
        else:
            p0 = np.asarray(initial, dtype=float)
            if p0.shape != (self.n_states,):
                raise ConfigurationError(
                    f"expected {self.n_states} initial probabilities, got {p0.size}"
                )

        q = self.generator()
        trajectory = np.vstack([p0 @ expm(q * t) for t in times_arr])
        self.times = times_arr
        self.trajectory = trajectory
        self._set_probabilities(trajectory[-1])
        return trajectory

    def state_probability_at_end(self) -> np.ndarray:
        if self._probabilities is None:
            raise ConfigurationError("state-transition diagram has not been solved")
        return self._probabilities.copy()


def solved_std(
    measure: str,
    values: Sequence[float],
    probabilities: Sequence[float],
) -> StateTransitionDiagram:
    """Diagram whose state probabilities are already known."""
    return StateTransitionDiagram(measure, values, probabilities)
