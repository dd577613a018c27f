"""Scalar reliability indices of a user's UGF."""

from __future__ import annotations

import numpy as np

from msn.ugf import UGF

HOURS_PER_YEAR = 8760.0


def eens(ugf: UGF, hours: float = HOURS_PER_YEAR) -> float:
    """Expected energy not supplied over ``hours``.

    The shortfall of each state is measured against the largest value the
    user can receive.
    """
    values = np.asarray(ugf.values)
    probabilities = np.asarray(ugf.probabilities)
    return float(hours * np.sum((values.max() - values) * probabilities))


def gro(ugf: UGF, ratio: float) -> float:
    """Generation ratio output: ``ratio`` of the maximum value."""
    if not 0.0 <= ratio <= 1.0:
        raise ValueError(f"ratio must be in [0, 1], got {ratio}")
    return ratio * ugf.maximum


def gra(ugf: UGF, ratio: float) -> float:
    """Generation ratio availability: P[value >= gro(ratio)]."""
    threshold = gro(ugf, ratio)
    values = np.asarray(ugf.values)
    probabilities = np.asarray(ugf.probabilities)
    return float(probabilities[values >= threshold].sum())


def gra_curve(ugf: UGF, step: float = 0.01) -> dict[float, float]:
    """GRA for every ratio from 0 to 1 in increments of ``step``."""
    if not 0.0 < step <= 1.0:
        raise ValueError(f"step must be in (0, 1], got {step}")
    n = int(round(1.0 / step))
    return {round(k * step, 10): gra(ugf, round(k * step, 10)) for k in range(n + 1)}
