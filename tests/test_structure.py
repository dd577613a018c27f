"""Tests for msn.structure expression trees."""

from __future__ import annotations

import math

import numpy as np
import pytest

from msn.structure import Bridge, Leaf, Parallel, Series, parallel, series

TABLES = [np.array([0.0, 1.0, 2.0]), np.array([0.0, 3.0]), np.array([5.0, 0.0])]


class TestLeaves:
    def test_scalar_index(self):
        assert Leaf(1, 1).evaluate({1: 1}, TABLES) == 3.0

    def test_shared_dimension(self):
        """Group members read their own table at the leader's index."""
        grid = {1: np.arange(2)}
        np.testing.assert_allclose(Leaf(2, 1).evaluate(grid, TABLES), [5.0, 0.0])

    def test_label_not_part_of_identity(self):
        assert Leaf(0, 0, "pipe") == Leaf(0, 0)
        assert str(Leaf(0, 0, "pipe")) == "pipe"
        assert str(Leaf(4, 4)) == "e4"


class TestCombinators:
    def test_broadcast_series_parallel(self):
        grid = {0: np.arange(3).reshape(3, 1), 1: np.arange(2).reshape(1, 2)}
        a, b = Leaf(0, 0), Leaf(1, 1)
        np.testing.assert_allclose(
            Series((a, b)).evaluate(grid, TABLES), [[0, 0], [0, 1], [0, 2]]
        )
        np.testing.assert_allclose(
            Parallel((a, b)).evaluate(grid, TABLES), [[0, 3], [1, 4], [2, 5]]
        )

    def test_dimensions(self):
        expr = Series((Leaf(0, 0), Parallel((Leaf(1, 1), Leaf(2, 1)))))
        assert expr.dimensions() == frozenset({0, 1})

    def test_series_flattens_and_dedupes(self):
        a, b, c = Leaf(0, 0), Leaf(1, 1), Leaf(2, 2)
        assert series([a, Series((b, a)), c]) == Series((a, b, c))
        assert series([a, a]) == a

    def test_parallel_dedupes_without_flattening(self):
        a, b = Leaf(0, 0), Leaf(1, 1)
        assert parallel([a, a]) == a
        nested = Parallel((a, b))
        assert parallel([nested, a]) == Parallel((nested, a))

    def test_empty(self):
        with pytest.raises(ValueError):
            series([])
        with pytest.raises(ValueError):
            parallel([])

    def test_str(self):
        a, b = Leaf(0, 0, "a"), Leaf(1, 1, "b")
        assert str(series([a, parallel([a, b])])) == "min(a, (a + b))"


class TestBridge:
    @staticmethod
    def evaluate(lt, lb, rt, rb, fw, bw) -> float:
        tables = [np.array([v], dtype=float) for v in (lt, lb, rt, rb, fw, bw)]
        grid = {i: 0 for i in range(6)}
        expr = Bridge(*(Leaf(i, i) for i in range(6)))
        return float(expr.evaluate(grid, tables))

    def test_balanced(self):
        assert self.evaluate(1, 1, 1, 1, 1, 1) == 2.0

    def test_forward_flow(self):
        # left top has surplus, right bottom spare capacity
        assert self.evaluate(1, 0, 0, 1, 1, 0) == 1.0
        assert self.evaluate(1, 0, 0, 1, 0, 1) == 0.0

    def test_backward_flow(self):
        assert self.evaluate(0, 1, 1, 0, 0, 1) == 1.0
        assert self.evaluate(0, 1, 1, 0, 1, 0) == 0.0

    def test_diagonal_limits_transfer(self):
        assert self.evaluate(5, 1, 1, 5, 2, 2) == 4.0

    def test_same_sign_imbalance(self):
        assert self.evaluate(3, 1, 3, 1, 5, 5) == 2.0

    def test_unconstrained_top(self):
        assert self.evaluate(math.inf, 1, 0, 1, 1, 1) == 2.0
        assert self.evaluate(math.inf, math.inf, 1, 1, 1, 1) == math.inf

    def test_one_way_diagonal(self):
        tables = [np.array([v], dtype=float) for v in (1, 0, 0, 1, 1)]
        grid = {i: 0 for i in range(5)}
        expr = Bridge(*(Leaf(i, i) for i in range(5)))
        assert float(expr.evaluate(grid, tables)) == 1.0
        assert expr.dimensions() == frozenset(range(5))

        tables = [np.array([v], dtype=float) for v in (0, 1, 1, 0, 1)]
        assert float(expr.evaluate(grid, tables)) == 0.0
