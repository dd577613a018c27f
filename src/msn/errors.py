"""Exceptions raised while building or solving a network."""

from __future__ import annotations


class NetworkError(Exception):
    """Base class for all network modelling errors."""


class TopologyError(NetworkError):
    """The graph cannot link the requested elements (e.g. a user without any source)."""


class ConfigurationError(NetworkError, ValueError):
    """Invalid element parameters, batch arguments or measure selection."""


class UnsupportedTopologyError(NetworkError):
    """No parallel, series or bridge reduction applies while several paths remain."""
