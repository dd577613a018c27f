"""Multi-State Networks (MSN).

Reliability evaluation of multi-state networks: per-user structure functions
derived from the topology and evaluated over universal generating functions.
"""

__version__ = "0.1.0"
