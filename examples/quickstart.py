#!/usr/bin/env python3
"""Quick start example: delivered flow of a small pipeline network.

Demonstrates the core workflow:
  1. Place a source, pipes and a user on a multigraph
  2. Solve the network for the user's flow distribution
  3. Validate with Monte Carlo simulation
"""

from msn.network import Network
from msn.simulation import NetworkSimulator
from msn.solver import solve
from msn.ugf import UGF

# --- 1. Define the network ---
#   S(1) ==(pipe a, pipe b)==> 2 ---(pipe c)---> U(3)
network = Network("pipeline")
network.add_source(node=1)
network.add_components(
    edge=[(1, 2), (1, 2), (2, 3)],
    name=["pipe a", "pipe b", "pipe c"],
    ugf=[
        UGF("flow", (0, 1500), (0.2, 0.8)),             # m^3/hr
        UGF("flow", (0, 2000), (0.4, 0.6)),
        UGF("flow", (0, 1800, 4000), (0.1, 0.2, 0.7)),
    ],
)
user = network.add_user(node=3, name="city")

# --- 2. Solve ---
solve(network)
assert user.ugf is not None

print(f"Delivered flow at {user.name} ({network.measure}):")
for value, probability in zip(user.ugf.values, user.ugf.probabilities):
    print(f"  {value:7.0f} m^3/hr  p={probability:.4f}")
print(f"Expected flow: {user.ugf.expected_value():.1f} m^3/hr")

# --- 3. Validate with Monte Carlo simulation ---
sim = NetworkSimulator(network, seed=42)
sim_result = sim.run(n_trials=10_000)

print("\nMonte Carlo validation (10k trials):")
for value, probability in sorted(sim_result.ugfs[0].as_dict().items()):
    print(f"  {value:7.0f} m^3/hr  p={probability:.4f}")
print(f"  Mean flow: {sim_result.means[0]:.1f} m^3/hr")
