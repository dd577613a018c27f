#!/usr/bin/env python3
"""Wind farm example: correlated turbines, a nested plant and a bridged grid.

Solves an offshore wind farm whose turbines share one weather-driven
availability and reports its indices; then nests a two-unit gas plant as
the source of an onshore grid with a bridged transmission corridor.
"""

from msn.indices import gra
from msn.network import Network
from msn.solver import SolverConfig, solve
from msn.std import StateTransitionDiagram
from msn.ugf import UGF

# --- 1. Wind farm with fully correlated turbines ---
#   T(1) -> T(2) -> PCC(3) <- T(4) <- T(5)
wind_farm = Network("wind farm")
wind_farm.add_sources(
    node=[1, 2, 4, 5],
    ugf=UGF("power", (0.0, 2.0), (0.3, 0.7)),  # MW per turbine
    dependent=True,
)
cable = StateTransitionDiagram("power", [4.0, 0.0])  # rated MW, failed
cable.add_transition(0, 1, 1 / 8760)  # one failure per year
cable.add_transition(1, 0, 1 / 876)   # mean repair time 876 h
cable.solve_steady_state()
wind_farm.add_components(edge=[(1, 2), (2, 3), (5, 4), (4, 3)], std=cable)
pcc = wind_farm.add_user(node=3, name="PCC", indices=("EENS", "GRA"))

solve(wind_farm)
assert pcc.ugf is not None

print(f"\n{pcc.name} output (MW):")
for value, probability in zip(pcc.ugf.values, pcc.ugf.probabilities):
    print(f"  {value:5.1f}  p={probability:.5f}")
print(f"EENS: {pcc.eens:.1f} MWh/yr")
print(f"GRA(0.7) = {pcc.gra[0.7]:.4f}")

# --- 2. Gas plant: two units behind one transformer ---
plant = Network("gas plant")
plant.add_sources(node=[1, 1], ugf=UGF("power", (0.0, 1.5), (0.05, 0.95)))
plant.add_component(edge=(1, 2), ugf=UGF("power", (0.0, 2.5), (0.01, 0.99)))
plant.add_user(node=2)

# --- 3. Onshore grid fed by the plant through a bridged corridor ---
#   PLANT(1) -> 2 -> SUB(4)
#   PLANT(1) -> 3 -> SUB(4), with 2 <-> 3
grid = Network("onshore grid")
grid.add_source(node=1, network=(plant, 0), name="gas plant")
grid.add_components(
    edge=[(1, 2), (2, 4), (1, 3), (3, 4)],
    ugf=UGF("power", (0.0, 2.0), (0.02, 0.98)),
)
grid.add_bidirectional_component(edge=(2, 3), ugf=UGF("power", (0.0, 1.0), (0.05, 0.95)))
substation = grid.add_user(node=4, name="substation", indices=("EENS",))

solve(grid, SolverConfig(max_workers=2))
assert substation.ugf is not None

print(f"\n{substation.name} supply (MW):")
for value, probability in zip(substation.ugf.values, substation.ugf.probabilities):
    print(f"  {value:5.1f}  p={probability:.5f}")
print(f"EENS: {substation.eens:.1f} MWh/yr")
for ratio in (0.5, 0.7, 0.9):
    print(f"GRA({ratio:.1f}) = {gra(substation.ugf, ratio):.4f}")
