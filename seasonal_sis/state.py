"""Per-trial epidemic state: infection flags plus the simulation clock.

Replaces string-keyed graph attributes ("Infected", "t", "L") with a
typed record. The infected count is tracked incrementally and always
equals a full scan of the flags.
"""

from __future__ import annotations

import numpy as np

from seasonal_sis.types import EmptyNetwork


class EpidemicState:
    """Infection flags for `n_nodes` nodes, clock `t` and integral `L`.

    `L` holds Λ(t), the integral of the transmissibility schedule up to
    the current time. It is maintained by the engine for inspection; the
    reference dynamics do not read it.
    """

    def __init__(self, n_nodes: int):
        if n_nodes <= 0:
            raise EmptyNetwork(f"network must have at least one node, got {n_nodes}")
        self.n_nodes = int(n_nodes)
        self.infected = np.zeros(self.n_nodes, dtype=np.bool_)
        self.t = 0.0
        self.L = 0.0
        self.n_infected = 0

    def reset(self) -> None:
        """All nodes susceptible, t = L = 0."""
        self.infected[:] = False
        self.t = 0.0
        self.L = 0.0
        self.n_infected = 0

    def set_infected(self, node: int, flag: bool) -> None:
        if self.infected[node] == flag:
            return
        self.infected[node] = flag
        self.n_infected += 1 if flag else -1

    def is_infected(self, node: int) -> bool:
        return bool(self.infected[node])

    def infected_count(self) -> int:
        return self.n_infected

    def scan_infected(self) -> int:
        """Recount infected nodes from the flags."""
        return int(np.count_nonzero(self.infected))

    def infected_nodes(self) -> np.ndarray:
        """Ids of infected nodes, ascending."""
        return np.flatnonzero(self.infected)

    def susceptible_nodes(self) -> np.ndarray:
        """Ids of susceptible nodes, ascending."""
        return np.flatnonzero(~self.infected)

    def prevalence(self) -> float:
        """Fraction of nodes currently infected."""
        return self.n_infected / self.n_nodes

    def advance(self, dt: float) -> None:
        if dt < 0:
            raise ValueError(f"clock cannot move backwards (dt={dt})")
        self.t += dt
