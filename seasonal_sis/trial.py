"""Single-trial driver: seed the infection, step until extinction or horizon.

Per trial:
  1. Reset EpidemicState (all susceptible, t = L = 0)
  2. Seed: one random node if f <= 0, else round(f·N) distinct nodes
     taken from a random permutation of node ids
  3. Loop engine steps while t < horizon and at least one node is infected;
     every `snapshot_interval` steps (starting with the first) emit
     (time before the step, infected fraction after it)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from seasonal_sis.engine import EventEngine
from seasonal_sis.network import ContactNetwork
from seasonal_sis.snapshots import PrevalenceRecord, SnapshotSink
from seasonal_sis.state import EpidemicState
from seasonal_sis.types import SNAPSHOT_INTERVAL, EmptyNetwork, InvalidParameter


@dataclass
class TrialResult:
    """Terminal summary of one trial."""
    n_nodes: int
    final_time: float
    final_infected: int
    n_steps: int
    n_seeded: int

    @property
    def extinct(self) -> bool:
        return self.final_infected == 0

    @property
    def final_prevalence(self) -> float:
        return self.final_infected / self.n_nodes


# ═══════════════════════════════════════════════════════════════════════
# SEEDING
# ═══════════════════════════════════════════════════════════════════════

def infect_random_node(state: EpidemicState, rng: np.random.Generator) -> int:
    """Infect one node chosen uniformly among the susceptible ones.

    Returns:
        The infected node id.

    Raises:
        InvalidParameter: If every node is already infected.
    """
    susceptible = state.susceptible_nodes()
    if len(susceptible) == 0:
        raise InvalidParameter("no susceptible node left to infect")
    node = int(susceptible[rng.integers(len(susceptible))])
    state.set_infected(node, True)
    return node


def seed_count(initial_fraction: float, n_nodes: int) -> int:
    """Number of nodes to seed for a given initial fraction."""
    if initial_fraction > 1:
        raise InvalidParameter(
            f"initial_fraction must be <= 1, got {initial_fraction}"
        )
    if initial_fraction <= 0:
        return 1
    return min(max(int(round(initial_fraction * n_nodes)), 1), n_nodes)


def seed_infection(state: EpidemicState, initial_fraction: float,
                   rng: np.random.Generator) -> int:
    """Seed the initial infected set on a freshly reset state.

    Returns:
        Number of seeded nodes.
    """
    k = seed_count(initial_fraction, state.n_nodes)
    if initial_fraction <= 0:
        infect_random_node(state, rng)
        return 1
    for node in rng.permutation(state.n_nodes)[:k]:
        state.set_infected(int(node), True)
    return k


# ═══════════════════════════════════════════════════════════════════════
# TRIAL LOOP
# ═══════════════════════════════════════════════════════════════════════

def run_single_trial(
    engine: EventEngine,
    network: ContactNetwork,
    initial_fraction: float,
    horizon: float,
    rng: np.random.Generator,
    sink: Optional[SnapshotSink] = None,
    label: str = "",
    snapshot_interval: int = SNAPSHOT_INTERVAL,
    progress_callback: Optional[Callable[[float, int], None]] = None,
    state: Optional[EpidemicState] = None,
) -> TrialResult:
    """Run one trial to extinction or `horizon`.

    Args:
        engine: Configured EventEngine.
        network: Contact network (read only).
        initial_fraction: Fraction of nodes seeded infected (<= 0 → one node).
        horizon: Stop once the clock reaches this time.
        rng: Trial-local random source.
        sink: Optional snapshot sink.
        label: Model label written with every snapshot.
        snapshot_interval: Engine steps between snapshots.
        progress_callback: Optional callable(t, n_infected), invoked with
            every snapshot.
        state: Optional state to reuse; reset before use.

    Returns:
        TrialResult summary.

    Raises:
        EmptyNetwork: The network has no nodes.
        InvalidParameter: Bad fraction, horizon or snapshot interval.
    """
    if network.n_nodes == 0:
        raise EmptyNetwork("cannot run a trial on a network with no nodes")
    if horizon < 0:
        raise InvalidParameter(f"horizon must be >= 0, got {horizon}")
    if snapshot_interval < 1:
        raise InvalidParameter(
            f"snapshot_interval must be >= 1, got {snapshot_interval}"
        )

    if state is None:
        state = EpidemicState(network.n_nodes)
    state.reset()
    n_seeded = seed_infection(state, initial_fraction, rng)

    n_steps = 0
    n_infected = state.n_infected
    while state.t < horizon and n_infected > 0:
        t = state.t
        n_infected = engine.step(state, network, rng)
        if n_steps % snapshot_interval == 0:
            if sink is not None:
                sink.write(PrevalenceRecord(label, t, n_infected / network.n_nodes))
            if progress_callback is not None:
                progress_callback(t, n_infected)
        n_steps += 1

    return TrialResult(
        n_nodes=network.n_nodes,
        final_time=state.t,
        final_infected=state.n_infected,
        n_steps=n_steps,
        n_seeded=n_seeded,
    )
