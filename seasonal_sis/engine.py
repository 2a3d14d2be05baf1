"""Event-driven SIS engine (stochastic simulation algorithm).

One call to `EventEngine.step` applies exactly one state-changing event:

  1. Enumerate candidates: for each infected node (ascending id), one
     recovery with weight w_r, then one infection per susceptible
     neighbour with weight w_i. A susceptible node with several infected
     neighbours appears once per contact (additive hazard).
  2. W = Σ w. No infected nodes → extinct; nothing is drawn, the clock
     does not move.
  3. Waiting time: dt_e = −ln(u_e) / w_e drawn per candidate, the clock
     advances by min_e dt_e (distributed as Exp(W)).
  4. Selection: r = W·u, first candidate whose cumulative weight exceeds
     r. This draw is independent of the candidate that produced dt_min.
  5. t ← t + dt_min; apply the event; return the new infected count.

The candidate set is rebuilt every step since any flag flip invalidates
it; a step costs O(infected + their total degree).

Reference dynamics (seasonal=False) keep the infection weight constant,
so the transmissibility schedule does not affect the trajectory and the
recovery parameter mu is stored only. With seasonal=True the infection
channel runs on the schedule's clock instead: contacts fire at rate
w_i·λ(t), sampled exactly by inverting Λ (see `_seasonal_step`).
"""

from __future__ import annotations

from typing import List, NamedTuple, Sequence, TYPE_CHECKING

import numpy as np

from seasonal_sis.network import ContactNetwork
from seasonal_sis.state import EpidemicState
from seasonal_sis.transmissibility import TransmissibilitySchedule
from seasonal_sis.types import (
    INFECTION_WEIGHT,
    RECOVERY_WEIGHT,
    Event,
    EventKind,
    Infection,
    InvalidParameter,
    Recovery,
)

if TYPE_CHECKING:
    from seasonal_sis.config import SimulationConfig


# ═══════════════════════════════════════════════════════════════════════
# CANDIDATE SET
# ═══════════════════════════════════════════════════════════════════════

class CandidateSet(NamedTuple):
    """Parallel arrays describing every candidate event of one step.

    kinds:   (n,) int8 EventKind values
    targets: (n,) int64 node each event acts on
    sources: (n,) int64 infected node that generated the event
    weights: (n,) float64 event weights
    """
    kinds: np.ndarray
    targets: np.ndarray
    sources: np.ndarray
    weights: np.ndarray

    def __len__(self) -> int:
        return len(self.kinds)

    @property
    def total_weight(self) -> float:
        return float(self.weights.sum())

    def event(self, i: int) -> Event:
        """Materialize candidate i as a Recovery or Infection."""
        if self.kinds[i] == EventKind.RECOVERY:
            return Recovery(node=int(self.targets[i]), weight=float(self.weights[i]))
        return Infection(
            node=int(self.targets[i]),
            weight=float(self.weights[i]),
            source=int(self.sources[i]),
        )

    def events(self) -> List[Event]:
        return [self.event(i) for i in range(len(self))]


def enumerate_candidates(state: EpidemicState,
                         network: ContactNetwork,
                         recovery_weight: float,
                         infection_weight: float) -> CandidateSet:
    """Build the candidate set for the current infection flags."""
    kinds, targets, sources = [], [], []
    for node in state.infected_nodes():
        nbrs = network.neighbors(node)
        susceptible = nbrs[~state.infected[nbrs]]
        n_sus = len(susceptible)
        kinds.append(np.full(1 + n_sus, EventKind.INFECTION, dtype=np.int8))
        kinds[-1][0] = EventKind.RECOVERY
        targets.append(np.concatenate(([node], susceptible)).astype(np.int64))
        sources.append(np.full(1 + n_sus, node, dtype=np.int64))

    if not kinds:
        empty = np.zeros(0, dtype=np.int64)
        return CandidateSet(np.zeros(0, dtype=np.int8), empty, empty.copy(),
                            np.zeros(0, dtype=np.float64))

    kinds_arr = np.concatenate(kinds)
    weights = np.where(kinds_arr == EventKind.RECOVERY,
                       recovery_weight, infection_weight).astype(np.float64)
    return CandidateSet(kinds_arr, np.concatenate(targets),
                        np.concatenate(sources), weights)


# ═══════════════════════════════════════════════════════════════════════
# SAMPLING PRIMITIVES
# ═══════════════════════════════════════════════════════════════════════

def waiting_time(weights: np.ndarray, rng: np.random.Generator) -> float:
    """Minimum of independent Exp(w_e) draws, one per candidate.

    Zero-weight candidates never fire. Uniforms are taken on (0, 1] so
    the logarithm is always finite.
    """
    weights = np.asarray(weights, dtype=np.float64)
    u = 1.0 - rng.random(len(weights))
    dt = np.divide(-np.log(u), weights,
                   out=np.full(len(weights), np.inf), where=weights > 0)
    return float(dt.min())


def select_index(weights: np.ndarray, r: float) -> int:
    """Index of the first candidate whose cumulative weight exceeds r."""
    cumulative = np.cumsum(weights)
    if len(cumulative) == 0:
        raise ValueError("cannot select from an empty candidate set")
    idx = int(np.searchsorted(cumulative, r, side='right'))
    # r == W can only arise from rounding; fall back to the last candidate
    return min(idx, len(cumulative) - 1)


def select_event(events: Sequence[Event], r: float) -> Event:
    """Weighted choice among events for a draw r in [0, W)."""
    weights = np.array([e.weight for e in events], dtype=np.float64)
    return events[select_index(weights, r)]


# ═══════════════════════════════════════════════════════════════════════
# ENGINE
# ═══════════════════════════════════════════════════════════════════════

class EventEngine:
    """Advances an EpidemicState by one event per step.

    Args:
        schedule: Transmissibility schedule, shared read-only.
        mu: Recovery parameter; stored, not applied per event.
        recovery_weight: Weight of each recovery candidate.
        infection_weight: Weight of each (infected, susceptible) contact.
            In seasonal mode it scales the schedule rate λ(t).
        seasonal: Drive the infection channel by the schedule.
    """

    def __init__(self,
                 schedule: TransmissibilitySchedule,
                 mu: float = 10.0,
                 recovery_weight: float = RECOVERY_WEIGHT,
                 infection_weight: float = INFECTION_WEIGHT,
                 seasonal: bool = False):
        if recovery_weight <= 0:
            raise InvalidParameter(f"recovery_weight must be > 0, got {recovery_weight}")
        if infection_weight < 0:
            raise InvalidParameter(f"infection_weight must be >= 0, got {infection_weight}")
        self.schedule = schedule
        self.mu = mu
        self.recovery_weight = recovery_weight
        self.infection_weight = infection_weight
        self.seasonal = seasonal

    @classmethod
    def from_config(cls, config: "SimulationConfig") -> "EventEngine":
        """Engine with the schedule and weights of a SimulationConfig."""
        s = config.schedule
        d = config.disease
        return cls(
            TransmissibilitySchedule(s.t1, s.t2, s.lam, s.d_lam),
            mu=d.mu,
            recovery_weight=d.recovery_weight,
            infection_weight=d.infection_weight,
            seasonal=d.seasonal,
        )

    def contact_weight(self, t: float) -> float:
        """Weight of one infection candidate at time t."""
        if self.seasonal:
            return self.infection_weight * self.schedule.evaluate(t)
        return self.infection_weight

    def candidates(self, state: EpidemicState,
                   network: ContactNetwork) -> CandidateSet:
        return enumerate_candidates(
            state, network, self.recovery_weight, self.contact_weight(state.t)
        )

    def candidate_events(self, state: EpidemicState,
                         network: ContactNetwork) -> List[Event]:
        return self.candidates(state, network).events()

    def step(self, state: EpidemicState, network: ContactNetwork,
             rng: np.random.Generator) -> int:
        """Apply the next event and return the new infected count.

        On extinction (no infected node) returns 0 and leaves the state
        untouched.
        """
        if state.n_infected == 0:
            return 0

        cands = self.candidates(state, network)
        if self.seasonal:
            dt, idx = self._seasonal_step(state, cands, rng)
        else:
            dt = waiting_time(cands.weights, rng)
            idx = select_index(cands.weights, cands.total_weight * rng.random())

        state.advance(dt)
        state.L = self.schedule.evaluate_integral(state.t)
        self.apply(state, cands.event(idx))
        return state.n_infected

    @staticmethod
    def apply(state: EpidemicState, event: Event) -> None:
        if event.kind == EventKind.INFECTION:
            state.set_infected(event.node, True)
        else:
            state.set_infected(event.node, False)

    def _seasonal_step(self, state: EpidemicState, cands: CandidateSet,
                       rng: np.random.Generator):
        """Competing channels: recovery in real time, infection on Λ time.

        The m infection candidates share the hazard m·w_i·λ(t), so their
        first firing time t' solves Λ(t') = Λ(t) + E / (m·w_i) with
        E ~ Exp(1). Recoveries wait Exp(R). The earlier channel fires and
        one of its candidates is chosen proportional to weight.
        """
        is_recovery = cands.kinds == EventKind.RECOVERY
        rec_idx = np.flatnonzero(is_recovery)
        inf_idx = np.flatnonzero(~is_recovery)

        dt_rec = -np.log(1.0 - rng.random()) / cands.weights[rec_idx].sum()

        dt_inf = np.inf
        contact_rate = len(inf_idx) * self.infection_weight
        if contact_rate > 0 and self.schedule.Lt2 > 0:
            target = (self.schedule.evaluate_integral(state.t)
                      - np.log(1.0 - rng.random()) / contact_rate)
            t_next = self.schedule.evaluate_integral_inverse(target)
            dt_inf = max(t_next - state.t, 0.0)

        channel = inf_idx if dt_inf < dt_rec else rec_idx
        dt = min(dt_inf, dt_rec)
        if len(channel) == 1:
            return dt, int(channel[0])
        weights = cands.weights[channel]
        total = weights.sum()
        if total > 0:
            pick = select_index(weights, total * rng.random())
        else:
            # λ is zero at the current time; contacts are interchangeable
            pick = int(rng.integers(len(channel)))
        return dt, int(channel[pick])
