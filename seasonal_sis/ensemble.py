"""Ensemble estimate of the asymptotic number of infected nodes.

Runs independent trials with identical parameters and averages the
terminal infected count (long-run prevalence × N, or survival
probability × N near threshold).

Each trial owns its EpidemicState and its own RNG stream spawned from
the master seed, so trials can run on a thread pool: the network is
shared read-only and nothing else is shared. Results for a given seed do
not depend on `parallel_workers`.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import numpy as np

from seasonal_sis.engine import EventEngine
from seasonal_sis.network import ContactNetwork
from seasonal_sis.rng import create_trial_rngs
from seasonal_sis.trial import TrialResult, run_single_trial
from seasonal_sis.types import EmptyNetwork, InvalidParameter


@dataclass
class EnsembleResult:
    """Terminal statistics over an ensemble of trials."""
    n_trials: int = 0
    n_nodes: int = 0
    seed: int = 0
    # Per trial, in trial order
    final_infected: Optional[np.ndarray] = None
    final_time: Optional[np.ndarray] = None
    n_steps: Optional[np.ndarray] = None
    trials: List[TrialResult] = field(default_factory=list)

    @property
    def mean_infected(self) -> float:
        return float(self.final_infected.mean())

    @property
    def mean_prevalence(self) -> float:
        return self.mean_infected / self.n_nodes

    @property
    def extinction_fraction(self) -> float:
        return float(np.mean(self.final_infected == 0))


def run_ensemble(
    engine: EventEngine,
    network: ContactNetwork,
    initial_fraction: float,
    n_trials: int,
    horizon: float,
    seed: int = 42,
    parallel_workers: int = 1,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> EnsembleResult:
    """Run `n_trials` independent trials to `horizon` or extinction.

    Args:
        engine: Configured EventEngine (shared, stateless between steps).
        network: Contact network (shared read-only).
        initial_fraction: Initial infected fraction per trial.
        n_trials: Number of trials (>= 1).
        horizon: Time horizon per trial.
        seed: Master seed; trial i uses stream i.
        parallel_workers: Threads used to run trials (1 = serial).
        progress_callback: Optional callable(trials_done, n_trials).

    Returns:
        EnsembleResult with per-trial terminal counts.
    """
    if n_trials < 1:
        raise InvalidParameter(f"n_trials must be >= 1, got {n_trials}")
    if parallel_workers < 1:
        raise InvalidParameter(
            f"parallel_workers must be >= 1, got {parallel_workers}"
        )
    if network.n_nodes == 0:
        raise EmptyNetwork("cannot run an ensemble on a network with no nodes")

    rngs = create_trial_rngs(seed, n_trials)

    def _trial(i: int) -> TrialResult:
        return run_single_trial(engine, network, initial_fraction,
                                horizon, rngs[i])

    trials: List[TrialResult] = []
    if parallel_workers == 1:
        for i in range(n_trials):
            trials.append(_trial(i))
            if progress_callback is not None:
                progress_callback(i + 1, n_trials)
    else:
        with ThreadPoolExecutor(max_workers=parallel_workers) as pool:
            for i, result in enumerate(pool.map(_trial, range(n_trials))):
                trials.append(result)
                if progress_callback is not None:
                    progress_callback(i + 1, n_trials)

    return EnsembleResult(
        n_trials=n_trials,
        n_nodes=network.n_nodes,
        seed=seed,
        final_infected=np.array([r.final_infected for r in trials], dtype=np.int64),
        final_time=np.array([r.final_time for r in trials], dtype=np.float64),
        n_steps=np.array([r.n_steps for r in trials], dtype=np.int64),
        trials=trials,
    )


def estimate_asymptotic_infected(
    engine: EventEngine,
    network: ContactNetwork,
    initial_fraction: float,
    n_trials: int,
    horizon: float,
    seed: int = 42,
    parallel_workers: int = 1,
) -> float:
    """Mean terminal infected count over `n_trials` independent trials."""
    return run_ensemble(
        engine, network, initial_fraction, n_trials, horizon,
        seed=seed, parallel_workers=parallel_workers,
    ).mean_infected
