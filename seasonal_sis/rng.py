"""Seeded RNG factory for reproducible, independent trials.

Uses NumPy's SeedSequence → PCG64 hierarchy to guarantee:
  - Statistical independence between per-trial streams
  - Bit-exact replay with the same master seed
  - Trial i draws the same numbers whether trials run serially or on a
    thread pool, and regardless of how many trials follow it
"""

from __future__ import annotations

from typing import Dict, List

import numpy as np


def create_trial_rngs(
    master_seed: int,
    n_trials: int,
) -> List[np.random.Generator]:
    """Create one independent Generator per trial.

    Args:
        master_seed: Master RNG seed (non-negative integer).
        n_trials: Number of trials.

    Returns:
        List of n_trials Generators; element i belongs to trial i.

    Example:
        >>> rngs = create_trial_rngs(42, n_trials=100)
        >>> rngs[0].random()  # reproducible
    """
    ss = np.random.SeedSequence(master_seed)
    return [
        np.random.Generator(np.random.PCG64(child))
        for child in ss.spawn(n_trials)
    ]


def rng_state_snapshot(
    rngs: List[np.random.Generator],
) -> Dict[int, dict]:
    """Capture the full state of each stream, keyed by trial index.

    The result can be pickled and passed to restore_rng_state() to
    replay a set of trials exactly.
    """
    return {i: rng.bit_generator.state for i, rng in enumerate(rngs)}


def restore_rng_state(
    rngs: List[np.random.Generator],
    states: Dict[int, dict],
) -> None:
    """Restore stream states from rng_state_snapshot().

    Raises:
        KeyError: If a snapshot index has no matching stream.
    """
    for i, state in states.items():
        if not 0 <= i < len(rngs):
            raise KeyError(f"Cannot restore RNG state for unknown trial {i}")
        rngs[i].bit_generator.state = state
