#!/usr/bin/env python3
"""Run Seasonal SIS trials from YAML configuration.

Loads a base config (plus an optional scenario override), builds the
contact network, runs `simulation.n_trials` trials writing prevalence
snapshots to `output.path`, and optionally estimates the asymptotic
number of infected nodes over an ensemble.

Usage:
    python scripts/run_seasonal_sis.py configs/default.yaml
    python scripts/run_seasonal_sis.py configs/default.yaml --scenario configs/oscillating.yaml
    python scripts/run_seasonal_sis.py configs/default.yaml --asymptotic --trials 200 --workers 4
"""

import argparse
import sys
from pathlib import Path

# ── Project imports ──────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from seasonal_sis.config import SimulationConfig, load_config
from seasonal_sis.engine import EventEngine
from seasonal_sis.ensemble import run_ensemble
from seasonal_sis.network import build_network
from seasonal_sis.rng import create_trial_rngs
from seasonal_sis.snapshots import TabularSink
from seasonal_sis.transmissibility import write_schedule_trace
from seasonal_sis.trial import run_single_trial
from seasonal_sis.utils import open_output, timer


def run_trials(config: SimulationConfig, verbose: bool = True) -> None:
    """Run the configured trials, writing snapshots to output.path."""
    sim = config.simulation
    engine = EventEngine.from_config(config)
    network = build_network(config.network, seed=sim.seed)
    if verbose:
        print(network.summary())

    if config.output.schedule_trace:
        with open_output(config.output.schedule_trace) as f:
            write_schedule_trace(engine.schedule, f)

    def _progress(t, n_infected):
        print(f"Time = {t:1.3f}  infected = {n_infected}")

    rngs = create_trial_rngs(sim.seed, sim.n_trials)
    with open_output(config.output.path) as f:
        sink = TabularSink(f)
        for i, rng in enumerate(rngs):
            result = run_single_trial(
                engine, network, sim.initial_fraction, sim.t_max, rng,
                sink=sink, label=sim.label,
                snapshot_interval=sim.snapshot_interval,
                progress_callback=_progress if verbose else None,
            )
            if verbose:
                status = "extinct" if result.extinct else "active"
                print(f"  trial {i}: t={result.final_time:.3f} "
                      f"infected={result.final_infected} ({status}, "
                      f"{result.n_steps} steps)")
    print(f"Wrote {sink.n_written} snapshots to {config.output.path}")


def run_asymptotic(config: SimulationConfig, verbose: bool = True) -> float:
    """Estimate the asymptotic infected count over simulation.n_trials trials."""
    sim = config.simulation
    engine = EventEngine.from_config(config)
    network = build_network(config.network, seed=sim.seed)

    def _progress(done, total):
        if done % max(1, total // 10) == 0 or done == total:
            print(f"  {done}/{total} trials")

    result = run_ensemble(
        engine, network, sim.initial_fraction, sim.n_trials, sim.t_max,
        seed=sim.seed, parallel_workers=sim.parallel_workers,
        progress_callback=_progress if verbose else None,
    )
    print(f"Mean terminal infected: {result.mean_infected:.3f} "
          f"(prevalence {result.mean_prevalence:.5f}, "
          f"extinct in {result.extinction_fraction:.1%} of trials)")
    return result.mean_infected


def main():
    parser = argparse.ArgumentParser(
        description="Run Seasonal SIS trials from YAML config files.",
        epilog="Example: python scripts/run_seasonal_sis.py configs/default.yaml",
    )
    parser.add_argument("config", help="Base config YAML")
    parser.add_argument(
        "--scenario", type=str, default=None,
        help="Scenario override YAML merged on top of the base config",
    )
    parser.add_argument(
        "--asymptotic", action="store_true",
        help="Estimate the asymptotic infected count instead of writing snapshots",
    )
    parser.add_argument("--trials", type=int, default=None,
                        help="Override simulation.n_trials")
    parser.add_argument("--seed", type=int, default=None,
                        help="Override simulation.seed")
    parser.add_argument("--workers", type=int, default=None,
                        help="Override simulation.parallel_workers")
    parser.add_argument("--output", type=str, default=None,
                        help="Override output.path")
    parser.add_argument("--quiet", action="store_true",
                        help="Suppress progress output")
    args = parser.parse_args()

    overrides = {'simulation': {}, 'output': {}}
    if args.trials is not None:
        overrides['simulation']['n_trials'] = args.trials
    if args.seed is not None:
        overrides['simulation']['seed'] = args.seed
    if args.workers is not None:
        overrides['simulation']['parallel_workers'] = args.workers
    if args.output is not None:
        overrides['output']['path'] = args.output

    config = load_config(args.config, scenario_path=args.scenario,
                         sweep_overrides=overrides)

    print("=" * 60)
    print(f"Seasonal SIS — {config.simulation.label}")
    print("=" * 60)

    with timer("total"):
        if args.asymptotic:
            run_asymptotic(config, verbose=not args.quiet)
        else:
            run_trials(config, verbose=not args.quiet)


if __name__ == "__main__":
    main()
