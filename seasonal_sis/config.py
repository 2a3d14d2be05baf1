"""Configuration system for Seasonal SIS.

Hierarchical YAML configuration with deep-merge support:
  base.yaml → scenario override → sweep overrides

Defaults reproduce the constant-transmissibility reference run:
complete graph of 200 nodes, schedule (t1, t2, λ, Δλ) = (10, 20, 2, 0),
mu = 10, every node initially infected, horizon 100.
"""

from __future__ import annotations

import dataclasses
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from seasonal_sis.types import (
    INFECTION_WEIGHT,
    RECOVERY_WEIGHT,
    SNAPSHOT_INTERVAL,
    InvalidParameter,
)


# ═══════════════════════════════════════════════════════════════════════
# CONFIGURATION DATACLASSES
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class ScheduleSection:
    """Periodic two-phase transmissibility λ(t)."""
    t1: float = 10.0       # Phase boundary within each period
    t2: float = 20.0       # Period length
    lam: float = 2.0       # Base rate (first phase)
    d_lam: float = 0.0     # Added to lam in the second phase


@dataclass
class DiseaseSection:
    """Event weights.

    seasonal: False — reference dynamics, constant infection weight
                      (schedule has no effect on trajectories)
              True  — infection hazard per contact = infection_weight × λ(t)
    """
    mu: float = 10.0                          # Recovery parameter (stored only)
    recovery_weight: float = RECOVERY_WEIGHT
    infection_weight: float = INFECTION_WEIGHT
    seasonal: bool = False


@dataclass
class NetworkSection:
    """Contact network selector and generator parameters."""
    kind: str = "complete"   # 'lattice', 'random', 'regular', 'complete'
    lx: int = 10             # Lattice width
    ly: int = 10             # Lattice height
    n: int = 200             # Node count (random, regular, complete)
    p: float = 0.05          # Edge probability (random)
    k: int = 4               # Degree (regular)


@dataclass
class SimulationSection:
    """Trial control."""
    initial_fraction: float = 1.0   # <= 0 seeds a single node
    t_max: float = 100.0
    n_trials: int = 1
    snapshot_interval: int = SNAPSHOT_INTERVAL
    seed: int = 42
    parallel_workers: int = 1
    label: str = "Cont"


@dataclass
class OutputSection:
    """Output control."""
    path: str = "results/prevalence.tsv"
    schedule_trace: Optional[str] = None   # Write (t, λ, Λ) table here if set


@dataclass
class SimulationConfig:
    """Complete simulation configuration.

    Load from YAML via `load_config()`. Sections map 1:1 to YAML top-level keys.
    """
    schedule: ScheduleSection = field(default_factory=ScheduleSection)
    disease: DiseaseSection = field(default_factory=DiseaseSection)
    network: NetworkSection = field(default_factory=NetworkSection)
    simulation: SimulationSection = field(default_factory=SimulationSection)
    output: OutputSection = field(default_factory=OutputSection)


_SECTION_MAP = {
    'schedule': ScheduleSection,
    'disease': DiseaseSection,
    'network': NetworkSection,
    'simulation': SimulationSection,
    'output': OutputSection,
}


# ═══════════════════════════════════════════════════════════════════════
# YAML LOADING & MERGING
# ═══════════════════════════════════════════════════════════════════════

def deep_merge(base: Dict, override: Dict) -> Dict:
    """Recursively merge override into base. Modifies base in place.

    - Dict values are merged recursively
    - Non-dict values are replaced
    - Keys in override but not base are added

    Returns:
        The merged base dictionary.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _dict_to_section(section_cls, data: Dict) -> Any:
    """Convert a dict to a dataclass, warning about unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(section_cls)}
    unknown = sorted(set(data) - valid_fields)
    if unknown:
        warnings.warn(
            f"Ignoring unknown {section_cls.__name__} keys: {unknown}",
            UserWarning,
            stacklevel=3,
        )
    return section_cls(**{k: v for k, v in data.items() if k in valid_fields})


def _yaml_to_config(data: Dict) -> SimulationConfig:
    """Convert a merged YAML dict to a SimulationConfig."""
    sections = {}
    for key, cls in _SECTION_MAP.items():
        if key in data and isinstance(data[key], dict):
            sections[key] = _dict_to_section(cls, data[key])
        else:
            sections[key] = cls()
    return SimulationConfig(**sections)


def config_to_dict(config: SimulationConfig) -> Dict:
    """Plain-dict form of a config, suitable for yaml.safe_dump."""
    return dataclasses.asdict(config)


def validate_config(config: SimulationConfig) -> None:
    """Validate configuration constraints. Raises InvalidParameter on failure.

    Checks:
      - Schedule phase ordering and non-negative rates
      - Positive event weights
      - Network kind and generator parameters
      - Trial control ranges
    """
    s = config.schedule
    if s.t1 <= 0:
        raise InvalidParameter(f"schedule.t1 must be > 0, got {s.t1}")
    if s.t2 <= s.t1:
        raise InvalidParameter(
            f"schedule.t2 ({s.t2}) must be > schedule.t1 ({s.t1})"
        )
    if s.lam < 0:
        raise InvalidParameter(f"schedule.lam must be >= 0, got {s.lam}")
    if s.lam + s.d_lam < 0:
        raise InvalidParameter(
            f"schedule.lam + schedule.d_lam must be >= 0, got {s.lam + s.d_lam}"
        )

    d = config.disease
    if d.mu < 0:
        raise InvalidParameter(f"disease.mu must be >= 0, got {d.mu}")
    if d.recovery_weight <= 0:
        raise InvalidParameter(
            f"disease.recovery_weight must be > 0, got {d.recovery_weight}"
        )
    if d.infection_weight < 0:
        raise InvalidParameter(
            f"disease.infection_weight must be >= 0, got {d.infection_weight}"
        )
    if not d.seasonal and s.d_lam != 0:
        warnings.warn(
            "schedule.d_lam is non-zero but disease.seasonal is False; "
            "the schedule does not affect the dynamics.",
            UserWarning,
            stacklevel=2,
        )

    n = config.network
    valid_kinds = {"lattice", "random", "regular", "complete"}
    if n.kind not in valid_kinds:
        raise InvalidParameter(
            f"network.kind must be one of {valid_kinds}, got '{n.kind}'"
        )
    if n.kind == "lattice" and (n.lx < 1 or n.ly < 1):
        raise InvalidParameter(
            f"network lattice dimensions must be >= 1, got {n.lx}x{n.ly}"
        )
    if n.kind != "lattice" and n.n < 1:
        raise InvalidParameter(f"network.n must be >= 1, got {n.n}")
    if n.kind == "random" and not (0.0 <= n.p <= 1.0):
        raise InvalidParameter(f"network.p must be in [0, 1], got {n.p}")
    if n.kind == "regular":
        if not (0 <= n.k < n.n):
            raise InvalidParameter(
                f"network.k must be in [0, n), got k={n.k}, n={n.n}"
            )
        if (n.k * n.n) % 2 != 0:
            raise InvalidParameter(
                f"network.k * network.n must be even, got {n.k}*{n.n}"
            )

    sim = config.simulation
    if sim.initial_fraction > 1:
        raise InvalidParameter(
            f"simulation.initial_fraction must be <= 1, got {sim.initial_fraction}"
        )
    if sim.t_max < 0:
        raise InvalidParameter(f"simulation.t_max must be >= 0, got {sim.t_max}")
    if sim.n_trials < 1:
        raise InvalidParameter(f"simulation.n_trials must be >= 1, got {sim.n_trials}")
    if sim.snapshot_interval < 1:
        raise InvalidParameter(
            f"simulation.snapshot_interval must be >= 1, got {sim.snapshot_interval}"
        )
    if sim.seed < 0:
        raise InvalidParameter("simulation.seed must be non-negative")
    if sim.parallel_workers < 1:
        raise InvalidParameter(
            f"simulation.parallel_workers must be >= 1, got {sim.parallel_workers}"
        )


def load_config(
    base_path: Union[str, Path],
    scenario_path: Optional[Union[str, Path]] = None,
    sweep_overrides: Optional[Dict] = None,
) -> SimulationConfig:
    """Load and merge hierarchical YAML configuration.

    Merge order: base → scenario → sweep overrides.
    Each layer overrides only the fields it specifies.

    Raises:
        FileNotFoundError: If base_path or scenario_path doesn't exist.
        InvalidParameter: If validation fails.
    """
    base_path = Path(base_path)
    if not base_path.exists():
        raise FileNotFoundError(f"Config file not found: {base_path}")

    with open(base_path) as f:
        config_dict = yaml.safe_load(f) or {}

    if scenario_path is not None:
        scenario_path = Path(scenario_path)
        if not scenario_path.exists():
            raise FileNotFoundError(f"Scenario file not found: {scenario_path}")
        with open(scenario_path) as f:
            deep_merge(config_dict, yaml.safe_load(f) or {})

    if sweep_overrides is not None:
        deep_merge(config_dict, sweep_overrides)

    config = _yaml_to_config(config_dict)
    validate_config(config)
    return config


def default_config() -> SimulationConfig:
    """Return a SimulationConfig with all default values."""
    config = SimulationConfig()
    validate_config(config)
    return config
