"""Core data types for Seasonal SIS.

This module is the SINGLE SOURCE OF TRUTH for:
  - Error types (InvalidParameter, EmptyNetwork)
  - EventKind enumeration and the Event tagged union (Recovery | Infection)
  - Model constants shared by the engine, trial runner and config

All modules import these types from here. No other module defines events.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Union


# ═══════════════════════════════════════════════════════════════════════
# ERRORS
# ═══════════════════════════════════════════════════════════════════════

class InvalidParameter(ValueError):
    """A model or configuration parameter is outside its valid range."""


class EmptyNetwork(ValueError):
    """The contact network has no nodes, so no trial can run."""


# ═══════════════════════════════════════════════════════════════════════
# ENUMERATIONS
# ═══════════════════════════════════════════════════════════════════════

class EventKind(IntEnum):
    """State-changing transitions of the SIS process.

    I → S  (recovery; no lasting immunity)
    S → I  (infection along one contact with an infected neighbour)
    """
    RECOVERY  = 0
    INFECTION = 1


# ═══════════════════════════════════════════════════════════════════════
# EVENTS — rebuilt from scratch on every engine step
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Recovery:
    """Infected node `node` returns to susceptible."""
    node: int
    weight: float

    @property
    def kind(self) -> EventKind:
        return EventKind.RECOVERY


@dataclass(frozen=True)
class Infection:
    """Susceptible node `node` is infected through contact with `source`.

    One Infection is generated per (infected, susceptible) edge, so a node
    with several infected neighbours appears several times in the
    candidate set (additive hazard).
    """
    node: int
    weight: float
    source: int = -1

    @property
    def kind(self) -> EventKind:
        return EventKind.INFECTION


Event = Union[Recovery, Infection]


# ═══════════════════════════════════════════════════════════════════════
# MODEL CONSTANTS
# ═══════════════════════════════════════════════════════════════════════

RECOVERY_WEIGHT = 1.0            # Per infected node, normalized
INFECTION_WEIGHT = 2.0 / 200.0   # Per (infected, susceptible) contact
SNAPSHOT_INTERVAL = 50           # Engine steps between prevalence snapshots
