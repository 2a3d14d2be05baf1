"""Seasonal SIS: exact stochastic simulation of a recurring SIS epidemic.

An event-driven, continuous-time SIS model on a contact network:
  - Periodic two-phase transmissibility schedule with closed-form
    integral and integral inverse (time-rescaled sampling)
  - Gillespie-style engine: one infection or recovery event per step
  - Single trials with periodic prevalence snapshots
  - Ensemble estimate of the asymptotic number of infected nodes
"""

__version__ = "0.1.0"
