"""Prevalence snapshot sinks.

A trial emits one PrevalenceRecord every `snapshot_interval` engine
steps. Sinks decide what to do with it:

    sink = TabularSink(stream)     # tab-separated text, one line per record
    sink = MemorySink()            # keep records in memory for analysis

Text format (header written once per sink):

    model   time    i
    Cont    0.000   1.00000
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol, TextIO

import numpy as np


HEADER = "model\ttime\ti\n"


@dataclass(frozen=True)
class PrevalenceRecord:
    """Infected fraction at one simulation time, tagged with a model label."""
    label: str
    time: float
    fraction: float


class SnapshotSink(Protocol):
    def write(self, record: PrevalenceRecord) -> None:
        ...


class TabularSink:
    """Writes records as ``label\\ttime\\tfraction`` lines to a text stream.

    The stream stays owned by the caller; the sink never closes it.
    """

    def __init__(self, stream: TextIO, header: bool = True):
        self.stream = stream
        self.n_written = 0
        if header:
            stream.write(HEADER)

    def write(self, record: PrevalenceRecord) -> None:
        self.stream.write(
            f"{record.label}\t{record.time:1.3f}\t{record.fraction:1.5f}\n"
        )
        self.n_written += 1


class MemorySink:
    """Keeps every record in order of arrival."""

    def __init__(self):
        self.records: List[PrevalenceRecord] = []

    def __len__(self) -> int:
        return len(self.records)

    def write(self, record: PrevalenceRecord) -> None:
        self.records.append(record)

    def times(self) -> np.ndarray:
        return np.array([r.time for r in self.records], dtype=np.float64)

    def fractions(self) -> np.ndarray:
        return np.array([r.fraction for r in self.records], dtype=np.float64)

    def clear(self) -> None:
        self.records.clear()
