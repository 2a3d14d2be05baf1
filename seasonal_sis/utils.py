"""Utility functions for Seasonal SIS.

Output-file handling and wall-clock timing for scripts.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Generator, TextIO


def open_output(path: str | Path) -> TextIO:
    """Open a text file for writing, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return open(path, 'w')


@contextmanager
def timer(label: str = "",
          report: Callable[[str], None] = print) -> Generator[None, None, None]:
    """Context-manager timer. Reports elapsed time on exit."""
    start = time.perf_counter()
    yield
    elapsed = time.perf_counter() - start
    if label:
        report(f"[{label}] {elapsed:.3f}s")
    else:
        report(f"Elapsed: {elapsed:.3f}s")
