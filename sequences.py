"""sequences.py
Setpoint sequence generation for sweep axes.

All functions are pure and return new lists.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Sequence

import numpy as np

from errors import InvalidSweepParameter


class SweepMode(Enum):
    """Sweep direction and pattern options."""
    LINEAR = "linear"                # min -> max
    REVERSE = "reverse"              # max -> min
    BIDIRECTIONAL = "bidirectional"  # min -> max -> min
    INTERLEAVED = "interleaved"      # v, -v for every v (around zero)


def linear(start: float, stop: float, steps: int) -> List[float]:
    """Return ``steps`` evenly spaced values from ``start`` to ``stop`` inclusive.

    A single step yields ``[start]``.
    """
    if int(steps) != steps or steps < 1:
        raise InvalidSweepParameter(f"Number of steps must be a positive integer, got {steps!r}")
    return [float(v) for v in np.linspace(start, stop, int(steps))]


def reverse(values: Sequence[float]) -> List[float]:
    return list(reversed(values))


def symmetric(values: Sequence[float], *, share_turning_point: bool = False) -> List[float]:
    """Outbound-then-return traversal, e.g. ``[0, 5, 10, 10, 5, 0]``.

    With ``share_turning_point`` the last value is not repeated:
    ``[0, 5, 10, 5, 0]``.
    """
    back = reverse(values)
    if share_turning_point:
        back = back[1:]
    return list(values) + back


def interleaved(values: Sequence[float]) -> List[float]:
    """Alternate each value with its negation, e.g. ``[0, 1, -1, 2, -2]``.

    Zero has no distinct counterpart and is emitted once.
    """
    out: List[float] = []
    for v in values:
        out.append(v)
        if v != 0:
            out.append(-v)
    return out


def build(start: float, stop: float, steps: int, mode: SweepMode = SweepMode.LINEAR) -> List[float]:
    """Build the sequence for one sweep axis."""
    values = linear(start, stop, steps)
    if mode is SweepMode.LINEAR:
        return values
    if mode is SweepMode.REVERSE:
        return reverse(values)
    if mode is SweepMode.BIDIRECTIONAL:
        return symmetric(values)
    if mode is SweepMode.INTERLEAVED:
        return interleaved(values)
    raise InvalidSweepParameter(f"Unknown sweep mode {mode!r}")
