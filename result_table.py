"""result_table.py
Append-only, unit-tagged table of sweep results.
"""
from __future__ import annotations

import csv
import logging
import os
import threading
from pathlib import Path
from typing import Callable, List, Sequence, Tuple, Union

import numpy as np
from pint import UnitRegistry  # type: ignore

from errors import IOFailure

logger = logging.getLogger(__name__)

ureg = UnitRegistry()

Row = Tuple[float, ...]
RowListener = Callable[[Row], None]


class ResultTable:
    """Ordered rows with named, unit-tagged columns.

    Safe to read from one thread while a sweep appends from another.
    """

    def __init__(self, names: Sequence[str], units: Sequence[str]):
        if len(names) != len(units):
            raise ValueError("Every column needs a unit")
        for unit in units:
            ureg.Unit(unit)  # raises for unknown units
        self.names: Tuple[str, ...] = tuple(names)
        self.units: Tuple[str, ...] = tuple(units)
        self._rows: List[Row] = []
        self._lock = threading.Lock()
        self._listeners: List[RowListener] = []

    # ------------------------------------------------------------------
    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)

    @property
    def rows(self) -> List[Row]:
        """Snapshot of the rows collected so far."""
        with self._lock:
            return list(self._rows)

    def column(self, name: str) -> List[float]:
        idx = self.names.index(name)
        with self._lock:
            return [row[idx] for row in self._rows]

    def quantity(self, name: str):
        """Column as a :mod:`pint` quantity array."""
        unit = self.units[self.names.index(name)]
        return ureg.Quantity(np.asarray(self.column(name), dtype=float), unit)

    # ------------------------------------------------------------------
    def add_listener(self, listener: RowListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: RowListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def append(self, *values: float) -> Row:
        if len(values) != len(self.names):
            raise ValueError(f"Expected {len(self.names)} values, got {len(values)}")
        row = tuple(float(v) for v in values)
        with self._lock:
            self._rows.append(row)
        for listener in list(self._listeners):
            listener(row)
        return row

    def clear(self) -> None:
        with self._lock:
            self._rows.clear()

    # ------------------------------------------------------------------
    def serialize(self, path: Union[str, Path], delimiter: str = ",") -> Path:
        """Write names, units, then one line per row to ``path``."""
        path = Path(path).expanduser()
        rows = self.rows
        try:
            fp = path.open("w", newline="")
        except OSError as exc:
            raise IOFailure(path, f"Could not open {path} for writing: {exc}") from exc
        try:
            with fp:
                writer = csv.writer(fp, delimiter=delimiter, lineterminator=os.linesep)
                writer.writerow(self.names)
                writer.writerow(self.units)
                writer.writerows(rows)
        except OSError as exc:
            raise IOFailure(path, f"Could not write {path}: {exc}") from exc
        logger.info("Wrote %d rows to %s", len(rows), path)
        return path


def transfer_table() -> ResultTable:
    return ResultTable(
        ("SD Voltage", "Gate Voltage", "Drain Current", "Leakage", "4PP 1", "4PP 2"),
        ("V", "V", "A", "A", "V", "V"),
    )


def output_table() -> ResultTable:
    return ResultTable(
        ("SD Voltage", "Gate Voltage", "Drain Current", "Leakage"),
        ("V", "V", "A", "A"),
    )
