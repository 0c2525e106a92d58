"""smu_base.py
Common interface for source-measure units driven by the sweep engine.

Every instrument handle, single- or multi-channel, answers the same
capability query (``channel_count``) so callers never need to inspect the
concrete driver type.
"""
from __future__ import annotations

from enum import Enum


class SourceMode(Enum):
    VOLTAGE = "voltage"
    CURRENT = "current"


class AverageMode(Enum):
    NONE = "none"
    MEAN_REPEAT = "mean_repeat"
    MEAN_MOVING = "mean_moving"
    MEDIAN_REPEAT = "median_repeat"


class SMU:
    """A single source-measure channel.

    Subclasses implement the hardware calls; anything left unimplemented
    raises :class:`NotImplementedError`, which the engine treats like any
    other driver failure.
    """

    name = "SMU"

    # ------------------------------------------------------------------
    # Capability query
    # ------------------------------------------------------------------
    @property
    def channel_count(self) -> int:
        return 1

    def channel(self, index: int) -> "SMU":
        """Single-channel instruments ignore ``index`` and return themselves."""
        return self

    # ------------------------------------------------------------------
    # Source configuration
    # ------------------------------------------------------------------
    def set_source(self, mode: SourceMode) -> None:
        raise NotImplementedError

    def set_voltage(self, voltage: float) -> None:
        raise NotImplementedError

    def set_current(self, current: float) -> None:
        raise NotImplementedError

    def set_voltage_limit(self, limit: float) -> None:
        raise NotImplementedError

    def set_current_limit(self, limit: float) -> None:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Measurement configuration
    # ------------------------------------------------------------------
    def use_auto_current_range(self) -> None:
        raise NotImplementedError

    def set_current_range(self, current: float) -> None:
        raise NotImplementedError

    def set_average(self, mode: AverageMode, count: int) -> None:
        raise NotImplementedError

    def set_nplc(self, nplc: float) -> None:
        raise NotImplementedError

    def use_four_probe(self, enabled: bool) -> None:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Output and readings
    # ------------------------------------------------------------------
    def output_on(self) -> None:
        raise NotImplementedError

    def output_off(self) -> None:
        raise NotImplementedError

    def measure_current(self) -> float:
        raise NotImplementedError

    def measure_voltage(self) -> float:
        raise NotImplementedError

    def close(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
