"""keithley2600_controller.py
Control wrapper for the Keithley 2600 series SourceMeters (TSP command set).

A 2636A/2636B exposes two channels (``smua``/``smub``); a 2635A exposes only
``smua``. The instrument object itself behaves as its first channel, so a
single-channel model can be handed to the engine directly.
"""
from __future__ import annotations

import logging
import math
import random
import time
from typing import List, Sequence

from smu_base import SMU, AverageMode, SourceMode

try:
    import pyvisa  # type: ignore
except ImportError:
    pyvisa = None  # type: ignore

logger = logging.getLogger(__name__)

_FILTER_TYPE = {
    AverageMode.MEAN_REPEAT: "FILTER_REPEAT_AVG",
    AverageMode.MEAN_MOVING: "FILTER_MOVING_AVG",
    AverageMode.MEDIAN_REPEAT: "FILTER_MEDIAN",
}


class Keithley2600Channel(SMU):
    """One ``smuX`` channel of a 2600 series instrument."""

    def __init__(self, parent: "Keithley2600", prefix: str):
        self.parent = parent
        self.prefix = prefix
        self.name = f"{parent.name} {prefix}"
        self._source = SourceMode.VOLTAGE
        self._voltage = 0.0
        self._current = 0.0

    def _write(self, cmd: str) -> None:
        self.parent.write(cmd.replace("smuX", self.prefix))

    def _query(self, expr: str) -> float:
        if self.parent.demo:
            return self._demo_reading(expr)
        resp = self.parent.query(f"print({expr.replace('smuX', self.prefix)})")
        try:
            return float(resp)
        except ValueError:
            return float("nan")

    def _demo_reading(self, expr: str) -> float:
        if expr.endswith(".i()"):
            if self._source is SourceMode.CURRENT:
                return self._current
            return 1e-3 * math.tanh(self._voltage) + 1e-4 * (random.random() - 0.5)
        if self._source is SourceMode.VOLTAGE:
            return self._voltage
        return 1e-3 * (random.random() - 0.5)

    # ------------------------------------------------------------------
    def set_source(self, mode: SourceMode) -> None:
        self._source = mode
        if mode is SourceMode.VOLTAGE:
            self._write("smuX.source.func = smuX.OUTPUT_DCVOLTS")
        else:
            self._write("smuX.source.func = smuX.OUTPUT_DCAMPS")

    def set_voltage(self, voltage: float) -> None:
        self._voltage = voltage
        self._write(f"smuX.source.levelv = {voltage}")

    def set_current(self, current: float) -> None:
        self._current = current
        self._write(f"smuX.source.leveli = {current}")

    def set_voltage_limit(self, limit: float) -> None:
        self._write(f"smuX.source.limitv = {abs(limit)}")

    def set_current_limit(self, limit: float) -> None:
        self._write(f"smuX.source.limiti = {abs(limit)}")

    def use_auto_current_range(self) -> None:
        self._write("smuX.measure.autorangei = smuX.AUTORANGE_ON")

    def set_current_range(self, current: float) -> None:
        self._write("smuX.measure.autorangei = smuX.AUTORANGE_OFF")
        self._write(f"smuX.measure.rangei = {abs(current)}")

    def set_average(self, mode: AverageMode, count: int) -> None:
        if mode is AverageMode.NONE or count <= 1:
            self._write("smuX.measure.filter.enable = smuX.FILTER_OFF")
            return
        self._write(f"smuX.measure.filter.type = smuX.{_FILTER_TYPE[mode]}")
        self._write(f"smuX.measure.filter.count = {int(count)}")
        self._write("smuX.measure.filter.enable = smuX.FILTER_ON")

    def set_nplc(self, nplc: float) -> None:
        self._write(f"smuX.measure.nplc = {nplc}")

    def use_four_probe(self, enabled: bool) -> None:
        sense = "SENSE_REMOTE" if enabled else "SENSE_LOCAL"
        self._write(f"smuX.sense = smuX.{sense}")

    def output_on(self) -> None:
        self._write("smuX.source.output = smuX.OUTPUT_ON")

    def output_off(self) -> None:
        self._write("smuX.source.output = smuX.OUTPUT_OFF")

    def measure_current(self) -> float:
        """Read current on this channel (in Amperes)."""
        return self._query("smuX.measure.i()")

    def measure_voltage(self) -> float:
        """Read voltage on this channel (in Volts)."""
        return self._query("smuX.measure.v()")


class Keithley2600(Keithley2600Channel):
    """Multi-channel 2600 series SourceMeter (defaults to a two-channel 2636)."""

    CHANNELS: Sequence[str] = ("smua", "smub")
    name = "Keithley 2600"

    def __init__(self, resource_name: str = "GPIB::25", *, timeout: int = 5000, demo: bool = False):
        self.demo = demo or pyvisa is None
        self.resource_name = resource_name
        self.inst = None
        self._channels: List[Keithley2600Channel] = []
        super().__init__(self, self.CHANNELS[0])
        self._channels = [self] + [Keithley2600Channel(self, p) for p in self.CHANNELS[1:]]
        if self.demo:
            return

        rm = pyvisa.ResourceManager()
        self.inst = rm.open_resource(resource_name)
        self.inst.timeout = timeout
        self.reset()

    # ------------------------------------------------------------------
    @property
    def channel_count(self) -> int:
        return len(self._channels)

    def channel(self, index: int) -> Keithley2600Channel:
        return self._channels[index]

    # ------------------------------------------------------------------
    def write(self, cmd: str) -> None:
        if self.demo:
            return
        logger.debug("%s <- %s", self.resource_name, cmd)
        self.inst.write(cmd)

    def query(self, cmd: str) -> str:
        if self.demo:
            return "0"
        return self.inst.query(cmd)

    def reset(self) -> None:
        self.write("reset()")
        time.sleep(0.1)

    def close(self) -> None:
        if not self.demo and self.inst is not None:
            try:
                for ch in self._channels:
                    ch.output_off()
            finally:
                self.inst.close()


class Keithley2635A(Keithley2600):
    """Single-channel member of the family (``smua`` only)."""

    CHANNELS = ("smua",)
    name = "Keithley 2635A"
