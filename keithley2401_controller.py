"""keithley2401_controller.py
Instrument driver for Keithley 2401 SourceMeter.
Uses PyVISA for communication.
"""
from __future__ import annotations

import logging
import math
import random
import time

from smu_base import SMU, AverageMode, SourceMode

try:
    import pyvisa  # type: ignore
except ImportError:  # graceful degradation if PyVISA is unavailable
    pyvisa = None  # type: ignore

logger = logging.getLogger(__name__)

_AVERAGE_TCON = {
    AverageMode.MEAN_REPEAT: "REP",
    AverageMode.MEAN_MOVING: "MOV",
    AverageMode.MEDIAN_REPEAT: "REP",
}


class Keithley2401(SMU):
    """Minimal SCPI wrapper for the Keithley 2401 (single channel).

    Parameters
    ----------
    resource_name : str
        VISA resource string, e.g. ``"GPIB::24"`` or ``"USB0::0x05E6::0x2401::123456::INSTR"``.
    timeout : int, optional
        Communication timeout in milliseconds.
    demo : bool, default False
        If *True*, no actual I/O is performed – useful for running sweeps without hardware.
    """

    name = "Keithley 2401"

    def __init__(self, resource_name: str = "GPIB::24", *, timeout: int = 5000, demo: bool = False):
        self.demo = demo or pyvisa is None
        self.resource_name = resource_name
        self._source = SourceMode.VOLTAGE
        self._voltage = 0.0  # cached last set voltage
        self._current = 0.0

        if self.demo:
            # Skip hardware initialisation
            self.inst = None
            return

        # Real instrument path
        rm = pyvisa.ResourceManager()
        self.inst = rm.open_resource(resource_name)
        self.inst.timeout = timeout
        self.reset()
        self.write(":FORM:ELEM VOLT,CURR")

    # ---------------------------------------------------------------------
    # Basic SCPI helpers
    # ---------------------------------------------------------------------
    def write(self, cmd: str) -> None:
        if self.demo:
            return  # no-op in demo mode
        logger.debug("%s <- %s", self.resource_name, cmd)
        self.inst.write(cmd)

    def query(self, cmd: str) -> str:
        if self.demo:
            return "0,0"
        return self.inst.query(cmd)

    # ------------------------------------------------------------------
    def reset(self) -> None:
        self.write("*RST")
        time.sleep(0.1)

    def set_source(self, mode: SourceMode) -> None:
        self._source = mode
        if mode is SourceMode.VOLTAGE:
            self.write(":SOUR:FUNC VOLT")
            self.write(":SENS:FUNC 'CURR'")
        else:
            self.write(":SOUR:FUNC CURR")
            self.write(":SENS:FUNC 'VOLT'")

    def output_on(self) -> None:
        self.write(":OUTP ON")

    def output_off(self) -> None:
        self.write(":OUTP OFF")

    def set_voltage_limit(self, limit: float) -> None:
        """Set voltage compliance limit (in Volts)."""
        self.write(f":SENS:VOLT:PROT {abs(limit)}")

    def set_current_limit(self, limit: float) -> None:
        """Set current compliance limit (in Amperes)."""
        self.write(f":SENS:CURR:PROT {abs(limit)}")

    def use_auto_current_range(self) -> None:
        self.write(":SENS:CURR:RANG:AUTO ON")

    def set_current_range(self, current: float) -> None:
        self.write(":SENS:CURR:RANG:AUTO OFF")
        self.write(f":SENS:CURR:RANG {abs(current)}")

    def set_average(self, mode: AverageMode, count: int) -> None:
        if mode is AverageMode.NONE or count <= 1:
            self.write(":SENS:AVER OFF")
            return
        self.write(f":SENS:AVER:TCON {_AVERAGE_TCON[mode]}")
        self.write(f":SENS:AVER:COUN {int(count)}")
        self.write(":SENS:AVER ON")

    def set_nplc(self, nplc: float) -> None:
        """Set integration time in power line cycles."""
        self.write(f":SENS:CURR:NPLC {nplc}")
        self.write(f":SENS:VOLT:NPLC {nplc}")

    def use_four_probe(self, enabled: bool) -> None:
        self.write(f":SYST:RSEN {'ON' if enabled else 'OFF'}")

    # ------------------------------------------------------------------
    # Setpoints and readings
    # ------------------------------------------------------------------
    def set_voltage(self, voltage: float) -> None:
        """Source the specified voltage (in Volts)."""
        self._voltage = voltage
        self.write(f":SOUR:VOLT {voltage}")

    def set_current(self, current: float) -> None:
        """Source the specified current (in Amperes)."""
        self._current = current
        self.write(f":SOUR:CURR {current}")

    def _read(self) -> tuple[float, float]:
        if self.demo:
            # simple I-V characteristic approximation for demo
            if self._source is SourceMode.VOLTAGE:
                current = 1e-3 * math.tanh(self._voltage) + 1e-4 * (random.random() - 0.5)
                return self._voltage, current
            return 1e-3 * (random.random() - 0.5), self._current

        resp = self.query(":READ?")
        try:
            voltage, current = (float(v) for v in resp.strip().split(",")[:2])
        except ValueError:
            voltage, current = float("nan"), float("nan")
        return voltage, current

    def measure_current(self) -> float:
        """Trigger and fetch current measurement (in Amperes)."""
        return self._read()[1]

    def measure_voltage(self) -> float:
        """Trigger and fetch voltage measurement (in Volts)."""
        return self._read()[0]

    # ------------------------------------------------------------------
    def close(self) -> None:
        if not self.demo and self.inst is not None:
            try:
                self.output_off()
            finally:
                self.inst.close()
