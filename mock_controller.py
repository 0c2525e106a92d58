"""mock_controller.py
Standalone mock multi-channel SMU to emulate a FET when hardware is absent.
"""
from __future__ import annotations

import random
from typing import List

from smu_base import SMU, AverageMode, SourceMode


class MockChannel(SMU):
    """One channel of :class:`MockMultiChannelSMU`."""

    def __init__(self, parent: "MockMultiChannelSMU", index: int):
        self.parent = parent
        self.index = index
        self.name = f"Mock SMU ch{index}"
        self.source = SourceMode.VOLTAGE
        self.voltage = 0.0
        self.current = 0.0
        self.output = False
        self.current_limit = 0.1
        self.voltage_limit = 20.0
        self.nplc = 1.0
        self.average = (AverageMode.NONE, 1)
        self.four_wire = False

    # mimic hardware API
    def set_source(self, mode: SourceMode) -> None:
        self.source = mode

    def set_voltage(self, voltage: float) -> None:
        self.voltage = voltage

    def set_current(self, current: float) -> None:
        self.current = current

    def set_voltage_limit(self, limit: float) -> None:
        self.voltage_limit = abs(limit)

    def set_current_limit(self, limit: float) -> None:
        self.current_limit = abs(limit)

    def use_auto_current_range(self) -> None:
        pass

    def set_current_range(self, current: float) -> None:
        pass

    def set_average(self, mode: AverageMode, count: int) -> None:
        self.average = (mode, count)

    def set_nplc(self, nplc: float) -> None:
        self.nplc = nplc

    def use_four_probe(self, enabled: bool) -> None:
        self.four_wire = enabled

    def output_on(self) -> None:
        self.output = True

    def output_off(self) -> None:
        self.output = False

    def measure_current(self) -> float:
        if not self.output:
            return 0.0
        if self.source is SourceMode.CURRENT:
            return self.current
        current = self.parent.model_current(self.index)
        # clamp at compliance like a real SMU
        return max(-self.current_limit, min(self.current_limit, current))

    def measure_voltage(self) -> float:
        if self.source is SourceMode.VOLTAGE:
            return self.voltage
        return self.parent.model_voltage(self.index)


class MockMultiChannelSMU(MockChannel):
    """Simple four-channel model of a p-type FET for demo purposes.

    Channel 0 drives source-drain, channel 1 the gate, channels 2 and 3 sit
    at one third and two thirds of the way along the channel.
    """

    def __init__(self, channels: int = 4, noise: float = 1e-9):
        self.noise = noise
        self._channels: List[MockChannel] = []
        super().__init__(self, 0)
        self._channels = [self] + [MockChannel(self, i) for i in range(1, channels)]

    @property
    def channel_count(self) -> int:
        return len(self._channels)

    def channel(self, index: int) -> MockChannel:
        return self._channels[index]

    # ------------------------------------------------------------------
    def _noise(self) -> float:
        return self.noise * (random.random() - 0.5)

    def model_current(self, index: int) -> float:
        if index == 1:
            # gate leakage
            return 1e-12 * self._channels[1].voltage + self._noise()
        if index != 0:
            return 0.0
        vsd = self._channels[0].voltage
        vg = self._channels[1].voltage if len(self._channels) > 1 else 0.0
        # produce arbitrary I-V characteristic resembling a p-type MOSFET
        k = 1e-6  # A/V^2
        vth = -2.0
        overdrive = min(0.0, vg - vth)
        if overdrive == 0.0:
            return self._noise()
        if vsd >= overdrive:  # linear region
            current = -k * (2 * overdrive * vsd - vsd ** 2)
        else:  # saturation
            current = -k * overdrive ** 2
        return current + self._noise()

    def model_voltage(self, index: int) -> float:
        vsd = self._channels[0].voltage
        fraction = {2: 1.0 / 3.0, 3: 2.0 / 3.0}.get(index, 0.0)
        return vsd * fraction + self._noise()

    def close(self) -> None:
        for ch in self._channels:
            ch.output_off()
