from __future__ import annotations

from typing import List

import pytest

from channel_registry import ChannelRegistry, ChannelRole
from config_store import MemoryConfigStore
from smu_base import SMU


class FakeSMU(SMU):
    """Records every call; ``log`` is shared across a fake instrument's channels."""

    def __init__(self, name: str = "fake", log: List[tuple] = None, fail_on: str = None):
        self.name = name
        self.log = log if log is not None else []
        self.fail_on = fail_on
        self.voltage = 0.0
        self.current = 0.0
        self.output = False

    def _record(self, call, *args):
        self.log.append((self.name, call) + args)
        if call == self.fail_on:
            raise RuntimeError(f"{self.name}: {call} failed")

    def set_source(self, mode):
        self._record("set_source", mode)

    def set_voltage(self, voltage):
        self._record("set_voltage", voltage)
        self.voltage = voltage

    def set_current(self, current):
        self._record("set_current", current)
        self.current = current

    def set_voltage_limit(self, limit):
        self._record("set_voltage_limit", limit)

    def set_current_limit(self, limit):
        self._record("set_current_limit", limit)

    def use_auto_current_range(self):
        self._record("use_auto_current_range")

    def set_current_range(self, current):
        self._record("set_current_range", current)

    def set_average(self, mode, count):
        self._record("set_average", mode, count)

    def set_nplc(self, nplc):
        self._record("set_nplc", nplc)

    def use_four_probe(self, enabled):
        self._record("use_four_probe", enabled)

    def output_on(self):
        self._record("output_on")
        self.output = True

    def output_off(self):
        self._record("output_off")
        self.output = False

    def measure_current(self):
        self._record("measure_current")
        return self.voltage * 1e-6

    def measure_voltage(self):
        self._record("measure_voltage")
        return 0.5


class FakeMultiChannel(FakeSMU):
    def __init__(self, channels: int = 4, name: str = "multi"):
        super().__init__(name)
        self.channels = [FakeSMU(f"{name}[{i}]", self.log) for i in range(channels)]

    @property
    def channel_count(self):
        return len(self.channels)

    def channel(self, index):
        return self.channels[index]


@pytest.fixture
def store():
    return MemoryConfigStore()


@pytest.fixture
def instrument():
    return FakeMultiChannel()


@pytest.fixture
def registry(instrument, store):
    reg = ChannelRegistry([instrument, None, None, None], store)
    for idx, role in enumerate(ChannelRole):
        reg.select(role, 0, idx)
    return reg
