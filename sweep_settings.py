"""sweep_settings.py
Sweep configurations and presets for FET transfer and output measurements.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import List, Tuple, Union

from channel_registry import ChannelRole
from sequences import SweepMode, build
from smu_base import AverageMode

# Default panel values
MIN_SD_VOLTAGE = -5.0
MAX_SD_VOLTAGE = -60.0
STEPS_SD_VOLTAGE = 2
MIN_G_VOLTAGE = 0.0
MAX_G_VOLTAGE = -60.0
STEPS_G_VOLTAGE = 61

MIN_SD_VOLTAGE_OUTPUT = 0.0
MAX_SD_VOLTAGE_OUTPUT = -60.0
STEPS_SD_VOLTAGE_OUTPUT = 61
MIN_GATE_VOLTAGE_OUTPUT = 0.0
MAX_GATE_VOLTAGE_OUTPUT = -60.0
STEPS_GATE_VOLTAGE_OUTPUT = 7

CURRENT_LIMIT = 1e-3
AVERAGE_COUNT = 25
DELAY_TIME = 0.5


class SweepKind(Enum):
    TRANSFER = "transfer"
    OUTPUT = "output"


@dataclass
class SweepConfig:
    """Parameters shared by both sweep kinds."""

    sd_min: float = 0.0
    sd_max: float = 0.0
    sd_steps: int = 1
    gate_min: float = 0.0
    gate_max: float = 0.0
    gate_steps: int = 1

    current_limit: float = CURRENT_LIMIT  # compliance (A)
    averaging_count: int = AVERAGE_COUNT
    average_mode: AverageMode = AverageMode.MEAN_REPEAT
    integration_time: float = 1.0         # NPLC
    delay: float = DELAY_TIME             # wait after each inner setpoint (s)
    output_path: Union[str, Path] = ""
    inner_mode: SweepMode = SweepMode.LINEAR

    kind = None  # set by subclasses

    # ------------------------------------------------------------------
    def sd_values(self) -> List[float]:
        return build(self.sd_min, self.sd_max, self.sd_steps)

    def gate_values(self) -> List[float]:
        return build(self.gate_min, self.gate_max, self.gate_steps)

    def outer_values(self) -> List[float]:
        raise NotImplementedError

    def inner_values(self) -> List[float]:
        raise NotImplementedError

    def required_roles(self) -> Tuple[ChannelRole, ...]:
        return (ChannelRole.SOURCE_DRAIN, ChannelRole.GATE)

    def optional_roles(self) -> Tuple[ChannelRole, ...]:
        return ()

    def total_points(self) -> int:
        return len(self.outer_values()) * len(self.inner_values())

    # ------------------------------------------------------------------
    def validate(self) -> list[str]:
        """Validate settings and return list of problems."""
        problems = []

        for label, steps in (("source-drain", self.sd_steps), ("gate", self.gate_steps)):
            if int(steps) != steps or steps < 1:
                problems.append(f"Number of {label} steps must be at least 1")

        if self.delay < 0:
            problems.append("Delay time cannot be negative")

        if self.current_limit <= 0:
            problems.append("Current limit must be positive")

        if self.averaging_count < 1:
            problems.append("Averaging count must be at least 1")

        if self.integration_time <= 0:
            problems.append("Integration time must be positive")

        return problems


@dataclass
class TransferConfig(SweepConfig):
    """Gate sweep at one or more fixed source-drain voltages."""

    sd_min: float = MIN_SD_VOLTAGE
    sd_max: float = MAX_SD_VOLTAGE
    sd_steps: int = STEPS_SD_VOLTAGE
    gate_min: float = MIN_G_VOLTAGE
    gate_max: float = MAX_G_VOLTAGE
    gate_steps: int = STEPS_G_VOLTAGE
    use_four_probe: bool = False

    kind = SweepKind.TRANSFER

    def outer_values(self) -> List[float]:
        return self.sd_values()

    def inner_values(self) -> List[float]:
        return build(self.gate_min, self.gate_max, self.gate_steps, self.inner_mode)

    def optional_roles(self) -> Tuple[ChannelRole, ...]:
        return (ChannelRole.PROBE_A, ChannelRole.PROBE_B)

    def required_roles(self) -> Tuple[ChannelRole, ...]:
        roles = super().required_roles()
        if self.use_four_probe:
            roles += self.optional_roles()
        return roles


@dataclass
class OutputConfig(SweepConfig):
    """Source-drain sweep at one or more fixed gate voltages.

    ``inner_mode=SweepMode.BIDIRECTIONAL`` sweeps source-drain out and back
    within each gate step to expose hysteresis.
    """

    sd_min: float = MIN_SD_VOLTAGE_OUTPUT
    sd_max: float = MAX_SD_VOLTAGE_OUTPUT
    sd_steps: int = STEPS_SD_VOLTAGE_OUTPUT
    gate_min: float = MIN_GATE_VOLTAGE_OUTPUT
    gate_max: float = MAX_GATE_VOLTAGE_OUTPUT
    gate_steps: int = STEPS_GATE_VOLTAGE_OUTPUT

    kind = SweepKind.OUTPUT

    def outer_values(self) -> List[float]:
        return self.gate_values()

    def inner_values(self) -> List[float]:
        return build(self.sd_min, self.sd_max, self.sd_steps, self.inner_mode)


@dataclass
class SweepProfile:
    """Predefined acquisition profiles trading speed for noise."""

    name: str
    description: str
    averaging_count: int
    integration_time: float
    delay: float

    def apply(self, config: SweepConfig) -> SweepConfig:
        """Return a copy of ``config`` with this profile's timing applied."""
        return replace(
            config,
            averaging_count=self.averaging_count,
            integration_time=self.integration_time,
            delay=self.delay,
        )

    @classmethod
    def get_preset_profiles(cls) -> dict[str, 'SweepProfile']:
        """Get dictionary of preset sweep profiles."""
        return {
            "fast": cls(
                name="Fast Measurement",
                description="Quick measurements with minimal settling time",
                averaging_count=1,
                integration_time=0.1,
                delay=0.05,
            ),
            "precision": cls(
                name="Precision Measurement",
                description="High accuracy measurements with extended settling",
                averaging_count=10,
                integration_time=1.0,
                delay=0.5,
            ),
            "low_noise": cls(
                name="Low Noise",
                description="Maximum noise reduction for sensitive measurements",
                averaging_count=50,
                integration_time=10.0,
                delay=1.0,
            ),
            "default": cls(
                name="Default",
                description="Balanced speed and accuracy",
                averaging_count=AVERAGE_COUNT,
                integration_time=1.0,
                delay=DELAY_TIME,
            ),
        }


def estimate_duration(config: SweepConfig, line_frequency: float = 50.0) -> float:
    """Rough total sweep time in seconds, dominated by delay and integration."""
    readings = 4 if getattr(config, "use_four_probe", False) else 2
    point_time = config.delay + readings * config.averaging_count * config.integration_time / line_frequency
    return config.total_points() * point_time


def format_duration(seconds: float) -> str:
    """Format time in human-readable format."""
    if seconds < 60:
        return f"{seconds:.1f} seconds"
    elif seconds < 3600:
        return f"{seconds/60:.1f} minutes"
    else:
        return f"{seconds/3600:.1f} hours"
