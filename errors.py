"""errors.py
Exception hierarchy shared by the sweep engine and its collaborators.
"""
from __future__ import annotations

from typing import List, Optional


class SweepError(Exception):
    """Base class for every error raised by the sweep engine."""


# ----------------------------------------------------------------------
# Configuration problems (recoverable, collected before a run)
# ----------------------------------------------------------------------
class ConfigError(SweepError):
    """A logical channel role could not be resolved to a live channel."""

    def __init__(self, role, message: str):
        super().__init__(message)
        self.role = role


class NoInstrumentSelected(ConfigError):
    pass


class InstrumentNotConnected(ConfigError):
    pass


class InvalidChannel(ConfigError):
    pass


class ChannelInUse(ConfigError):
    """The selected channel already belongs to another role."""


class InvalidSweepParameter(SweepError, ValueError):
    """Raised for impossible sweep parameters such as a zero step count."""


# ----------------------------------------------------------------------
# Run-state problems
# ----------------------------------------------------------------------
class StateError(SweepError):
    pass


class SweepAlreadyRunning(StateError):
    def __init__(self, message: str = "Another experiment is already running. "
                                      "Please wait until it has finished."):
        super().__init__(message)


class NoOutputPath(StateError):
    def __init__(self, message: str = "No output file selected. Please select a file to output to."):
        super().__init__(message)


class SweepRejected(SweepError):
    """Pre-run validation failed; ``problems`` lists every issue found."""

    def __init__(self, problems: List[str]):
        self.problems = list(problems)
        super().__init__("Cannot start sweep:\n" + "\n".join(f"- {p}" for p in self.problems))


# ----------------------------------------------------------------------
# Run-time failures
# ----------------------------------------------------------------------
class DriverError(SweepError):
    """An instrument call failed while configuring or sweeping."""


class IOFailure(SweepError, OSError):
    """The result table could not be written to ``path``."""

    def __init__(self, path, message: Optional[str] = None):
        self.path = path
        super().__init__(message or f"Could not write results to {path}")
