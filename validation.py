"""validation.py
Pre-run checks, collected into one report for the operator.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from channel_registry import ChannelRole
from errors import ConfigError, NoOutputPath, StateError, SweepAlreadyRunning
from sweep_settings import SweepConfig


@dataclass
class ValidationContext:
    config: SweepConfig
    channel_errors: Dict[ChannelRole, ConfigError] = field(default_factory=dict)
    running: bool = False


def validate(context: ValidationContext) -> List[str]:
    """Return every problem preventing a sweep from starting (empty means go)."""
    config = context.config

    state_errors: List[StateError] = []
    if context.running:
        state_errors.append(SweepAlreadyRunning())
    if not str(config.output_path).strip():
        state_errors.append(NoOutputPath())
    problems = [str(error) for error in state_errors]

    optional = set(config.optional_roles())
    for role, error in context.channel_errors.items():
        if role in optional:
            problems.append(f"{error} (required for four-probe measurement)")
        else:
            problems.append(str(error))

    problems.extend(config.validate())
    return problems
