"""cli.py
Headless entry point: run a transfer or output sweep from the command line.
"""
from __future__ import annotations

import argparse
import logging
import signal
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from channel_registry import MAX_INSTRUMENTS, ChannelRegistry, ChannelRole, ChannelSelection
from config_store import ConfigStore, MemoryConfigStore, QSettingsConfigStore
from errors import DriverError, IOFailure, SweepRejected
from keithley2401_controller import Keithley2401
from keithley2600_controller import Keithley2600, Keithley2635A
from mock_controller import MockMultiChannelSMU
from sequences import SweepMode
from smu_base import SMU
from sweep_engine import SweepCoordinator
from sweep_settings import (OutputConfig, SweepConfig, SweepProfile, TransferConfig,
                            estimate_duration, format_duration)
from version import get_version

logger = logging.getLogger(__name__)

DRIVERS = {
    "2401": Keithley2401,
    "2600": Keithley2600,
    "2635a": Keithley2635A,
}


def _axis_arg(raw: str) -> tuple:
    parts = raw.replace(",", " ").split()
    if len(parts) != 3:
        raise argparse.ArgumentTypeError("expected MIN,MAX,STEPS")
    try:
        return float(parts[0]), float(parts[1]), int(parts[2])
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _role_arg(raw: str) -> tuple:
    try:
        name, target = raw.split("=", 1)
        inst, _, chan = target.partition(":")
        return ChannelRole(name.strip().lower()), ChannelSelection(int(inst) - 1, int(chan or 0))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"expected ROLE=INSTRUMENT[:CHANNEL] with ROLE in {[r.value for r in ChannelRole]}"
        ) from exc


def _instrument_arg(raw: str) -> tuple:
    model, sep, resource = raw.partition(":")
    if not sep or model.lower() not in DRIVERS:
        raise argparse.ArgumentTypeError(f"expected MODEL:RESOURCE with MODEL in {sorted(DRIVERS)}")
    return model.lower(), resource


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fet-sweep", description="FET transfer/output sweeps.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_version()}")
    parser.add_argument("kind", choices=("transfer", "output"))
    parser.add_argument("--sd", type=_axis_arg, help="Source-drain MIN,MAX,STEPS [V].")
    parser.add_argument("--gate", type=_axis_arg, help="Gate MIN,MAX,STEPS [V].")
    parser.add_argument("--limit", type=float, help="Current limit [A].")
    parser.add_argument("--count", type=int, help="Averaging count.")
    parser.add_argument("--delay", type=float, help="Delay after each step [s].")
    parser.add_argument("--nplc", type=float, help="Integration time [NPLC].")
    parser.add_argument("--mode", choices=[m.value for m in SweepMode], help="Inner axis pattern.")
    parser.add_argument("--profile", choices=sorted(SweepProfile.get_preset_profiles()),
                        help="Apply a preset averaging/NPLC/delay profile.")
    parser.add_argument("--four-probe", action="store_true", help="Record probe voltages (transfer only).")
    parser.add_argument("-o", "--output", help="Output CSV file (default: timestamped name).")
    parser.add_argument("--instrument", action="append", type=_instrument_arg, default=[],
                        metavar="MODEL:RESOURCE",
                        help="Connect an instrument, in slot order (up to four).")
    parser.add_argument("--role", action="append", type=_role_arg, default=[],
                        metavar="ROLE=INST[:CHAN]", help="Assign a channel role (instruments numbered from 1).")
    parser.add_argument("--settings", help="INI file for persisted channel roles.")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def build_config(args: argparse.Namespace) -> SweepConfig:
    config: SweepConfig = TransferConfig(use_four_probe=args.four_probe) if args.kind == "transfer" else OutputConfig()
    if args.profile:
        config = SweepProfile.get_preset_profiles()[args.profile].apply(config)
    if args.sd:
        config.sd_min, config.sd_max, config.sd_steps = args.sd
    if args.gate:
        config.gate_min, config.gate_max, config.gate_steps = args.gate
    for attr, value in (("current_limit", args.limit), ("averaging_count", args.count),
                        ("delay", args.delay), ("integration_time", args.nplc)):
        if value is not None:
            setattr(config, attr, value)
    if args.mode:
        config.inner_mode = SweepMode(args.mode)
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    config.output_path = args.output or str(Path.cwd() / f"fet_{args.kind}_{ts}.csv")
    return config


def connect_instruments(specs: Sequence[tuple]) -> List[Optional[SMU]]:
    """Open the requested instruments; demo mode uses one mock four-channel SMU."""
    slots: List[Optional[SMU]] = [None] * MAX_INSTRUMENTS
    if not specs:
        slots[0] = MockMultiChannelSMU()
        return slots
    for i, (model, resource) in enumerate(specs[:MAX_INSTRUMENTS]):
        logger.info("Connecting %s at %s", model, resource)
        slots[i] = DRIVERS[model](resource_name=resource)
    return slots


def main(argv: Optional[Sequence[str]] = None, store: Optional[ConfigStore] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.four_probe and args.kind != "transfer":
        parser.error("--four-probe is only available for transfer sweeps")
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if store is None:
        store = QSettingsConfigStore(path=args.settings) if args.settings else MemoryConfigStore()
    instruments = connect_instruments(args.instrument)
    registry = ChannelRegistry(instruments, store)
    if not args.instrument:
        # demo: every role on one channel of the mock instrument
        for idx, role in enumerate(ChannelRole):
            registry.select(role, 0, idx)
    for role, sel in args.role:
        registry.select(role, sel.instrument, sel.channel)
    for role, text in registry.describe().items():
        logger.info("%s channel: %s", role.label, text)

    config = build_config(args)
    coordinator = SweepCoordinator(registry)
    if not config.validate():
        print(f"{config.kind.value.capitalize()} sweep, {config.total_points()} points, "
              f"estimated time {format_duration(estimate_duration(config))}")

    previous = signal.signal(signal.SIGINT, lambda *_: coordinator.stop())
    try:
        outcome = coordinator.run(config)
    except SweepRejected as exc:
        print(str(exc), file=sys.stderr)
        return 2
    except (DriverError, IOFailure) as exc:
        print(f"Measurement error: {exc}", file=sys.stderr)
        return 1
    finally:
        signal.signal(signal.SIGINT, previous)
        for inst in instruments:
            if inst is not None:
                inst.close()

    table = coordinator.table(config.kind)
    print(f"Sweep {outcome.value}: {len(table)} rows written to {config.output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
