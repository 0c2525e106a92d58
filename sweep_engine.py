"""sweep_engine.py
Acquisition state machine performing nested transfer/output sweeps.

A :class:`SweepCoordinator` validates a request, programs the channels,
walks the outer/inner setpoint grid and always leaves the hardware with
outputs disabled, whether the sweep completes, is stopped or fails.
"""
from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from channel_registry import ChannelRegistry, ChannelRole
from errors import DriverError, IOFailure, SweepAlreadyRunning, SweepRejected
from result_table import ResultTable, output_table, transfer_table
from smu_base import SMU, SourceMode
from sweep_settings import SweepConfig, SweepKind
from validation import ValidationContext, validate

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

# Probe channels act as voltmeters: zero current on the tightest range.
PROBE_CURRENT_RANGE = 1e-9
MIN_PROBE_VOLTAGE_LIMIT = 1.0


class SweepState(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    CONFIGURING = "configuring"
    SWEEPING = "sweeping"
    FINALIZING = "finalizing"


class SweepOutcome(Enum):
    COMPLETED = "completed"
    STOPPED = "stopped"


class RunState:
    """Sweep-in-progress flag plus the stop request, shared with the control side."""

    def __init__(self):
        self._lock = threading.Lock()
        self._running = False
        self._stop = threading.Event()

    @property
    def running(self) -> bool:
        with self._lock:
            return self._running

    def try_acquire(self) -> bool:
        """Mark a sweep as started; ``False`` if one is already running."""
        with self._lock:
            if self._running:
                return False
            self._running = True
            return True

    def release(self) -> None:
        """Mark the sweep as finished; its stop request is consumed."""
        with self._lock:
            self._running = False
            self._stop.clear()

    def clear_stop(self) -> None:
        """Forget a stop requested while no sweep was running."""
        with self._lock:
            if not self._running:
                self._stop.clear()

    def request_stop(self) -> None:
        self._stop.set()

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()


class SweepCoordinator:
    """Runs one sweep at a time against channels resolved from a registry.

    Parameters
    ----------
    registry : ChannelRegistry
        Resolves channel roles; resolution is repeated before every run.
    run_state : RunState, optional
        Shared run token. Pass the same instance to every coordinator that
        must be mutually exclusive with this one.
    tables : dict, optional
        Result table per :class:`SweepKind`; created on demand otherwise.
    sleep : callable
        Used for the inter-step delay.
    """

    def __init__(
        self,
        registry: ChannelRegistry,
        run_state: Optional[RunState] = None,
        tables: Optional[Dict[SweepKind, ResultTable]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.registry = registry
        self.run_state = run_state or RunState()
        self.tables = tables or {
            SweepKind.TRANSFER: transfer_table(),
            SweepKind.OUTPUT: output_table(),
        }
        self._sleep = sleep
        self._state = SweepState.IDLE

    # ------------------------------------------------------------------
    @property
    def state(self) -> SweepState:
        return self._state

    def _set_state(self, state: SweepState) -> None:
        logger.debug("Sweep state %s -> %s", self._state.value, state.value)
        self._state = state

    def table(self, kind: SweepKind) -> ResultTable:
        return self.tables[kind]

    def clear(self, kind: SweepKind) -> None:
        self.tables[kind].clear()

    def stop(self) -> None:
        """Ask the sweep to stop after its current point.

        A stop issued before the sweep acquires the run state is kept and
        ends the sweep before any output is enabled.
        """
        if self.run_state.running:
            logger.info("Stop requested")
        self.run_state.request_stop()

    # ------------------------------------------------------------------
    def check(self, config: SweepConfig) -> Tuple[Dict[ChannelRole, SMU], List[str]]:
        """Resolve channels for ``config`` and collect every problem."""
        channels, errors = self.registry.resolve_all(config.required_roles())
        problems = validate(ValidationContext(config, errors, self.run_state.running))
        return channels, problems

    def run(self, config: SweepConfig, progress: Optional[ProgressCallback] = None) -> SweepOutcome:
        """Execute one sweep synchronously.

        Raises :class:`SweepRejected` when validation fails (nothing touched),
        :class:`DriverError` when an instrument call fails and
        :class:`IOFailure` when the results cannot be written.
        """
        self._set_state(SweepState.VALIDATING)
        channels, problems = self.check(config)
        if not problems and not self.run_state.try_acquire():
            problems = [str(SweepAlreadyRunning())]
        if problems:
            self._set_state(SweepState.IDLE)
            logger.warning("%s sweep rejected: %s", config.kind.value, "; ".join(problems))
            raise SweepRejected(problems)

        table = self.tables[config.kind]
        logger.info("Starting %s sweep (%d points) -> %s",
                    config.kind.value, config.total_points(), config.output_path)

        stopped = False
        failure: Optional[Exception] = None
        try:
            self._set_state(SweepState.CONFIGURING)
            self._configure(channels, config)
            self._set_state(SweepState.SWEEPING)
            stopped = self._sweep(channels, config, table, progress)
        except Exception as exc:
            logger.exception("%s sweep failed", config.kind.value)
            failure = exc
        finally:
            self._set_state(SweepState.FINALIZING)
            try:
                self._outputs_off(channels)
                if failure is None:
                    table.serialize(config.output_path)
                else:
                    self._save_partial(table, config)
            finally:
                self.run_state.release()
                self._set_state(SweepState.IDLE)

        if failure is not None:
            raise DriverError(f"{config.kind.value.capitalize()} sweep failed: {failure}") from failure

        outcome = SweepOutcome.STOPPED if stopped else SweepOutcome.COMPLETED
        logger.info("%s sweep %s with %d rows", config.kind.value, outcome.value, len(table))
        return outcome

    # ------------------------------------------------------------------
    # Configuring
    # ------------------------------------------------------------------
    def _configure(self, channels: Mapping[ChannelRole, SMU], config: SweepConfig) -> None:
        sd_start, gate_start = self._initial_setpoints(config)
        self._configure_voltage_source(channels[ChannelRole.SOURCE_DRAIN], sd_start, config)
        self._configure_voltage_source(channels[ChannelRole.GATE], gate_start, config)

        if getattr(config, "use_four_probe", False):
            limit = max(2.0 * max(abs(config.sd_min), abs(config.sd_max)), MIN_PROBE_VOLTAGE_LIMIT)
            for role in (ChannelRole.PROBE_A, ChannelRole.PROBE_B):
                self._configure_probe(channels[role], limit, config)

    @staticmethod
    def _initial_setpoints(config: SweepConfig) -> Tuple[float, float]:
        outer, inner = config.outer_values()[0], config.inner_values()[0]
        if config.kind is SweepKind.TRANSFER:
            return outer, inner
        return inner, outer

    @staticmethod
    def _configure_voltage_source(smu: SMU, start: float, config: SweepConfig) -> None:
        # Output off and level preset before the limit so nothing overshoots.
        smu.output_off()
        smu.set_source(SourceMode.VOLTAGE)
        smu.set_voltage(start)
        smu.set_current_limit(config.current_limit)
        smu.use_auto_current_range()
        smu.set_average(config.average_mode, config.averaging_count)
        smu.use_four_probe(False)
        smu.set_nplc(config.integration_time)

    @staticmethod
    def _configure_probe(smu: SMU, voltage_limit: float, config: SweepConfig) -> None:
        smu.output_off()
        smu.set_source(SourceMode.CURRENT)
        smu.set_current(0.0)
        smu.set_voltage_limit(voltage_limit)
        smu.set_current_range(PROBE_CURRENT_RANGE)
        smu.set_average(config.average_mode, config.averaging_count)
        smu.use_four_probe(False)
        smu.set_nplc(config.integration_time)

    # ------------------------------------------------------------------
    # Sweeping
    # ------------------------------------------------------------------
    def _sweep(self, channels: Mapping[ChannelRole, SMU], config: SweepConfig,
               table: ResultTable, progress: Optional[ProgressCallback]) -> bool:
        """Walk the grid; return ``True`` if stopped early."""
        sd = channels[ChannelRole.SOURCE_DRAIN]
        gate = channels[ChannelRole.GATE]
        probes = None
        if getattr(config, "use_four_probe", False):
            probes = (channels[ChannelRole.PROBE_A], channels[ChannelRole.PROBE_B])

        if config.kind is SweepKind.TRANSFER:
            outer_smu, inner_smu = sd, gate
        else:
            outer_smu, inner_smu = gate, sd

        outer_values = config.outer_values()
        inner_values = config.inner_values()
        total = len(outer_values) * len(inner_values)

        if self.run_state.stop_requested:
            logger.info("Sweep stopped before the first point")
            return True

        for smu in channels.values():
            smu.output_on()

        count = 0
        for outer in outer_values:
            outer_smu.set_voltage(outer)

            for inner in inner_values:
                inner_smu.set_voltage(inner)
                self._sleep(config.delay)

                if config.kind is SweepKind.TRANSFER:
                    vsd, vg = outer, inner
                else:
                    vsd, vg = inner, outer
                row = [vsd, vg, sd.measure_current(), gate.measure_current()]
                if config.kind is SweepKind.TRANSFER:
                    if probes is not None:
                        row += [probes[0].measure_voltage(), probes[1].measure_voltage()]
                    else:
                        row += [0.0, 0.0]
                table.append(*row)
                logger.debug("Point %d/%d: Vsd=%g V Vg=%g V Id=%g A", count + 1, total, vsd, vg, row[2])

                count += 1
                if progress is not None:
                    progress(count, total)

                if self.run_state.stop_requested:
                    logger.info("Sweep stopped after %d/%d points", count, total)
                    return True
        return False

    # ------------------------------------------------------------------
    # Finalizing
    # ------------------------------------------------------------------
    @staticmethod
    def _outputs_off(channels: Mapping[ChannelRole, SMU]) -> None:
        for role, smu in channels.items():
            try:
                smu.output_off()
            except Exception:
                logger.exception("Could not disable %s output on %r", role.label, smu)

    @staticmethod
    def _save_partial(table: ResultTable, config: SweepConfig) -> None:
        if not str(config.output_path).strip():
            return
        try:
            table.serialize(config.output_path)
        except IOFailure:
            logger.exception("Could not save partial results to %s", config.output_path)
