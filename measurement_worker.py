"""measurement_worker.py
Background measurement thread running one sweep through a SweepCoordinator.
"""
from __future__ import annotations

import logging
from typing import Optional

from PyQt5 import QtCore  # type: ignore

from errors import DriverError, IOFailure, SweepRejected
from sweep_engine import SweepCoordinator, SweepOutcome
from sweep_settings import SweepConfig

logger = logging.getLogger(__name__)


class MeasurementWorker(QtCore.QThread):
    """Runs the measurement loop in a separate thread.

    The GUI stays responsive: it may read the result table, edit settings or
    request a stop while the sweep is in progress.
    """

    row_ready = QtCore.pyqtSignal(object)  # tuple of floats, table column order
    progress = QtCore.pyqtSignal(str)
    rejected = QtCore.pyqtSignal(list)     # every validation problem
    error = QtCore.pyqtSignal(str)
    done = QtCore.pyqtSignal(str)          # SweepOutcome value, or "failed"/"rejected"

    def __init__(self, coordinator: SweepCoordinator, config: SweepConfig,
                 parent: Optional[QtCore.QObject] = None):
        super().__init__(parent)
        self.coordinator = coordinator
        self.config = config
        self.outcome: Optional[SweepOutcome] = None
        # forget a stop issued while idle; stops from here on reach the run
        coordinator.run_state.clear_stop()

    # --------------------------------------------------------------
    def stop(self):
        """Request a graceful stop."""
        self.coordinator.stop()

    # --------------------------------------------------------------
    def _on_progress(self, count: int, total: int) -> None:
        self.progress.emit(f"{count}/{total} points done")

    def run(self):
        table = self.coordinator.table(self.config.kind)
        listener = self.row_ready.emit
        table.add_listener(listener)
        status = "failed"
        try:
            self.outcome = self.coordinator.run(self.config, progress=self._on_progress)
            status = self.outcome.value
        except SweepRejected as exc:
            status = "rejected"
            self.rejected.emit(exc.problems)
        except (DriverError, IOFailure) as exc:
            self.error.emit(str(exc))
        finally:
            table.remove_listener(listener)
            logger.info("Measurement worker finished: %s", status)
            self.done.emit(status)
