"""Fixed-interval loop that runs every printer monitor once per tick."""

from __future__ import annotations

import logging
import threading
import time
from typing import Iterable, List, Optional, Tuple

from .annotator import SnapshotAnnotator
from .config import MonitorSettings
from .detector_client import FailureDetectorClient
from .models import CycleOutcome
from .monitor import PrinterMonitor
from .notifier import WebhookNotifier
from .snapshot_store import SnapshotStore
from .status_client import PrinterStatusClient

log = logging.getLogger(__name__)


class MonitorScheduler:
    """Run one cycle per printer per tick, strictly one printer after another.

    The next tick starts ``intervalSeconds`` after the previous tick ended,
    so a slow printer delays later ticks instead of overlapping them.
    """

    def __init__(self, monitors: Iterable[PrinterMonitor], intervalSeconds: float) -> None:
        self.monitors: Tuple[PrinterMonitor, ...] = tuple(monitors)
        self.intervalSeconds = max(0.0, float(intervalSeconds))
        self.tickCount = 0

    @classmethod
    def fromSettings(
        cls,
        settings: MonitorSettings,
        store: SnapshotStore,
        detector: Optional[FailureDetectorClient] = None,
        notifier: Optional[WebhookNotifier] = None,
        annotator: Optional[SnapshotAnnotator] = None,
    ) -> "MonitorScheduler":
        timeout = settings.requestTimeoutSeconds
        detector = detector or FailureDetectorClient(settings.mlApiHost, timeoutSeconds=timeout)
        notifier = notifier or WebhookNotifier(timeoutSeconds=timeout)
        annotator = annotator or SnapshotAnnotator(store, timeoutSeconds=timeout)

        monitors = [
            PrinterMonitor(
                printer=printer,
                statusClient=PrinterStatusClient(printer.label, printer.statusHost, timeoutSeconds=timeout),
                detector=detector,
                annotator=annotator,
                notifier=notifier,
                notifyWithoutImage=settings.notifyWithoutImage,
            )
            for printer in settings.printers
        ]
        return cls(monitors, settings.checkIntervalSeconds)

    def runTick(self) -> List[CycleOutcome]:
        self.tickCount += 1
        outcomes: List[CycleOutcome] = []
        for monitor in self.monitors:
            try:
                outcomes.append(monitor.runCycle())
            except Exception as error:  # noqa: BLE001 - one printer must not stop the loop
                log.exception("%s: Unexpected error during monitoring cycle: %s", monitor.label, error)
        return outcomes

    def runForever(self, stopEvent: threading.Event, maxTicks: Optional[int] = None) -> None:
        """Tick until *stopEvent* is set (or *maxTicks* ticks have run)."""
        log.info(
            "Monitoring %d printer(s) every %.1fs",
            len(self.monitors),
            self.intervalSeconds,
        )
        ticksRun = 0
        while not stopEvent.is_set():
            startedAt = time.monotonic()
            self.runTick()
            ticksRun += 1
            log.debug("Tick %d finished in %.2fs", self.tickCount, time.monotonic() - startedAt)

            if maxTicks is not None and ticksRun >= maxTicks:
                break
            stopEvent.wait(self.intervalSeconds)
        log.info("Monitoring stopped after %d tick(s)", ticksRun)


__all__ = ["MonitorScheduler"]
