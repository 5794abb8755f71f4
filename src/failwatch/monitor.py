"""Per-printer print-state and failure-state tracking."""

from __future__ import annotations

import json
import logging
from typing import List, Optional

from .annotator import SnapshotAnnotator
from .detector_client import FailureDetectorClient
from .errors import AnnotationError, NotificationDeliveryError, ParseError, TransportError
from .models import AlertEvent, CycleOutcome, Detection, PrinterConfig, PrinterMonitorState
from .notifier import WebhookNotifier
from .status_client import PrinterStatusClient

log = logging.getLogger(__name__)


class PrinterMonitor:
    """
    Track one printer through Idle, Printing-OK and Printing-Failed.

    Alerts are edge-triggered: annotation and notification happen only on
    the transition from Printing-OK into Printing-Failed, never while a
    failure persists. A print stopping discards any active failure without
    logging a recovery.

    Example usage:
        monitor = PrinterMonitor(printer, statusClient, detector, annotator, notifier)

        # Called once per scheduler tick
        outcome = monitor.runCycle()
    """

    def __init__(
        self,
        printer: PrinterConfig,
        statusClient: PrinterStatusClient,
        detector: FailureDetectorClient,
        annotator: SnapshotAnnotator,
        notifier: WebhookNotifier,
        notifyWithoutImage: bool = False,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.printer = printer
        self._statusClient = statusClient
        self._detector = detector
        self._annotator = annotator
        self._notifier = notifier
        self._notifyWithoutImage = notifyWithoutImage
        self._log = logger or log
        self._state = PrinterMonitorState()

    @property
    def label(self) -> str:
        return self.printer.label

    @property
    def state(self) -> PrinterMonitorState:
        """A copy of the current state; mutating it does not affect the monitor."""
        return self._state.copy()

    def refreshPrintState(self) -> bool:
        """Check the printer status and apply the start/stop transitions."""
        nextIsPrinting = self._statusClient.isPrinting()

        if self._state.isPrinting != nextIsPrinting:
            self._state.isPrinting = nextIsPrinting
            self._state.hasActiveFailure = False
            self._log.info(
                "%s: Print %s",
                self.label,
                "started" if nextIsPrinting else "stopped",
            )

        return self._state.isPrinting

    def checkForFailures(self) -> bool:
        """
        Run one detection cycle and apply the failure transitions.

        Returns:
            True when an alert was delivered during this cycle
        """
        if not self._state.isPrinting:
            return False

        try:
            detections = self._detector.detect(self.printer.cameraSnapshotUrl, label=self.label)
        except (TransportError, ParseError) as error:
            self._log.warning("%s: Error checking for failures: %s", self.label, error.detail)
            return False

        failureDetected = any(
            detection.qualifies(self.printer.minimumConfidence) for detection in detections
        )

        if failureDetected and not self._state.hasActiveFailure:
            self._state.hasActiveFailure = True
            return self._raiseAlert(detections)

        if not failureDetected and self._state.hasActiveFailure:
            self._state.hasActiveFailure = False
            self._log.info("%s: Recovered from failure", self.label)

        return False

    def runCycle(self) -> CycleOutcome:
        phaseBefore = self._state.phase
        printing = self.refreshPrintState()
        alertSent = self.checkForFailures() if printing else False
        return CycleOutcome(
            label=self.label,
            phaseBefore=phaseBefore,
            phaseAfter=self._state.phase,
            checkedForFailures=printing,
            alertSent=alertSent,
        )

    def _raiseAlert(self, detections: List[Detection]) -> bool:
        imageUrl: Optional[str] = None
        try:
            snapshot = self._annotator.annotate(self.printer.cameraSnapshotUrl, detections)
            imageUrl = snapshot.url
        except AnnotationError as error:
            if not self._notifyWithoutImage:
                self._log.error(
                    "%s: Failure detected but the snapshot could not be annotated, alert suppressed: %s",
                    self.label,
                    error.detail,
                )
                return False
            self._log.error(
                "%s: Failure detected but the snapshot could not be annotated, alerting without image: %s",
                self.label,
                error.detail,
            )

        self._log.info("%s: Failure detected %s", self.label, imageUrl or "(no image)")
        self._log.info(json.dumps([detection.toWire() for detection in detections], indent=2))

        try:
            self._notifier.notify(
                self.printer.notificationWebhookUrl,
                AlertEvent(image=imageUrl),
                label=self.label,
            )
        except NotificationDeliveryError as error:
            self._log.error("%s: Failure alert could not be delivered: %s", self.label, error.detail)
            return False
        return True


__all__ = ["PrinterMonitor"]
