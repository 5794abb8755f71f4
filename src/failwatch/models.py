"""Data model for printers, detections and failure alerts."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .errors import ParseError

FAILURE_LABEL = "failure"
ALERT_MESSAGE_PRINT_FAILURE = "PrintFailure"


@dataclass(frozen=True)
class PrinterConfig:
    """Static definition of one monitored printer."""

    label: str
    statusHost: str
    cameraSnapshotUrl: str
    notificationWebhookUrl: str
    minimumConfidence: float


@dataclass(frozen=True)
class BoundingBox:
    centerX: float
    centerY: float
    width: float
    height: float

    def corner(self) -> Tuple[float, float]:
        return self.centerX - self.width / 2, self.centerY - self.height / 2

    def rectangle(self) -> Tuple[float, float, float, float]:
        """Return ``(left, top, right, bottom)`` in image pixel space."""
        left, top = self.corner()
        return left, top, left + self.width, top + self.height


@dataclass(frozen=True)
class Detection:
    """One record returned by the failure detection service."""

    label: str
    confidence: float
    box: BoundingBox

    @property
    def isFailure(self) -> bool:
        return self.label == FAILURE_LABEL

    def qualifies(self, minimumConfidence: float) -> bool:
        return self.isFailure and self.confidence > minimumConfidence

    @classmethod
    def fromWire(cls, entry: Any) -> "Detection":
        """Parse a ``[label, confidence, [cx, cy, w, h]]`` entry."""
        if not isinstance(entry, (list, tuple)) or len(entry) < 3:
            raise ParseError(f"Detection entry must be [label, confidence, box], got {entry!r}")
        label, confidence, box = entry[0], entry[1], entry[2]
        if not isinstance(label, str):
            raise ParseError(f"Detection label must be a string, got {label!r}")
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            raise ParseError(f"Detection confidence must be a number, got {confidence!r}")
        if not isinstance(box, (list, tuple)) or len(box) != 4:
            raise ParseError(f"Detection box must be [cx, cy, w, h], got {box!r}")
        try:
            centerX, centerY, width, height = (float(value) for value in box)
        except (TypeError, ValueError) as error:
            raise ParseError(f"Detection box has non-numeric values: {box!r}") from error
        return cls(
            label=label,
            confidence=float(confidence),
            box=BoundingBox(centerX=centerX, centerY=centerY, width=width, height=height),
        )

    def toWire(self) -> List[Any]:
        return [
            self.label,
            self.confidence,
            [self.box.centerX, self.box.centerY, self.box.width, self.box.height],
        ]


class MonitorPhase(str, enum.Enum):
    IDLE = "idle"
    PRINTING_OK = "printing-ok"
    PRINTING_FAILED = "printing-failed"


class PrinterMonitorState:
    """Mutable print and failure flags owned by a single printer monitor.

    ``hasActiveFailure`` can only be true while ``isPrinting`` is true;
    clearing ``isPrinting`` clears the failure as well.
    """

    def __init__(self, isPrinting: bool = False, hasActiveFailure: bool = False) -> None:
        self._isPrinting = False
        self._hasActiveFailure = False
        self.isPrinting = isPrinting
        self.hasActiveFailure = hasActiveFailure

    @property
    def isPrinting(self) -> bool:
        return self._isPrinting

    @isPrinting.setter
    def isPrinting(self, value: bool) -> None:
        self._isPrinting = bool(value)
        if not self._isPrinting:
            self._hasActiveFailure = False

    @property
    def hasActiveFailure(self) -> bool:
        return self._hasActiveFailure

    @hasActiveFailure.setter
    def hasActiveFailure(self, value: bool) -> None:
        if value and not self._isPrinting:
            raise ValueError("A failure can only be active while printing")
        self._hasActiveFailure = bool(value)

    @property
    def phase(self) -> MonitorPhase:
        if not self._isPrinting:
            return MonitorPhase.IDLE
        if self._hasActiveFailure:
            return MonitorPhase.PRINTING_FAILED
        return MonitorPhase.PRINTING_OK

    def copy(self) -> "PrinterMonitorState":
        return PrinterMonitorState(self._isPrinting, self._hasActiveFailure)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PrinterMonitorState):
            return NotImplemented
        return (self._isPrinting, self._hasActiveFailure) == (other._isPrinting, other._hasActiveFailure)

    def __repr__(self) -> str:
        return (
            f"PrinterMonitorState(isPrinting={self._isPrinting}, "
            f"hasActiveFailure={self._hasActiveFailure})"
        )


@dataclass(frozen=True)
class AnnotatedSnapshot:
    path: Path
    fileName: str
    url: str
    createdAt: datetime


@dataclass(frozen=True)
class AlertEvent:
    """Payload sent to a notification webhook once per failure episode."""

    image: Optional[str]
    message: str = ALERT_MESSAGE_PRINT_FAILURE

    def toPayload(self) -> Dict[str, Optional[str]]:
        return {"message": self.message, "image": self.image}


@dataclass(frozen=True)
class CycleOutcome:
    """What a single monitor cycle observed and did."""

    label: str
    phaseBefore: MonitorPhase
    phaseAfter: MonitorPhase
    checkedForFailures: bool = False
    alertSent: bool = False


__all__ = [
    "ALERT_MESSAGE_PRINT_FAILURE",
    "AlertEvent",
    "AnnotatedSnapshot",
    "BoundingBox",
    "CycleOutcome",
    "Detection",
    "FAILURE_LABEL",
    "MonitorPhase",
    "PrinterConfig",
    "PrinterMonitorState",
]
