"""Client for the remote failure detection (inference) service."""

from __future__ import annotations

import logging
from typing import List

import requests

from .errors import ParseError, TransportError
from .models import Detection

log = logging.getLogger(__name__)

PREDICT_PATH = "/p"


class FailureDetectorClient:
    """Submit a camera snapshot URL and return the detections for it.

    The service fetches the image itself; only the snapshot URL is sent,
    as the ``img`` query parameter. Errors are raised, never swallowed:
    the printer monitor decides how a failed detection affects state.
    """

    def __init__(self, mlApiHost: str, timeoutSeconds: float = 10.0) -> None:
        self.mlApiHost = mlApiHost.rstrip("/")
        self.timeoutSeconds = timeoutSeconds
        self.predictUrl = f"{self.mlApiHost}{PREDICT_PATH}"

    def detect(self, cameraSnapshotUrl: str, label: str = "") -> List[Detection]:
        try:
            response = requests.get(
                self.predictUrl,
                params={"img": cameraSnapshotUrl},
                timeout=self.timeoutSeconds,
            )
            response.raise_for_status()
        except requests.RequestException as error:
            raise TransportError(self.predictUrl, error, label=label or None) from error

        try:
            payload = response.json()
        except ValueError as error:
            raise ParseError("Detection response is not JSON", label=label or None) from error

        if not isinstance(payload, dict) or not isinstance(payload.get("detections"), list):
            raise ParseError("Detection response has no detections list", label=label or None)

        detections = [Detection.fromWire(entry) for entry in payload["detections"]]
        log.debug("%s: %d detection(s) returned", label or cameraSnapshotUrl, len(detections))
        return detections


__all__ = ["FailureDetectorClient", "PREDICT_PATH"]
