"""Printer status queries against a Moonraker-compatible endpoint."""

from __future__ import annotations

import logging
from typing import Any, Dict

import requests

from .errors import FailwatchError, ParseError, TransportError
from .logutil import rateLimit

log = logging.getLogger(__name__)

STATUS_PATH = "/api/printer"


class PrinterStatusClient:
    """Reduce a printer's status payload to a single "is printing" flag."""

    def __init__(self, label: str, statusHost: str, timeoutSeconds: float = 10.0) -> None:
        self.label = label
        self.statusHost = statusHost.rstrip("/")
        self.timeoutSeconds = timeoutSeconds
        self.statusUrl = f"{self.statusHost}{STATUS_PATH}"

    def fetchStatus(self) -> Dict[str, Any]:
        try:
            response = requests.get(self.statusUrl, timeout=self.timeoutSeconds)
            response.raise_for_status()
        except requests.RequestException as error:
            raise TransportError(self.statusUrl, error, label=self.label) from error

        try:
            payload = response.json()
        except ValueError as error:
            raise ParseError(f"Status response from {self.statusUrl} is not JSON", label=self.label) from error
        if not isinstance(payload, dict):
            raise ParseError(f"Status response from {self.statusUrl} is not an object", label=self.label)
        return payload

    @staticmethod
    def extractPrinting(payload: Dict[str, Any]) -> bool:
        """Return ``state.flags.printing``; anything missing or non-boolean is an error."""
        try:
            printing = payload["state"]["flags"]["printing"]
        except (KeyError, TypeError) as error:
            raise ParseError(f"Status payload has no state.flags.printing: {error}") from error
        if not isinstance(printing, bool):
            raise ParseError(f"state.flags.printing must be a boolean, got {printing!r}")
        return printing

    def isPrinting(self) -> bool:
        """Query the printer; any failure counts as not printing."""
        try:
            return self.extractPrinting(self.fetchStatus())
        except FailwatchError as error:
            rateLimit(
                f"status:{self.label}",
                f"{self.label}: Status check failed, treating as not printing ({error.detail})",
                logger=log,
            )
            return False


__all__ = ["PrinterStatusClient", "STATUS_PATH"]
