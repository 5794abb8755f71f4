"""Error taxonomy shared by the failwatch collaborators."""

from __future__ import annotations

from typing import List, Optional


class FailwatchError(RuntimeError):
    """Base class for every error raised by failwatch."""

    def __init__(self, message: str, label: Optional[str] = None) -> None:
        self.label = label
        self.detail = message
        prefix = f"{label}: " if label else ""
        super().__init__(f"{prefix}{message}")


class TransportError(FailwatchError):
    """A remote endpoint could not be reached or answered with a non-2xx status."""

    def __init__(self, url: str, error: object, label: Optional[str] = None) -> None:
        self.url = url
        self.cause = error
        super().__init__(f"Request to {url} failed: {error}", label=label)


class ParseError(FailwatchError):
    """A remote endpoint answered with a payload of the wrong shape."""


class AnnotationError(FailwatchError):
    """The camera frame could not be fetched, decoded, annotated or stored."""


class NotificationDeliveryError(FailwatchError):
    """The notification webhook could not be called."""


class ConfigurationError(FailwatchError):
    def __init__(self, problems: List[str], source: Optional[str] = None) -> None:
        self.problems = list(problems)
        self.source = source
        joined = "; ".join(self.problems)
        location = f" in {source}" if source else ""
        super().__init__(f"Invalid configuration{location}: {joined}")


__all__ = [
    "AnnotationError",
    "ConfigurationError",
    "FailwatchError",
    "NotificationDeliveryError",
    "ParseError",
    "TransportError",
]
