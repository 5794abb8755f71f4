"""Logging setup and helpers for rate-limiting repeated messages."""

from __future__ import annotations

import logging
import sys
import threading
import time
from typing import Dict, Union

_LOG = logging.getLogger(__name__)
_LAST_EVENT_TIMES: Dict[str, float] = {}
_LOCK = threading.Lock()

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def configureLogging(level: Union[int, str] = logging.INFO) -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stdout)
    # werkzeug logs every snapshot request at INFO
    logging.getLogger("werkzeug").setLevel(logging.WARNING)


def rateLimit(
    key: str,
    message: str,
    *,
    level: str = "warning",
    minSeconds: float = 60.0,
    logger: logging.Logger | None = None,
) -> bool:
    """Log *message* with rate-limiting enforced per *key*.

    Returns True when the message was emitted.
    """

    now = time.monotonic()
    with _LOCK:
        lastTime = _LAST_EVENT_TIMES.get(key)
        if lastTime is not None and now - lastTime < max(0.1, float(minSeconds)):
            return False
        _LAST_EVENT_TIMES[key] = now

    targetLogger = logger or _LOG
    logMethod = getattr(targetLogger, level, None)
    if not callable(logMethod):
        logMethod = targetLogger.error
    logMethod(message)
    return True


def resetRateLimit(key: str | None = None) -> None:
    """Forget the last emission time for *key*, or for every key."""

    with _LOCK:
        if key is None:
            _LAST_EVENT_TIMES.clear()
        else:
            _LAST_EVENT_TIMES.pop(key, None)


__all__ = ["LOG_FORMAT", "configureLogging", "rateLimit", "resetRateLimit"]
