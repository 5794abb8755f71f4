"""
Print Failure Watcher

Polls 3D printers while they print, sends camera snapshots to a failure
detection service, and posts a single webhook alert with an annotated
snapshot when a failure first shows up.

Main components:
- status_client: printer "is printing" checks
- detector_client: remote failure detection requests
- annotator: bounding-box drawing and snapshot storage
- notifier: webhook alerts
- monitor: per-printer state machine with edge-triggered alerts
- scheduler: fixed-interval loop over all printers
- snapshot_store / server: HTTP access to stored snapshots

Example usage:
    from failwatch.config import loadSettings
    from failwatch.cli import runMonitor

    runMonitor(loadSettings("config.yaml"))
"""

__version__ = "1.0.0"

from .models import AlertEvent, Detection, MonitorPhase, PrinterConfig, PrinterMonitorState
from .monitor import PrinterMonitor
from .scheduler import MonitorScheduler

__all__ = [
    "AlertEvent",
    "Detection",
    "MonitorPhase",
    "MonitorScheduler",
    "PrinterConfig",
    "PrinterMonitor",
    "PrinterMonitorState",
]
