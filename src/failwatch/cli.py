"""Command-line entry point for the print failure watcher."""

import argparse
import logging
import signal
import sys
import threading
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from .config import MonitorSettings, loadSettings
from .detector_client import FailureDetectorClient
from .errors import ConfigurationError, FailwatchError
from .logutil import configureLogging
from .scheduler import MonitorScheduler
from .server import SnapshotServer
from .snapshot_store import SnapshotStore, createSnapshotApp
from .status_client import PrinterStatusClient

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 2


def parseArguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="failwatch",
        description="Watch 3D printers for print failures and send a webhook alert with an annotated snapshot.",
    )
    subparsers = parser.add_subparsers(dest="command")

    for name, helpText in (
        ("run", "Monitor all configured printers until interrupted (default)."),
        ("check", "Probe every printer once and print a summary table."),
    ):
        subparser = subparsers.add_parser(name, help=helpText)
        subparser.add_argument(
            "--config",
            default=None,
            help="Path to a JSON or YAML configuration file (default: $FAILWATCH_CONFIG or ./config.json).",
        )
        subparser.add_argument(
            "--logLevel",
            default=None,
            help="Logging level, overrides LOG_LEVEL from the configuration.",
        )

    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv or argv[0] not in {"run", "check", "-h", "--help"}:
        argv = ["run", *argv]
    return parser.parse_args(argv)


def installSignalHandlers(stopEvent: threading.Event) -> None:
    def handleSignal(signum, _frame) -> None:
        log.info("Received signal %s, shutting down after the current cycle", signum)
        stopEvent.set()

    signal.signal(signal.SIGINT, handleSignal)
    signal.signal(signal.SIGTERM, handleSignal)


def runMonitor(settings: MonitorSettings, stopEvent: Optional[threading.Event] = None) -> int:
    stopEvent = stopEvent or threading.Event()

    with SnapshotStore(settings.snapshotDirectory, settings.serverBaseHost) as store:
        server = SnapshotServer(createSnapshotApp(store), host=settings.listenHost, port=settings.port)
        server.start()
        try:
            scheduler = MonitorScheduler.fromSettings(settings, store)
            scheduler.runForever(stopEvent)
        finally:
            server.stop()
    log.info("Server closed and snapshot folder cleaned up.")
    return EXIT_OK


def runCheck(settings: MonitorSettings, console: Optional[Console] = None) -> int:
    console = console or Console()
    detector = FailureDetectorClient(settings.mlApiHost, timeoutSeconds=settings.requestTimeoutSeconds)

    table = Table(title="Printer check")
    table.add_column("Printer")
    table.add_column("Printing")
    table.add_column("Detections", justify="right")
    table.add_column("Failure")

    for printer in settings.printers:
        statusClient = PrinterStatusClient(
            printer.label, printer.statusHost, timeoutSeconds=settings.requestTimeoutSeconds
        )
        if not statusClient.isPrinting():
            table.add_row(printer.label, "no", "-", "-")
            continue

        try:
            detections = detector.detect(printer.cameraSnapshotUrl, label=printer.label)
        except FailwatchError as error:
            table.add_row(printer.label, "yes", "error", f"[yellow]{error.detail}[/yellow]")
            continue

        failing = any(detection.qualifies(printer.minimumConfidence) for detection in detections)
        table.add_row(
            printer.label,
            "yes",
            str(len(detections)),
            "[bold red]yes[/bold red]" if failing else "[green]no[/green]",
        )

    console.print(table)
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    arguments = parseArguments(argv)
    configureLogging(arguments.logLevel or logging.INFO)

    try:
        settings = loadSettings(arguments.config)
    except ConfigurationError as error:
        log.error("%s", error)
        return EXIT_CONFIG_ERROR

    if arguments.logLevel is None:
        logging.getLogger().setLevel(settings.logLevel)

    if arguments.command == "check":
        return runCheck(settings)

    stopEvent = threading.Event()
    installSignalHandlers(stopEvent)
    return runMonitor(settings, stopEvent)


if __name__ == "__main__":
    sys.exit(main())
