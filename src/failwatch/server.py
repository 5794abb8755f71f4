"""Background HTTP server for the snapshot store."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from flask import Flask
from werkzeug.serving import BaseWSGIServer, make_server

log = logging.getLogger(__name__)


class SnapshotServer:
    """Serve a Flask app from a daemon thread until ``stop()`` is called."""

    def __init__(self, app: Flask, host: str = "0.0.0.0", port: int = 3000) -> None:
        self.app = app
        self.host = host
        self.port = int(port)
        self._server: Optional[BaseWSGIServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def boundPort(self) -> Optional[int]:
        if self._server is None:
            return None
        return self._server.server_port

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            log.debug("Snapshot server already running")
            return

        self._server = make_server(self.host, self.port, self.app, threaded=True)
        self._thread = threading.Thread(
            target=self._server.serve_forever, name="SnapshotServer", daemon=True
        )
        self._thread.start()
        log.info("Server is running on port %d", self._server.server_port)

    def stop(self) -> None:
        if self._server is not None:
            self._server.shutdown()
            self._server.server_close()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)
        self._server = None
        self._thread = None
        log.info("Snapshot server stopped")

    def isRunning(self) -> bool:
        return self._thread is not None and self._thread.is_alive()


__all__ = ["SnapshotServer"]
