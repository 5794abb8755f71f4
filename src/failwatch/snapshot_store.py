"""Scoped directory of annotated failure snapshots and the app that serves it."""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple

from flask import Flask, abort, jsonify, send_from_directory

log = logging.getLogger(__name__)

DEFAULT_MOUNT_PATH = "/failures"
SNAPSHOT_PREFIX = "snapshot_"
SNAPSHOT_SUFFIX = ".png"


class SnapshotStore:
    """Directory of annotated snapshots that lives as long as the process.

    Entering the store creates the directory; leaving it, on any exit path,
    removes the snapshot files again. File names embed a millisecond timestamp
    that strictly increases within the process, so two snapshots never share a
    name.
    """

    def __init__(self, directory: Path, baseUrl: str, mountPath: str = DEFAULT_MOUNT_PATH) -> None:
        self.directory = Path(directory)
        self.baseUrl = baseUrl.rstrip("/")
        self.mountPath = "/" + mountPath.strip("/")
        self._lock = threading.Lock()
        self._lastTimestampMs = 0

    def __enter__(self) -> "SnapshotStore":
        self.ensureDirectory()
        return self

    def __exit__(self, excType, excValue, tracebackObject) -> None:
        self.empty()

    def ensureDirectory(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

    def reserveFileName(self) -> Tuple[str, datetime]:
        with self._lock:
            timestampMs = max(int(time.time() * 1000), self._lastTimestampMs + 1)
            self._lastTimestampMs = timestampMs
        createdAt = datetime.fromtimestamp(timestampMs / 1000.0, tz=timezone.utc)
        return f"{SNAPSHOT_PREFIX}{timestampMs}{SNAPSHOT_SUFFIX}", createdAt

    def pathFor(self, fileName: str) -> Path:
        return self.directory / fileName

    def publicUrl(self, fileName: str) -> str:
        return f"{self.baseUrl}{self.mountPath}/{fileName}"

    def _snapshotPaths(self) -> List[Path]:
        if not self.directory.exists():
            return []
        return sorted(
            path
            for path in self.directory.glob(f"{SNAPSHOT_PREFIX}*{SNAPSHOT_SUFFIX}")
            if path.is_file() and not path.is_symlink()
        )

    def listSnapshots(self) -> List[str]:
        return [path.name for path in self._snapshotPaths()]

    def empty(self) -> int:
        """Remove the snapshot files written into the directory.

        Only regular files named ``snapshot_*.png`` are removed. Anything else
        in the directory, subdirectories included, is left alone.
        """
        removed = 0
        for path in self._snapshotPaths():
            try:
                path.unlink()
                removed += 1
            except OSError as error:
                log.warning("Could not remove snapshot %s: %s", path, error)
        log.debug("Removed %d snapshot(s) from %s", removed, self.directory)
        return removed


def createSnapshotApp(store: SnapshotStore, importName: Optional[str] = None) -> Flask:
    """Build the Flask app that serves stored snapshots by file name."""

    app = Flask(importName or __name__)
    app.config["SNAPSHOT_STORE"] = store

    @app.route(f"{store.mountPath}/<fileName>", methods=["GET"])
    def serveSnapshot(fileName: str):
        if not fileName.startswith(SNAPSHOT_PREFIX):
            abort(404)
        return send_from_directory(str(store.directory.resolve()), fileName)

    @app.route("/", methods=["GET"])
    def healthCheck():
        return jsonify({"ok": True, "snapshots": len(store.listSnapshots())})

    return app


__all__ = ["DEFAULT_MOUNT_PATH", "SnapshotStore", "createSnapshotApp"]
