"""Configuration loading for the failure watcher.

The configuration file is JSON or YAML and uses these keys::

    PRINTERS:
      - LABEL: Voron
        MOONRAKER_API_HOST: http://voron.local
        CAMERA_SNAPSHOT_URL: http://voron.local/webcam/?action=snapshot
        NOTIFICATION_WEBHOOK_URL: http://homeassistant.local/api/webhook/print
        MINIMUM_CONFIDENCE: 0.5          # optional per-printer override
    OBICO_ML_API_HOST: http://obico-ml:3333
    SERVER_BASE_HOST: http://monitor.local:3000
    MINIMUM_CONFIDENCE: 0.4
    CHECK_INTERVAL: 10000               # milliseconds
    PORT: 3000

Scalar keys can be overridden with ``FAILWATCH_<KEY>`` environment variables.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlparse

import yaml

from .errors import ConfigurationError
from .models import PrinterConfig

log = logging.getLogger(__name__)

ENV_PREFIX = "FAILWATCH_"
CONFIG_PATH_ENV = "FAILWATCH_CONFIG"
DEFAULT_CONFIG_PATH = Path("config.json")

DEFAULT_LISTEN_HOST = "0.0.0.0"
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_SNAPSHOT_DIR = "failures"
DEFAULT_LOG_LEVEL = "INFO"

_SCALAR_KEYS: Tuple[str, ...] = (
    "OBICO_ML_API_HOST",
    "SERVER_BASE_HOST",
    "MINIMUM_CONFIDENCE",
    "CHECK_INTERVAL",
    "PORT",
    "LISTEN_HOST",
    "REQUEST_TIMEOUT",
    "SNAPSHOT_DIR",
    "NOTIFY_WITHOUT_IMAGE",
    "LOG_LEVEL",
)
_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class MonitorSettings:
    printers: Tuple[PrinterConfig, ...]
    mlApiHost: str
    serverBaseHost: str
    minimumConfidence: float
    checkIntervalSeconds: float
    port: int
    listenHost: str = DEFAULT_LISTEN_HOST
    requestTimeoutSeconds: float = DEFAULT_REQUEST_TIMEOUT
    snapshotDirectory: Path = Path(DEFAULT_SNAPSHOT_DIR)
    notifyWithoutImage: bool = False
    logLevel: str = DEFAULT_LOG_LEVEL


def resolveConfigPath(explicitPath: Optional[str] = None) -> Path:
    if explicitPath:
        return Path(explicitPath)
    environmentPath = os.environ.get(CONFIG_PATH_ENV, "").strip()
    if environmentPath:
        return Path(environmentPath)
    return DEFAULT_CONFIG_PATH


def readConfigFile(configPath: Path) -> Dict[str, Any]:
    """Read a JSON or YAML configuration file into a mapping."""
    if not configPath.exists():
        raise ConfigurationError(["configuration file does not exist"], source=str(configPath))

    try:
        rawText = configPath.read_text(encoding="utf-8")
    except OSError as error:
        raise ConfigurationError([f"cannot read file: {error}"], source=str(configPath)) from error

    try:
        if configPath.suffix.lower() in {".yaml", ".yml"}:
            loaded = yaml.safe_load(rawText)
        else:
            loaded = json.loads(rawText)
    except (json.JSONDecodeError, yaml.YAMLError) as error:
        raise ConfigurationError([f"cannot parse file: {error}"], source=str(configPath)) from error

    if not isinstance(loaded, dict):
        raise ConfigurationError(["top level must be a mapping"], source=str(configPath))
    return loaded


def applyEnvironmentOverrides(
    rawConfig: Mapping[str, Any],
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    environ = os.environ if environ is None else environ
    merged = dict(rawConfig)
    for key in _SCALAR_KEYS:
        environmentValue = environ.get(f"{ENV_PREFIX}{key}")
        if environmentValue is not None:
            log.debug("Overriding %s from environment", key)
            merged[key] = environmentValue
    return merged


def _isHttpUrl(value: Any) -> bool:
    if not isinstance(value, str) or not value.strip():
        return False
    parsed = urlparse(value.strip())
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def _parseFloat(value: Any, key: str, problems: List[str]) -> Optional[float]:
    if isinstance(value, bool):
        problems.append(f"{key} must be a number")
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        problems.append(f"{key} must be a number, got {value!r}")
        return None


def _parseInt(value: Any, key: str, problems: List[str]) -> Optional[int]:
    if isinstance(value, bool):
        problems.append(f"{key} must be an integer")
        return None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        pass
    # YAML and JSON may hand over 10000.0 or 1e4 for an integral setting.
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = None
    if number is not None and number.is_integer():
        return int(number)
    problems.append(f"{key} must be an integer, got {value!r}")
    return None


def _parseBool(value: Any, key: str, problems: List[str]) -> bool:
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in _TRUTHY:
        return True
    if normalized in _FALSY:
        return False
    problems.append(f"{key} must be a boolean, got {value!r}")
    return False


def _parseConfidence(value: Any, key: str, problems: List[str]) -> Optional[float]:
    confidence = _parseFloat(value, key, problems)
    if confidence is not None and not 0.0 <= confidence <= 1.0:
        problems.append(f"{key} must be between 0 and 1, got {confidence}")
        return None
    return confidence


def _parsePrinters(rawPrinters: Any, defaultConfidence: float, problems: List[str]) -> List[PrinterConfig]:
    if not isinstance(rawPrinters, list) or not rawPrinters:
        problems.append("PRINTERS must be a non-empty list")
        return []

    printers: List[PrinterConfig] = []
    seenLabels = set()
    for index, entry in enumerate(rawPrinters):
        where = f"PRINTERS[{index}]"
        if not isinstance(entry, dict):
            problems.append(f"{where} must be a mapping")
            continue

        label = str(entry.get("LABEL") or "").strip()
        if not label:
            problems.append(f"{where}.LABEL is required")
        elif label in seenLabels:
            problems.append(f"{where}.LABEL {label!r} is not unique")
        seenLabels.add(label)

        urls = {}
        for key in ("MOONRAKER_API_HOST", "CAMERA_SNAPSHOT_URL", "NOTIFICATION_WEBHOOK_URL"):
            value = entry.get(key)
            if not _isHttpUrl(value):
                problems.append(f"{where}.{key} must be an http(s) URL")
            else:
                urls[key] = value.strip()

        confidence: Optional[float] = defaultConfidence
        if entry.get("MINIMUM_CONFIDENCE") is not None:
            confidence = _parseConfidence(entry["MINIMUM_CONFIDENCE"], f"{where}.MINIMUM_CONFIDENCE", problems)

        if label and len(urls) == 3 and confidence is not None:
            printers.append(
                PrinterConfig(
                    label=label,
                    statusHost=urls["MOONRAKER_API_HOST"].rstrip("/"),
                    cameraSnapshotUrl=urls["CAMERA_SNAPSHOT_URL"],
                    notificationWebhookUrl=urls["NOTIFICATION_WEBHOOK_URL"],
                    minimumConfidence=confidence,
                )
            )
    return printers


def parseSettings(rawConfig: Mapping[str, Any], source: Optional[str] = None) -> MonitorSettings:
    """Validate a raw configuration mapping and build ``MonitorSettings``.

    Every problem found is collected and reported in a single
    ``ConfigurationError``.
    """
    problems: List[str] = []

    mlApiHost = rawConfig.get("OBICO_ML_API_HOST")
    if not _isHttpUrl(mlApiHost):
        problems.append("OBICO_ML_API_HOST must be an http(s) URL")

    serverBaseHost = rawConfig.get("SERVER_BASE_HOST")
    if not _isHttpUrl(serverBaseHost):
        problems.append("SERVER_BASE_HOST must be an http(s) URL")

    minimumConfidence = None
    if rawConfig.get("MINIMUM_CONFIDENCE") is None:
        problems.append("MINIMUM_CONFIDENCE is required")
    else:
        minimumConfidence = _parseConfidence(rawConfig["MINIMUM_CONFIDENCE"], "MINIMUM_CONFIDENCE", problems)

    checkIntervalSeconds = None
    if rawConfig.get("CHECK_INTERVAL") is None:
        problems.append("CHECK_INTERVAL is required")
    else:
        intervalMs = _parseInt(rawConfig["CHECK_INTERVAL"], "CHECK_INTERVAL", problems)
        if intervalMs is not None:
            if intervalMs <= 0:
                problems.append("CHECK_INTERVAL must be positive")
            else:
                checkIntervalSeconds = intervalMs / 1000.0

    port = None
    if rawConfig.get("PORT") is None:
        problems.append("PORT is required")
    else:
        port = _parseInt(rawConfig["PORT"], "PORT", problems)
        if port is not None and not 0 < port < 65536:
            problems.append(f"PORT must be between 1 and 65535, got {port}")
            port = None

    requestTimeout = _parseFloat(rawConfig.get("REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT), "REQUEST_TIMEOUT", problems)
    if requestTimeout is not None and requestTimeout <= 0:
        problems.append("REQUEST_TIMEOUT must be positive")

    listenHost = str(rawConfig.get("LISTEN_HOST") or DEFAULT_LISTEN_HOST).strip()
    snapshotDirectory = Path(str(rawConfig.get("SNAPSHOT_DIR") or DEFAULT_SNAPSHOT_DIR)).expanduser()
    notifyWithoutImage = _parseBool(rawConfig.get("NOTIFY_WITHOUT_IMAGE", False), "NOTIFY_WITHOUT_IMAGE", problems)
    logLevel = str(rawConfig.get("LOG_LEVEL") or DEFAULT_LOG_LEVEL).strip().upper()
    if logLevel not in _LOG_LEVELS:
        problems.append(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}, got {logLevel!r}")

    printers = _parsePrinters(
        rawConfig.get("PRINTERS"),
        minimumConfidence if minimumConfidence is not None else 0.0,
        problems,
    )

    if problems:
        raise ConfigurationError(problems, source=source)

    return MonitorSettings(
        printers=tuple(printers),
        mlApiHost=mlApiHost.strip().rstrip("/"),
        serverBaseHost=serverBaseHost.strip().rstrip("/"),
        minimumConfidence=minimumConfidence,
        checkIntervalSeconds=checkIntervalSeconds,
        port=port,
        listenHost=listenHost,
        requestTimeoutSeconds=requestTimeout,
        snapshotDirectory=snapshotDirectory,
        notifyWithoutImage=notifyWithoutImage,
        logLevel=logLevel,
    )


def loadSettings(
    explicitPath: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> MonitorSettings:
    configPath = resolveConfigPath(explicitPath)
    rawConfig = applyEnvironmentOverrides(readConfigFile(configPath), environ)
    settings = parseSettings(rawConfig, source=str(configPath))
    log.info(
        "Loaded configuration from %s (%d printer(s), interval %.1fs)",
        configPath,
        len(settings.printers),
        settings.checkIntervalSeconds,
    )
    return settings


__all__ = [
    "CONFIG_PATH_ENV",
    "MonitorSettings",
    "applyEnvironmentOverrides",
    "loadSettings",
    "parseSettings",
    "readConfigFile",
    "resolveConfigPath",
]
