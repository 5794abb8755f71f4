from io import BytesIO
from pathlib import Path
import sys
from typing import Iterable, List, Optional

import pytest
from PIL import Image

projectRoot = Path(__file__).resolve().parents[1]
sourceRoot = projectRoot / "src"
if str(sourceRoot) not in sys.path:
    sys.path.insert(0, str(sourceRoot))

from failwatch.errors import AnnotationError, NotificationDeliveryError, TransportError  # noqa: E402
from failwatch.logutil import resetRateLimit  # noqa: E402
from failwatch.models import AnnotatedSnapshot, Detection, PrinterConfig  # noqa: E402


def makePrinter(label: str = "Voron", minimumConfidence: float = 0.6) -> PrinterConfig:
    host = f"http://{label.lower()}.local"
    return PrinterConfig(
        label=label,
        statusHost=host,
        cameraSnapshotUrl=f"{host}/webcam/?action=snapshot",
        notificationWebhookUrl=f"http://hooks.local/{label.lower()}",
        minimumConfidence=minimumConfidence,
    )


def failure(confidence: float = 0.9, box=(100, 80, 40, 20)) -> Detection:
    return Detection.fromWire(["failure", confidence, list(box)])


class FakeStatusClient:
    """Replays a scripted sequence of printing flags, repeating the last one."""

    def __init__(self, sequence: Iterable[bool]) -> None:
        self.sequence = list(sequence)
        self.calls = 0

    def isPrinting(self) -> bool:
        index = min(self.calls, len(self.sequence) - 1)
        self.calls += 1
        return self.sequence[index]


class FakeDetector:
    """Replays scripted detection lists; an exception instance is raised instead."""

    def __init__(self, sequence: Optional[List] = None) -> None:
        self.sequence = list(sequence or [])
        self.calls: List[str] = []

    def detect(self, cameraSnapshotUrl: str, label: str = "") -> List[Detection]:
        index = min(len(self.calls), len(self.sequence) - 1)
        self.calls.append(cameraSnapshotUrl)
        if not self.sequence:
            return []
        result = self.sequence[index]
        if isinstance(result, Exception):
            raise result
        return list(result)


class FakeAnnotator:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: List[tuple] = []

    def annotate(self, cameraSnapshotUrl: str, detections) -> AnnotatedSnapshot:
        self.calls.append((cameraSnapshotUrl, list(detections)))
        if self.fail:
            raise AnnotationError("camera offline")
        fileName = f"snapshot_{1700000000000 + len(self.calls)}.png"
        return AnnotatedSnapshot(
            path=Path("/tmp") / fileName,
            fileName=fileName,
            url=f"http://monitor.local:3000/failures/{fileName}",
            createdAt=None,
        )


class FakeNotifier:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: List[tuple] = []

    def notify(self, webhookUrl: str, event, label: str = "") -> None:
        self.calls.append((webhookUrl, event))
        if self.fail:
            raise NotificationDeliveryError("webhook down", label=label)


@pytest.fixture(autouse=True)
def clearRateLimits():
    resetRateLimit()
    yield
    resetRateLimit()


@pytest.fixture
def pngBytes() -> bytes:
    image = Image.new("RGB", (200, 160), color=(0, 0, 0))
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def transportError() -> TransportError:
    return TransportError("http://ml.local/p", "connection refused")
