"""
Snapshot Annotation Module

Fetches the current camera frame of a printer, outlines every detection the
inference service labeled as a failure, and stores the result as a PNG in the
snapshot store so that alert payloads can link to it.
"""

import io
import logging
from typing import Iterable, Tuple

import requests
from PIL import Image, ImageDraw, UnidentifiedImageError

from .errors import AnnotationError
from .models import AnnotatedSnapshot, Detection
from .snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)

DEFAULT_OUTLINE_COLOR: Tuple[int, int, int] = (255, 0, 0)
DEFAULT_LINE_WIDTH = 2


def drawFailureBoxes(
    image: Image.Image,
    detections: Iterable[Detection],
    color: Tuple[int, int, int] = DEFAULT_OUTLINE_COLOR,
    lineWidth: int = DEFAULT_LINE_WIDTH,
) -> int:
    """
    Draw an unfilled rectangle around every failure detection.

    Confidence is ignored here: every detection labeled "failure" is drawn,
    detections with any other label are skipped. The rectangle's top-left
    corner is the box center minus half its extent.

    Args:
        image: Image to draw on (modified in place)
        detections: Detections returned for this frame
        color: Outline color in RGB (default: red)
        lineWidth: Outline width in pixels

    Returns:
        Number of rectangles drawn

    Example:
        >>> drawn = drawFailureBoxes(frame, detections)
    """
    draw = ImageDraw.Draw(image)
    drawn = 0
    for detection in detections:
        if not detection.isFailure:
            continue
        left, top, right, bottom = detection.box.rectangle()
        # Pillow includes the end coordinates, so pull them in by one pixel
        draw.rectangle((left, top, right - 1, bottom - 1), outline=color, width=lineWidth)
        drawn += 1
    return drawn


class SnapshotAnnotator:
    """Fetch, annotate and store one camera frame per failure episode."""

    def __init__(
        self,
        store: SnapshotStore,
        timeoutSeconds: float = 10.0,
        outlineColor: Tuple[int, int, int] = DEFAULT_OUTLINE_COLOR,
        lineWidth: int = DEFAULT_LINE_WIDTH,
    ) -> None:
        self.store = store
        self.timeoutSeconds = timeoutSeconds
        self.outlineColor = outlineColor
        self.lineWidth = lineWidth

    def fetchFrame(self, cameraSnapshotUrl: str) -> Image.Image:
        try:
            response = requests.get(cameraSnapshotUrl, timeout=self.timeoutSeconds)
            response.raise_for_status()
        except requests.RequestException as error:
            raise AnnotationError(f"Could not fetch camera frame from {cameraSnapshotUrl}: {error}") from error

        try:
            with Image.open(io.BytesIO(response.content)) as frame:
                return frame.convert("RGB")
        except (UnidentifiedImageError, OSError) as error:
            raise AnnotationError(f"Camera frame from {cameraSnapshotUrl} is not a readable image: {error}") from error

    def annotate(self, cameraSnapshotUrl: str, detections: Iterable[Detection]) -> AnnotatedSnapshot:
        """
        Produce an annotated snapshot for a set of detections.

        Args:
            cameraSnapshotUrl: URL returning the current camera frame
            detections: Full detection set from the inference service

        Returns:
            AnnotatedSnapshot describing the stored PNG

        Raises:
            AnnotationError: If the frame cannot be fetched, decoded or stored
        """
        frame = self.fetchFrame(cameraSnapshotUrl)
        try:
            drawn = drawFailureBoxes(frame, detections, color=self.outlineColor, lineWidth=self.lineWidth)
        except ValueError as error:
            raise AnnotationError(f"Could not draw detections on camera frame: {error}") from error

        fileName, createdAt = self.store.reserveFileName()
        outputPath = self.store.pathFor(fileName)
        try:
            self.store.ensureDirectory()
            frame.save(outputPath, format="PNG")
        except (OSError, ValueError) as error:
            outputPath.unlink(missing_ok=True)
            raise AnnotationError(f"Could not write annotated snapshot {outputPath}: {error}") from error

        logger.info(f"Saved annotated snapshot with {drawn} failure box(es) to {outputPath}")
        return AnnotatedSnapshot(
            path=outputPath,
            fileName=fileName,
            url=self.store.publicUrl(fileName),
            createdAt=createdAt,
        )


__all__ = ["DEFAULT_LINE_WIDTH", "DEFAULT_OUTLINE_COLOR", "SnapshotAnnotator", "drawFailureBoxes"]
