"""Unit tests for the status, detector and webhook clients."""

from __future__ import annotations

import logging
import unittest
from unittest.mock import Mock, patch

import requests

from failwatch.detector_client import FailureDetectorClient
from failwatch.errors import NotificationDeliveryError, ParseError, TransportError
from failwatch.logutil import resetRateLimit
from failwatch.models import AlertEvent
from failwatch.notifier import WebhookNotifier
from failwatch.status_client import PrinterStatusClient


def jsonResponse(payload, statusCode: int = 200) -> Mock:
    response = Mock()
    response.status_code = statusCode
    response.json.return_value = payload
    if statusCode >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"HTTP {statusCode}")
    else:
        response.raise_for_status.return_value = None
    return response


class TestPrinterStatusClient(unittest.TestCase):
    def setUp(self) -> None:
        resetRateLimit()
        self.client = PrinterStatusClient("Voron", "http://voron.local/", timeoutSeconds=3.0)

    def test_init_strips_trailing_slash(self) -> None:
        self.assertEqual(self.client.statusUrl, "http://voron.local/api/printer")

    @patch("failwatch.status_client.requests.get")
    def test_printing_true(self, mockGet: Mock) -> None:
        mockGet.return_value = jsonResponse({"state": {"flags": {"printing": True, "paused": False}}})

        self.assertTrue(self.client.isPrinting())
        mockGet.assert_called_once_with("http://voron.local/api/printer", timeout=3.0)

    @patch("failwatch.status_client.requests.get")
    def test_printing_false(self, mockGet: Mock) -> None:
        mockGet.return_value = jsonResponse({"state": {"flags": {"printing": False}}})

        self.assertFalse(self.client.isPrinting())

    @patch("failwatch.status_client.requests.get")
    def test_connection_error_is_not_printing(self, mockGet: Mock) -> None:
        mockGet.side_effect = requests.ConnectionError("refused")

        with self.assertLogs("failwatch.status_client", level="WARNING") as captured:
            self.assertFalse(self.client.isPrinting())
        self.assertIn("Voron: Status check failed", captured.output[0])

    @patch("failwatch.status_client.requests.get")
    def test_non_2xx_is_not_printing(self, mockGet: Mock) -> None:
        mockGet.return_value = jsonResponse({"state": {"flags": {"printing": True}}}, statusCode=503)

        self.assertFalse(self.client.isPrinting())

    @patch("failwatch.status_client.requests.get")
    def test_malformed_json_is_not_printing(self, mockGet: Mock) -> None:
        response = jsonResponse(None)
        response.json.side_effect = ValueError("Expecting value")
        mockGet.return_value = response

        self.assertFalse(self.client.isPrinting())

    @patch("failwatch.status_client.requests.get")
    def test_missing_flags_is_not_printing(self, mockGet: Mock) -> None:
        mockGet.return_value = jsonResponse({"state": {"text": "Operational"}})

        self.assertFalse(self.client.isPrinting())

    @patch("failwatch.status_client.requests.get")
    def test_repeated_failures_are_rate_limited(self, mockGet: Mock) -> None:
        mockGet.side_effect = requests.Timeout("timed out")
        logger = logging.getLogger("failwatch.status_client")

        with patch.object(logger, "warning") as mockWarning:
            for _ in range(5):
                self.client.isPrinting()

        self.assertEqual(mockWarning.call_count, 1)

    def test_extract_printing_rejects_non_boolean(self) -> None:
        with self.assertRaises(ParseError):
            PrinterStatusClient.extractPrinting({"state": {"flags": {"printing": "yes"}}})


class TestFailureDetectorClient(unittest.TestCase):
    def setUp(self) -> None:
        self.client = FailureDetectorClient("http://ml.local:3333/", timeoutSeconds=5.0)

    @patch("failwatch.detector_client.requests.get")
    def test_detect_parses_detections(self, mockGet: Mock) -> None:
        mockGet.return_value = jsonResponse(
            {"detections": [["failure", 0.82, [320, 240, 50, 60]], ["failure", 0.3, [10, 10, 5, 5]]]}
        )

        detections = self.client.detect("http://voron.local/webcam/?action=snapshot", label="Voron")

        mockGet.assert_called_once_with(
            "http://ml.local:3333/p",
            params={"img": "http://voron.local/webcam/?action=snapshot"},
            timeout=5.0,
        )
        self.assertEqual(len(detections), 2)
        self.assertEqual(detections[0].label, "failure")
        self.assertAlmostEqual(detections[0].confidence, 0.82)
        self.assertEqual(detections[0].box.corner(), (295.0, 210.0))

    @patch("failwatch.detector_client.requests.get")
    def test_empty_detections(self, mockGet: Mock) -> None:
        mockGet.return_value = jsonResponse({"detections": []})

        self.assertEqual(self.client.detect("http://cam.local/snap"), [])

    @patch("failwatch.detector_client.requests.get")
    def test_transport_error(self, mockGet: Mock) -> None:
        mockGet.side_effect = requests.ConnectionError("no route to host")

        with self.assertRaises(TransportError) as context:
            self.client.detect("http://cam.local/snap", label="Voron")
        self.assertEqual(context.exception.label, "Voron")

    @patch("failwatch.detector_client.requests.get")
    def test_missing_detections_key(self, mockGet: Mock) -> None:
        mockGet.return_value = jsonResponse({"error": "model not loaded"})

        with self.assertRaises(ParseError):
            self.client.detect("http://cam.local/snap")

    @patch("failwatch.detector_client.requests.get")
    def test_malformed_entry(self, mockGet: Mock) -> None:
        mockGet.return_value = jsonResponse({"detections": [["failure", 0.9]]})

        with self.assertRaises(ParseError):
            self.client.detect("http://cam.local/snap")


class TestWebhookNotifier(unittest.TestCase):
    @patch("failwatch.notifier.requests.post")
    def test_notify_posts_alert_payload(self, mockPost: Mock) -> None:
        mockPost.return_value = Mock(status_code=200)

        WebhookNotifier(timeoutSeconds=2.0).notify(
            "http://hooks.local/voron",
            AlertEvent(image="http://monitor.local/failures/snapshot_1.png"),
            label="Voron",
        )

        mockPost.assert_called_once_with(
            "http://hooks.local/voron",
            json={"message": "PrintFailure", "image": "http://monitor.local/failures/snapshot_1.png"},
            headers={"Content-Type": "application/json"},
            timeout=2.0,
        )

    @patch("failwatch.notifier.requests.post")
    def test_error_status_is_not_validated(self, mockPost: Mock) -> None:
        mockPost.return_value = Mock(status_code=500)

        WebhookNotifier().notify("http://hooks.local/voron", AlertEvent(image=None))

        mockPost.return_value.raise_for_status.assert_not_called()

    @patch("failwatch.notifier.requests.post")
    def test_transport_failure_raises_delivery_error(self, mockPost: Mock) -> None:
        mockPost.side_effect = requests.ConnectionError("refused")

        with self.assertRaises(NotificationDeliveryError):
            WebhookNotifier().notify("http://hooks.local/voron", AlertEvent(image=None), label="Voron")
