"""Webhook delivery of print failure alerts."""

from __future__ import annotations

import json
import logging

import requests

from .errors import NotificationDeliveryError
from .models import AlertEvent

log = logging.getLogger(__name__)


class WebhookNotifier:
    """POST an ``AlertEvent`` as JSON to a webhook.

    Delivery is fire-and-forget: the response status is logged but not
    validated, and nothing is retried.
    """

    def __init__(self, timeoutSeconds: float = 10.0) -> None:
        self.timeoutSeconds = timeoutSeconds

    def notify(self, webhookUrl: str, event: AlertEvent, label: str = "") -> None:
        payload = event.toPayload()
        log.debug("%s: Sending alert to %s: %s", label or "notifier", webhookUrl, json.dumps(payload))
        try:
            response = requests.post(
                webhookUrl,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=self.timeoutSeconds,
            )
        except requests.RequestException as error:
            raise NotificationDeliveryError(
                f"Webhook {webhookUrl} could not be called: {error}",
                label=label or None,
            ) from error

        log.info("%s: Alert delivered to webhook (HTTP %s)", label or "notifier", response.status_code)


__all__ = ["WebhookNotifier"]
