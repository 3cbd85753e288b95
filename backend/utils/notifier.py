"""Outbound emergency notification for panic alerts."""
import logging
import os

import requests

from core.config import settings

logger = logging.getLogger(__name__)


def notifications_enabled() -> bool:
    env_testing = os.environ.get("TESTING") in ("1", "true", "True")
    return bool(settings.ALERT_WEBHOOK_URL) and not (settings.TESTING or env_testing)


def emergency_payload(alert, profile) -> dict:
    """Webhook body for a panic alert and the tourist's emergency contact."""
    return {
        "alert_id": alert.id,
        "user_id": alert.user_id,
        "alert_type": alert.alert_type,
        "message": alert.message,
        "location": {"lat": alert.location_lat, "lng": alert.location_lng},
        "tourist": {
            "full_name": profile.full_name if profile else None,
            "phone": profile.phone if profile else None,
            "emergency_contact_name": profile.emergency_contact_name if profile else None,
            "emergency_contact_phone": profile.emergency_contact_phone if profile else None,
        },
    }


def notify_emergency(body: dict) -> bool:
    """POST `body` to the configured webhook. Returns True when delivered.

    Blocking; routes schedule it as a background task so it runs in a worker
    thread after the response. The alert is already committed by then, so
    failures are logged and reported through the return value only.
    """
    if not notifications_enabled():
        return False

    headers = {}
    if settings.ALERT_WEBHOOK_TOKEN:
        headers["Authorization"] = f"Bearer {settings.ALERT_WEBHOOK_TOKEN}"
    try:
        resp = requests.post(
            settings.ALERT_WEBHOOK_URL,
            json=body,
            headers=headers,
            timeout=settings.ALERT_WEBHOOK_TIMEOUT,
        )
        resp.raise_for_status()
    except requests.RequestException as e:
        logger.warning("Emergency notification for alert %s failed: %s", body.get("alert_id"), e)
        return False
    logger.info("Emergency notification sent for alert %s", body.get("alert_id"))
    return True
