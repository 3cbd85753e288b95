import asyncio
from types import SimpleNamespace

import pytest
import requests
from fastapi import WebSocketDisconnect

from core.config import settings
from utils import notifier
from utils.websocket_manager import ConnectionManager, change_event


class FakeSocket:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    async def accept(self):
        pass

    async def send_json(self, message):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(message)


def test_broadcast_drops_broken_subscribers():
    mgr = ConnectionManager()
    good, bad = FakeSocket(), FakeSocket(fail=True)

    async def run():
        await mgr.connect(good, feed="alerts")
        await mgr.connect(bad, feed="alerts")
        await mgr.broadcast(change_event("emergency_alerts", "INSERT", {"id": 1}), feed="alerts")

    asyncio.run(run())
    assert good.sent == [{"table": "emergency_alerts", "type": "INSERT", "record": {"id": 1}}]
    assert mgr.active["alerts"] == [good]


def test_feeds_refuse_non_staff(client, signup):
    tourist = signup()
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"/ws/alerts?token={tourist['token']}") as ws:
            ws.receive_text()
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws/sessions") as ws:
            ws.receive_text()


def test_feeds_accept_staff(client, signup):
    police = signup(role="police")
    with client.websocket_connect(f"/ws/sessions?token={police['token']}"):
        pass


class DummyResp:
    def __init__(self, status=200):
        self.status_code = status

    def raise_for_status(self):
        if not (200 <= self.status_code < 300):
            raise requests.HTTPError(f"status {self.status_code}")


def _enable_webhook(monkeypatch):
    monkeypatch.setenv("TESTING", "0")
    monkeypatch.setattr(settings, "TESTING", False)
    monkeypatch.setattr(settings, "ALERT_WEBHOOK_URL", "https://hooks.example/emergency")
    monkeypatch.setattr(settings, "ALERT_WEBHOOK_TOKEN", "hook-token")


def test_notifier_disabled_in_tests():
    alert = SimpleNamespace(id=1, user_id=1, alert_type="panic", message=None, location_lat=None, location_lng=None)
    assert notifier.notify_emergency(notifier.emergency_payload(alert, None)) is False


def test_panic_notifies_emergency_contact(client, signup, monkeypatch):
    _enable_webhook(monkeypatch)
    calls = []

    def fake_post(url, json=None, headers=None, timeout=None):
        # delivered from a worker thread after the response, not on the event loop
        with pytest.raises(RuntimeError):
            asyncio.get_running_loop()
        calls.append({"url": url, "json": json, "headers": headers})
        return DummyResp()

    monkeypatch.setattr(requests, "post", fake_post)

    tourist = signup(full_name="Ines", emergency_contact_name="Rui", emergency_contact_phone="+351 900")
    r = client.post("/alerts/panic", json={"lat": 38.7, "lng": -9.1}, headers=tourist["headers"])
    assert r.status_code == 201

    assert len(calls) == 1
    sent = calls[0]
    assert sent["url"] == "https://hooks.example/emergency"
    assert sent["headers"]["Authorization"] == "Bearer hook-token"
    assert sent["json"]["alert_id"] == r.json()["id"]
    assert sent["json"]["tourist"]["emergency_contact_name"] == "Rui"


def test_failed_notification_keeps_alert(client, signup, monkeypatch):
    _enable_webhook(monkeypatch)
    monkeypatch.setattr(requests, "post", lambda *a, **kw: DummyResp(status=503))

    tourist = signup()
    r = client.post("/alerts/panic", json={}, headers=tourist["headers"])
    assert r.status_code == 201
    assert len(client.get("/alerts/", headers=tourist["headers"]).json()) == 1
