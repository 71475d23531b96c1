#!/usr/bin/env python3
"""Tests for alert dispatch."""

from fleet import DeliveryError, Notifier
from fleet.notifier import PLACEHOLDER_PHONE, is_valid_recipient
from fleet.status import NotificationStatus


class TestIsValidRecipient:
    """Tests for is_valid_recipient."""

    def test_valid(self):
        """A real number is valid."""
        assert is_valid_recipient("+15550100")

    def test_missing_or_placeholder(self):
        """Blank and placeholder numbers are invalid."""
        assert not is_valid_recipient(None)
        assert not is_valid_recipient("  ")
        assert not is_valid_recipient(PLACEHOLDER_PHONE)


class TestSend:
    """Tests for Notifier.send."""

    def test_logs_only_without_transport(self, make_store, now):
        """Without a transport the message is logged and recorded as sent."""
        store = make_store()
        assert Notifier(store, "+15550100").send("+15550100", "hi", "INCIDENT", now=now)
        log = store.fleet.notification_logs[0]
        assert log.status == NotificationStatus.SENT
        assert log.sent_to == "+15550100"
        assert log.sent_at == now

    def test_uses_transport(self, make_store):
        """The transport receives the recipient and message."""
        sent = []
        notifier = Notifier(make_store(), transport=lambda to, msg: sent.append((to, msg)))
        assert notifier.send("+15550100", "hello", "INCIDENT")
        assert sent == [("+15550100", "hello")]

    def test_delivery_failure_is_recorded(self, make_store):
        """A transport failure is recorded as failed."""
        def failing(to, message):
            raise DeliveryError("gateway down")

        store = make_store()
        assert not Notifier(store, transport=failing).send("+15550100", "x", "INCIDENT")
        assert store.fleet.notification_logs[0].status == NotificationStatus.FAILED

    def test_invalid_recipient_is_recorded(self, make_store):
        """An invalid recipient is recorded as failed and not sent."""
        sent = []
        store = make_store()
        notifier = Notifier(store, transport=lambda to, msg: sent.append(to))
        assert not notifier.send(PLACEHOLDER_PHONE, "x", "INCIDENT")
        assert sent == []
        assert store.fleet.notification_logs[0].status == NotificationStatus.FAILED


class TestMessages:
    """Tests for the notify_* helpers."""

    def test_forecast_update(self, make_store):
        """Forecast alerts are sent as-is."""
        store = make_store()
        Notifier(store, "+15550100").notify_forecast_update("dropped")
        log = store.fleet.notification_logs[0]
        assert log.type == "FORECAST_UPDATE"
        assert log.message == "dropped"

    def test_incident(self, make_store):
        """Incident alerts name the bus and severity."""
        store = make_store()
        Notifier(store, "+15550100").notify_incident("BUS-1", "HIGH", "Brakes", "bus-1")
        log = store.fleet.notification_logs[0]
        assert log.type == "INCIDENT"
        assert log.message == "NEW INCIDENT: Bus BUS-1\nSeverity: HIGH\nBrakes"
        assert log.bus_id == "bus-1"

    def test_repair_completed(self, make_store):
        """Repair notices say the bus is available."""
        store = make_store()
        Notifier(store, "+15550100").notify_repair_completed("BUS-1", "North Depot")
        assert "now AVAILABLE" in store.fleet.notification_logs[0].message
