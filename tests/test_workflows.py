#!/usr/bin/env python3
"""Tests for issue logging and maintenance completion."""

import pytest

from fleet import (
    BusStatus,
    EventStatus,
    Notifier,
    PredictionEngine,
    Severity,
    complete_maintenance,
    log_issue,
    update_maintenance_status,
)


@pytest.fixture
def store(make_store, make_bus):
    return make_store(buses=[make_bus("bus-1", fleet_number="101")])


@pytest.fixture
def notifier(store):
    return Notifier(store, "+15550100")


class TestLogIssue:
    """Tests for log_issue."""

    def test_incident_takes_bus_into_garage(self, store, now):
        """An incident opens an event, links it and takes the bus in."""
        result = log_issue(store, "101", "Brake noise", "Sam", now=now)
        assert result.bus.status == BusStatus.IN_MAINTENANCE
        assert result.incident.reported_at == now
        assert result.incident.linked_maintenance_event_id == result.maintenance_event.id
        assert result.maintenance_event.status == EventStatus.NEW
        assert result.maintenance_event.mechanic_name == "Sam"
        assert store.fleet.incidents == [result.incident]
        assert store.fleet.maintenance_events == [result.maintenance_event]

    def test_fleet_number_is_case_insensitive(self, make_store, make_bus, now):
        """Fleet numbers match regardless of case."""
        store = make_store(buses=[make_bus("bus-1", fleet_number="AB12")])
        assert log_issue(store, "ab12", "Leak", "Sam", now=now).bus.id == "bus-1"

    def test_explicit_bus_status(self, store, now):
        """IN_MAINTENANCE status starts the event in progress."""
        result = log_issue(
            store, "101", "Engine", "Sam", bus_status=BusStatus.IN_MAINTENANCE, now=now
        )
        assert result.maintenance_event.status == EventStatus.IN_PROGRESS

    def test_not_taken_into_garage(self, store, now):
        """A repair left in service records no incident."""
        result = log_issue(
            store, "101", "Scratch", "Sam", type="REPAIR", take_into_garage=False, now=now
        )
        assert result.bus.status == BusStatus.AVAILABLE
        assert result.incident is None
        assert store.fleet.incidents == []

    def test_notifies_high_severity(self, store, notifier, now):
        """High severity alerts ops before the garage notice."""
        log_issue(store, "101", "Fire", "Sam", severity=Severity.HIGH, notifier=notifier, now=now)
        types = [log.type for log in store.fleet.notification_logs]
        assert types == ["INCIDENT", "BUS_IN_GARAGE"]

    def test_medium_severity_only_garage_notice(self, store, notifier, now):
        """Medium severity only sends the garage notice."""
        log_issue(store, "101", "Seat", "Sam", notifier=notifier, now=now)
        assert [log.type for log in store.fleet.notification_logs] == ["BUS_IN_GARAGE"]

    def test_critical_reruns_predictions(self, store, notifier, now):
        """Critical issues re-run the forecast."""
        engine = PredictionEngine(store)
        result = log_issue(
            store, "101", "Fire", "Sam",
            severity=Severity.CRITICAL, notifier=notifier, engine=engine, now=now,
        )
        assert result.prediction_run is not None
        assert len(store.fleet.forecast_snapshots) == 7

    def test_missing_fields(self, store, now):
        """Blank description or mechanic is rejected."""
        with pytest.raises(ValueError):
            log_issue(store, "101", "", "Sam", now=now)
        with pytest.raises(ValueError):
            log_issue(store, "101", "Brakes", " ", now=now)

    def test_unknown_bus(self, store, now):
        """An unknown fleet number raises LookupError."""
        with pytest.raises(LookupError):
            log_issue(store, "999", "Brakes", "Sam", now=now)


class TestUpdateMaintenanceStatus:
    """Tests for update_maintenance_status and complete_maintenance."""

    def test_complete_returns_bus_to_service(self, store, make_event, notifier, now):
        """Completing stamps the time and frees the bus."""
        bus = store.fleet.buses[0]
        bus.status = BusStatus.IN_MAINTENANCE
        event = make_event(status=EventStatus.IN_PROGRESS)
        store.fleet.maintenance_events.append(event)

        complete_maintenance(store, event.id, notifier, now)
        assert event.status == EventStatus.COMPLETED
        assert event.completed_at == now
        assert bus.status == BusStatus.AVAILABLE
        assert [log.type for log in store.fleet.notification_logs] == ["REPAIR_COMPLETED"]

    def test_move_forward(self, store, make_event, now):
        """NEW can move to IN_PROGRESS."""
        event = make_event()
        store.fleet.maintenance_events.append(event)
        update_maintenance_status(store, event.id, EventStatus.IN_PROGRESS, now=now)
        assert event.status == EventStatus.IN_PROGRESS
        assert event.completed_at is None

    def test_cannot_move_backwards(self, store, make_event, now):
        """IN_PROGRESS cannot go back to NEW."""
        event = make_event(status=EventStatus.IN_PROGRESS)
        store.fleet.maintenance_events.append(event)
        with pytest.raises(ValueError):
            update_maintenance_status(store, event.id, EventStatus.NEW, now=now)

    def test_cannot_complete_twice(self, store, make_event, now):
        """A completed event cannot be completed again."""
        event = make_event(repair_hours=3)
        store.fleet.maintenance_events.append(event)
        with pytest.raises(ValueError, match="already completed"):
            complete_maintenance(store, event.id, now=now)

    def test_unknown_event(self, store, now):
        """An unknown event id raises LookupError."""
        with pytest.raises(LookupError):
            complete_maintenance(store, "evt-404", now=now)
