"""Shared fixtures: a fixed clock and record factories."""

from datetime import datetime, timedelta, timezone

import pytest

from fleet import (
    Bus,
    BusStatus,
    EventStatus,
    Fleet,
    Garage,
    Incident,
    InMemoryRecordStore,
    MaintenanceEvent,
    Severity,
)

NOW = datetime(2025, 12, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_bus():
    def _make(id="bus-1", status=BusStatus.AVAILABLE, garage_id="g-1", fleet_number=None):
        return Bus(id, fleet_number or id.upper(), status, garage_id)

    return _make


@pytest.fixture
def make_event():
    counter = iter(range(1, 10000))

    def _make(
        bus_id="bus-1",
        days_ago=1.0,
        severity=Severity.MEDIUM,
        status=EventStatus.NEW,
        garage_id="g-1",
        repair_hours=None,
    ):
        started = NOW - timedelta(days=days_ago)
        completed = None
        if repair_hours is not None:
            status = EventStatus.COMPLETED
            completed = started + timedelta(hours=repair_hours)
        return MaintenanceEvent(
            f"evt-{next(counter)}", bus_id, garage_id, severity, status, started, completed
        )

    return _make


@pytest.fixture
def make_incident():
    counter = iter(range(1, 10000))

    def _make(bus_id="bus-1", days_ago=1.0, severity=Severity.MEDIUM):
        return Incident(
            f"inc-{next(counter)}", bus_id, NOW - timedelta(days=days_ago), severity
        )

    return _make


@pytest.fixture
def make_store():
    def _make(buses=(), events=(), incidents=(), snapshots=(), garages=None):
        fleet = Fleet(
            garages=garages if garages is not None else [Garage("g-1", "North Depot", "NTH")],
            buses=list(buses),
            maintenance_events=list(events),
            incidents=list(incidents),
            forecast_snapshots=list(snapshots),
        )
        return InMemoryRecordStore(fleet)

    return _make


class BrokenStore(InMemoryRecordStore):
    """A store whose reads all fail."""

    def load(self):
        raise OSError("disk on fire")


@pytest.fixture
def broken_store():
    return BrokenStore()
