"""
Record store access for the forecasting engine.

Reads return a tagged result: Ok(records) when the fetch worked, or
Unavailable(reason) when it did not. The engine falls back to its defaults
on Unavailable instead of raising, so a bad data file never blocks a
forecast. Writes are not wrapped and raise normally.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Generic, List, Optional, TypeVar, Union

import yaml

from . import loader
from .calculations import ensure_aware
from .bus import Bus
from .fleet import Fleet
from .forecast_snapshot import ForecastSnapshot
from .incident import Incident
from .maintenance_event import MaintenanceEvent
from .notification_log import NotificationLog
from .status import EventStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Errors that mean "the data could not be read", as opposed to bugs
READ_ERRORS = (OSError, yaml.YAMLError, loader.FleetDataError)


class Ok(Generic[T]):
    """A successful fetch."""

    def __init__(self, records: List[T]):
        self.records = records

    def __repr__(self) -> str:
        return f"Ok({len(self.records)} records)"


class Unavailable:
    """A fetch that failed. Carries the reason for logging."""

    def __init__(self, reason: str):
        self.reason = reason

    def __repr__(self) -> str:
        return f"Unavailable({self.reason!r})"


FetchResult = Union[Ok[T], Unavailable]


def records_or_empty(result: FetchResult, what: str) -> List:
    """Records from an Ok result, or an empty list (logged) for Unavailable."""
    if isinstance(result, Unavailable):
        logger.info("%s unavailable, treating as empty: %s", what, result.reason)
        return []
    return result.records


def _aware(ts: Optional[datetime]) -> Optional[datetime]:
    return ensure_aware(ts) if ts is not None else None


class RecordStore:
    """
    Filtered reads over one fleet's records, plus the writes the prediction
    workflows need. Subclasses provide the Fleet.
    """

    def load(self) -> Fleet:
        """Load the whole fleet. Raises on failure."""
        raise NotImplementedError

    def _fetch(self, select: Callable[[Fleet], List[T]], what: str) -> FetchResult:
        try:
            fleet = self.load()
        except READ_ERRORS as e:
            logger.warning("Failed to read %s: %s", what, e)
            return Unavailable(f"{type(e).__name__}: {e}")
        # Errors raised while filtering propagate
        return Ok(select(fleet))

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def list_buses(self) -> FetchResult:
        return self._fetch(lambda fleet: list(fleet.buses), "buses")

    def list_maintenance_events(
        self,
        bus_id: Optional[str] = None,
        garage_id: Optional[str] = None,
        started_after: Optional[datetime] = None,
        started_before: Optional[datetime] = None,
        status: Optional[EventStatus] = None,
    ) -> FetchResult:
        """Maintenance events matching every filter given (bounds inclusive)."""
        started_after, started_before = _aware(started_after), _aware(started_before)

        def select(fleet: Fleet) -> List[MaintenanceEvent]:
            events = fleet.maintenance_events
            if bus_id is not None:
                events = [e for e in events if e.bus_id == bus_id]
            if garage_id is not None:
                events = [e for e in events if e.garage_id == garage_id]
            if started_after is not None:
                events = [e for e in events if e.started_at >= started_after]
            if started_before is not None:
                events = [e for e in events if e.started_at <= started_before]
            if status is not None:
                events = [e for e in events if e.status == status]
            return list(events)

        return self._fetch(select, "maintenance events")

    def list_incidents(
        self,
        bus_id: Optional[str] = None,
        reported_after: Optional[datetime] = None,
        reported_before: Optional[datetime] = None,
    ) -> FetchResult:
        """Incidents matching every filter given (bounds inclusive)."""
        reported_after, reported_before = _aware(reported_after), _aware(reported_before)

        def select(fleet: Fleet) -> List[Incident]:
            incidents = fleet.incidents
            if bus_id is not None:
                incidents = [i for i in incidents if i.bus_id == bus_id]
            if reported_after is not None:
                incidents = [i for i in incidents if i.reported_at >= reported_after]
            if reported_before is not None:
                incidents = [i for i in incidents if i.reported_at <= reported_before]
            return list(incidents)

        return self._fetch(select, "incidents")

    def list_forecast_snapshots(
        self,
        target_date: datetime,
        generated_before: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> FetchResult:
        """Snapshots for a target date, newest first. generated_before is exclusive."""
        target_date, generated_before = _aware(target_date), _aware(generated_before)

        def select(fleet: Fleet) -> List[ForecastSnapshot]:
            snapshots = [
                s for s in fleet.forecast_snapshots if s.target_date == target_date
            ]
            if generated_before is not None:
                snapshots = [s for s in snapshots if s.generated_at < generated_before]
            snapshots.sort(key=lambda s: s.generated_at, reverse=True)
            return snapshots[:limit] if limit is not None else snapshots

        return self._fetch(select, "forecast snapshots")

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def add_forecast_snapshot(self, snapshot: ForecastSnapshot) -> None:
        raise NotImplementedError

    def delete_forecast_snapshots(self, target_date: datetime) -> int:
        raise NotImplementedError

    def add_notification_log(self, log: NotificationLog) -> None:
        raise NotImplementedError

    def add_incident(self, incident: Incident) -> None:
        raise NotImplementedError

    def add_maintenance_event(self, event: MaintenanceEvent) -> None:
        raise NotImplementedError

    def update_maintenance_event(self, event: MaintenanceEvent) -> None:
        raise NotImplementedError

    def update_bus(self, bus: Bus) -> None:
        raise NotImplementedError

    def link_incident(self, incident_id: str, event_id: str) -> None:
        raise NotImplementedError


class YamlRecordStore(RecordStore):
    """Records kept in a fleet YAML file, re-read on every fetch."""

    def __init__(self, filename: Union[str, Path]):
        self.filename = Path(filename)

    def load(self) -> Fleet:
        return loader.load_fleet(self.filename)

    def add_forecast_snapshot(self, snapshot: ForecastSnapshot) -> None:
        loader.save_forecast_snapshot(self.filename, snapshot)

    def delete_forecast_snapshots(self, target_date: datetime) -> int:
        return loader.delete_forecast_snapshots(self.filename, target_date)

    def add_notification_log(self, log: NotificationLog) -> None:
        loader.save_notification_log(self.filename, log)

    def add_incident(self, incident: Incident) -> None:
        loader.save_incident(self.filename, incident)

    def add_maintenance_event(self, event: MaintenanceEvent) -> None:
        loader.save_maintenance_event(self.filename, event)

    def update_maintenance_event(self, event: MaintenanceEvent) -> None:
        loader.update_maintenance_event(self.filename, event)

    def update_bus(self, bus: Bus) -> None:
        loader.save_bus(self.filename, bus)

    def link_incident(self, incident_id: str, event_id: str) -> None:
        loader.link_incident(self.filename, incident_id, event_id)


class InMemoryRecordStore(RecordStore):
    """Records held in a Fleet object. Updates mutate the objects in place."""

    def __init__(self, fleet: Optional[Fleet] = None):
        self.fleet = fleet or Fleet()

    def load(self) -> Fleet:
        return self.fleet

    def add_forecast_snapshot(self, snapshot: ForecastSnapshot) -> None:
        if snapshot.id is None:
            snapshot.id = loader.new_id()
        self.fleet.forecast_snapshots.append(snapshot)

    def delete_forecast_snapshots(self, target_date: datetime) -> int:
        before = len(self.fleet.forecast_snapshots)
        self.fleet.forecast_snapshots = [
            s for s in self.fleet.forecast_snapshots if s.target_date != target_date
        ]
        return before - len(self.fleet.forecast_snapshots)

    def add_notification_log(self, log: NotificationLog) -> None:
        self.fleet.notification_logs.append(log)

    def add_incident(self, incident: Incident) -> None:
        self.fleet.incidents.append(incident)

    def add_maintenance_event(self, event: MaintenanceEvent) -> None:
        self.fleet.maintenance_events.append(event)

    def update_maintenance_event(self, event: MaintenanceEvent) -> None:
        if self.fleet.get_maintenance_event(event.id) is None:
            raise LookupError(f"No record with id '{event.id}' in maintenanceEvents")

    def update_bus(self, bus: Bus) -> None:
        if self.fleet.get_bus(bus.id) is None:
            raise LookupError(f"No record with id '{bus.id}' in buses")

    def link_incident(self, incident_id: str, event_id: str) -> None:
        for incident in self.fleet.incidents:
            if incident.id == incident_id:
                incident.linked_maintenance_event_id = event_id
                return
        raise LookupError(f"No record with id '{incident_id}' in incidents")
