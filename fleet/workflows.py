"""Issue logging and maintenance status updates."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from .bus import Bus
from .calculations import ensure_aware
from .engine import PredictionEngine
from .incident import Incident
from .loader import new_id
from .maintenance_event import MaintenanceEvent
from .notifier import Notifier
from .results import RunSummary
from .status import BusStatus, EventStatus, Severity
from .store import RecordStore

logger = logging.getLogger(__name__)

# Lifecycle order; events can only move forward
_EVENT_ORDER = [EventStatus.NEW, EventStatus.IN_PROGRESS, EventStatus.COMPLETED]


@dataclass
class IssueLog:
    """Records created by log_issue."""

    bus: Bus
    maintenance_event: MaintenanceEvent
    incident: Optional[Incident] = None
    prediction_run: Optional[RunSummary] = None


def log_issue(
    store: RecordStore,
    fleet_number: str,
    description: str,
    mechanic_name: str,
    severity: Severity = Severity.MEDIUM,
    type: str = "INCIDENT",
    take_into_garage: bool = True,
    garage_id: Optional[str] = None,
    bus_status: Optional[BusStatus] = None,
    notifier: Optional[Notifier] = None,
    engine: Optional[PredictionEngine] = None,
    now: Optional[datetime] = None,
) -> IssueLog:
    """
    Log a problem with a bus.

    - INCIDENT issues also record an incident; CRITICAL/HIGH ones alert ops.
    - A maintenance event is opened (IN_PROGRESS if the bus goes into
      maintenance, NEW otherwise).
    - The bus moves to bus_status, or IN_MAINTENANCE when taken into the
      garage, and is assigned to the garage.
    - CRITICAL issues re-run predictions when an engine is given.

    Raises ValueError for missing description/mechanic and LookupError for
    an unknown bus.
    """
    if not description or not description.strip():
        raise ValueError("Description is required")
    if not mechanic_name or not mechanic_name.strip():
        raise ValueError("Mechanic name is required")

    now = ensure_aware(now) if now else datetime.now(timezone.utc)
    fleet = store.load()
    bus = fleet.get_bus_by_fleet_number(fleet_number)
    if bus is None:
        raise LookupError(f"Bus '{fleet_number}' not found")

    final_garage_id = garage_id or bus.garage_id
    if not final_garage_id:
        raise ValueError("Garage ID is required")

    incident = None
    if type == "INCIDENT":
        incident = Incident(
            id=new_id(),
            bus_id=bus.id,
            reported_at=now,
            severity=severity,
            garage_id=final_garage_id,
            reported_by=mechanic_name,
            description=description,
        )
        store.add_incident(incident)
        if notifier is not None and severity in (Severity.CRITICAL, Severity.HIGH):
            notifier.notify_incident(bus.fleet_number, severity.value, description, bus.id)

    event = MaintenanceEvent(
        id=new_id(),
        bus_id=bus.id,
        garage_id=final_garage_id,
        severity=severity,
        status=(
            EventStatus.IN_PROGRESS
            if bus_status == BusStatus.IN_MAINTENANCE
            else EventStatus.NEW
        ),
        started_at=now,
        mechanic_name=mechanic_name,
        description=description,
        type=type,
    )
    store.add_maintenance_event(event)
    logger.info("Maintenance event %s created for bus %s", event.id, bus.fleet_number)

    if bus_status is not None:
        bus.status = bus_status
    elif take_into_garage:
        bus.status = BusStatus.IN_MAINTENANCE
    bus.garage_id = final_garage_id
    store.update_bus(bus)

    if notifier is not None and bus.status == BusStatus.IN_MAINTENANCE:
        garage = fleet.get_garage(final_garage_id)
        if garage is not None:
            notifier.notify_bus_in_garage(bus.fleet_number, garage.name, bus.id)

    if incident is not None:
        store.link_incident(incident.id, event.id)
        incident.linked_maintenance_event_id = event.id

    prediction_run = None
    if severity == Severity.CRITICAL and engine is not None:
        prediction_run = engine.run_predictions(notifier, now=now)

    return IssueLog(
        bus=bus,
        maintenance_event=event,
        incident=incident,
        prediction_run=prediction_run,
    )


def update_maintenance_status(
    store: RecordStore,
    event_id: str,
    status: EventStatus,
    notifier: Optional[Notifier] = None,
    now: Optional[datetime] = None,
) -> MaintenanceEvent:
    """
    Move a maintenance event forward in its lifecycle.

    Completing an event stamps completed_at (once only) and returns the bus
    to AVAILABLE. Raises LookupError for an unknown event and ValueError for
    a backwards move or a second completion.
    """
    now = ensure_aware(now) if now else datetime.now(timezone.utc)
    fleet = store.load()
    event = fleet.get_maintenance_event(event_id)
    if event is None:
        raise LookupError(f"Maintenance event '{event_id}' not found")

    if event.status == EventStatus.COMPLETED:
        raise ValueError(f"Maintenance event '{event_id}' is already completed")
    if _EVENT_ORDER.index(status) < _EVENT_ORDER.index(event.status):
        raise ValueError(
            f"Cannot move maintenance event from {event.status.value} to {status.value}"
        )

    event.status = status
    if status == EventStatus.COMPLETED:
        event.completed_at = now
    store.update_maintenance_event(event)

    if status == EventStatus.COMPLETED:
        bus = fleet.get_bus(event.bus_id)
        if bus is not None:
            bus.status = BusStatus.AVAILABLE
            store.update_bus(bus)
            garage = fleet.get_garage(event.garage_id)
            if notifier is not None and garage is not None:
                notifier.notify_repair_completed(bus.fleet_number, garage.name, bus.id)
        else:
            logger.warning("Completed event %s has no matching bus %s", event.id, event.bus_id)

    return event


def complete_maintenance(
    store: RecordStore,
    event_id: str,
    notifier: Optional[Notifier] = None,
    now: Optional[datetime] = None,
) -> MaintenanceEvent:
    """Mark a maintenance event COMPLETED."""
    return update_maintenance_status(store, event_id, EventStatus.COMPLETED, notifier, now)
