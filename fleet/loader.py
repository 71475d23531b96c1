"""YAML loading and saving utilities for fleet data."""

import uuid
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import yaml
from dateutil.parser import isoparse

from .bus import Bus
from .calculations import ensure_aware
from .fleet import Fleet
from .forecast_snapshot import ForecastSnapshot
from .garage import Garage
from .incident import Incident
from .maintenance_event import MaintenanceEvent
from .notification_log import NotificationLog
from .status import BusStatus, EventStatus, NotificationStatus, Severity


class FleetDataError(ValueError):
    """A fleet data file holds a record that can't be parsed."""


def parse_timestamp(value: Union[str, date, datetime, None]) -> Optional[datetime]:
    """
    Parse a timestamp from YAML.

    PyYAML already turns unquoted ISO timestamps into datetimes; quoted ones
    arrive as strings. Bare dates mean midnight. Naive values are UTC.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_aware(value)
    if isinstance(value, date):
        return ensure_aware(datetime(value.year, value.month, value.day))
    return ensure_aware(isoparse(str(value)))


def format_timestamp(ts: Optional[datetime]) -> Optional[str]:
    return ts.isoformat() if ts is not None else None


def new_id() -> str:
    return str(uuid.uuid4())


def _parse_garage(dct: Dict[str, Any]) -> Garage:
    return Garage(str(dct["id"]), dct["name"], dct["code"])


def _parse_bus(dct: Dict[str, Any]) -> Bus:
    return Bus(
        str(dct["id"]),
        str(dct["fleetNumber"]),
        BusStatus(dct.get("status", "AVAILABLE")),
        str(dct["garageId"]),
        dct.get("mileage"),
    )


def _parse_maintenance_event(dct: Dict[str, Any]) -> MaintenanceEvent:
    return MaintenanceEvent(
        str(dct["id"]),
        str(dct["busId"]),
        str(dct["garageId"]),
        Severity(dct["severity"]),
        EventStatus(dct.get("status", "NEW")),
        parse_timestamp(dct["startedAt"]),
        parse_timestamp(dct.get("completedAt")),
        dct.get("mechanicName"),
        dct.get("description"),
        dct.get("type", "REPAIR"),
    )


def _parse_incident(dct: Dict[str, Any]) -> Incident:
    return Incident(
        str(dct["id"]),
        str(dct["busId"]),
        parse_timestamp(dct["reportedAt"]),
        Severity(dct["severity"]),
        dct.get("garageId"),
        dct.get("reportedBy"),
        dct.get("description"),
        dct.get("linkedMaintenanceEventId"),
    )


def _parse_snapshot(dct: Dict[str, Any]) -> ForecastSnapshot:
    return ForecastSnapshot(
        parse_timestamp(dct["targetDate"]),
        parse_timestamp(dct["generatedAt"]),
        int(dct["availableBusCount"]),
        int(dct["unavailableBusCount"]),
        int(dct["highRiskBusCount"]),
        dct.get("metadata"),
        dct.get("id"),
    )


def _parse_notification_log(dct: Dict[str, Any]) -> NotificationLog:
    return NotificationLog(
        dct["type"],
        dct["message"],
        dct["sentTo"],
        parse_timestamp(dct["sentAt"]),
        NotificationStatus(dct["status"]),
        dct.get("busId"),
    )


def _parse_list(data: Dict[str, Any], key: str, parse: Callable) -> List:
    records = []
    for index, item in enumerate(data.get(key) or []):
        try:
            records.append(parse(item))
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise FleetDataError(f"{key}[{index}]: {type(e).__name__}: {e}") from e
    return records


def fleet_from_dict(data: Optional[Dict[str, Any]]) -> Fleet:
    """Build a Fleet from raw YAML data. Malformed records raise FleetDataError."""
    data = data or {}
    if not isinstance(data, dict):
        raise FleetDataError(f"Expected a mapping at the top level, got {type(data).__name__}")
    return Fleet(
        garages=_parse_list(data, "garages", _parse_garage),
        buses=_parse_list(data, "buses", _parse_bus),
        maintenance_events=_parse_list(
            data, "maintenanceEvents", _parse_maintenance_event
        ),
        incidents=_parse_list(data, "incidents", _parse_incident),
        forecast_snapshots=_parse_list(data, "forecastSnapshots", _parse_snapshot),
        notification_logs=_parse_list(
            data, "notificationLogs", _parse_notification_log
        ),
    )


def load_fleet(filename: Union[str, Path]) -> Fleet:
    """Load a fleet from a YAML file."""
    return fleet_from_dict(_load_raw(filename))


# =============================================================================
# Serialization (camelCase keys, None values omitted)
# =============================================================================


def _bus_to_dict(bus: Bus) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "id": bus.id,
        "fleetNumber": bus.fleet_number,
        "status": bus.status.value,
        "garageId": bus.garage_id,
    }
    if bus.mileage is not None:
        d["mileage"] = bus.mileage
    return d


def _event_to_dict(event: MaintenanceEvent) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "id": event.id,
        "busId": event.bus_id,
        "garageId": event.garage_id,
        "type": event.type,
        "severity": event.severity.value,
        "status": event.status.value,
        "startedAt": format_timestamp(event.started_at),
    }
    if event.completed_at is not None:
        d["completedAt"] = format_timestamp(event.completed_at)
    if event.mechanic_name is not None:
        d["mechanicName"] = event.mechanic_name
    if event.description is not None:
        d["description"] = event.description
    return d


def _incident_to_dict(incident: Incident) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "id": incident.id,
        "busId": incident.bus_id,
        "severity": incident.severity.value,
        "reportedAt": format_timestamp(incident.reported_at),
    }
    if incident.garage_id is not None:
        d["garageId"] = incident.garage_id
    if incident.reported_by is not None:
        d["reportedBy"] = incident.reported_by
    if incident.description is not None:
        d["description"] = incident.description
    if incident.linked_maintenance_event_id is not None:
        d["linkedMaintenanceEventId"] = incident.linked_maintenance_event_id
    return d


def _snapshot_to_dict(snapshot: ForecastSnapshot) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "id": snapshot.id or new_id(),
        "targetDate": format_timestamp(snapshot.target_date),
        "generatedAt": format_timestamp(snapshot.generated_at),
        "availableBusCount": snapshot.available_bus_count,
        "unavailableBusCount": snapshot.unavailable_bus_count,
        "highRiskBusCount": snapshot.high_risk_bus_count,
    }
    if snapshot.metadata:
        d["metadata"] = snapshot.metadata
    return d


def _notification_log_to_dict(log: NotificationLog) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "type": log.type,
        "message": log.message,
        "sentTo": log.sent_to,
        "sentAt": format_timestamp(log.sent_at),
        "status": log.status.value,
    }
    if log.bus_id is not None:
        d["busId"] = log.bus_id
    return d


# =============================================================================
# Writers: load raw YAML, change it, write it back
# =============================================================================


def _load_raw(filename: Union[str, Path]) -> Dict[str, Any]:
    with open(filename, "r") as fp:
        return yaml.load(fp, Loader=yaml.SafeLoader) or {}


def _write_raw(filename: Union[str, Path], data: Dict[str, Any]) -> None:
    with open(filename, "w") as fp:
        yaml.dump(
            data,
            fp,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=120,
        )


def _append(filename: Union[str, Path], key: str, record: Dict[str, Any]) -> None:
    data = _load_raw(filename)
    if data.get(key) is None:
        data[key] = []
    data[key].append(record)
    _write_raw(filename, data)


def _find_record(data: Dict[str, Any], key: str, record_id: str) -> Dict[str, Any]:
    for record in data.get(key) or []:
        if str(record.get("id")) == record_id:
            return record
    raise LookupError(f"No record with id '{record_id}' in {key}")


def save_forecast_snapshot(
    filename: Union[str, Path], snapshot: ForecastSnapshot
) -> None:
    """Append a forecast snapshot to a fleet YAML file."""
    _append(filename, "forecastSnapshots", _snapshot_to_dict(snapshot))


def delete_forecast_snapshots(filename: Union[str, Path], target_date: datetime) -> int:
    """
    Remove every snapshot for a target date.

    Returns the number of snapshots removed.
    """
    data = _load_raw(filename)
    snapshots = data.get("forecastSnapshots") or []
    kept = [s for s in snapshots if parse_timestamp(s["targetDate"]) != target_date]
    data["forecastSnapshots"] = kept
    _write_raw(filename, data)
    return len(snapshots) - len(kept)


def save_incident(filename: Union[str, Path], incident: Incident) -> None:
    """Append an incident to a fleet YAML file."""
    _append(filename, "incidents", _incident_to_dict(incident))


def save_maintenance_event(filename: Union[str, Path], event: MaintenanceEvent) -> None:
    """Append a maintenance event to a fleet YAML file."""
    _append(filename, "maintenanceEvents", _event_to_dict(event))


def save_notification_log(filename: Union[str, Path], log: NotificationLog) -> None:
    """Append a notification outcome to a fleet YAML file."""
    _append(filename, "notificationLogs", _notification_log_to_dict(log))


def save_bus(filename: Union[str, Path], bus: Bus) -> None:
    """
    Replace a bus record (matched by id) in a fleet YAML file.

    Raises LookupError if the bus is not in the file.
    """
    data = _load_raw(filename)
    record = _find_record(data, "buses", bus.id)
    record.clear()
    record.update(_bus_to_dict(bus))
    _write_raw(filename, data)


def update_maintenance_event(
    filename: Union[str, Path], event: MaintenanceEvent
) -> None:
    """
    Replace a maintenance event (matched by id) in a fleet YAML file.

    Raises LookupError if the event is not in the file.
    """
    data = _load_raw(filename)
    record = _find_record(data, "maintenanceEvents", event.id)
    record.clear()
    record.update(_event_to_dict(event))
    _write_raw(filename, data)


def link_incident(
    filename: Union[str, Path], incident_id: str, event_id: str
) -> None:
    """Link an incident to the maintenance event opened for it."""
    data = _load_raw(filename)
    record = _find_record(data, "incidents", incident_id)
    record["linkedMaintenanceEventId"] = event_id
    _write_raw(filename, data)
