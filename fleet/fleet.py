"""Fleet class - the aggregate of every record in one fleet data file."""

from typing import List, Optional

from .bus import Bus
from .forecast_snapshot import ForecastSnapshot
from .garage import Garage
from .incident import Incident
from .maintenance_event import MaintenanceEvent
from .notification_log import NotificationLog


class Fleet:
    """Garages, buses and their maintenance, incident and forecast records."""

    def __init__(
        self,
        garages: Optional[List[Garage]] = None,
        buses: Optional[List[Bus]] = None,
        maintenance_events: Optional[List[MaintenanceEvent]] = None,
        incidents: Optional[List[Incident]] = None,
        forecast_snapshots: Optional[List[ForecastSnapshot]] = None,
        notification_logs: Optional[List[NotificationLog]] = None,
    ):
        self.garages = garages or []
        self.buses = buses or []
        self.maintenance_events = maintenance_events or []
        self.incidents = incidents or []
        self.forecast_snapshots = forecast_snapshots or []
        self.notification_logs = notification_logs or []

    def get_garage(self, garage_id: str) -> Optional[Garage]:
        for garage in self.garages:
            if garage.id == garage_id:
                return garage
        return None

    def get_bus(self, bus_id: str) -> Optional[Bus]:
        for bus in self.buses:
            if bus.id == bus_id:
                return bus
        return None

    def get_bus_by_fleet_number(self, fleet_number: str) -> Optional[Bus]:
        """Find a bus by fleet number (case-insensitive)."""
        wanted = fleet_number.strip().lower()
        for bus in self.buses:
            if bus.fleet_number.lower() == wanted:
                return bus
        return None

    def get_maintenance_event(self, event_id: str) -> Optional[MaintenanceEvent]:
        for event in self.maintenance_events:
            if event.id == event_id:
                return event
        return None

    def get_events_for_bus(self, bus_id: str) -> List[MaintenanceEvent]:
        """Maintenance events for a bus, most recent first."""
        events = [e for e in self.maintenance_events if e.bus_id == bus_id]
        return sorted(events, key=lambda e: e.started_at, reverse=True)
