"""Incident class for reported problems."""

from datetime import datetime
from typing import Optional

from .calculations import ensure_aware
from .status import Severity


class Incident:
    """A problem reported against a bus."""

    def __init__(
            self,
            id: str,
            bus_id: str,
            reported_at: datetime,
            severity: Severity,
            garage_id: Optional[str] = None,
            reported_by: Optional[str] = None,
            description: Optional[str] = None,
            linked_maintenance_event_id: Optional[str] = None,
    ):
        self.id = id
        self.bus_id = bus_id
        self.reported_at = ensure_aware(reported_at)
        self.severity = severity
        self.garage_id = garage_id
        self.reported_by = reported_by
        self.description = description
        self.linked_maintenance_event_id = linked_maintenance_event_id
