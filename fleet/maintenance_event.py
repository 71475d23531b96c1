"""MaintenanceEvent class for repair and service records."""

from datetime import datetime
from typing import Optional

from .calculations import ensure_aware
from .status import BACKLOG_SEVERITIES, EventStatus, Severity


class MaintenanceEvent:
    """A piece of maintenance work on a bus at a garage."""

    def __init__(
            self,
            id: str,
            bus_id: str,
            garage_id: str,
            severity: Severity,
            status: EventStatus,
            started_at: datetime,
            completed_at: Optional[datetime] = None,
            mechanic_name: Optional[str] = None,
            description: Optional[str] = None,
            type: str = "REPAIR",
    ):
        self.id = id
        self.bus_id = bus_id
        self.garage_id = garage_id
        self.severity = severity
        self.status = status
        self.started_at = ensure_aware(started_at)
        self.completed_at = ensure_aware(completed_at) if completed_at else None
        self.mechanic_name = mechanic_name
        self.description = description
        self.type = type

    @property
    def is_open(self) -> bool:
        return self.status != EventStatus.COMPLETED

    @property
    def is_open_backlog(self) -> bool:
        """Open and severe enough to count towards the maintenance backlog."""
        return self.is_open and self.severity in BACKLOG_SEVERITIES

    @property
    def repair_hours(self) -> Optional[float]:
        """Hours from start to completion, None until completed with a timestamp."""
        if self.status != EventStatus.COMPLETED or self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds() / 3600
