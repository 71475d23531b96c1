"""
Bus fleet availability forecasting.

This package provides the fleet data model and the forecasting engine:
- BusStatus, Severity, EventStatus: record states
- Garage, Bus, MaintenanceEvent, Incident: fleet records
- ForecastSnapshot: stored forecast for one target date
- Fleet: aggregate of every record in a data file
- RecordStore: filtered reads returning Ok / Unavailable
- PredictionEngine: metrics -> risk -> per-date projection -> drop alerts
"""

from .status import BusStatus, Severity, EventStatus, NotificationStatus
from .garage import Garage
from .bus import Bus
from .maintenance_event import MaintenanceEvent
from .incident import Incident
from .forecast_snapshot import ForecastSnapshot
from .notification_log import NotificationLog
from .fleet import Fleet
from .results import BusMetrics, HighRiskBus, ForecastResult, DropCheck, RunSummary
from .config import Thresholds, DEFAULT_THRESHOLDS, Settings, load_thresholds
from .calculations import start_of_day, window_start, hours_between
from .loader import load_fleet
from .store import (
    Ok,
    Unavailable,
    RecordStore,
    YamlRecordStore,
    InMemoryRecordStore,
)
from .metrics import aggregate_bus_metrics
from .risk import classify_bus, identify_high_risk_buses, should_escalate
from .durations import average_repair_hours, repair_hours_by_garage
from .projector import project_for_date
from .notifier import Notifier, DeliveryError
from .engine import PredictionEngine
from .workflows import log_issue, update_maintenance_status, complete_maintenance

__all__ = [
    "BusStatus",
    "Severity",
    "EventStatus",
    "NotificationStatus",
    "Garage",
    "Bus",
    "MaintenanceEvent",
    "Incident",
    "ForecastSnapshot",
    "NotificationLog",
    "Fleet",
    "BusMetrics",
    "HighRiskBus",
    "ForecastResult",
    "DropCheck",
    "RunSummary",
    "Thresholds",
    "DEFAULT_THRESHOLDS",
    "Settings",
    "load_thresholds",
    "start_of_day",
    "window_start",
    "hours_between",
    "load_fleet",
    "Ok",
    "Unavailable",
    "RecordStore",
    "YamlRecordStore",
    "InMemoryRecordStore",
    "aggregate_bus_metrics",
    "classify_bus",
    "identify_high_risk_buses",
    "should_escalate",
    "average_repair_hours",
    "repair_hours_by_garage",
    "project_for_date",
    "Notifier",
    "DeliveryError",
    "PredictionEngine",
    "log_issue",
    "update_maintenance_status",
    "complete_maintenance",
]
