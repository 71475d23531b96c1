"""Status enums for buses, maintenance events and notifications."""

from enum import Enum


class BusStatus(Enum):
    """Current operational state of a bus."""

    AVAILABLE = "AVAILABLE"
    IN_MAINTENANCE = "IN_MAINTENANCE"
    OUT_OF_SERVICE = "OUT_OF_SERVICE"


class Severity(Enum):
    """Severity of a maintenance event or incident."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class EventStatus(Enum):
    """Maintenance event lifecycle. Events only move forward."""

    NEW = "NEW"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class NotificationStatus(Enum):
    SENT = "SENT"
    FAILED = "FAILED"


# Severities that count towards the open maintenance backlog
BACKLOG_SEVERITIES = (Severity.CRITICAL, Severity.HIGH)
