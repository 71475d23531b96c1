"""Alert dispatch to the operations manager."""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from .notification_log import NotificationLog
from .status import NotificationStatus
from .store import RecordStore

logger = logging.getLogger(__name__)

# Sample number shipped in example configs; never a real recipient
PLACEHOLDER_PHONE = "+1234567890"

FORECAST_UPDATE = "FORECAST_UPDATE"
INCIDENT = "INCIDENT"
BUS_IN_GARAGE = "BUS_IN_GARAGE"
REPAIR_COMPLETED = "REPAIR_COMPLETED"


class DeliveryError(Exception):
    """Raised by a transport when a message could not be delivered."""


def is_valid_recipient(to: Optional[str]) -> bool:
    return bool(to and to.strip() and to.strip() != PLACEHOLDER_PHONE)


class Notifier:
    """
    Sends short alert messages and records every attempt in the store.

    Delivery goes through `transport(to, message)`, which raises
    DeliveryError on failure. Without a transport, messages are only
    written to the log.
    """

    def __init__(
        self,
        store: RecordStore,
        ops_manager_phone: Optional[str] = None,
        transport: Optional[Callable[[str, str], None]] = None,
    ):
        self.store = store
        self.ops_manager_phone = ops_manager_phone
        self.transport = transport

    def send(
        self,
        to: Optional[str],
        message: str,
        type: str,
        bus_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> bool:
        """Deliver a message. Returns True if it was sent."""
        status = NotificationStatus.SENT
        if not is_valid_recipient(to):
            logger.error("Invalid recipient %r, not sending %s alert", to, type)
            status = NotificationStatus.FAILED
        elif self.transport is None:
            logger.info("%s alert for %s: %s", type, to, message)
        else:
            try:
                self.transport(to, message)
                logger.info("%s alert sent to %s", type, to)
            except DeliveryError as e:
                logger.error("Failed to send %s alert to %s: %s", type, to, e)
                status = NotificationStatus.FAILED

        self.store.add_notification_log(
            NotificationLog(
                type=type,
                message=message,
                sent_to=to or "",
                sent_at=now or datetime.now(timezone.utc),
                status=status,
                bus_id=bus_id,
            )
        )
        return status == NotificationStatus.SENT

    def notify_forecast_update(self, message: str) -> bool:
        return self.send(self.ops_manager_phone, message, FORECAST_UPDATE)

    def notify_incident(
        self, fleet_number: str, severity: str, description: str, bus_id: Optional[str] = None
    ) -> bool:
        message = f"NEW INCIDENT: Bus {fleet_number}\nSeverity: {severity}\n{description}"
        return self.send(self.ops_manager_phone, message, INCIDENT, bus_id)

    def notify_bus_in_garage(
        self, fleet_number: str, garage_name: str, bus_id: Optional[str] = None
    ) -> bool:
        message = f"Bus {fleet_number} entered maintenance at {garage_name}"
        return self.send(self.ops_manager_phone, message, BUS_IN_GARAGE, bus_id)

    def notify_repair_completed(
        self, fleet_number: str, garage_name: str, bus_id: Optional[str] = None
    ) -> bool:
        message = f"Repair completed: Bus {fleet_number} at {garage_name} - now AVAILABLE"
        return self.send(self.ops_manager_phone, message, REPAIR_COMPLETED, bus_id)
