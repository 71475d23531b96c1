"""NotificationLog class for dispatched alert records."""

from datetime import datetime
from typing import Optional

from .status import NotificationStatus


class NotificationLog:
    """Outcome of one attempt to notify someone."""

    def __init__(
            self,
            type: str,
            message: str,
            sent_to: str,
            sent_at: datetime,
            status: NotificationStatus,
            bus_id: Optional[str] = None,
    ):
        self.type = type
        self.message = message
        self.sent_to = sent_to
        self.sent_at = sent_at
        self.status = status
        self.bus_id = bus_id
