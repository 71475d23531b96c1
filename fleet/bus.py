"""Bus class for fleet vehicles."""

from typing import Optional

from .status import BusStatus


class Bus:
    """A bus in the fleet and its current state."""

    def __init__(
        self,
        id: str,
        fleet_number: str,
        status: BusStatus,
        garage_id: str,
        mileage: Optional[float] = None,
    ):
        self.id = id
        self.fleet_number = fleet_number
        self.status = status
        self.garage_id = garage_id
        self.mileage = mileage
