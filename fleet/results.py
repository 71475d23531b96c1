"""Dataclasses for values derived by the forecasting engine."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .status import BusStatus


@dataclass
class BusMetrics:
    """Per-bus activity counts, rebuilt on every forecast call."""

    bus_id: str
    fleet_number: str
    status: BusStatus
    garage_id: str
    maintenance_events_last_30_days: int = 0
    incidents_last_30_days: int = 0
    open_critical_high_events: int = 0


@dataclass
class HighRiskBus:
    """A bus flagged by the risk rules, with the reasons joined together."""

    bus_id: str
    fleet_number: str
    reason: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "busId": self.bus_id,
            "fleetNumber": self.fleet_number,
            "reason": self.reason,
        }


@dataclass
class ForecastResult:
    """Projected availability split for one target date."""

    target_date: datetime
    available_bus_count: int
    unavailable_bus_count: int
    high_risk_buses: List[HighRiskBus] = field(default_factory=list)

    @property
    def high_risk_bus_count(self) -> int:
        return len(self.high_risk_buses)

    @property
    def total_bus_count(self) -> int:
        return self.available_bus_count + self.unavailable_bus_count

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape shared with stored snapshots and the web API."""
        return {
            "targetDate": self.target_date.isoformat(),
            "availableBusCount": self.available_bus_count,
            "unavailableBusCount": self.unavailable_bus_count,
            "highRiskBusCount": self.high_risk_bus_count,
            "highRiskBuses": [hr.to_dict() for hr in self.high_risk_buses],
        }


@dataclass
class DropCheck:
    """Outcome of comparing the two latest forecasts for tomorrow."""

    should_alert: bool
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"shouldAlert": self.should_alert}
        if self.message is not None:
            d["message"] = self.message
        return d


@dataclass
class RunSummary:
    """What a prediction run produced."""

    forecasts: List[ForecastResult]
    drop_check: DropCheck
    notified: bool = False

    @property
    def alert_message(self) -> Optional[str]:
        return self.drop_check.message if self.drop_check.should_alert else None
