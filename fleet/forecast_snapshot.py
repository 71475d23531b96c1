"""ForecastSnapshot class for persisted forecast results."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from .calculations import ensure_aware


class ForecastSnapshot:
    """
    One stored projection for one target date.

    Forecasts are regenerated over time, so several snapshots can share a
    target date. The one with the latest generated_at is authoritative.
    """

    def __init__(
        self,
        target_date: datetime,
        generated_at: datetime,
        available_bus_count: int,
        unavailable_bus_count: int,
        high_risk_bus_count: int,
        metadata: Optional[Dict[str, Any]] = None,
        id: Optional[str] = None,
    ):
        self.id = id
        self.target_date = ensure_aware(target_date)
        self.generated_at = ensure_aware(generated_at)
        self.available_bus_count = available_bus_count
        self.unavailable_bus_count = unavailable_bus_count
        self.high_risk_bus_count = high_risk_bus_count
        self.metadata = metadata or {}

    @property
    def high_risk_buses(self) -> List[Dict[str, str]]:
        return self.metadata.get("highRiskBuses") or []
