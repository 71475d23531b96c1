"""
Deterministic prediction engine for bus availability.

Drives the single-date projector across a forecast horizon, stores the
results as forecast snapshots and watches tomorrow's forecast for sudden
drops. Every public method takes an optional `now`; when omitted the
current UTC time is used. Pass a fixed `now` for repeatable results.
"""

import logging
from datetime import date, datetime, timezone
from typing import List, Optional, Union

from .calculations import ensure_aware, forecast_target_date
from .config import DEFAULT_THRESHOLDS, Thresholds
from .forecast_snapshot import ForecastSnapshot
from .notifier import Notifier
from .projector import project_for_date
from .results import DropCheck, ForecastResult, RunSummary
from .store import RecordStore, Unavailable

logger = logging.getLogger(__name__)


def _resolve_now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    return ensure_aware(now)


def _as_target_datetime(target: Union[date, datetime], now: datetime) -> datetime:
    """Dates mean midnight in now's timezone."""
    if isinstance(target, datetime):
        return ensure_aware(target)
    if isinstance(target, date):
        return datetime(target.year, target.month, target.day, tzinfo=now.tzinfo)
    raise ValueError(f"Target date must be a date or datetime, got {target!r}")


def snapshot_from_result(
    result: ForecastResult, generated_at: datetime, generated_by: Optional[str] = None
) -> ForecastSnapshot:
    """Convert a forecast result into the snapshot stored for it."""
    metadata = {"highRiskBuses": [hr.to_dict() for hr in result.high_risk_buses]}
    if generated_by:
        metadata["generatedBy"] = generated_by
    return ForecastSnapshot(
        target_date=result.target_date,
        generated_at=generated_at,
        available_bus_count=result.available_bus_count,
        unavailable_bus_count=result.unavailable_bus_count,
        high_risk_bus_count=result.high_risk_bus_count,
        metadata=metadata,
    )


class PredictionEngine:
    """Availability forecasts over one record store."""

    def __init__(self, store: RecordStore, thresholds: Thresholds = DEFAULT_THRESHOLDS):
        self.store = store
        self.thresholds = thresholds

    def predict_for_date(
        self, target_date: Union[date, datetime], now: Optional[datetime] = None
    ) -> ForecastResult:
        """Project availability for one target date."""
        now = _resolve_now(now)
        return project_for_date(
            self.store, _as_target_datetime(target_date, now), now, self.thresholds
        )

    def predict_tomorrow(self, now: Optional[datetime] = None) -> ForecastResult:
        now = _resolve_now(now)
        return self.predict_for_date(forecast_target_date(now, 1), now)

    def generate_forecast(
        self, days: Optional[int] = None, now: Optional[datetime] = None
    ) -> List[ForecastResult]:
        """
        Project availability for each of the next `days` days.

        Targets are midnight of day 1..days after now, in ascending order.
        Each day is projected from scratch against the current records.

        Raises ValueError unless days is a positive integer.
        """
        if days is None:
            days = self.thresholds.forecast_days
        if isinstance(days, bool) or not isinstance(days, int) or days < 1:
            raise ValueError(f"days must be a positive integer, got {days!r}")

        now = _resolve_now(now)
        return [
            project_for_date(
                self.store, forecast_target_date(now, i), now, self.thresholds
            )
            for i in range(1, days + 1)
        ]

    def check_availability_drop(self, now: Optional[datetime] = None) -> DropCheck:
        """
        Compare the two latest forecasts for tomorrow.

        Alerts when the newest forecast has at least
        thresholds.availability_drop_alert fewer available buses than the one
        generated just before it. No alert when fewer than two forecasts
        exist or they can't be read.
        """
        now = _resolve_now(now)
        tomorrow = forecast_target_date(now, 1)

        latest = self.store.list_forecast_snapshots(tomorrow, limit=1)
        if isinstance(latest, Unavailable) or not latest.records:
            return DropCheck(should_alert=False)
        current = latest.records[0]

        earlier = self.store.list_forecast_snapshots(
            tomorrow, generated_before=current.generated_at, limit=1
        )
        if isinstance(earlier, Unavailable) or not earlier.records:
            return DropCheck(should_alert=False)
        previous = earlier.records[0]

        drop = previous.available_bus_count - current.available_bus_count
        if drop >= self.thresholds.availability_drop_alert:
            message = (
                f"Forecast Alert: Available buses for tomorrow dropped by {drop} "
                f"(from {previous.available_bus_count} to {current.available_bus_count})"
            )
            logger.warning(message)
            return DropCheck(should_alert=True, message=message)
        return DropCheck(should_alert=False)

    def store_forecast(
        self,
        forecasts: List[ForecastResult],
        generated_at: datetime,
        generated_by: Optional[str] = None,
        replace: bool = False,
    ) -> None:
        """
        Save forecasts as snapshots.

        With replace=True, earlier snapshots for the same target dates are
        deleted first, which also discards the history drop checks compare
        against.
        """
        for forecast in forecasts:
            if replace:
                self.store.delete_forecast_snapshots(forecast.target_date)
            self.store.add_forecast_snapshot(
                snapshot_from_result(forecast, generated_at, generated_by)
            )

    def run_predictions(
        self,
        notifier: Optional[Notifier] = None,
        days: Optional[int] = None,
        now: Optional[datetime] = None,
        generated_by: Optional[str] = None,
        replace: bool = False,
    ) -> RunSummary:
        """
        Generate, store and check a forecast.

        Sends the drop alert through the notifier when one fires.
        """
        now = _resolve_now(now)
        forecasts = self.generate_forecast(days, now)
        self.store_forecast(forecasts, now, generated_by, replace)
        logger.info("Stored %d forecast snapshots", len(forecasts))

        drop_check = self.check_availability_drop(now)
        notified = False
        if drop_check.should_alert and notifier is not None:
            notified = notifier.notify_forecast_update(drop_check.message)
        return RunSummary(forecasts=forecasts, drop_check=drop_check, notified=notified)
