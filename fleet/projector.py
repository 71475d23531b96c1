"""Availability projection for a single target date."""

import logging
from datetime import datetime

from .calculations import hours_between
from .config import DEFAULT_THRESHOLDS, Thresholds
from .durations import repair_hours_by_garage
from .metrics import aggregate_bus_metrics
from .results import BusMetrics, ForecastResult
from .risk import identify_high_risk_buses, should_escalate
from .status import BusStatus
from .store import RecordStore

logger = logging.getLogger(__name__)


def will_be_available(
    metrics: BusMetrics,
    is_high_risk: bool,
    hours_until_target: float,
    average_repair_hours: float,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> bool:
    """
    Project one bus onto the target date.

    - OUT_OF_SERVICE: never back within the horizon.
    - AVAILABLE: stays available unless high-risk AND past the escalation
      thresholds.
    - IN_MAINTENANCE: back once the garage's average repair time has passed.
      A target date in the past gives negative hours, so unavailable.
    """
    if metrics.status == BusStatus.OUT_OF_SERVICE:
        return False
    if metrics.status == BusStatus.AVAILABLE:
        return not (is_high_risk and should_escalate(metrics, thresholds))
    return hours_until_target >= average_repair_hours


def project_for_date(
    store: RecordStore,
    target_date: datetime,
    now: datetime,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> ForecastResult:
    """
    Project fleet availability on target_date, as seen from now.

    Metrics, risk and repair durations are rebuilt from the store on every
    call. Each garage's average repair time is looked up once per call.
    """
    metrics = aggregate_bus_metrics(store, now, thresholds)
    high_risk = identify_high_risk_buses(metrics, thresholds)
    high_risk_ids = {hr.bus_id for hr in high_risk}

    repair_hours = repair_hours_by_garage(
        store,
        (m.garage_id for m in metrics if m.status == BusStatus.IN_MAINTENANCE),
        now,
        thresholds,
    )
    hours_until_target = hours_between(now, target_date)

    available = 0
    unavailable = 0
    for m in metrics:
        avg_hours = repair_hours.get(m.garage_id, thresholds.default_repair_hours)
        if will_be_available(
            m, m.bus_id in high_risk_ids, hours_until_target, avg_hours, thresholds
        ):
            available += 1
        else:
            unavailable += 1

    logger.debug(
        "Projection for %s: %d available, %d unavailable, %d high-risk",
        target_date.isoformat(),
        available,
        unavailable,
        len(high_risk),
    )
    return ForecastResult(
        target_date=target_date,
        available_bus_count=available,
        unavailable_bus_count=unavailable,
        high_risk_buses=high_risk,
    )
