"""Historical repair durations per garage."""

import logging
from datetime import datetime
from typing import Dict, Iterable

from .calculations import mean_or_default, window_start
from .config import DEFAULT_THRESHOLDS, Thresholds
from .status import EventStatus
from .store import RecordStore, Unavailable

logger = logging.getLogger(__name__)


def average_repair_hours(
    store: RecordStore,
    garage_id: str,
    now: datetime,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> float:
    """
    Mean hours from start to completion of a garage's recent repairs.

    Counts COMPLETED events with a completion timestamp that started in the
    trailing window. Falls back to thresholds.default_repair_hours (24.0)
    when there are none or the events can't be read.
    """
    result = store.list_maintenance_events(
        garage_id=garage_id,
        started_after=window_start(now, thresholds.window_days),
        status=EventStatus.COMPLETED,
    )
    if isinstance(result, Unavailable):
        logger.warning(
            "Repair history for garage %s unavailable, using %.1fh: %s",
            garage_id,
            thresholds.default_repair_hours,
            result.reason,
        )
        return thresholds.default_repair_hours

    durations = [e.repair_hours for e in result.records if e.repair_hours is not None]
    return mean_or_default(durations, thresholds.default_repair_hours)


def repair_hours_by_garage(
    store: RecordStore,
    garage_ids: Iterable[str],
    now: datetime,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> Dict[str, float]:
    """Average repair hours for each distinct garage, looked up once each."""
    hours: Dict[str, float] = {}
    for garage_id in garage_ids:
        if garage_id not in hours:
            hours[garage_id] = average_repair_hours(store, garage_id, now, thresholds)
    return hours
