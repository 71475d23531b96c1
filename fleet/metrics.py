"""Per-bus activity metrics over the trailing window."""

import logging
from collections import Counter
from datetime import datetime
from typing import List

from .calculations import window_start
from .config import DEFAULT_THRESHOLDS, Thresholds
from .results import BusMetrics
from .store import RecordStore, Unavailable, records_or_empty

logger = logging.getLogger(__name__)


def aggregate_bus_metrics(
    store: RecordStore,
    now: datetime,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> List[BusMetrics]:
    """
    Build one BusMetrics per bus.

    - Maintenance events and incidents are counted over the trailing window:
      from midnight `window_days` days before now, up to now.
    - The open critical/high backlog is NOT windowed: any open CRITICAL or
      HIGH event counts, however old.

    If the buses can't be read the result is empty. If events or incidents
    can't be read they count as zero.
    """
    since = window_start(now, thresholds.window_days)

    buses = store.list_buses()
    if isinstance(buses, Unavailable):
        logger.warning("No bus data, returning no metrics: %s", buses.reason)
        return []

    recent_events = records_or_empty(
        store.list_maintenance_events(started_after=since, started_before=now),
        "recent maintenance events",
    )
    incidents = records_or_empty(
        store.list_incidents(reported_after=since, reported_before=now),
        "incidents",
    )
    all_events = records_or_empty(
        store.list_maintenance_events(), "maintenance backlog"
    )

    events_by_bus = Counter(e.bus_id for e in recent_events)
    incidents_by_bus = Counter(i.bus_id for i in incidents)
    backlog_by_bus = Counter(e.bus_id for e in all_events if e.is_open_backlog)

    return [
        BusMetrics(
            bus_id=bus.id,
            fleet_number=bus.fleet_number,
            status=bus.status,
            garage_id=bus.garage_id,
            maintenance_events_last_30_days=events_by_bus[bus.id],
            incidents_last_30_days=incidents_by_bus[bus.id],
            open_critical_high_events=backlog_by_bus[bus.id],
        )
        for bus in buses.records
    ]
