"""Threshold rules that flag high-risk buses."""

from typing import List, Optional

from .config import DEFAULT_THRESHOLDS, Thresholds
from .results import BusMetrics, HighRiskBus


def risk_reasons(
    metrics: BusMetrics, thresholds: Thresholds = DEFAULT_THRESHOLDS
) -> List[str]:
    """Reasons a bus is high-risk, in rule order (incidents, then backlog)."""
    reasons = []
    if metrics.incidents_last_30_days >= thresholds.high_risk_incidents:
        reasons.append(f"{metrics.incidents_last_30_days} incidents in last 30 days")
    if metrics.open_critical_high_events >= thresholds.high_risk_open_events:
        reasons.append(
            f"{metrics.open_critical_high_events} open critical/high maintenance events"
        )
    return reasons


def classify_bus(
    metrics: BusMetrics, thresholds: Thresholds = DEFAULT_THRESHOLDS
) -> Optional[HighRiskBus]:
    """HighRiskBus if any rule fires, otherwise None."""
    reasons = risk_reasons(metrics, thresholds)
    if not reasons:
        return None
    return HighRiskBus(
        bus_id=metrics.bus_id,
        fleet_number=metrics.fleet_number,
        reason="; ".join(reasons),
    )


def identify_high_risk_buses(
    metrics: List[BusMetrics], thresholds: Thresholds = DEFAULT_THRESHOLDS
) -> List[HighRiskBus]:
    """High-risk buses in input order. Buses no rule fires for are left out."""
    flagged = (classify_bus(m, thresholds) for m in metrics)
    return [hr for hr in flagged if hr is not None]


def should_escalate(
    metrics: BusMetrics, thresholds: Thresholds = DEFAULT_THRESHOLDS
) -> bool:
    """
    Whether a high-risk AVAILABLE bus is projected unavailable.

    Uses stricter thresholds than risk flagging, so being high-risk alone
    doesn't take a bus out of the forecast.
    """
    return (
        metrics.incidents_last_30_days >= thresholds.escalation_incidents
        or metrics.open_critical_high_events >= thresholds.escalation_open_events
    )
