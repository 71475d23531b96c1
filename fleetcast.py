#!/usr/bin/env python3
"""
Unified CLI for bus fleet availability forecasting.

Commands:
  buses       - Show every bus with its 30-day activity metrics
  risk        - List high-risk buses and why
  forecast    - Project availability for the next N days
  predict     - Project availability for one date
  check-drop  - Compare the two latest forecasts for tomorrow
  run         - Generate, store and check a forecast (alerts on drops)
  log-issue   - Log an incident/maintenance issue against a bus
  complete    - Mark a maintenance event completed
"""

import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from tabulate import tabulate
from typing import List, Optional

import yaml
from dateutil.parser import isoparse

from fleet import (
    BusMetrics,
    BusStatus,
    ForecastResult,
    Notifier,
    PredictionEngine,
    Settings,
    Severity,
    YamlRecordStore,
    aggregate_bus_metrics,
    complete_maintenance,
    identify_high_risk_buses,
    load_thresholds,
    log_issue,
)
from fleet.calculations import ensure_aware

# =============================================================================
# Formatting helpers
# =============================================================================


def format_date(ts: Optional[datetime]) -> str:
    """Format a target date for display."""
    return ts.strftime("%Y-%m-%d") if ts is not None else "-"


def format_status(status: BusStatus) -> str:
    """Format a bus status for display (e.g. 'In maintenance')."""
    return status.value.replace("_", " ").capitalize()


def format_percent(part: int, total: int) -> str:
    """Format a share of the fleet, '-' for an empty fleet."""
    if total == 0:
        return "-"
    return f"{part / total:.0%}"


def truncate(text: Optional[str], max_len: int = 50) -> str:
    """Truncate text with ellipsis if too long."""
    if text is None:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def parse_when(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO date/time argument. Naive values are UTC."""
    if value is None:
        return None
    return ensure_aware(isoparse(value))


# =============================================================================
# Tables
# =============================================================================


def make_bus_table(metrics: List[BusMetrics], high_risk_ids: set) -> List[List[str]]:
    """Convert bus metrics to table rows."""
    rows = []
    for m in sorted(metrics, key=lambda m: m.fleet_number):
        rows.append(
            [
                m.fleet_number,
                format_status(m.status),
                m.garage_id,
                str(m.maintenance_events_last_30_days),
                str(m.incidents_last_30_days),
                str(m.open_critical_high_events),
                "yes" if m.bus_id in high_risk_ids else "",
            ]
        )
    return rows


def make_forecast_table(forecasts: List[ForecastResult]) -> List[List[str]]:
    """Convert forecast results to table rows."""
    rows = []
    for f in forecasts:
        rows.append(
            [
                format_date(f.target_date),
                str(f.available_bus_count),
                str(f.unavailable_bus_count),
                format_percent(f.available_bus_count, f.total_bus_count),
                str(f.high_risk_bus_count),
            ]
        )
    return rows


FORECAST_HEADERS = ["Date", "Available", "Unavailable", "Availability", "High Risk"]


def print_high_risk(forecast: ForecastResult) -> None:
    if not forecast.high_risk_buses:
        print("No high-risk buses.")
        return
    rows = [[hr.fleet_number, hr.reason] for hr in forecast.high_risk_buses]
    print(tabulate(rows, headers=["Bus", "Reason"], tablefmt="simple"))


# =============================================================================
# Commands
# =============================================================================


def cmd_buses(args, engine: PredictionEngine):
    """Show every bus with its activity metrics."""
    now = args.now or datetime.now(timezone.utc)
    metrics = aggregate_bus_metrics(engine.store, now, engine.thresholds)
    if not metrics:
        print("No bus data available.")
        return 0

    high_risk_ids = {
        hr.bus_id for hr in identify_high_risk_buses(metrics, engine.thresholds)
    }
    counts = {status: 0 for status in BusStatus}
    for m in metrics:
        counts[m.status] += 1

    print(f"Buses: {len(metrics)}")
    for status in BusStatus:
        print(f"  {format_status(status)}: {counts[status]}")
    print()

    headers = [
        "Bus",
        "Status",
        "Garage",
        "Maint (30d)",
        "Incidents (30d)",
        "Open Crit/High",
        "High Risk",
    ]
    print(tabulate(make_bus_table(metrics, high_risk_ids), headers=headers, tablefmt="simple"))
    return 0


def cmd_risk(args, engine: PredictionEngine):
    """List high-risk buses."""
    now = args.now or datetime.now(timezone.utc)
    metrics = aggregate_bus_metrics(engine.store, now, engine.thresholds)
    high_risk = identify_high_risk_buses(metrics, engine.thresholds)

    print(f"High-risk buses: {len(high_risk)} of {len(metrics)}")
    print()
    if high_risk:
        rows = [[hr.fleet_number, hr.reason] for hr in high_risk]
        print(tabulate(rows, headers=["Bus", "Reason"], tablefmt="simple"))
    return 0


def cmd_forecast(args, engine: PredictionEngine):
    """Project availability for the next N days."""
    if args.days is not None and args.days < 1:
        print("Error: --days must be a positive integer")
        return 1

    forecasts = engine.generate_forecast(args.days, args.now)
    if forecasts and forecasts[0].total_bus_count == 0:
        print("No bus data available; forecast shows an empty fleet.")
        print()

    print(tabulate(make_forecast_table(forecasts), headers=FORECAST_HEADERS, tablefmt="simple"))
    if forecasts and args.show_risk:
        print()
        print_high_risk(forecasts[0])
    return 0


def cmd_predict(args, engine: PredictionEngine):
    """Project availability for one date."""
    try:
        target = parse_when(args.date)
    except ValueError:
        print(f"Error: Invalid date '{args.date}' (expected YYYY-MM-DD)")
        return 1

    forecast = engine.predict_for_date(target, args.now)
    print(f"Target date: {format_date(forecast.target_date)}")
    print(f"Available:   {forecast.available_bus_count}")
    print(f"Unavailable: {forecast.unavailable_bus_count}")
    print(f"High risk:   {forecast.high_risk_bus_count}")
    print()
    print_high_risk(forecast)
    return 0


def cmd_check_drop(args, engine: PredictionEngine):
    """Compare the two latest forecasts for tomorrow."""
    result = engine.check_availability_drop(args.now)
    if result.should_alert:
        print(result.message)
    else:
        print("No significant availability drop.")
    return 0


def cmd_run(args, engine: PredictionEngine, notifier: Notifier):
    """Generate, store and check a forecast."""
    if args.days is not None and args.days < 1:
        print("Error: --days must be a positive integer")
        return 1

    if args.dry_run:
        forecasts = engine.generate_forecast(args.days, args.now)
        print(tabulate(make_forecast_table(forecasts), headers=FORECAST_HEADERS, tablefmt="simple"))
        print()
        print("(dry run - no changes made)")
        return 0

    summary = engine.run_predictions(
        notifier,
        days=args.days,
        now=args.now,
        generated_by="CLI",
        replace=args.replace,
    )
    print(f"Stored {len(summary.forecasts)} forecasts.")
    if summary.alert_message:
        print(summary.alert_message)
        print("Alert sent." if summary.notified else "Alert could not be sent.")
    return 0


def cmd_log_issue(args, engine: PredictionEngine, notifier: Notifier):
    """Log an issue against a bus."""
    try:
        severity = Severity(args.severity.upper())
    except ValueError:
        print(f"Error: Unknown severity '{args.severity}'")
        return 1

    fleet = engine.store.load()
    bus = fleet.get_bus_by_fleet_number(args.fleet_number)
    if bus is None:
        print(f"Error: Unknown bus '{args.fleet_number}'")
        print("\nKnown buses:")
        for b in sorted(fleet.buses, key=lambda b: b.fleet_number):
            print(f"  {b.fleet_number}")
        return 1

    print(f"Logging issue for bus {bus.fleet_number}:")
    print(f"  Severity:    {severity.value}")
    print(f"  Type:        {args.type}")
    print(f"  Mechanic:    {args.mechanic}")
    print(f"  Description: {truncate(args.description)}")
    if not args.no_garage:
        print("  Bus will be taken into maintenance")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    try:
        result = log_issue(
            engine.store,
            args.fleet_number,
            args.description,
            args.mechanic,
            severity=severity,
            type=args.type,
            take_into_garage=not args.no_garage,
            notifier=notifier,
            engine=engine,
            now=args.now,
        )
    except (LookupError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    print(f"Maintenance event {result.maintenance_event.id} created.")
    if result.prediction_run is not None:
        print(f"Predictions re-run ({len(result.prediction_run.forecasts)} days).")
    return 0


def cmd_complete(args, engine: PredictionEngine, notifier: Notifier):
    """Mark a maintenance event completed."""
    fleet = engine.store.load()
    event = fleet.get_maintenance_event(args.event_id)
    if event is None:
        print(f"Error: Unknown maintenance event '{args.event_id}'")
        return 1

    bus = fleet.get_bus(event.bus_id)
    print(f"Completing maintenance event {event.id}:")
    print(f"  Bus:     {bus.fleet_number if bus else event.bus_id}")
    garage = fleet.get_garage(event.garage_id)
    print(f"  Garage:  {garage.display_name if garage else event.garage_id}")
    print(f"  Status:  {event.status.value}")
    print(f"  Started: {event.started_at.isoformat()}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    try:
        complete_maintenance(engine.store, args.event_id, notifier, args.now)
    except (LookupError, ValueError) as e:
        print(f"Error: {e}")
        return 1
    print("Event completed.")
    return 0


# =============================================================================
# Main
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Bus fleet availability forecaster",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s fleets/demo.yaml buses
  %(prog)s fleets/demo.yaml risk
  %(prog)s fleets/demo.yaml forecast --days 14
  %(prog)s fleets/demo.yaml predict 2025-12-05
  %(prog)s fleets/demo.yaml run
  %(prog)s fleets/demo.yaml check-drop
  %(prog)s fleets/demo.yaml log-issue B-101 "Brake warning light" \\
      --mechanic "Sam Ortiz" --severity critical
  %(prog)s fleets/demo.yaml complete evt-001
""",
    )
    parser.add_argument(
        "fleet_file",
        type=Path,
        help="Path to fleet YAML file",
    )
    parser.add_argument(
        "--settings",
        type=Path,
        help="YAML settings file with forecast threshold overrides "
        "(default: $FLEET_SETTINGS_FILE)",
    )
    parser.add_argument(
        "--now",
        type=parse_when,
        help="Evaluate as of this time (ISO format, default: current time)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("buses", help="Show buses with their 30-day metrics")
    subparsers.add_parser("risk", help="List high-risk buses")

    forecast_parser = subparsers.add_parser(
        "forecast", help="Project availability for the next N days"
    )
    forecast_parser.add_argument(
        "--days",
        type=int,
        help="Number of days to forecast (default: 7)",
    )
    forecast_parser.add_argument(
        "--show-risk",
        action="store_true",
        help="Also list high-risk buses",
    )

    predict_parser = subparsers.add_parser(
        "predict", help="Project availability for one date"
    )
    predict_parser.add_argument(
        "date",
        type=str,
        help="Target date (YYYY-MM-DD)",
    )

    subparsers.add_parser(
        "check-drop", help="Compare the two latest forecasts for tomorrow"
    )

    run_parser = subparsers.add_parser(
        "run", help="Generate, store and check a forecast"
    )
    run_parser.add_argument(
        "--days",
        type=int,
        help="Number of days to forecast (default: 7)",
    )
    run_parser.add_argument(
        "--replace",
        action="store_true",
        help="Delete earlier forecasts for the same dates before storing",
    )
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the forecast without storing it",
    )

    log_parser = subparsers.add_parser(
        "log-issue", help="Log an issue against a bus"
    )
    log_parser.add_argument("fleet_number", type=str, help="Bus fleet number")
    log_parser.add_argument("description", type=str, help="What is wrong")
    log_parser.add_argument(
        "--mechanic",
        type=str,
        required=True,
        help="Who is logging the issue",
    )
    log_parser.add_argument(
        "--severity",
        type=str,
        default="medium",
        help="critical, high, medium or low (default: medium)",
    )
    log_parser.add_argument(
        "--type",
        choices=["INCIDENT", "PREVENTIVE", "REPAIR", "INSPECTION"],
        default="INCIDENT",
        help="Issue type (default: INCIDENT)",
    )
    log_parser.add_argument(
        "--no-garage",
        action="store_true",
        help="Leave the bus in service",
    )
    log_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be logged without saving",
    )

    complete_parser = subparsers.add_parser(
        "complete", help="Mark a maintenance event completed"
    )
    complete_parser.add_argument("event_id", type=str, help="Maintenance event id")
    complete_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be completed without saving",
    )

    return parser


def main(argv: Optional[List[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Validate fleet file exists
    if not args.fleet_file.exists():
        print(f"Error: File not found: {args.fleet_file}")
        return 1

    settings = Settings()
    try:
        if args.settings is not None:
            thresholds = load_thresholds(args.settings)
        else:
            thresholds = settings.thresholds()
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Error: Invalid settings: {e}")
        return 1

    store = YamlRecordStore(args.fleet_file)
    engine = PredictionEngine(store, thresholds)
    notifier = Notifier(store, settings.ops_manager_phone)

    # Dispatch to command handler
    if args.command == "buses":
        return cmd_buses(args, engine)
    elif args.command == "risk":
        return cmd_risk(args, engine)
    elif args.command == "forecast":
        return cmd_forecast(args, engine)
    elif args.command == "predict":
        return cmd_predict(args, engine)
    elif args.command == "check-drop":
        return cmd_check_drop(args, engine)
    elif args.command == "run":
        return cmd_run(args, engine, notifier)
    elif args.command == "log-issue":
        return cmd_log_issue(args, engine, notifier)
    elif args.command == "complete":
        return cmd_complete(args, engine, notifier)

    return 0


if __name__ == "__main__":
    sys.exit(main() or 0)
