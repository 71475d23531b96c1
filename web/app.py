"""Flask web application for fleet availability forecasts."""

import logging
from datetime import datetime, timezone
from pathlib import Path

from dateutil.parser import isoparse
from flask import Flask, jsonify, request

# Add parent directory to path for fleet imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from fleet.calculations import ensure_aware
from fleet.config import Settings, load_thresholds
from fleet.engine import PredictionEngine
from fleet.metrics import aggregate_bus_metrics
from fleet.notifier import Notifier
from fleet.risk import identify_high_risk_buses
from fleet.status import BusStatus, EventStatus, Severity
from fleet.store import YamlRecordStore
from fleet.workflows import log_issue, update_maintenance_status

settings = Settings()

app = Flask(__name__)
app.secret_key = settings.secret_key
app.config["FLEET_DATA_FILE"] = settings.data_file
app.config["FLEET_SETTINGS_FILE"] = settings.settings_file
app.config["OPS_MANAGER_PHONE"] = settings.ops_manager_phone


def get_store() -> YamlRecordStore:
    return YamlRecordStore(app.config["FLEET_DATA_FILE"])


def get_engine() -> PredictionEngine:
    return PredictionEngine(get_store(), load_thresholds(app.config["FLEET_SETTINGS_FILE"]))


def get_notifier() -> Notifier:
    return Notifier(get_store(), app.config["OPS_MANAGER_PHONE"])


def parse_now(value):
    """Optional ?now= override, for replaying a forecast as of a past time."""
    if not value:
        return None
    return ensure_aware(isoparse(value))


def error(message: str, status: int):
    return jsonify({"error": message}), status


def event_to_json(event) -> dict:
    return {
        "id": event.id,
        "busId": event.bus_id,
        "garageId": event.garage_id,
        "type": event.type,
        "severity": event.severity.value,
        "status": event.status.value,
        "mechanicName": event.mechanic_name,
        "description": event.description,
        "startedAt": event.started_at.isoformat(),
        "completedAt": event.completed_at.isoformat() if event.completed_at else None,
    }


@app.errorhandler(ValueError)
def handle_value_error(e):
    return error(str(e), 400)


@app.errorhandler(LookupError)
def handle_lookup_error(e):
    return error(str(e), 404)


@app.route("/api/buses")
def buses():
    """Buses with their 30-day metrics and high-risk flag."""
    engine = get_engine()
    now = parse_now(request.args.get("now")) or datetime.now(timezone.utc)
    metrics = aggregate_bus_metrics(engine.store, now, engine.thresholds)
    high_risk = {hr.bus_id: hr.reason for hr in identify_high_risk_buses(metrics, engine.thresholds)}

    return jsonify({
        "buses": [
            {
                "busId": m.bus_id,
                "fleetNumber": m.fleet_number,
                "status": m.status.value,
                "garageId": m.garage_id,
                "maintenanceEventsLast30Days": m.maintenance_events_last_30_days,
                "incidentsLast30Days": m.incidents_last_30_days,
                "openCriticalHighEvents": m.open_critical_high_events,
                "highRiskReason": high_risk.get(m.bus_id),
            }
            for m in metrics
        ],
        # An empty list means no data could be read, not an empty fleet error
        "degraded": not metrics,
    })


@app.route("/api/risk")
def risk():
    """High-risk buses as of now."""
    engine = get_engine()
    now = parse_now(request.args.get("now")) or datetime.now(timezone.utc)
    metrics = aggregate_bus_metrics(engine.store, now, engine.thresholds)
    high_risk = identify_high_risk_buses(metrics, engine.thresholds)
    return jsonify({
        "highRiskBusCount": len(high_risk),
        "highRiskBuses": [hr.to_dict() for hr in high_risk],
    })


@app.route("/api/forecast")
def forecast():
    """Forecast for the next ?days= days (default 7)."""
    days = request.args.get("days", type=int)
    if "days" in request.args and days is None:
        return error("days must be a positive integer", 400)
    engine = get_engine()
    forecasts = engine.generate_forecast(days, parse_now(request.args.get("now")))
    return jsonify({"forecasts": [f.to_dict() for f in forecasts]})


@app.route("/api/forecast/<target>")
def forecast_for_date(target: str):
    """Forecast for one date (YYYY-MM-DD), or 'tomorrow'."""
    engine = get_engine()
    now = parse_now(request.args.get("now"))
    if target == "tomorrow":
        return jsonify(engine.predict_tomorrow(now).to_dict())
    try:
        target_date = isoparse(target)
    except ValueError:
        return error(f"Invalid date '{target}' (expected YYYY-MM-DD)", 400)
    return jsonify(engine.predict_for_date(ensure_aware(target_date), now).to_dict())


@app.route("/api/forecast/check-drop")
def check_drop():
    """Whether tomorrow's forecast dropped enough to alert."""
    engine = get_engine()
    return jsonify(engine.check_availability_drop(parse_now(request.args.get("now"))).to_dict())


@app.route("/api/predictions/run", methods=["POST"])
def run_predictions():
    """Generate and store a 7-day forecast, alerting on a drop."""
    body = request.get_json(silent=True) or {}
    replace = body.get("replace", False)
    if not isinstance(replace, bool):
        return error("replace must be true or false", 400)
    engine = get_engine()
    summary = engine.run_predictions(
        get_notifier(),
        days=body.get("days"),
        now=parse_now(body.get("now")),
        generated_by="API",
        replace=replace,
    )
    return jsonify({
        "success": True,
        "forecasts": len(summary.forecasts),
        "message": summary.alert_message,
    })


@app.route("/api/bus/<fleet_number>/log-issue", methods=["POST"])
def log_bus_issue(fleet_number: str):
    """Log an incident or maintenance issue against a bus."""
    body = request.get_json(silent=True) or {}
    description = body.get("description")
    mechanic_name = body.get("mechanicName")
    if not description or not mechanic_name:
        return error("Description and mechanic name are required", 400)

    take_into_garage = body.get("takeIntoGarage", True)
    if not isinstance(take_into_garage, bool):
        return error("takeIntoGarage must be true or false", 400)
    bus_status = body.get("busStatus")
    engine = get_engine()
    result = log_issue(
        engine.store,
        fleet_number,
        description,
        mechanic_name,
        severity=Severity(body.get("severity", "MEDIUM")),
        type=body.get("type", "INCIDENT"),
        take_into_garage=take_into_garage,
        garage_id=body.get("garageId"),
        bus_status=BusStatus(bus_status) if bus_status else None,
        notifier=get_notifier(),
        engine=engine,
        now=parse_now(body.get("now")),
    )
    return jsonify({
        "success": True,
        "maintenanceEvent": event_to_json(result.maintenance_event),
    })


@app.route("/api/maintenance/<event_id>", methods=["PATCH"])
def update_maintenance(event_id: str):
    """Move a maintenance event forward (e.g. to COMPLETED)."""
    body = request.get_json(silent=True) or {}
    if not body.get("status"):
        return error("status is required", 400)
    event = update_maintenance_status(
        get_store(),
        event_id,
        EventStatus(body["status"]),
        get_notifier(),
        parse_now(body.get("now")),
    )
    return jsonify(event_to_json(event))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    # Using 5001 to avoid conflict with macOS AirPlay Receiver on 5000
    app.run(debug=True, host="0.0.0.0", port=5001)
