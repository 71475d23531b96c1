#!/usr/bin/env python3
"""Validate fleet YAML files against the schema."""
import sys
from datetime import date
from pathlib import Path
from typing import Any

import yaml
from jsonschema import validate, ValidationError


def load_schema() -> dict:
    """Load the JSON schema from schema.yaml."""
    schema_path = Path(__file__).parent / "schema.yaml"
    with open(schema_path) as f:
        return yaml.safe_load(f)


def _stringify_timestamps(value: Any) -> Any:
    """Unquoted timestamps load as datetimes; the schema expects strings."""
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _stringify_timestamps(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_stringify_timestamps(v) for v in value]
    return value


def check_references(data: dict) -> list[str]:
    """Check that every garage and bus id a record points at exists."""
    errors = []
    garage_ids = {str(g["id"]) for g in data.get("garages") or []}
    bus_ids = {str(b["id"]) for b in data.get("buses") or []}

    for bus in data.get("buses") or []:
        if str(bus["garageId"]) not in garage_ids:
            errors.append(f"Bus {bus['fleetNumber']}: unknown garage {bus['garageId']}")

    for event in data.get("maintenanceEvents") or []:
        if str(event["busId"]) not in bus_ids:
            errors.append(f"Maintenance event {event['id']}: unknown bus {event['busId']}")
        if str(event["garageId"]) not in garage_ids:
            errors.append(
                f"Maintenance event {event['id']}: unknown garage {event['garageId']}"
            )
        if event.get("status") == "COMPLETED" and "completedAt" not in event:
            errors.append(f"Maintenance event {event['id']}: completed without completedAt")

    for incident in data.get("incidents") or []:
        if str(incident["busId"]) not in bus_ids:
            errors.append(f"Incident {incident['id']}: unknown bus {incident['busId']}")

    return errors


def validate_fleet_file(filepath: Path, schema: dict) -> list[str]:
    """Validate a single fleet YAML file. Returns list of errors."""
    errors = []
    try:
        with open(filepath) as f:
            data = _stringify_timestamps(yaml.safe_load(f))
        validate(instance=data, schema=schema)
        errors.extend(check_references(data))
    except yaml.YAMLError as e:
        errors.append(f"YAML parse error: {e}")
    except ValidationError as e:
        errors.append(f"Schema validation error: {e.message}")
        if e.path:
            errors.append(f"  at path: {'.'.join(str(p) for p in e.path)}")
    except Exception as e:
        errors.append(f"Error: {e}")
    return errors


def main():
    """Validate all fleet YAML files in the fleets/ directory."""
    schema = load_schema()
    fleets_dir = Path(__file__).parent / "fleets"

    if not fleets_dir.exists():
        print(f"Error: fleets directory not found: {fleets_dir}")
        return 1

    yaml_files = list(fleets_dir.glob("*.yaml")) + list(fleets_dir.glob("*.yml"))

    if not yaml_files:
        print(f"Warning: No YAML files found in {fleets_dir}")
        return 0

    all_valid = True
    for filepath in sorted(yaml_files):
        errors = validate_fleet_file(filepath, schema)
        if errors:
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath.name}")

    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
