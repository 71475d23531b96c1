"""Forecast thresholds and environment settings."""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

# Project root (parent of the fleet package)
ROOT_DIR = Path(__file__).parent.parent


@dataclass(frozen=True)
class Thresholds:
    """Every tunable number the forecasting engine uses."""

    window_days: int = 30
    # Risk flagging (visibility)
    high_risk_incidents: int = 3
    high_risk_open_events: int = 2
    # Escalation: high-risk AVAILABLE buses projected unavailable
    escalation_incidents: int = 5
    escalation_open_events: int = 3
    # Used when a garage has no completed repairs in the window
    default_repair_hours: float = 24.0
    availability_drop_alert: int = 5
    forecast_days: int = 7


DEFAULT_THRESHOLDS = Thresholds()

# camelCase keys accepted in the settings file
_SETTING_KEYS = {
    "windowDays": "window_days",
    "highRiskIncidents": "high_risk_incidents",
    "highRiskOpenEvents": "high_risk_open_events",
    "escalationIncidents": "escalation_incidents",
    "escalationOpenEvents": "escalation_open_events",
    "defaultRepairHours": "default_repair_hours",
    "availabilityDropAlert": "availability_drop_alert",
    "forecastDays": "forecast_days",
}


def thresholds_from_dict(data: Optional[Dict[str, Any]]) -> Thresholds:
    """
    Build Thresholds from the `forecast` section of a settings file.

    Missing keys keep their defaults. Unknown keys raise ValueError so a typo
    can't silently leave a threshold at its default.
    """
    if not data:
        return DEFAULT_THRESHOLDS

    overrides = {}
    for key, value in data.items():
        if key not in _SETTING_KEYS:
            raise ValueError(f"Unknown forecast setting: {key}")
        overrides[_SETTING_KEYS[key]] = value

    for name, value in overrides.items():
        expected = type(getattr(DEFAULT_THRESHOLDS, name))
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"Forecast setting {name} must be a number")
        if value < 0:
            raise ValueError(f"Forecast setting {name} must not be negative")
        overrides[name] = expected(value)

    return replace(DEFAULT_THRESHOLDS, **overrides)


def load_thresholds(filename: Optional[Union[str, Path]] = None) -> Thresholds:
    """Load thresholds from a YAML settings file, or defaults if none given."""
    if filename is None:
        return DEFAULT_THRESHOLDS
    with open(filename, "r") as fp:
        data = yaml.load(fp, Loader=yaml.SafeLoader) or {}
    return thresholds_from_dict(data.get("forecast"))


class Settings:
    """Runtime settings read from environment variables."""

    def __init__(self, environ: Optional[Dict[str, str]] = None):
        env = os.environ if environ is None else environ
        self.data_file = Path(
            env.get("FLEET_DATA_FILE", str(ROOT_DIR / "fleets" / "demo.yaml"))
        )
        settings_file = env.get("FLEET_SETTINGS_FILE")
        self.settings_file = Path(settings_file) if settings_file else None
        self.ops_manager_phone = env.get("OPS_MANAGER_PHONE") or None
        self.secret_key = env.get("SECRET_KEY", "dev-secret-key-change-in-prod")

    def thresholds(self) -> Thresholds:
        return load_thresholds(self.settings_file)
