#!/usr/bin/env python3
"""Tests for status enums."""

import pytest

from fleet import BusStatus, EventStatus, Severity
from fleet.status import BACKLOG_SEVERITIES


class TestBusStatus:
    """Tests for BusStatus values."""

    def test_parses_stored_values(self):
        """Stored strings map to members."""
        assert BusStatus("AVAILABLE") == BusStatus.AVAILABLE
        assert BusStatus("IN_MAINTENANCE") == BusStatus.IN_MAINTENANCE
        assert BusStatus("OUT_OF_SERVICE") == BusStatus.OUT_OF_SERVICE

    def test_unknown_value_raises(self):
        """Unknown strings raise ValueError."""
        with pytest.raises(ValueError):
            BusStatus("PARKED")


class TestBacklogSeverities:
    """Only critical and high events count towards the backlog."""

    def test_members(self):
        """Only critical and high are backlog severities."""
        assert Severity.CRITICAL in BACKLOG_SEVERITIES
        assert Severity.HIGH in BACKLOG_SEVERITIES
        assert Severity.MEDIUM not in BACKLOG_SEVERITIES
        assert Severity.LOW not in BACKLOG_SEVERITIES

    def test_event_lifecycle_values(self):
        """Event statuses are declared in lifecycle order."""
        assert [s.value for s in EventStatus] == ["NEW", "IN_PROGRESS", "COMPLETED"]
