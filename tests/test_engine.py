#!/usr/bin/env python3
"""Tests for the PredictionEngine."""
from datetime import date, datetime, timedelta, timezone

import pytest

from fleet import (
    BusStatus,
    ForecastSnapshot,
    Notifier,
    PredictionEngine,
    Thresholds,
)
from fleet.engine import snapshot_from_result

UTC = timezone.utc
TOMORROW = datetime(2025, 12, 2, tzinfo=UTC)


def snapshot(available, generated_at, target=TOMORROW):
    return ForecastSnapshot(target, generated_at, available, 60 - available, 0)


@pytest.fixture
def fleet_store(make_store, make_bus, make_event, make_incident):
    return make_store(
        buses=[
            make_bus("bus-1"),
            make_bus("bus-2"),
            make_bus("bus-3", status=BusStatus.IN_MAINTENANCE),
            make_bus("bus-4", status=BusStatus.OUT_OF_SERVICE),
        ],
        events=[make_event("bus-3", days_ago=4, repair_hours=36)],
        incidents=[make_incident("bus-2", days_ago=d) for d in (1, 2, 3)],
    )


class TestPredictForDate:
    """Tests for predict_for_date and predict_tomorrow."""

    def test_predict_tomorrow(self, fleet_store, now):
        """Tomorrow's projection for the sample fleet."""
        result = PredictionEngine(fleet_store).predict_tomorrow(now)
        assert result.target_date == TOMORROW
        # 12h until midnight, bus-3's garage averages 36h
        assert result.available_bus_count == 2
        assert result.unavailable_bus_count == 2
        assert [hr.bus_id for hr in result.high_risk_buses] == ["bus-2"]

    def test_plain_date_means_midnight(self, fleet_store, now):
        """A date targets midnight of that day."""
        result = PredictionEngine(fleet_store).predict_for_date(date(2025, 12, 3), now)
        assert result.target_date == datetime(2025, 12, 3, tzinfo=UTC)
        # 36h until then, enough for the repair
        assert result.available_bus_count == 3

    def test_naive_now_is_utc(self, fleet_store):
        """A naive now is treated as UTC."""
        engine = PredictionEngine(fleet_store)
        result = engine.predict_tomorrow(datetime(2025, 12, 1, 12, 0))
        assert result.target_date == TOMORROW


class TestGenerateForecast:
    """Tests for generate_forecast."""

    def test_seven_days_ascending(self, fleet_store, now):
        """Default horizon is seven ascending days."""
        forecasts = PredictionEngine(fleet_store).generate_forecast(now=now)
        assert len(forecasts) == 7
        assert [f.target_date for f in forecasts] == [
            TOMORROW + timedelta(days=i) for i in range(7)
        ]

    def test_counts_partition_fleet(self, fleet_store, now):
        """Every day accounts for every bus."""
        for forecast in PredictionEngine(fleet_store).generate_forecast(7, now):
            assert forecast.total_bus_count == 4

    def test_repair_finishes_inside_horizon(self, fleet_store, now):
        """A bus in maintenance comes back once its repair time passes."""
        forecasts = PredictionEngine(fleet_store).generate_forecast(3, now)
        assert [f.available_bus_count for f in forecasts] == [2, 3, 3]

    def test_custom_default_horizon(self, fleet_store, now):
        """forecast_days sets the default horizon."""
        engine = PredictionEngine(fleet_store, Thresholds(forecast_days=3))
        assert len(engine.generate_forecast(now=now)) == 3

    def test_empty_fleet(self, make_store, now):
        """An empty fleet still gives one zero result per day."""
        forecasts = PredictionEngine(make_store()).generate_forecast(7, now)
        assert len(forecasts) == 7
        for forecast in forecasts:
            assert forecast.available_bus_count == 0
            assert forecast.unavailable_bus_count == 0
            assert forecast.high_risk_buses == []

    @pytest.mark.parametrize("days", [0, -1, 2.5, "7", True])
    def test_invalid_days(self, fleet_store, now, days):
        """Non-positive or non-integer days are rejected."""
        with pytest.raises(ValueError):
            PredictionEngine(fleet_store).generate_forecast(days, now)

    def test_repeatable(self, fleet_store, now):
        """Same records and now give the same forecast."""
        engine = PredictionEngine(fleet_store)
        assert engine.generate_forecast(7, now) == engine.generate_forecast(7, now)

    def test_does_not_write(self, fleet_store, now):
        """Generating a forecast stores nothing."""
        PredictionEngine(fleet_store).generate_forecast(7, now)
        assert fleet_store.fleet.forecast_snapshots == []

    def test_unreadable_store(self, broken_store, now):
        """An unreadable store gives empty results per day."""
        forecasts = PredictionEngine(broken_store).generate_forecast(2, now)
        assert [f.total_bus_count for f in forecasts] == [0, 0]


class TestCheckAvailabilityDrop:
    """Tests for check_availability_drop."""

    def test_drop_at_threshold_alerts(self, make_store, now):
        """A drop of 6 alerts with the counts in the message."""
        store = make_store(snapshots=[
            snapshot(50, now - timedelta(hours=6)),
            snapshot(44, now - timedelta(hours=1)),
        ])
        check = PredictionEngine(store).check_availability_drop(now)
        assert check.should_alert
        assert check.message == (
            "Forecast Alert: Available buses for tomorrow dropped by 6 (from 50 to 44)"
        )

    def test_exact_threshold(self, make_store, now):
        """A drop of exactly 5 alerts."""
        store = make_store(snapshots=[
            snapshot(50, now - timedelta(hours=6)),
            snapshot(45, now - timedelta(hours=1)),
        ])
        assert PredictionEngine(store).check_availability_drop(now).should_alert

    def test_small_drop_does_not_alert(self, make_store, now):
        """A drop of 3 does not alert."""
        store = make_store(snapshots=[
            snapshot(50, now - timedelta(hours=6)),
            snapshot(47, now - timedelta(hours=1)),
        ])
        check = PredictionEngine(store).check_availability_drop(now)
        assert not check.should_alert
        assert check.message is None

    def test_increase_does_not_alert(self, make_store, now):
        """More buses available never alerts."""
        store = make_store(snapshots=[
            snapshot(40, now - timedelta(hours=6)),
            snapshot(50, now - timedelta(hours=1)),
        ])
        assert not PredictionEngine(store).check_availability_drop(now).should_alert

    def test_compares_two_latest(self, make_store, now):
        """Only the two newest snapshots are compared."""
        store = make_store(snapshots=[
            snapshot(60, now - timedelta(hours=9)),
            snapshot(50, now - timedelta(hours=1)),
            snapshot(48, now - timedelta(hours=6)),
        ])
        assert not PredictionEngine(store).check_availability_drop(now).should_alert

    def test_ignores_other_target_dates(self, make_store, now):
        """Snapshots for other dates are not compared."""
        store = make_store(snapshots=[
            snapshot(50, now - timedelta(hours=6), target=TOMORROW + timedelta(days=1)),
            snapshot(40, now - timedelta(hours=1)),
        ])
        assert not PredictionEngine(store).check_availability_drop(now).should_alert

    def test_single_snapshot(self, make_store, now):
        """One snapshot is not enough to alert."""
        store = make_store(snapshots=[snapshot(50, now)])
        assert not PredictionEngine(store).check_availability_drop(now).should_alert

    def test_no_snapshots(self, make_store, now):
        """No snapshots, no alert."""
        assert not PredictionEngine(make_store()).check_availability_drop(now).should_alert

    def test_unreadable_store(self, broken_store, now):
        """An unreadable store never alerts."""
        assert not PredictionEngine(broken_store).check_availability_drop(now).should_alert

    def test_to_dict(self, make_store, now):
        """No-alert result has no message key."""
        assert PredictionEngine(make_store()).check_availability_drop(now).to_dict() == {
            "shouldAlert": False
        }


class TestStoreForecast:
    """Tests for snapshot persistence."""

    def test_snapshot_from_result(self, fleet_store, now):
        """Snapshots carry counts and high-risk metadata."""
        result = PredictionEngine(fleet_store).predict_tomorrow(now)
        snap = snapshot_from_result(result, now, "CLI")
        assert snap.target_date == TOMORROW
        assert snap.generated_at == now
        assert snap.available_bus_count == 2
        assert snap.high_risk_bus_count == 1
        assert snap.metadata["generatedBy"] == "CLI"
        assert snap.high_risk_buses[0]["busId"] == "bus-2"

    def test_appends_by_default(self, fleet_store, now):
        """Earlier snapshots are kept."""
        engine = PredictionEngine(fleet_store)
        engine.store_forecast(engine.generate_forecast(2, now), now)
        later = now + timedelta(hours=1)
        engine.store_forecast(engine.generate_forecast(2, later), later)
        assert len(fleet_store.fleet.forecast_snapshots) == 4

    def test_replace(self, fleet_store, now):
        """replace=True drops earlier snapshots for the same dates."""
        engine = PredictionEngine(fleet_store)
        engine.store_forecast(engine.generate_forecast(2, now), now)
        later = now + timedelta(hours=1)
        engine.store_forecast(engine.generate_forecast(2, later), later, replace=True)
        snapshots = fleet_store.fleet.forecast_snapshots
        assert len(snapshots) == 2
        assert {s.generated_at for s in snapshots} == {later}


class TestRunPredictions:
    """Tests for run_predictions."""

    def test_stores_seven_snapshots(self, fleet_store, now):
        """A run stores one snapshot per day."""
        summary = PredictionEngine(fleet_store).run_predictions(now=now)
        assert len(summary.forecasts) == 7
        assert len(fleet_store.fleet.forecast_snapshots) == 7
        assert not summary.drop_check.should_alert
        assert summary.alert_message is None

    def test_alerts_on_drop(self, fleet_store, now):
        """A drop against earlier history sends the alert."""
        fleet_store.fleet.forecast_snapshots.append(snapshot(10, now - timedelta(hours=3)))
        notifier = Notifier(fleet_store, "+15550100")
        summary = PredictionEngine(fleet_store).run_predictions(notifier, now=now)
        assert summary.drop_check.should_alert
        assert summary.alert_message == (
            "Forecast Alert: Available buses for tomorrow dropped by 8 (from 10 to 2)"
        )
        assert summary.notified
        logs = fleet_store.fleet.notification_logs
        assert [log.type for log in logs] == ["FORECAST_UPDATE"]
        assert logs[0].message == summary.alert_message

    def test_alert_without_notifier(self, fleet_store, now):
        """The drop is reported even with nobody to notify."""
        fleet_store.fleet.forecast_snapshots.append(snapshot(10, now - timedelta(hours=3)))
        summary = PredictionEngine(fleet_store).run_predictions(now=now)
        assert summary.drop_check.should_alert
        assert not summary.notified

    def test_invalid_days_writes_nothing(self, fleet_store, now):
        """A rejected run stores nothing."""
        with pytest.raises(ValueError):
            PredictionEngine(fleet_store).run_predictions(days=0, now=now)
        assert fleet_store.fleet.forecast_snapshots == []
