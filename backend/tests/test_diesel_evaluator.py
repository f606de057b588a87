"""
Tests for the diesel efficiency evaluator.
"""
from decimal import Decimal
from types import SimpleNamespace

import pytest

from fleetops.config.fleet_config import FleetConfig
from fleetops.services.diesel_evaluator import (
    PerformanceStatus,
    classify_performance,
    compute_distance,
    evaluate_diesel_record,
    evaluate_diesel_records,
    reconcile_probe,
    resolve_norm,
)


def _record(**overrides):
    values = dict(
        id="D1",
        fleet_number="TRUCK-002",
        date=None,
        driver_name="Thabo",
        fuel_station="Engen",
        km_reading=1000,
        previous_km_reading=900,
        litres_filled=30,
        total_cost=600,
        currency="ZAR",
        trip_id=None,
        probe_reading=None,
        probe_verified=False,
        distance_travelled=None,
        km_per_litre=None,
        cost_per_litre=None,
        probe_discrepancy=None,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def _norm(expected, tolerance, fleet_number="TRUCK-002"):
    return SimpleNamespace(fleet_number=fleet_number, expected_km_per_litre=expected, tolerance_percentage=tolerance)


class TestEvaluateDieselRecord:
    def test_above_norm_is_excellent_and_needs_debrief(self, fleet_config):
        result = evaluate_diesel_record(_record(), _norm(3.0, 10), fleet_config)
        assert result.distance_travelled == 100
        assert result.km_per_litre == pytest.approx(3.3333, abs=1e-4)
        assert result.efficiency_variance == pytest.approx(11.11, abs=0.01)
        assert result.performance_status is PerformanceStatus.EXCELLENT
        assert result.is_within_tolerance is False
        assert result.requires_debrief is True

    def test_below_norm_is_poor(self, fleet_config):
        result = evaluate_diesel_record(_record(litres_filled=50), _norm(3.0, 10), fleet_config)
        assert result.km_per_litre == 2
        assert result.performance_status is PerformanceStatus.POOR
        assert result.requires_debrief is True

    def test_variance_on_tolerance_boundary_is_normal(self, fleet_config):
        record = _record(km_reading=1225, previous_km_reading=1000, litres_filled=100)
        result = evaluate_diesel_record(record, _norm(2.5, 10), fleet_config)
        assert result.km_per_litre == pytest.approx(2.25)
        assert result.efficiency_variance == pytest.approx(-10.0)
        assert result.performance_status is PerformanceStatus.NORMAL
        assert result.is_within_tolerance is True
        assert result.requires_debrief is False

    def test_missing_norm_uses_defaults(self, fleet_config):
        result = evaluate_diesel_record(_record(litres_filled=Decimal("33.33")), None, fleet_config)
        assert result.expected_km_per_litre == 3.0
        assert result.tolerance_percentage == 10.0
        assert result.performance_status is PerformanceStatus.NORMAL

    def test_cost_rates(self, fleet_config):
        result = evaluate_diesel_record(_record(), None, fleet_config)
        assert result.cost_per_km == 6
        assert result.cost_per_litre == 20

    def test_zero_litres_and_distance_give_zero_rates(self, fleet_config):
        record = _record(km_reading=500, previous_km_reading=None, litres_filled=0, total_cost=0)
        result = evaluate_diesel_record(record, None, fleet_config)
        assert result.distance_travelled == 0
        assert result.km_per_litre == 0
        assert result.cost_per_km == 0
        assert result.cost_per_litre == 0
        assert result.efficiency_variance == -100
        assert result.performance_status is PerformanceStatus.POOR

    def test_stored_values_take_precedence(self, fleet_config):
        record = _record(distance_travelled=Decimal("120"), km_per_litre=Decimal("4"), cost_per_litre=Decimal("19.5"))
        result = evaluate_diesel_record(record, None, fleet_config)
        assert result.distance_travelled == 120
        assert result.km_per_litre == 4
        assert result.cost_per_litre == 19.5

    def test_stored_zero_distance_is_recomputed(self):
        assert compute_distance(_record(distance_travelled=0)) == 100

    def test_currency_defaults_to_zar(self, fleet_config):
        assert evaluate_diesel_record(_record(currency=None), None, fleet_config).currency == "ZAR"


class TestClassifyPerformance:
    @pytest.mark.parametrize("variance,expected", [
        (0, PerformanceStatus.NORMAL),
        (10, PerformanceStatus.NORMAL),
        (-10, PerformanceStatus.NORMAL),
        (-10.000000000000002, PerformanceStatus.NORMAL),
        (10.01, PerformanceStatus.EXCELLENT),
        (-10.01, PerformanceStatus.POOR),
    ])
    def test_boundaries(self, variance, expected):
        assert classify_performance(variance, 10) is expected


class TestResolveNorm:
    def test_norm_values(self):
        assert resolve_norm(_norm(Decimal("2.8"), Decimal("15")), FleetConfig()) == (2.8, 15.0)

    def test_zero_norm_falls_back(self):
        assert resolve_norm(_norm(0, 0), FleetConfig()) == (3.0, 10.0)

    def test_config_defaults_are_injected(self):
        config = FleetConfig(default_expected_km_per_litre=2.5, default_tolerance_percentage=5.0)
        assert resolve_norm(None, config) == (2.5, 5.0)


class TestProbeReconciliation:
    def test_large_discrepancy_needs_verification(self, fleet_config):
        record = _record(fleet_number="TRUCK-001", litres_filled=100, probe_reading=40, probe_verified=True)
        assert reconcile_probe(record, fleet_config) == (True, 60, True)

    def test_verified_small_discrepancy(self, fleet_config):
        record = _record(fleet_number="truck-007 ", litres_filled=100, probe_reading=95, probe_verified=True)
        assert reconcile_probe(record, fleet_config) == (True, 5, False)

    def test_unverified_probe_needs_verification(self, fleet_config):
        record = _record(fleet_number="TRUCK-001", probe_reading=None, probe_verified=False)
        assert reconcile_probe(record, fleet_config) == (True, None, True)

    def test_discrepancy_undefined_without_reading(self, fleet_config):
        record = _record(fleet_number="TRUCK-001", probe_reading=None, probe_discrepancy=70, probe_verified=True)
        assert reconcile_probe(record, fleet_config) == (True, None, False)

    def test_vehicle_without_probe(self, fleet_config):
        record = _record(fleet_number="TRUCK-002", litres_filled=100, probe_reading=40)
        result = evaluate_diesel_record(record, None, fleet_config)
        assert result.has_probe is False
        assert result.needs_probe_verification is False
        assert result.probe_discrepancy is None

    def test_custom_threshold(self):
        config = FleetConfig(probe_fleet_numbers=frozenset({"TRUCK-001"}), probe_discrepancy_threshold=10)
        record = _record(fleet_number="TRUCK-001", litres_filled=100, probe_reading=85, probe_verified=True)
        assert reconcile_probe(record, config)[2] is True


def test_evaluate_records_matches_norm_by_fleet(fleet_config):
    records = [_record(id="D1", fleet_number="ud"), _record(id="D2", fleet_number="TRUCK-002")]
    norms = [_norm(2.8, 15, fleet_number="UD")]
    results = evaluate_diesel_records(records, norms, fleet_config)
    assert [r.expected_km_per_litre for r in results] == [2.8, 3.0]
    assert [r.tolerance_percentage for r in results] == [15.0, 10.0]
