"""
Tests for diesel record filtering and fleet summaries.
"""
import itertools
import random
from datetime import date
from types import SimpleNamespace

import pytest

from fleetops.services.diesel_evaluator import evaluate_diesel_records
from fleetops.services.fleet_aggregator import (
    DieselFilters,
    ProbeStatusFilter,
    debrief_summary,
    filter_records,
    fleet_breakdown,
    summarize_fleet,
)


def _raw(record_id, fleet_number, litres, distance, cost, **kwargs):
    values = dict(
        id=record_id,
        fleet_number=fleet_number,
        date=date(2024, 6, 1),
        driver_name="Thabo",
        fuel_station=None,
        km_reading=10000 + distance,
        previous_km_reading=10000,
        litres_filled=litres,
        total_cost=cost,
        currency="ZAR",
        trip_id=None,
        probe_reading=None,
        probe_verified=False,
    )
    values.update(kwargs)
    return SimpleNamespace(**values)


@pytest.fixture()
def records(fleet_config):
    raw = [
        _raw("D1", "TRUCK-001", 100, 300, 2100.10, probe_reading=95, probe_verified=True),
        _raw("D2", "TRUCK-001", 100, 200, 2000.20, probe_reading=30, probe_verified=True, date=date(2024, 6, 3)),
        _raw("D3", "TRUCK-002", 50, 200, 1000.30, driver_name="Anna", trip_id="trip_1"),
        _raw("D4", "TRUCK-007", 80, 240, 95.15, currency="USD"),
        _raw("D5", "TRUCK-009", 0, 0, 0, date=date(2024, 5, 20)),
    ]
    return evaluate_diesel_records(raw, [], fleet_config)


class TestFilters:
    def test_no_filters_pass_everything(self, records):
        assert len(filter_records(records, None)) == 5
        assert len(filter_records(records, DieselFilters())) == 5

    def test_conjunction(self, records):
        filters = DieselFilters(fleet_number="TRUCK-001", date=date(2024, 6, 3))
        assert [r.id for r in filter_records(records, filters)] == ["D2"]

    def test_fleet_number_is_normalised(self, records):
        filters = DieselFilters(fleet_number=" truck-001")
        assert [r.id for r in filter_records(records, filters)] == ["D1", "D2"]

    def test_driver_and_currency(self, records):
        assert [r.id for r in filter_records(records, DieselFilters(driver_name="Anna"))] == ["D3"]
        assert [r.id for r in filter_records(records, DieselFilters(currency="USD"))] == ["D4"]

    def test_date_range(self, records):
        filters = DieselFilters(start_date=date(2024, 6, 1), end_date=date(2024, 6, 2))
        assert [r.id for r in filter_records(records, filters)] == ["D1", "D3", "D4"]

    @pytest.mark.parametrize("probe_status,expected", [
        (ProbeStatusFilter.HAS_PROBE, ["D1", "D2", "D4"]),
        (ProbeStatusFilter.NEEDS_VERIFICATION, ["D2", "D4"]),
        (ProbeStatusFilter.VERIFIED, ["D1"]),
        (ProbeStatusFilter.LARGE_DISCREPANCY, ["D2"]),
        ("has-probe", ["D1", "D2", "D4"]),
    ])
    def test_probe_status(self, records, probe_status, expected):
        filters = DieselFilters(probe_status=probe_status)
        assert [r.id for r in filter_records(records, filters)] == expected


class TestSummarizeFleet:
    def test_totals(self, records):
        summary = summarize_fleet(records)
        assert summary.total_records == 5
        assert summary.total_litres == 330
        assert summary.total_distance == 940
        assert summary.total_cost == pytest.approx(5195.75)
        assert summary.linked_to_trips == 1
        assert summary.records_with_probe == 3
        assert summary.records_needing_probe_verification == 2
        assert summary.records_with_verified_probe == 2
        assert summary.records_by_currency == {"USD": 1, "ZAR": 4}
        assert summary.cost_by_currency["USD"] == pytest.approx(95.15)
        assert summary.average_km_per_litre == pytest.approx(940 / 330)
        assert summary.average_cost_per_km == pytest.approx(5195.75 / 940)

    def test_performance_counts(self, records):
        # D1 3.0 normal, D2 2.0 poor, D3 4.0 excellent, D4 3.0 normal, D5 0 poor
        summary = summarize_fleet(records)
        assert summary.poor_performance_records == 2
        assert summary.excellent_performance_records == 1
        assert summary.records_requiring_debrief == 3

    def test_empty(self):
        summary = summarize_fleet([])
        assert summary.total_records == 0
        assert summary.average_km_per_litre == 0
        assert summary.average_cost_per_km == 0
        assert summary.records_by_currency == {}

    def test_permutation_does_not_change_totals(self, records):
        expected = summarize_fleet(records).to_dict()
        for permutation in itertools.permutations(records):
            assert summarize_fleet(permutation).to_dict() == expected

    def test_shuffled_fractional_costs(self, fleet_config):
        raw = [_raw(f"D{i}", "TRUCK-002", 0.1 * (i + 1), 1.7 * i, 0.1 + i / 3) for i in range(40)]
        records = evaluate_diesel_records(raw, [], fleet_config)
        expected = summarize_fleet(records).to_dict()
        rng = random.Random(7)
        for _ in range(20):
            shuffled = list(records)
            rng.shuffle(shuffled)
            assert summarize_fleet(shuffled).to_dict() == expected


class TestFleetBreakdown:
    def test_grouped_by_fleet_sorted_by_cost(self, records):
        rows = fleet_breakdown(records)
        assert [row["fleet_number"] for row in rows] == ["TRUCK-001", "TRUCK-002", "TRUCK-007", "TRUCK-009"]
        truck_one = rows[0]
        assert truck_one["record_count"] == 2
        assert truck_one["total_litres"] == 200
        assert truck_one["total_distance"] == 500
        assert truck_one["average_km_per_litre"] == pytest.approx(2.5)
        assert truck_one["debrief_count"] == 1
        assert truck_one["poor_count"] == 1
        assert rows[-1]["average_km_per_litre"] == 0

    def test_empty(self):
        assert fleet_breakdown([]) == []


class TestDebriefSummary:
    def test_counts_and_average(self, records):
        summary = debrief_summary(records)
        # D2 -33.3 %, D3 +33.3 %, D5 -100 %
        assert summary.total == 3
        assert summary.poor == 2
        assert summary.critical == 2
        assert summary.average_variance == pytest.approx((100 / 3 + 100 / 3 + 100) / 3)
        assert summary.total_litres == 150

    def test_custom_critical_threshold(self, records):
        assert debrief_summary(records, critical_variance=-50).critical == 1
