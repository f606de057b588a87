"""
Fleet aggregator - filters evaluated diesel records and folds them into
fleet-wide summary statistics.
"""
from __future__ import annotations

import enum
import math
from collections import defaultdict
from dataclasses import dataclass, field, asdict
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from fleetops.config.fleet_config import (
    DEFAULT_CRITICAL_VARIANCE,
    DEFAULT_PROBE_DISCREPANCY_THRESHOLD,
    normalize_fleet_number,
)
from fleetops.services.diesel_evaluator import EvaluatedDieselRecord, PerformanceStatus
from fleetops.services.safe_math import exact_sum, safe_divide


class ProbeStatusFilter(str, enum.Enum):
    HAS_PROBE = "has-probe"
    NEEDS_VERIFICATION = "needs-verification"
    VERIFIED = "verified"
    LARGE_DISCREPANCY = "large-discrepancy"


@dataclass
class DieselFilters:
    fleet_number: Optional[str] = None
    driver_name: Optional[str] = None
    date: Optional[date] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    currency: Optional[str] = None
    probe_status: Optional[ProbeStatusFilter] = None


def has_large_discrepancy(
    record: EvaluatedDieselRecord,
    threshold: float = DEFAULT_PROBE_DISCREPANCY_THRESHOLD,
) -> bool:
    return record.probe_discrepancy is not None and abs(record.probe_discrepancy) > threshold


def matches_probe_status(
    record: EvaluatedDieselRecord,
    probe_status: ProbeStatusFilter,
    threshold: float = DEFAULT_PROBE_DISCREPANCY_THRESHOLD,
) -> bool:
    probe_status = ProbeStatusFilter(probe_status)
    if probe_status is ProbeStatusFilter.HAS_PROBE:
        return record.has_probe
    if probe_status is ProbeStatusFilter.NEEDS_VERIFICATION:
        return record.needs_probe_verification
    if probe_status is ProbeStatusFilter.VERIFIED:
        return record.has_probe and record.probe_verified and not has_large_discrepancy(record, threshold)
    if probe_status is ProbeStatusFilter.LARGE_DISCREPANCY:
        return has_large_discrepancy(record, threshold)
    raise ValueError(f"Unknown probe status filter {probe_status}")


def matches_filters(
    record: EvaluatedDieselRecord,
    filters: Optional[DieselFilters],
    threshold: float = DEFAULT_PROBE_DISCREPANCY_THRESHOLD,
) -> bool:
    """A record passes only if it matches every criterion that is set."""
    if filters is None:
        return True
    if filters.fleet_number and normalize_fleet_number(record.fleet_number) != normalize_fleet_number(filters.fleet_number):
        return False
    if filters.driver_name and record.driver_name != filters.driver_name:
        return False
    if filters.date and record.date != filters.date:
        return False
    if filters.start_date and (record.date is None or record.date < filters.start_date):
        return False
    if filters.end_date and (record.date is None or record.date > filters.end_date):
        return False
    if filters.currency and record.currency != filters.currency:
        return False
    if filters.probe_status and not matches_probe_status(record, filters.probe_status, threshold):
        return False
    return True


def filter_records(
    records: Iterable[EvaluatedDieselRecord],
    filters: Optional[DieselFilters],
    threshold: float = DEFAULT_PROBE_DISCREPANCY_THRESHOLD,
) -> List[EvaluatedDieselRecord]:
    return [r for r in records if matches_filters(r, filters, threshold)]


@dataclass
class FleetSummary:
    total_records: int = 0
    total_litres: float = 0.0
    total_cost: float = 0.0
    total_distance: float = 0.0
    records_requiring_debrief: int = 0
    poor_performance_records: int = 0
    excellent_performance_records: int = 0
    linked_to_trips: int = 0
    records_with_probe: int = 0
    records_needing_probe_verification: int = 0
    records_with_verified_probe: int = 0
    records_by_currency: Dict[str, int] = field(default_factory=dict)
    cost_by_currency: Dict[str, float] = field(default_factory=dict)
    average_km_per_litre: float = 0.0
    average_cost_per_km: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def summarize_fleet(records: Iterable[EvaluatedDieselRecord]) -> FleetSummary:
    records = list(records)
    summary = FleetSummary(total_records=len(records))

    summary.total_litres = exact_sum(r.litres_filled for r in records)
    summary.total_cost = exact_sum(r.total_cost for r in records)
    summary.total_distance = exact_sum(r.distance_travelled for r in records)

    cost_values: Dict[str, List[float]] = defaultdict(list)
    for record in records:
        if record.requires_debrief:
            summary.records_requiring_debrief += 1
        if record.performance_status is PerformanceStatus.POOR:
            summary.poor_performance_records += 1
        if record.performance_status is PerformanceStatus.EXCELLENT:
            summary.excellent_performance_records += 1
        if record.trip_id:
            summary.linked_to_trips += 1
        if record.has_probe:
            summary.records_with_probe += 1
        if record.needs_probe_verification:
            summary.records_needing_probe_verification += 1
        if record.probe_verified:
            summary.records_with_verified_probe += 1

        summary.records_by_currency[record.currency] = summary.records_by_currency.get(record.currency, 0) + 1
        cost_values[record.currency].append(record.total_cost)

    summary.records_by_currency = dict(sorted(summary.records_by_currency.items()))
    summary.cost_by_currency = {currency: math.fsum(values) for currency, values in sorted(cost_values.items())}
    summary.average_km_per_litre = safe_divide(summary.total_distance, summary.total_litres)
    summary.average_cost_per_km = safe_divide(summary.total_cost, summary.total_distance)
    return summary


BREAKDOWN_COLUMNS = [
    "fleet_number",
    "record_count",
    "total_litres",
    "total_distance",
    "total_cost",
    "average_km_per_litre",
    "expected_km_per_litre",
    "debrief_count",
    "poor_count",
]


def _records_to_dataframe(records: List[EvaluatedDieselRecord]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "fleet_number": r.fleet_number or "UNKNOWN",
                "litres_filled": r.litres_filled,
                "distance_travelled": r.distance_travelled,
                "total_cost": r.total_cost,
                "expected_km_per_litre": r.expected_km_per_litre,
                "requires_debrief": r.requires_debrief,
                "is_poor": r.performance_status is PerformanceStatus.POOR,
            }
            for r in records
        ]
    )


def fleet_breakdown(records: Iterable[EvaluatedDieselRecord]) -> List[Dict[str, Any]]:
    """Per-fleet totals, ordered by total cost descending."""
    records = list(records)
    if not records:
        return []

    df = _records_to_dataframe(records)
    grouped = df.groupby("fleet_number").agg(
        record_count=("litres_filled", "size"),
        total_litres=("litres_filled", "sum"),
        total_distance=("distance_travelled", "sum"),
        total_cost=("total_cost", "sum"),
        expected_km_per_litre=("expected_km_per_litre", "max"),
        debrief_count=("requires_debrief", "sum"),
        poor_count=("is_poor", "sum"),
    ).reset_index()

    grouped["average_km_per_litre"] = np.where(
        grouped["total_litres"] > 0,
        grouped["total_distance"] / grouped["total_litres"].where(grouped["total_litres"] > 0, 1),
        0.0,
    )
    grouped = grouped.sort_values(["total_cost", "fleet_number"], ascending=[False, True])

    rows: List[Dict[str, Any]] = []
    for row in grouped[BREAKDOWN_COLUMNS].itertuples(index=False):
        rows.append({
            "fleet_number": row.fleet_number,
            "record_count": int(row.record_count),
            "total_litres": float(row.total_litres),
            "total_distance": float(row.total_distance),
            "total_cost": float(row.total_cost),
            "average_km_per_litre": float(row.average_km_per_litre),
            "expected_km_per_litre": float(row.expected_km_per_litre),
            "debrief_count": int(row.debrief_count),
            "poor_count": int(row.poor_count),
        })
    return rows


@dataclass
class DebriefSummary:
    total: int = 0
    average_variance: float = 0.0
    poor: int = 0
    critical: int = 0
    total_cost: float = 0.0
    total_litres: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def debrief_summary(
    records: Iterable[EvaluatedDieselRecord],
    critical_variance: float = DEFAULT_CRITICAL_VARIANCE,
) -> DebriefSummary:
    """Summary over the records that require a driver debrief."""
    debriefs = [r for r in records if r.requires_debrief]
    return DebriefSummary(
        total=len(debriefs),
        average_variance=safe_divide(exact_sum(abs(r.efficiency_variance) for r in debriefs), len(debriefs)),
        poor=sum(1 for r in debriefs if r.performance_status is PerformanceStatus.POOR),
        critical=sum(1 for r in debriefs if r.efficiency_variance < critical_variance),
        total_cost=exact_sum(r.total_cost for r in debriefs),
        total_litres=exact_sum(r.litres_filled for r in debriefs),
    )
