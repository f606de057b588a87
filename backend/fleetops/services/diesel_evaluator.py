"""
Diesel efficiency evaluator - derives consumption, cost rates, performance
classification and probe reconciliation for each fuel-fill record.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, asdict
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional

from fleetops.config.fleet_config import FleetConfig, normalize_fleet_number
from fleetops.models.trip import Currency
from fleetops.services.safe_math import safe_divide, to_float, to_optional_float

logger = logging.getLogger(__name__)

# Variance is rounded before the tolerance comparison so that values that
# land on the boundary through float noise count as within tolerance.
VARIANCE_COMPARISON_DIGITS = 9


class PerformanceStatus(str, enum.Enum):
    POOR = "poor"
    NORMAL = "normal"
    EXCELLENT = "excellent"


@dataclass
class EvaluatedDieselRecord:
    id: Optional[str]
    fleet_number: Optional[str]
    date: Optional[date]
    driver_name: Optional[str]
    fuel_station: Optional[str]
    currency: str
    km_reading: float
    previous_km_reading: Optional[float]
    litres_filled: float
    total_cost: float
    trip_id: Optional[str]
    probe_reading: Optional[float]
    probe_verified: bool

    distance_travelled: float
    km_per_litre: float
    cost_per_km: float
    cost_per_litre: float
    expected_km_per_litre: float
    tolerance_percentage: float
    efficiency_variance: float
    is_within_tolerance: bool
    performance_status: PerformanceStatus
    requires_debrief: bool
    has_probe: bool
    probe_discrepancy: Optional[float]
    needs_probe_verification: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _stored_non_zero(record: Any, attr: str) -> Optional[float]:
    value = to_optional_float(getattr(record, attr, None))
    return value if value else None


def compute_distance(record: Any) -> float:
    stored = _stored_non_zero(record, "distance_travelled")
    if stored is not None:
        return stored
    km_reading = to_optional_float(getattr(record, "km_reading", None))
    previous = to_optional_float(getattr(record, "previous_km_reading", None))
    if km_reading is not None and previous is not None:
        return km_reading - previous
    return 0.0


def compute_km_per_litre(record: Any, distance: float) -> float:
    stored = _stored_non_zero(record, "km_per_litre")
    if stored is not None:
        return stored
    return safe_divide(distance, getattr(record, "litres_filled", None))


def compute_cost_per_litre(record: Any) -> float:
    stored = to_optional_float(getattr(record, "cost_per_litre", None))
    if stored is not None:
        return stored
    return safe_divide(getattr(record, "total_cost", None), getattr(record, "litres_filled", None))


def resolve_norm(norm: Any, config: FleetConfig) -> tuple:
    """Expected km/L and tolerance from the norm, falling back to defaults."""
    expected = to_float(getattr(norm, "expected_km_per_litre", None)) if norm is not None else 0.0
    tolerance = to_float(getattr(norm, "tolerance_percentage", None)) if norm is not None else 0.0
    return (
        expected or config.default_expected_km_per_litre,
        tolerance or config.default_tolerance_percentage,
    )


def compute_variance(actual: float, expected: float) -> float:
    return safe_divide((actual - expected) * 100, expected)


def classify_performance(variance: float, tolerance: float) -> PerformanceStatus:
    comparable = round(variance, VARIANCE_COMPARISON_DIGITS)
    if abs(comparable) <= tolerance:
        return PerformanceStatus.NORMAL
    if comparable < -tolerance:
        return PerformanceStatus.POOR
    return PerformanceStatus.EXCELLENT


def reconcile_probe(record: Any, config: FleetConfig) -> tuple:
    """
    Return (has_probe, discrepancy, needs_verification).

    The discrepancy is only defined while a probe reading is present.
    """
    if not config.has_probe(getattr(record, "fleet_number", None)):
        return False, None, False

    probe_reading = to_optional_float(getattr(record, "probe_reading", None))
    if probe_reading is not None:
        discrepancy = to_float(getattr(record, "litres_filled", None)) - probe_reading
    else:
        discrepancy = None

    verified = bool(getattr(record, "probe_verified", False))
    large = discrepancy is not None and abs(discrepancy) > config.probe_discrepancy_threshold
    return True, discrepancy, (not verified) or large


def _currency_of(record: Any) -> str:
    currency = getattr(record, "currency", None)
    if isinstance(currency, Currency):
        return currency.value
    return currency or Currency.ZAR.value


def evaluate_diesel_record(record: Any, norm: Any, config: FleetConfig) -> EvaluatedDieselRecord:
    distance = compute_distance(record)
    km_per_litre = compute_km_per_litre(record, distance)
    cost_per_km = safe_divide(getattr(record, "total_cost", None), distance) if distance > 0 else 0.0
    cost_per_litre = compute_cost_per_litre(record)

    expected, tolerance = resolve_norm(norm, config)
    variance = compute_variance(km_per_litre, expected)
    status = classify_performance(variance, tolerance)
    within_tolerance = status is PerformanceStatus.NORMAL

    has_probe, discrepancy, needs_verification = reconcile_probe(record, config)

    if not within_tolerance:
        logger.debug(
            "Diesel record %s (%s) variance %.2f%% outside tolerance %.1f%%: %s",
            getattr(record, "id", None),
            getattr(record, "fleet_number", None),
            variance,
            tolerance,
            status.value,
        )

    return EvaluatedDieselRecord(
        id=getattr(record, "id", None),
        fleet_number=getattr(record, "fleet_number", None),
        date=getattr(record, "date", None),
        driver_name=getattr(record, "driver_name", None),
        fuel_station=getattr(record, "fuel_station", None),
        currency=_currency_of(record),
        km_reading=to_float(getattr(record, "km_reading", None)),
        previous_km_reading=to_optional_float(getattr(record, "previous_km_reading", None)),
        litres_filled=to_float(getattr(record, "litres_filled", None)),
        total_cost=to_float(getattr(record, "total_cost", None)),
        trip_id=getattr(record, "trip_id", None),
        probe_reading=to_optional_float(getattr(record, "probe_reading", None)),
        probe_verified=bool(getattr(record, "probe_verified", False)),
        distance_travelled=distance,
        km_per_litre=km_per_litre,
        cost_per_km=cost_per_km,
        cost_per_litre=cost_per_litre,
        expected_km_per_litre=expected,
        tolerance_percentage=tolerance,
        efficiency_variance=variance,
        is_within_tolerance=within_tolerance,
        performance_status=status,
        requires_debrief=not within_tolerance,
        has_probe=has_probe,
        probe_discrepancy=discrepancy,
        needs_probe_verification=needs_verification,
    )


def evaluate_diesel_records(
    records: Iterable[Any],
    norms: Optional[Iterable[Any]],
    config: FleetConfig,
) -> List[EvaluatedDieselRecord]:
    norms_by_fleet: Mapping[str, Any] = {
        normalize_fleet_number(getattr(norm, "fleet_number", None)): norm for norm in norms or []
    }
    return [
        evaluate_diesel_record(record, norms_by_fleet.get(normalize_fleet_number(getattr(record, "fleet_number", None))), config)
        for record in records or []
    ]
