"""
KPI calculator - revenue, expense and profit figures for a single trip.
"""
import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, Optional

from fleetops.models.trip import Currency
from fleetops.services.safe_math import exact_sum, safe_divide, to_float

logger = logging.getLogger(__name__)


@dataclass
class TripKPIs:
    total_revenue: float
    total_expenses: float
    net_profit: float
    profit_margin: float
    cost_per_km: float
    currency: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _currency_of(trip: Any) -> str:
    currency = getattr(trip, "revenue_currency", None)
    if isinstance(currency, Currency):
        return currency.value
    return currency or Currency.ZAR.value


def calculate_total_costs(costs: Optional[Iterable[Any]]) -> float:
    """Sum of cost amounts; a missing sequence or amount counts as zero."""
    if not costs:
        return 0.0
    return exact_sum(getattr(cost, "amount", None) for cost in costs)


def calculate_kpis(trip: Any) -> TripKPIs:
    """Compute financial KPIs for a trip. Never raises."""
    try:
        total_revenue = to_float(getattr(trip, "base_revenue", None))
        total_expenses = calculate_total_costs(getattr(trip, "costs", None)) + calculate_total_costs(
            getattr(trip, "additional_costs", None)
        )
        net_profit = total_revenue - total_expenses
        profit_margin = safe_divide(net_profit * 100, total_revenue) if total_revenue > 0 else 0.0
        distance_km = to_float(getattr(trip, "distance_km", None))
        cost_per_km = safe_divide(total_expenses, distance_km) if distance_km > 0 else 0.0

        return TripKPIs(
            total_revenue=total_revenue,
            total_expenses=total_expenses,
            net_profit=net_profit,
            profit_margin=profit_margin,
            cost_per_km=cost_per_km,
            currency=_currency_of(trip),
        )
    except Exception:
        logger.exception("Error calculating KPIs for trip %s", getattr(trip, "id", None))
        return TripKPIs(
            total_revenue=0.0,
            total_expenses=0.0,
            net_profit=0.0,
            profit_margin=0.0,
            cost_per_km=0.0,
            currency=Currency.ZAR.value,
        )
