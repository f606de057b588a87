"""
Trip dashboard - filtered trip statistics, flag totals and driver breakdown.
"""
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from fleetops.models.trip import Currency
from fleetops.services.flag_tracker import (
    average_resolution_days,
    collect_flagged_costs,
    flagged_count,
    unresolved_count,
)
from fleetops.services.kpi_calculator import calculate_kpis
from fleetops.services.safe_math import safe_divide, to_float


@dataclass
class TripFilters:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    client: Optional[str] = None
    currency: Optional[str] = None
    driver: Optional[str] = None
    status: Optional[str] = None


def filter_trips(trips: Iterable[Any], filters: Optional[TripFilters]) -> List[Any]:
    trips = list(trips or [])
    if filters is None:
        return trips

    def _keep(trip: Any) -> bool:
        if filters.start_date and (trip.start_date is None or trip.start_date < filters.start_date):
            return False
        if filters.end_date and (trip.end_date is None or trip.end_date > filters.end_date):
            return False
        if filters.client and trip.client_name != filters.client:
            return False
        if filters.currency and trip.revenue_currency != filters.currency:
            return False
        if filters.driver and trip.driver_name != filters.driver:
            return False
        if filters.status and trip.status != filters.status:
            return False
        return True

    return [trip for trip in trips if _keep(trip)]


def _driver_stats(trips: List[Any]) -> List[Dict[str, Any]]:
    stats: Dict[str, Dict[str, Any]] = defaultdict(lambda: {
        "trips": 0,
        "flags": 0,
        "unresolved_flags": 0,
        "trips_with_flags": 0,
        "revenue": 0.0,
        "expenses": 0.0,
    })
    for trip in trips:
        driver = stats[trip.driver_name or "UNKNOWN"]
        kpis = calculate_kpis(trip)
        trip_flags = flagged_count(trip.costs)
        driver["trips"] += 1
        driver["flags"] += trip_flags
        driver["unresolved_flags"] += unresolved_count(trip.costs)
        driver["revenue"] += kpis.total_revenue
        driver["expenses"] += kpis.total_expenses
        if trip_flags > 0:
            driver["trips_with_flags"] += 1

    rows = []
    for name, driver in stats.items():
        net_profit = driver["revenue"] - driver["expenses"]
        rows.append({
            "driver_name": name,
            **driver,
            "flag_percentage": safe_divide(driver["trips_with_flags"] * 100, driver["trips"]),
            "avg_flags_per_trip": safe_divide(driver["flags"], driver["trips"]),
            "net_profit": net_profit,
            "profit_per_trip": safe_divide(net_profit, driver["trips"]),
        })
    # Most flagged drivers first
    rows.sort(key=lambda row: (-row["flags"], row["driver_name"]))
    return rows


def build_dashboard(trips: Iterable[Any], filters: Optional[TripFilters] = None) -> Dict[str, Any]:
    filtered = filter_trips(trips, filters)

    by_currency: Dict[str, Dict[str, float]] = {}
    for currency in Currency:
        currency_trips = [t for t in filtered if (t.revenue_currency or Currency.ZAR.value) == currency.value]
        revenue = sum(to_float(t.base_revenue) for t in currency_trips)
        expenses = sum(calculate_kpis(t).total_expenses for t in currency_trips)
        by_currency[currency.value] = {
            "trips": len(currency_trips),
            "revenue": revenue,
            "expenses": expenses,
            "profit": revenue - expenses,
        }

    flagged = collect_flagged_costs(filtered)
    unresolved = [item for item in flagged if not item.is_resolved]

    return {
        "total_trips": len(filtered),
        "total_cost_entries": sum(len(t.costs or []) for t in filtered),
        "by_currency": by_currency,
        "flagged_costs": len(flagged),
        "unresolved_flags": len(unresolved),
        "resolved_flags": len(flagged) - len(unresolved),
        "avg_resolution_days": round(average_resolution_days(flagged), 2),
        "driver_stats": _driver_stats(filtered),
    }
