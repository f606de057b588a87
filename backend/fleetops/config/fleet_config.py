"""
Utilities for loading fleet-wide diesel efficiency configuration.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional

import yaml

from fleetops.db.database import settings

CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "fleet_config.yaml"

DEFAULT_EXPECTED_KM_PER_LITRE = 3.0
DEFAULT_TOLERANCE_PERCENTAGE = 10.0
DEFAULT_PROBE_DISCREPANCY_THRESHOLD = 50.0
DEFAULT_CRITICAL_VARIANCE = -20.0


@dataclass(frozen=True)
class NormDefaults:
    expected_km_per_litre: float
    tolerance_percentage: float


@dataclass(frozen=True)
class FleetConfig:
    """Defaults injected into the diesel evaluator and aggregator."""

    default_expected_km_per_litre: float = DEFAULT_EXPECTED_KM_PER_LITRE
    default_tolerance_percentage: float = DEFAULT_TOLERANCE_PERCENTAGE
    probe_fleet_numbers: FrozenSet[str] = frozenset()
    probe_discrepancy_threshold: float = DEFAULT_PROBE_DISCREPANCY_THRESHOLD
    critical_variance_percentage: float = DEFAULT_CRITICAL_VARIANCE
    default_norms: Dict[str, NormDefaults] = field(default_factory=dict)

    def has_probe(self, fleet_number: Optional[str]) -> bool:
        if not fleet_number:
            return False
        return normalize_fleet_number(fleet_number) in self.probe_fleet_numbers


def normalize_fleet_number(value: Any) -> str:
    """Fleet numbers are stored and compared stripped and upper-cased."""
    return str(value or "").strip().upper()


@lru_cache()
def load_config_file(path: str) -> Dict[str, Any]:
    config_file = Path(path)
    if not config_file.exists():
        return {}
    with open(config_file, "r", encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def build_fleet_config(raw: Dict[str, Any]) -> FleetConfig:
    defaults = raw.get("defaults") or {}
    probe = raw.get("probe") or {}
    debrief = raw.get("debrief") or {}

    norms: Dict[str, NormDefaults] = {}
    for fleet_number, values in (raw.get("norms") or {}).items():
        values = values or {}
        norms[normalize_fleet_number(fleet_number)] = NormDefaults(
            expected_km_per_litre=float(
                values.get("expected_km_per_litre", DEFAULT_EXPECTED_KM_PER_LITRE)
            ),
            tolerance_percentage=float(
                values.get("tolerance_percentage", DEFAULT_TOLERANCE_PERCENTAGE)
            ),
        )

    return FleetConfig(
        default_expected_km_per_litre=float(
            defaults.get("expected_km_per_litre", DEFAULT_EXPECTED_KM_PER_LITRE)
        ),
        default_tolerance_percentage=float(
            defaults.get("tolerance_percentage", DEFAULT_TOLERANCE_PERCENTAGE)
        ),
        probe_fleet_numbers=frozenset(
            normalize_fleet_number(f) for f in probe.get("fleet_numbers") or []
        ),
        probe_discrepancy_threshold=float(
            probe.get("discrepancy_threshold", DEFAULT_PROBE_DISCREPANCY_THRESHOLD)
        ),
        critical_variance_percentage=float(
            debrief.get("critical_variance_percentage", DEFAULT_CRITICAL_VARIANCE)
        ),
        default_norms=norms,
    )


def get_fleet_config() -> FleetConfig:
    path = settings.fleet_config_path or str(CONFIG_PATH)
    return build_fleet_config(load_config_file(path))
