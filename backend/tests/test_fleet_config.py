"""
Tests for the fleet configuration loader.
"""
from fleetops.config.fleet_config import (
    CONFIG_PATH,
    DEFAULT_EXPECTED_KM_PER_LITRE,
    build_fleet_config,
    load_config_file,
)


def test_shipped_config():
    config = build_fleet_config(load_config_file(str(CONFIG_PATH)))
    assert config.default_expected_km_per_litre == 3.0
    assert config.default_tolerance_percentage == 10.0
    assert config.probe_discrepancy_threshold == 50.0
    assert config.critical_variance_percentage == -20.0
    assert config.has_probe("TRUCK-007")
    assert config.has_probe(" truck-010 ")
    assert not config.has_probe("UD")
    assert not config.has_probe(None)
    assert config.default_norms["UD"].expected_km_per_litre == 2.8
    assert config.default_norms["UD"].tolerance_percentage == 15.0


def test_missing_file_gives_defaults(tmp_path):
    config = build_fleet_config(load_config_file(str(tmp_path / "missing.yaml")))
    assert config.default_expected_km_per_litre == DEFAULT_EXPECTED_KM_PER_LITRE
    assert config.probe_fleet_numbers == frozenset()
    assert config.default_norms == {}


def test_partial_file(tmp_path):
    path = tmp_path / "fleet.yaml"
    path.write_text(
        "defaults:\n"
        "  tolerance_percentage: 12.5\n"
        "probe:\n"
        "  fleet_numbers: [ud-01]\n"
        "norms:\n"
        "  6h: {expected_km_per_litre: 3.2}\n",
        encoding="utf-8",
    )
    config = build_fleet_config(load_config_file(str(path)))
    assert config.default_expected_km_per_litre == 3.0
    assert config.default_tolerance_percentage == 12.5
    assert config.probe_fleet_numbers == frozenset({"UD-01"})
    assert config.default_norms["6H"].expected_km_per_litre == 3.2
    assert config.default_norms["6H"].tolerance_percentage == 10.0
