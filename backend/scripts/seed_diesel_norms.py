"""
Script to seed per-fleet diesel norms from the fleet config file.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from fleetops.config.fleet_config import get_fleet_config
from fleetops.db.database import SessionLocal, Base, engine
from fleetops.models import DieselNorm
from fleetops.services.diesel_service import upsert_norm


def seed_diesel_norms(overwrite: bool = False):
    Base.metadata.create_all(bind=engine)
    config = get_fleet_config()
    db = SessionLocal()
    try:
        created = 0
        for fleet_number, norm in sorted(config.default_norms.items()):
            existing = db.query(DieselNorm).filter(DieselNorm.fleet_number == fleet_number).first()
            if existing and not overwrite:
                print(f"Norm for {fleet_number} already exists ({existing.expected_km_per_litre} km/L), skipping")
                continue
            upsert_norm(
                db,
                fleet_number,
                norm.expected_km_per_litre,
                norm.tolerance_percentage,
                updated_by="seed",
            )
            created += 1
            print(f"Seeded norm for {fleet_number}: {norm.expected_km_per_litre} km/L +/- {norm.tolerance_percentage}%")
        print(f"Seeded {created} of {len(config.default_norms)} diesel norms")
    except Exception as e:
        print(f"Error: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_diesel_norms(overwrite="--overwrite" in sys.argv)
