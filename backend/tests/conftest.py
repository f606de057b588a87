"""
Shared fixtures: an in-memory database, a session and an API client.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fleetops.config.fleet_config import FleetConfig, NormDefaults, get_fleet_config
from fleetops.db.database import Base, get_db
import fleetops.models  # noqa: F401


@pytest.fixture()
def fleet_config():
    return FleetConfig(
        probe_fleet_numbers=frozenset({"TRUCK-001", "TRUCK-007"}),
        default_norms={"UD": NormDefaults(expected_km_per_litre=2.8, tolerance_percentage=15.0)},
    )


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def client(session_factory, fleet_config):
    from fleetops.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_fleet_config] = lambda: fleet_config
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
