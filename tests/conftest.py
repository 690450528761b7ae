from __future__ import annotations

import os

# Settings are validated on import; the app engine is never used by the tests
os.environ.setdefault("DATABASE_URL", "sqlite://")

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from statemiles.Controller.deps import get_DB
from statemiles.DB.base import Base
from statemiles.Models.vehicle import Vehicle
from statemiles.Repositories import vehicle as vehicle_repo
from statemiles.Schemas.vehicle import Vehicle_create
from statemiles.Services.mileage_cache import mileage_cache
from statemiles.main import app


@pytest.fixture
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory: sessionmaker) -> Iterator[Session]:
    with session_factory() as session:
        yield session


@pytest.fixture
def vehicle(db: Session) -> Vehicle:
    return vehicle_repo.create_vehicle(db, "user-1", Vehicle_create(name="Truck 01", license_plate="TX-4412"))


@pytest.fixture
def client(session_factory: sessionmaker) -> Iterator[TestClient]:
    def override_get_DB():
        DB = session_factory()
        try:
            yield DB
        finally:
            DB.close()

    app.dependency_overrides[get_DB] = override_get_DB
    mileage_cache.clear()

    # the context manager runs the lifespan, which subscribes the cache listener
    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    mileage_cache.clear()
