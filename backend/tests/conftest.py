"""
Shared fixtures: an isolated in-memory SQLite database per test, a TestClient
wired to it, and a Beijing-like config.
"""

import os

# Never touch a real database from the test run.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("SS_DEFAULTS_FILE", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from social_security.db import Base, get_db
from social_security.main import app
from social_security.schemas.social_security import CityConfig
from social_security.services import defaults


@pytest.fixture(autouse=True)
def _dev_auth(monkeypatch):
    monkeypatch.setenv("SS_AUTH_ENFORCE", "false")
    monkeypatch.delenv("SS_DEFAULTS_FILE", raising=False)
    defaults.reload_static_defaults()
    yield
    defaults.reload_static_defaults()


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def make_config(**overrides) -> CityConfig:
    """Beijing-like config with per-category ranges; keyword overrides replace top-level keys."""
    si = {"base_lower": "5360", "base_upper": "31884"}
    payload = {
        "pension": {"personal_rate": "0.08", "company_rate": "0.16", **si},
        "medical": {"personal_rate": "0.02", "company_rate": "0.10", **si},
        "unemployment": {"personal_rate": "0.002", "company_rate": "0.008", **si},
        "injury": {"personal_rate": "0", "company_rate": "0.004", **si},
        "maternity": {"personal_rate": "0", "company_rate": "0.008", **si},
        "housing_fund": {
            "personal_rate": "0.12", "company_rate": "0.12",
            "base_lower": "2320", "base_upper": "31884",
        },
        "housing_fund_protection_enabled": False,
    }
    payload.update(overrides)
    return CityConfig.model_validate(payload)


def config_payload(cfg: CityConfig) -> dict:
    return cfg.model_dump(mode="json")


@pytest.fixture
def beijing() -> CityConfig:
    return make_config()
