"""Pytest configuration and shared fixtures."""

import os
import tempfile

import pytest
from alembic.config import Config

from alembic import command
from investfolio.categories import Category
from investfolio.known_assets import KnownAsset
from tests.fixtures.fakes import FakeClock, FakeQuoteProvider


@pytest.fixture(scope="function")
def temp_db_path():
    """Create a temporary database file for testing."""
    with tempfile.NamedTemporaryFile(delete=False, suffix=".db") as tmp:
        db_path = tmp.name
    yield db_path
    for suffix in ("", "-wal", "-shm"):
        if os.path.exists(db_path + suffix):
            os.remove(db_path + suffix)


@pytest.fixture(scope="function")
def test_db_schema(temp_db_path):
    """Create test database schema using Alembic migration."""
    alembic_config = Config("alembic.ini")
    alembic_config.set_main_option(
        "sqlalchemy.url", f"sqlite:///{os.path.abspath(temp_db_path)}"
    )
    command.upgrade(alembic_config, "head")
    yield temp_db_path


@pytest.fixture(scope="function")
def test_db(test_db_schema):
    """Create a Database instance for testing."""
    from investfolio.database import Database

    db = Database(db_path=test_db_schema, encryption_key=None)
    return db


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_provider():
    return FakeQuoteProvider({"PETR4": "38.50", "HGLG11": "160.00", "VALE3": "62.10"})


@pytest.fixture
def sample_known_assets():
    """Small known-asset snapshot."""
    return [
        KnownAsset("PETR4", "Petrobras PN", Category.EQUITY, sector="Energy"),
        KnownAsset("HGLG11", "CSHG Logística", Category.REIT),
        KnownAsset("BTC", "Bitcoin", Category.CRYPTO),
        KnownAsset("TESOURO SELIC 2029", "Tesouro Selic 2029", Category.FIXED_INCOME),
    ]
