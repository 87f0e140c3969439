"""
Pytest configuration and fixtures.
"""
import pytest
import sys
import os
from datetime import datetime, timezone

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from demand_engine.db.database import Database


NOW = datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    """Fixed reference time so ages and recency are deterministic."""
    return NOW


@pytest.fixture
def db(tmp_path):
    """Connected SQLite database with all tables created."""
    database = Database(str(tmp_path / "demand.db"))
    database.connect()
    database.ensure_tables()
    yield database
    database.close()
