"""
Pytest configuration and fixtures for Auditcord tests.
"""

import sys
from pathlib import Path

import pytest

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from auditcord.database.db_connection import ConnectionManager  # noqa: E402
from auditcord.database.db_schema import SchemaManager  # noqa: E402


@pytest.fixture
async def db(tmp_path):
    """A fresh connection manager over a temporary database with every table created."""
    connection = ConnectionManager()
    await connection.open(tmp_path / "test.db")
    await SchemaManager.initialize_schema(connection.connection)
    yield connection
    await connection.close()
