"""Service test fixtures — legacy stores captured at every historical schema version.

Invariants:
    - legacy_store(version) builds the exact on-disk layout an older release wrote
    - Legacy DDL is literal SQL, independent of the migration steps under test
"""

import pytest
from sqlalchemy import create_engine

from tests.services.legacy_schemas import LEGACY_SCHEMAS, insert_legacy_row


@pytest.fixture
def legacy_store(store_path):
    """Factory: create a store file at `version`, optionally seeded with rows."""

    def _create(version: int, rows: list[dict] | None = None) -> str:
        engine = create_engine(f"sqlite:///{store_path}")
        try:
            with engine.begin() as conn:
                for statement in LEGACY_SCHEMAS[version]:
                    conn.exec_driver_sql(statement)
                for row in rows or []:
                    insert_legacy_row(conn, version, row)
        finally:
            engine.dispose()
        return store_path

    return _create
