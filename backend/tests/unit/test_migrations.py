"""Tests for the Alembic migration scripts."""
import importlib.util
import io
import re
from pathlib import Path

import pytest

VERSIONS = Path(__file__).resolve().parents[2] / "alembic" / "versions"


@pytest.fixture(scope="module")
def initial_sql():
    """The initial revision rendered as PostgreSQL DDL, without a database."""
    from alembic.migration import MigrationContext
    from alembic.operations import Operations
    
    module_spec = importlib.util.spec_from_file_location("initial_revision", VERSIONS / "001_initial.py")
    revision = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(revision)
    
    buffer = io.StringIO()
    context = MigrationContext.configure(dialect_name="postgresql", opts={"as_sql": True, "output_buffer": buffer})
    with Operations.context(context):
        revision.upgrade()
    return buffer.getvalue()


def _create_blocks(sql):
    return {
        match.group(1): match.group(2)
        for match in re.finditer(r"CREATE TABLE (\w+) \((.*?)\n\);", sql, re.S)
    }


class TestInitialMigration:
    """Test that the initial revision matches the models."""
    
    def test_every_table_created(self, initial_sql):
        """Test that each mapped table has a CREATE TABLE."""
        import corpsec.models  # noqa: F401
        from corpsec.database import Base
        
        blocks = _create_blocks(initial_sql)
        
        assert set(blocks) == set(Base.metadata.tables)
    
    def test_every_column_created(self, initial_sql):
        """Test that each mapped column appears in its table."""
        import corpsec.models  # noqa: F401
        from corpsec.database import Base
        
        blocks = _create_blocks(initial_sql)
        
        for name, table in Base.metadata.tables.items():
            created = set(re.findall(r"^\s+(\w+) ", blocks[name], re.M))
            missing = {column.name for column in table.columns} - created
            assert not missing, f"{name} missing {sorted(missing)}"
    
    def test_uen_unique_among_live_companies(self, initial_sql):
        """Test that the UEN index is partial on deleted_at."""
        assert re.search(
            r"CREATE UNIQUE INDEX uq_company_tenant_uen_live ON companies \(tenant_id, uen\) WHERE deleted_at IS NULL",
            initial_sql,
        )
