"""Apply the Alembic revisions against SQLite and compare with the models."""

from __future__ import annotations

import importlib.util
from pathlib import Path

from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import create_engine, inspect

from models import Base


VERSIONS = Path(__file__).resolve().parents[1] / "models" / "alembic" / "versions"
REVISIONS = ["0001_initial_schema", "0002_registry_audits"]


def _load_revision(name: str):
    spec = importlib.util.spec_from_file_location(f"revision_{name}", VERSIONS / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    assert spec.loader is not None
    spec.loader.exec_module(module)
    return module


def test_revisions_chain_in_order():
    modules = [_load_revision(name) for name in REVISIONS]
    assert modules[0].down_revision is None
    assert modules[1].down_revision == modules[0].revision


def test_upgrade_creates_model_tables_and_downgrade_removes_them():
    engine = create_engine("sqlite+pysqlite:///:memory:")
    modules = [_load_revision(name) for name in REVISIONS]

    with engine.begin() as connection:
        context = MigrationContext.configure(connection)
        with Operations.context(context):
            for module in modules:
                module.upgrade()

        inspector = inspect(connection)
        assert set(inspector.get_table_names()) == set(Base.metadata.tables)
        for table_name, table in Base.metadata.tables.items():
            columns = {column["name"] for column in inspector.get_columns(table_name)}
            assert columns == {column.name for column in table.columns}

        with Operations.context(context):
            for module in reversed(modules):
                module.downgrade()

        assert inspect(connection).get_table_names() == []


def test_audit_tables_keep_registry_column_without_shadowing_declarative_registry():
    from models import AuditRun, AuditSchedule, DuplicateFinding

    for model in (AuditSchedule, AuditRun, DuplicateFinding):
        assert model.registry is Base.registry
        assert "registry" in model.__table__.c
        assert model.__table__.c.registry is model.registry_name.property.columns[0]
