"""Pytest fixtures."""

import os

import pytest

# Engines are built at import time; keep every test on in-memory SQLite.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")


@pytest.fixture
def matching_config(tmp_path):
    path = tmp_path / "matching.yaml"
    path.write_text(
        "duplicate_check:\n"
        "  result_limit: 3\n"
        "audits:\n"
        "  supplier: '*/15 * * * *'\n",
        encoding="utf-8",
    )
    return path
