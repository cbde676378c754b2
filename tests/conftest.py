"""
Shared pytest fixtures.

Environment variables are set here, before anything imports
lodge_ledger.core.config, so the app never touches the real database.
"""
import os
import sys
import tempfile

import pytest

# Ensure the package is importable when running pytest from the project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

_tmp_dir = tempfile.mkdtemp(prefix="lodge_ledger_test_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmp_dir, 'api.db')}"
os.environ["RAW_BACKUP_DIR"] = os.path.join(_tmp_dir, "raw_backup")
os.environ["LOG_FILE"] = ""


@pytest.fixture
def engine(tmp_path):
    """A fresh SQLite ledger per test."""
    from sqlmodel import create_engine
    from lodge_ledger.core.database import create_db_and_tables

    eng = create_engine(
        f"sqlite:///{tmp_path / 'ledger.db'}",
        connect_args={"check_same_thread": False},
    )
    create_db_and_tables(eng)
    yield eng
    eng.dispose()
