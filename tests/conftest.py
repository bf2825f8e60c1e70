"""
Test configuration: ensures repo root is in sys.path + isolation guards.

This allows tests to import from top-level packages (dayplan, cli).
Every test gets its own DAYPLAN_HOME, and the live store is never opened.
"""

import sqlite3
import sys
from pathlib import Path

import pytest

# Add repo root to sys.path so tests can import dayplan.*, cli.*
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dayplan.state_store import MemoryKeyValueStore, reset_store  # noqa: E402
from dayplan.timeblocks.documents import DocumentStore  # noqa: E402

# =============================================================================
# ISOLATION GUARD: Block live store access
# =============================================================================

HOME_DB_ABSOLUTE = Path.home() / ".dayplan" / "data" / "dayplan.db"

_original_sqlite_connect = sqlite3.connect


def _guarded_sqlite_connect(database, *args, **kwargs):
    """Intercept sqlite3.connect to block live store access."""
    db_str = str(database)
    if db_str != ":memory:":
        try:
            abs_path = Path(db_str).resolve()
        except (OSError, ValueError):
            abs_path = Path(db_str)
        if abs_path == HOME_DB_ABSOLUTE:
            raise RuntimeError(
                f"ISOLATION VIOLATION: Test attempted to open the live store at {database}.\n"
                "Use the isolated_home fixture (autouse) or a MemoryKeyValueStore."
            )
    return _original_sqlite_connect(database, *args, **kwargs)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point DAYPLAN_HOME at a temp dir and forget any store singleton."""
    home = tmp_path / "dayplan_home"
    monkeypatch.setenv("DAYPLAN_HOME", str(home))
    monkeypatch.delenv("DAYPLAN_DB", raising=False)
    monkeypatch.setattr(sqlite3, "connect", _guarded_sqlite_connect)
    reset_store()
    yield home
    reset_store()


# =============================================================================
# SHARED FIXTURES
# =============================================================================


@pytest.fixture
def memory_store():
    return MemoryKeyValueStore()


@pytest.fixture
def documents(memory_store):
    return DocumentStore(memory_store)
