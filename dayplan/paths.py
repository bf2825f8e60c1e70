from __future__ import annotations

import os
from pathlib import Path

APP_ENV_HOME = "DAYPLAN_HOME"
APP_ENV_DB = "DAYPLAN_DB"


def project_root() -> Path:
    """
    Repository/project root directory.
    Contains dayplan/, cli/, config/, tests/.
    """
    return Path(__file__).parent.parent.resolve()


def app_home() -> Path:
    """
    User-writable home for dayplan.
    Override with DAYPLAN_HOME.
    """
    if os.environ.get(APP_ENV_HOME):
        return Path(os.environ[APP_ENV_HOME]).expanduser().resolve()
    return (Path.home() / ".dayplan").resolve()


def config_dir() -> Path:
    d = app_home() / "config"
    d.mkdir(parents=True, exist_ok=True)
    return d


def data_dir() -> Path:
    d = app_home() / "data"
    d.mkdir(parents=True, exist_ok=True)
    return d


def db_path() -> Path:
    """
    Canonical key-value store path.

    Resolution order:
    1. DAYPLAN_DB env var (explicit override)
    2. ~/.dayplan/data/dayplan.db (default)
    """
    if os.environ.get(APP_ENV_DB):
        return Path(os.environ[APP_ENV_DB]).expanduser().resolve()
    return data_dir() / "dayplan.db"


def bundled_transitions_path() -> Path:
    """Transition schedule shipped with the repository."""
    return project_root() / "config" / "transitions.yaml"
