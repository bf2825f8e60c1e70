"""
Centralized configuration for dayplan.

All values that vary by deployment belong here.
Override via environment variables where marked.
"""

import os

# ============================================================
# Logging
# ============================================================

LOG_LEVEL: str = os.environ.get("DAYPLAN_LOG_LEVEL", "INFO")
"""Root log level for the CLI and the daemon."""

_log_json = os.environ.get("DAYPLAN_LOG_JSON", "")
LOG_JSON: bool | None = None if _log_json == "" else _log_json.lower() in ("1", "true", "yes")
"""Force JSON (1) or human (0) log lines. Unset = JSON when stderr is not a TTY."""

# ============================================================
# Day transitions
# ============================================================

TRANSITIONS_PATH: str | None = os.environ.get("DAYPLAN_TRANSITIONS") or None
"""Path of the transitions YAML. Unset = config/transitions.yaml in the repository."""

# ============================================================
# Blocks
# ============================================================

SPLIT_GRANULARITY_MINUTES: int = 5
"""Smallest piece produced by splitting a block."""
