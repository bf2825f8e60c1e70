"""
Run IDs for day transition runs.

The scheduler enters a RunContext around every job run; the log formatters
read get_run_id() so each line a run emits can be traced back to it.
"""

import contextvars
import uuid

_current_run: contextvars.ContextVar[str | None] = contextvars.ContextVar("run_id", default=None)


def get_run_id() -> str | None:
    return _current_run.get()


class RunContext:
    """
    Binds a run ID for the duration of a with-block. Nested contexts restore
    the outer ID on exit.

    Usage:
        with RunContext() as ctx:
            logger.info("Promoting tomorrow")  # tagged with ctx.run_id
    """

    def __init__(self, run_id: str | None = None):
        self.run_id = run_id or f"run-{uuid.uuid4().hex[:16]}"
        self._token: contextvars.Token | None = None

    def __enter__(self) -> "RunContext":
        self._token = _current_run.set(self.run_id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _current_run.reset(self._token)
            self._token = None
