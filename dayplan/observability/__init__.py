"""
Observability module: structured logging, run IDs, metrics.

Usage:
    import logging

    from dayplan.observability import RunContext

    logger = logging.getLogger(__name__)
    logger.info("Adjusted boundaries", extra={"added": 4})

    with RunContext() as ctx:
        logger.info("Transition started")

Metrics:
    from dayplan.observability import REGISTRY, transitions_run, timed

    transitions_run.inc()

    @timed(store_latency)
    async def get(key):
        ...
"""

from .context import RunContext, get_run_id
from .logging import (
    HumanFormatter,
    JSONFormatter,
    configure_log_rotation,
    configure_logging,
)
from .metrics import (
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    block_mutations,
    boundary_adjustments,
    last_transition_timestamp,
    store_latency,
    store_reads,
    store_writes,
    timed,
    transition_failures,
    transitions_run,
    transitions_skipped,
)

__all__ = [
    # Logging
    "configure_logging",
    "configure_log_rotation",
    "JSONFormatter",
    "HumanFormatter",
    # Context
    "RunContext",
    "get_run_id",
    # Metrics
    "REGISTRY",
    "Counter",
    "Gauge",
    "Histogram",
    "timed",
    "block_mutations",
    "boundary_adjustments",
    "transitions_run",
    "transitions_skipped",
    "transition_failures",
    "last_transition_timestamp",
    "store_reads",
    "store_writes",
    "store_latency",
]
