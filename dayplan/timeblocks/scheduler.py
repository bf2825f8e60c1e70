"""
Day Transition Scheduler - runs the rollover actions once a day.

Each job has a trigger time of day and a persisted last-run date
(lastRun:<job>). A job is due when its trigger time has been reached today
and it has not completed a run today, so it runs at most once per day no
matter how often it is polled or how often the process restarts. With
catch_up disabled only the exact trigger minute counts.

The two jobs are independent asyncio tasks and assume nothing about each
other's order: the routine job is held back while today's promotion is
still pending, so a late or retried promotion never copies the freshly
loaded routine into today.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import date, datetime
from functools import partial
from typing import TYPE_CHECKING

from dayplan.observability.context import RunContext
from dayplan.observability.metrics import (
    last_transition_timestamp,
    transition_failures,
    transitions_run,
    transitions_skipped,
)

from .documents import DocumentStore, last_run_key
from .models import format_clock
from .rollover import Rollover, TransitionResult

if TYPE_CHECKING:
    from dayplan.config_store import TransitionSchedule

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60

Action = Callable[[datetime], Awaitable[TransitionResult]]


@dataclass
class TransitionJob:
    """A day-boundary action and its trigger time (minute of day)."""

    name: str
    at_minute: int
    action: Action
    enabled: bool = True


@dataclass
class JobState:
    """Runtime state for a job."""

    last_run: datetime | None = None
    last_success: datetime | None = None
    last_error: str | None = None
    last_result: TransitionResult | None = None
    consecutive_failures: int = 0
    total_runs: int = 0
    total_failures: int = 0

    def to_dict(self) -> dict:
        return {
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "last_success": self.last_success.isoformat() if self.last_success else None,
            "last_error": self.last_error,
            "last_result": self.last_result.to_dict() if self.last_result else None,
            "consecutive_failures": self.consecutive_failures,
            "total_runs": self.total_runs,
            "total_failures": self.total_failures,
        }


def seconds_until(at_minute: int, now: datetime) -> float:
    """Seconds from now to the next occurrence of at_minute (always > 0)."""
    elapsed = now.hour * 3600 + now.minute * 60 + now.second + now.microsecond / 1_000_000
    delta = at_minute * 60 - elapsed
    if delta <= 0:
        delta += SECONDS_PER_DAY
    return delta


class DayTransitionScheduler:
    """
    Polls the clock and runs the promotion and routine jobs when due.

    Args:
        documents: Where the plans and the last-run markers live
        schedule: Trigger times and options (defaults: 00:01 and 00:02)
        clock: Returns the current local datetime; injectable for tests
    """

    def __init__(
        self,
        documents: DocumentStore,
        schedule: "TransitionSchedule | None" = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.documents = documents
        if schedule is None:
            from dayplan.config_store import default_transition_schedule

            schedule = default_transition_schedule()
        self.schedule = schedule
        self.clock = clock or datetime.now
        self.rollover = Rollover(documents)
        self.jobs: dict[str, TransitionJob] = {}
        self.job_states: dict[str, JobState] = {}
        self._tasks: list[asyncio.Task] = []
        self._stop_event: asyncio.Event | None = None
        self._register_default_jobs()

    def _register_default_jobs(self):
        for spec in self.schedule.transitions.values():
            if spec.name == Rollover.PROMOTE:
                action = self._promote
            elif spec.name == Rollover.ROUTINE:
                action = partial(self._load_routine, spec.protect_assigned)
            else:
                logger.warning("Unknown transition %r ignored", spec.name)
                continue
            self.register_job(TransitionJob(spec.name, spec.at_minute, action, spec.enabled))

    def register_job(self, job: TransitionJob):
        self.jobs[job.name] = job
        if job.name not in self.job_states:
            self.job_states[job.name] = JobState()

    async def _promote(self, now: datetime) -> TransitionResult:
        return await self.rollover.promote_tomorrow()

    async def _load_routine(self, protect_assigned: bool, now: datetime) -> TransitionResult:
        return await self.rollover.load_routine_for_tomorrow(now.date(), protect_assigned=protect_assigned)

    # ==================== Last-run guard ====================

    async def last_run_date(self, name: str) -> date | None:
        raw = await self.documents.store.get(last_run_key(name))
        if raw is None:
            return None
        try:
            return date.fromisoformat(raw.strip())
        except ValueError:
            logger.warning("Ignoring malformed %s: %r", last_run_key(name), raw)
            return None

    async def is_due(self, name: str, now: datetime | None = None) -> bool:
        job = self.jobs[name]
        if not job.enabled:
            return False
        now = now or self.clock()
        minute = now.hour * 60 + now.minute
        if self.schedule.catch_up:
            reached = minute >= job.at_minute
        else:
            reached = minute == job.at_minute
        if not reached:
            return False
        if await self.last_run_date(name) == now.date():
            return False
        if name == Rollover.ROUTINE and await self._promotion_pending(now):
            logger.debug("%s held until %s has run today", name, Rollover.PROMOTE)
            return False
        return True

    async def _promotion_pending(self, now: datetime) -> bool:
        """
        True while today's promotion can still run. The routine writes
        tomorrowTasks, so loading it first would promote the wrong plan.
        """
        job = self.jobs.get(Rollover.PROMOTE)
        if job is None or not job.enabled:
            return False
        if not self.schedule.catch_up and now.hour * 60 + now.minute > job.at_minute:
            return False
        return await self.last_run_date(Rollover.PROMOTE) != now.date()

    # ==================== Running ====================

    async def run_job(self, name: str, now: datetime | None = None) -> TransitionResult:
        """
        Run one job now, regardless of its trigger time, and record today as
        its last run. Errors propagate to the caller.
        """
        job = self.jobs[name]
        now = now or self.clock()
        state = self.job_states[name]

        with RunContext() as ctx:
            logger.info("Running %s (run %s)", name, ctx.run_id)
            state.last_run = now
            state.total_runs += 1
            try:
                result = await job.action(now)
                await self.documents.store.set(last_run_key(name), now.date().isoformat())
            except Exception as e:
                state.last_error = str(e)[:500]
                state.total_failures += 1
                state.consecutive_failures += 1
                transition_failures.inc()
                logger.error("%s failed: %s", name, state.last_error[:100])
                raise

            state.last_success = now
            state.last_error = None
            state.consecutive_failures = 0
            state.last_result = result
            last_transition_timestamp.set(now.timestamp())
            if result.performed:
                transitions_run.inc()
            else:
                transitions_skipped.inc()
            logger.info("%s done: %s", name, result.reason)
            return result

    async def run_due(self, now: datetime | None = None) -> list[TransitionResult]:
        """Run every job that is due. A failing job does not stop the others."""
        now = now or self.clock()
        results = []
        for name in self.jobs:
            if not await self.is_due(name, now):
                continue
            try:
                results.append(await self.run_job(name, now))
            except Exception:
                # Recorded in job_states; retried on the next poll
                continue
        return results

    # ==================== Event loop integration ====================

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    def start(self) -> list[asyncio.Task]:
        """Start one polling task per enabled job on the running loop."""
        if self.running:
            return self._tasks
        self._stop_event = asyncio.Event()
        self._tasks = [
            asyncio.create_task(self._job_loop(job), name=f"transition:{job.name}")
            for job in self.jobs.values()
            if job.enabled
        ]
        logger.info(
            "Transition scheduler started: %s",
            ", ".join(f"{j.name}@{format_clock(j.at_minute)}" for j in self.jobs.values() if j.enabled),
        )
        return self._tasks

    async def stop(self, timeout: float | None = None) -> None:
        """
        Stop polling. A run already writing to the store finishes first;
        tasks still alive after `timeout` seconds are cancelled.
        """
        if self._stop_event is not None:
            self._stop_event.set()
        if not self._tasks:
            return
        _, pending = await asyncio.wait(self._tasks, timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._tasks = []
        logger.info("Transition scheduler stopped")

    async def _job_loop(self, job: TransitionJob) -> None:
        stop = self._stop_event
        while not stop.is_set():
            now = self.clock()
            try:
                due = await self.is_due(job.name, now)
            except Exception as e:
                logger.error("Could not check %s: %s", job.name, e)
                due = False

            if due:
                try:
                    # Shielded so cancellation cannot interrupt a write halfway
                    await asyncio.shield(self.run_job(job.name, now))
                except Exception:
                    # Logged and recorded by run_job
                    logger.debug("%s will be retried on the next poll", job.name)

            delay = min(self.schedule.poll_seconds, seconds_until(job.at_minute, self.clock()))
            try:
                await asyncio.wait_for(stop.wait(), timeout=delay)
            except TimeoutError:
                pass

    def status(self) -> dict:
        return {
            name: {
                "at": format_clock(job.at_minute),
                "enabled": job.enabled,
                **self.job_states[name].to_dict(),
            }
            for name, job in self.jobs.items()
        }
