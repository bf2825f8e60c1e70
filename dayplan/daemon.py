"""
dayplan Daemon - runs the day transitions in the background.

A foreground process that:
- Runs the promotion and routine jobs on their configured times
- Catches up jobs whose time passed while it was not running
- Handles SIGTERM/SIGINT, letting an in-flight store write finish
- Persists job state for `dayplan daemon status`

Usage:
    dayplan daemon start          # Run in the foreground
    dayplan daemon start --bg     # Fork to the background, writes PID file
    dayplan daemon stop           # Stop a running daemon
    dayplan daemon status         # Running? Last runs per job
    dayplan daemon run-once       # Run whatever is due now and exit
"""

import asyncio
import json
import logging
import os
import signal
import time
from datetime import datetime
from pathlib import Path

from dayplan import paths
from dayplan.config_store import TransitionSchedule, default_transition_schedule, load_transition_schedule
from dayplan.observability.metrics import REGISTRY
from dayplan.state_store import KeyValueStore, get_store
from dayplan.timeblocks.documents import DocumentStore
from dayplan.timeblocks.rollover import TransitionResult
from dayplan.timeblocks.scheduler import DayTransitionScheduler

logger = logging.getLogger(__name__)

STOP_GRACE_SECONDS = 30


def pid_file() -> Path:
    return paths.data_dir() / "daemon.pid"


def state_file() -> Path:
    return paths.data_dir() / "daemon_state.json"


def log_file() -> Path:
    return paths.data_dir() / "daemon.log"


def load_schedule_or_default(path: str | None = None) -> TransitionSchedule:
    try:
        return load_transition_schedule(path)
    except FileNotFoundError as e:
        logger.warning(f"{e}, using default transition times")
        return default_transition_schedule()


class TransitionDaemon:
    """
    Long-running host for DayTransitionScheduler.

    Features:
    - One asyncio task per transition job
    - Graceful shutdown on SIGTERM/SIGINT
    - State persistence across restarts (the last-run markers themselves
      live in the key-value store)
    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        schedule: TransitionSchedule | None = None,
        clock=None,
    ):
        self.documents = DocumentStore(store or get_store())
        self.schedule = schedule or load_schedule_or_default()
        self.scheduler = DayTransitionScheduler(self.documents, self.schedule, clock=clock)
        self._shutdown_event: asyncio.Event | None = None

    # ==================== State ====================

    def _save_state(self):
        """Persist job state to disk."""
        data = {"jobs": self.scheduler.status(), "updated_at": datetime.now().isoformat()}
        try:
            target = state_file()
            with open(target, "w") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            logger.warning(f"Failed to save state: {e}")

    # ==================== Running ====================

    async def run_once(self) -> list[TransitionResult]:
        """Run every job that is due now and exit."""
        results = await self.scheduler.run_due()
        self._save_state()
        if not results:
            logger.info("No transition due")
        for result in results:
            logger.info(f"{result.job}: {result.reason}")
        return results

    async def run(self) -> None:
        """Main daemon loop."""
        self._shutdown_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._handle_signal, sig)

        self._write_pid()
        logger.info(f"dayplan daemon starting, jobs: {', '.join(self.scheduler.jobs)}")
        self.scheduler.start()
        try:
            while not self._shutdown_event.is_set():
                try:
                    await asyncio.wait_for(self._shutdown_event.wait(), timeout=self.schedule.poll_seconds)
                except TimeoutError:
                    pass
                self._save_state()
        finally:
            await self.scheduler.stop(timeout=STOP_GRACE_SECONDS)
            for sig in (signal.SIGTERM, signal.SIGINT):
                loop.remove_signal_handler(sig)
            self._cleanup()

    def run_forever(self) -> None:
        asyncio.run(self.run())

    def request_shutdown(self) -> None:
        if self._shutdown_event is not None:
            self._shutdown_event.set()

    def _handle_signal(self, signum):
        logger.info(f"Received {signal.Signals(signum).name}, shutting down...")
        self.request_shutdown()

    def _write_pid(self):
        pid_file().write_text(str(os.getpid()))
        logger.info(f"PID {os.getpid()} written to {pid_file()}")

    def _cleanup(self):
        self._save_state()
        pid_file().unlink(missing_ok=True)
        logger.info("Daemon stopped")

    # ==================== Control ====================

    @staticmethod
    def is_running() -> tuple[bool, int | None]:
        """Check if daemon is running. Returns (is_running, pid)."""
        target = pid_file()
        if not target.exists():
            return False, None

        try:
            pid = int(target.read_text().strip())
            os.kill(pid, 0)
            return True, pid
        except (ProcessLookupError, ValueError):
            # Stale PID file
            target.unlink(missing_ok=True)
            return False, None
        except PermissionError:
            # Process exists but we can't signal it
            return True, pid

    @staticmethod
    def stop() -> bool:
        """Stop the running daemon."""
        running, pid = TransitionDaemon.is_running()
        if not running:
            logger.info("Daemon is not running")
            return False

        logger.info(f"Stopping daemon (PID {pid})...")
        try:
            os.kill(pid, signal.SIGTERM)
            for _ in range(10):
                time.sleep(0.5)
                if not TransitionDaemon.is_running()[0]:
                    logger.info("Daemon stopped")
                    return True
            os.kill(pid, signal.SIGKILL)
            logger.info("Daemon force killed")
            return True
        except ProcessLookupError:
            pid_file().unlink(missing_ok=True)
            logger.info("Daemon already stopped")
            return True

    @staticmethod
    def status() -> dict:
        """Get daemon status."""
        running, pid = TransitionDaemon.is_running()

        status = {
            "running": running,
            "pid": pid,
            "pid_file": str(pid_file()),
            "state_file": str(state_file()),
            "log_file": str(log_file()),
            "jobs": {},
            "metrics": REGISTRY.to_dict(),
        }

        target = state_file()
        if target.exists():
            try:
                with open(target) as f:
                    data = json.load(f)
                status["jobs"] = data.get("jobs", {})
                status["state_updated"] = data.get("updated_at")
            except (json.JSONDecodeError, OSError) as e:
                logger.warning(f"Could not load daemon state: {e}")

        return status
