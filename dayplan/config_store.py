"""
dayplan - Configuration Store

Two kinds of configuration:
- Schedule settings (interval size, day start/end): user data, persisted in
  the key-value store under scheduleConfig and validated here
- Transition schedule (when the day-boundary jobs run): deployment config,
  read from config/transitions.yaml
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from dayplan import config, paths
from dayplan.timeblocks.models import MINUTES_PER_DAY, ScheduleConfig, parse_clock

logger = logging.getLogger(__name__)

DEFAULT_SCHEDULE = ScheduleConfig(interval_minutes=15, day_start=6 * 60, day_end=23 * 60)

# Interval sizes offered in the settings dialog
ALLOWED_INTERVALS = (10, 15, 20, 30)

DEFAULT_POLL_SECONDS = 60


def validate_schedule_config(data: dict) -> tuple[bool, list[str]]:
    """
    Validate a schedule settings dict ({"intervalMinutes", "dayStart", "dayEnd"}).

    Returns:
        (valid, errors)
    """
    errors = []

    for key in ("intervalMinutes", "dayStart", "dayEnd"):
        if key not in data:
            errors.append(f"Missing required key: {key}")
    if errors:
        return False, errors

    interval = data["intervalMinutes"]
    if isinstance(interval, bool) or not isinstance(interval, int) or interval <= 0:
        errors.append(f"intervalMinutes must be a positive integer, got {interval!r}")
        interval = None

    try:
        start = parse_clock(data["dayStart"])
        if start >= MINUTES_PER_DAY:
            errors.append("dayStart must be before 24:00")
            start = None
    except (ValueError, AttributeError) as e:
        errors.append(f"dayStart: {e}")
        start = None

    try:
        end = parse_clock(data["dayEnd"], end=True)
    except (ValueError, AttributeError) as e:
        errors.append(f"dayEnd: {e}")
        end = None

    if start is not None and end is not None:
        if end <= start:
            errors.append(f"dayEnd {data['dayEnd']} must be after dayStart {data['dayStart']}")
        elif interval is not None and interval > end - start:
            errors.append(f"intervalMinutes {interval} is longer than the day ({end - start} minutes)")

    return len(errors) == 0, errors


# ============================================================
# Transition schedule
# ============================================================


@dataclass
class TransitionSpec:
    """When and how one day-boundary job runs."""

    name: str
    at_minute: int
    enabled: bool = True
    protect_assigned: bool = False


@dataclass
class TransitionSchedule:
    poll_seconds: int = DEFAULT_POLL_SECONDS
    catch_up: bool = True
    transitions: dict[str, TransitionSpec] = field(default_factory=dict)


def default_transition_schedule() -> TransitionSchedule:
    return TransitionSchedule(
        transitions={
            "promote_tomorrow": TransitionSpec(name="promote_tomorrow", at_minute=1),
            "load_routine": TransitionSpec(name="load_routine", at_minute=2),
        }
    )


def load_transition_schedule(path: str | Path | None = None) -> TransitionSchedule:
    """
    Load the transition schedule from YAML.

    Format:
        poll_seconds: 60
        catch_up: true
        transitions:
          promote_tomorrow: {at: "00:01", enabled: true}
          load_routine: {at: "00:02", enabled: true, protect_assigned: false}

    Raises:
        FileNotFoundError if the file doesn't exist.
        ValueError if there is no 'transitions' key.
        yaml.YAMLError if the file is not valid YAML.
    """
    config_path = Path(path) if path else Path(config.TRANSITIONS_PATH or paths.bundled_transitions_path())
    if not config_path.exists():
        raise FileNotFoundError(f"Transition schedule not found: {config_path}")

    with open(config_path) as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict) or "transitions" not in data:
        raise ValueError(f"{config_path.name} must have a 'transitions' key")

    poll = data.get("poll_seconds", DEFAULT_POLL_SECONDS)
    if isinstance(poll, bool) or not isinstance(poll, int | float) or poll <= 0:
        logger.warning(f"Invalid poll_seconds {poll!r}, using {DEFAULT_POLL_SECONDS}")
        poll = DEFAULT_POLL_SECONDS

    transitions = {}
    for name, entry in (data["transitions"] or {}).items():
        if not isinstance(entry, dict):
            logger.warning(f"Skipping invalid transition entry: {name}")
            continue
        try:
            # YAML 1.1 reads an unquoted 1:30 as a sexagesimal int (90), which
            # is the same minute count; strings are parsed as clock times
            at_minute = parse_clock(entry.get("at"))
        except (ValueError, AttributeError):
            logger.warning(f"Invalid time for {name}: {entry.get('at')!r}")
            continue
        if at_minute >= MINUTES_PER_DAY:
            logger.warning(f"Invalid time for {name}: {entry.get('at')!r}")
            continue

        transitions[name] = TransitionSpec(
            name=name,
            at_minute=at_minute,
            enabled=bool(entry.get("enabled", True)),
            protect_assigned=bool(entry.get("protect_assigned", False)),
        )

    return TransitionSchedule(
        poll_seconds=int(poll),
        catch_up=bool(data.get("catch_up", True)),
        transitions=transitions,
    )
