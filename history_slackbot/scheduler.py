"""Daily scheduling for History Slackbot."""

import re
import threading
import time
from collections.abc import Callable
from datetime import datetime, timedelta

from .errors import InvalidScheduleError
from .logging_config import create_execution_logger
from .models import JobResult

_INTEGER_FIELD = re.compile(r"[+-]?[0-9]+")

Job = Callable[[], None]


def parse_cron(cron_expr: str) -> tuple[int, int]:
    """Parse the minute and hour fields of a cron expression.

    Format: "minute hour * * *" (e.g. "0 9 * * *" for 9:00 daily). Only the
    first two fields are honored; the rest are ignored.

    Returns:
        Tuple of (hour, minute)

    Raises:
        InvalidScheduleError: If fewer than two integer fields are present or
            hour/minute are out of range
    """
    fields = (cron_expr or "").split()
    if len(fields) < 2 or not all(_INTEGER_FIELD.fullmatch(f) for f in fields[:2]):
        raise InvalidScheduleError(f"invalid cron expression: {cron_expr!r}")

    minute, hour = int(fields[0]), int(fields[1])

    if not 0 <= hour <= 23:
        raise InvalidScheduleError(f"invalid hour: {hour}")
    if not 0 <= minute <= 59:
        raise InvalidScheduleError(f"invalid minute: {minute}")

    return hour, minute


def next_run_time(cron_expr: str, now: datetime | None = None) -> datetime:
    """Calculate the next run time for a cron expression.

    Args:
        cron_expr: Schedule expression, see ``parse_cron``
        now: Current time; defaults to the local wall clock

    Returns:
        Today's occurrence, or tomorrow's if it has already passed
    """
    hour, minute = parse_cron(cron_expr)

    if now is None:
        now = datetime.now().astimezone()

    next_run = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if now > next_run:
        next_run += timedelta(days=1)

    return next_run


def daily_interval() -> timedelta:
    """Interval between scheduled runs."""
    return timedelta(hours=24)


class Scheduler:
    """Runs a job once, or repeatedly on a fixed cadence until stopped."""

    def __init__(
        self,
        job: Job,
        interval: timedelta = timedelta(0),
        run_once: bool = False,
        stop_event: threading.Event | None = None,
    ):
        """Initialize the scheduler.

        Args:
            job: Callable executing one pipeline run; raises on failure
            interval: Time between scheduled runs (ignored in run-once mode)
            run_once: Execute the job a single time and return its result
            stop_event: Set to request a shutdown at the next wait boundary
        """
        if not run_once and interval <= timedelta(0):
            raise ValueError("interval must be positive in scheduled mode")

        self.job = job
        self.interval = interval
        self.run_once = run_once
        self.stop_event = stop_event or threading.Event()
        self.logger = create_execution_logger("scheduler")

    def stop(self) -> None:
        """Request the scheduling loop to stop."""
        self.stop_event.set()

    def run_job(self) -> JobResult:
        """Execute the job once, turning failures into a logged result."""
        started_at = datetime.now().astimezone()
        try:
            self.job()
        except Exception as e:
            result = JobResult(
                success=False,
                started_at=started_at,
                finished_at=datetime.now().astimezone(),
                error=e,
            )
            self.logger.error(
                f"Job failed: {e}",
                error=str(e),
                error_type=type(e).__name__,
                duration_seconds=result.duration_seconds,
            )
            return result

        result = JobResult(
            success=True, started_at=started_at, finished_at=datetime.now().astimezone()
        )
        self.logger.info(
            "Job completed successfully", duration_seconds=result.duration_seconds
        )
        return result

    def start(self) -> JobResult | None:
        """Start the scheduler.

        Returns:
            The job result in run-once mode, otherwise the result of the last
            run before the stop event was observed (None if nothing ran)
        """
        if self.run_once:
            self.logger.info("Running job once")
            return self.run_job()

        self.logger.info(
            f"Scheduling job to run every {self.interval}",
            interval_seconds=self.interval.total_seconds(),
        )

        interval_seconds = self.interval.total_seconds()
        next_tick = time.monotonic()
        last_result = None

        while not self.stop_event.is_set():
            self.logger.info("Running scheduled job")
            last_result = self.run_job()

            next_tick += interval_seconds
            delay = max(0.0, next_tick - time.monotonic())
            self.logger.info(
                f"Next run in {timedelta(seconds=round(delay))}", delay_seconds=delay
            )
            if self.stop_event.wait(delay):
                break

        self.logger.info("Scheduler stopping")
        return last_result

    def start_at(self, first_run: datetime) -> JobResult | None:
        """Wait until ``first_run`` and then start the scheduler.

        Runs immediately when ``first_run`` is already in the past.
        """
        delay = (first_run - datetime.now(first_run.tzinfo)).total_seconds()
        if delay > 0:
            self.logger.info(
                f"Waiting until {first_run.isoformat()} for first run",
                first_run=first_run.isoformat(),
                delay_seconds=delay,
            )
            if self.stop_event.wait(delay):
                self.logger.info("Scheduler stopped before first run")
                return None

        return self.start()
