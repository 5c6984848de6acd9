"""
Cron scheduler for scheduled workflows.

One shared APScheduler AsyncIOScheduler dispatches every workflow schedule;
this class keeps the workflow id -> scheduler job mapping in sync with it.
"""

import asyncio
import threading
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.combining import OrTrigger
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from croniter import croniter

from wa_automation.domain.exceptions import SchedulerConfigurationError
from wa_automation.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

ScheduledCallback = Callable[[], Awaitable[None]]

# Cron numbers weekdays from Sunday (0 and 7); APScheduler numbers from Monday.
# Weekday numbers are translated to names so both agree.
_WEEKDAY_NAMES = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")


def _translate_day_of_week(field: str) -> str:
    names: list[str] = []
    for part in field.split(","):
        body, _, step_text = part.partition("/")
        step = int(step_text) if step_text else 1
        if step < 1:
            raise ValueError(f"invalid step in day-of-week field: {part}")

        if body in ("*", "?"):
            if step == 1:
                return "*"
            start, end = 0, 6
        elif "-" in body:
            first, last = body.split("-", 1)
            if not (first.isdigit() and last.isdigit()):
                # Named ranges ("mon-fri") are already understood
                names.append(part)
                continue
            start, end = int(first), int(last)
        elif body.isdigit():
            start = end = int(body)
            if step_text:
                end = 6
        else:
            names.append(part)
            continue

        if start > 7 or end > 7 or start > end:
            raise ValueError(f"invalid day-of-week range: {part}")
        for day in range(start, end + 1, step):
            name = _WEEKDAY_NAMES[day % 7]
            if name not in names:
                names.append(name)
    return ",".join(names)


def _is_unrestricted(field: str) -> bool:
    return field in ("*", "?")


def build_cron_trigger(expression: str, timezone: str = "UTC") -> BaseTrigger:
    """
    Parse a cron expression into an APScheduler trigger.

    Accepts standard five-field expressions (minute granularity) and
    six-field expressions whose first field is seconds.

    When both day-of-month and day-of-week are restricted, cron fires on a
    day matching either of them, while a single CronTrigger requires both.
    That case becomes an OrTrigger of one trigger per day field.
    """
    fields = (expression or "").split()
    if len(fields) == 5:
        second = "0"
        minute, hour, day, month, day_of_week = fields
    elif len(fields) == 6:
        second, minute, hour, day, month, day_of_week = fields
    else:
        raise SchedulerConfigurationError(
            f"invalid cron expression '{expression}': expected 5 or 6 fields", schedule=expression
        )

    if not croniter.is_valid(" ".join([minute, hour, day, month, day_of_week])):
        raise SchedulerConfigurationError(
            f"invalid cron expression '{expression}'", schedule=expression
        )

    def cron(day_field: str, day_of_week_field: str) -> CronTrigger:
        return CronTrigger(
            second=second,
            minute=minute,
            hour=hour,
            day=day_field,
            month=month,
            day_of_week=_translate_day_of_week(day_of_week_field),
            timezone=timezone,
        )

    try:
        if _is_unrestricted(day) or _is_unrestricted(day_of_week):
            return cron(day, day_of_week)
        return OrTrigger([cron(day, "*"), cron("*", day_of_week)])
    except ValueError as e:
        raise SchedulerConfigurationError(
            f"invalid cron expression '{expression}': {e}", schedule=expression
        ) from e


class CronScheduler:
    """
    Maintains exactly one scheduler job per scheduled workflow.

    add_workflow replaces any existing entry for the same workflow id.
    Callbacks are coroutine functions run on the event loop by the shared
    dispatcher; they must hand long work off to their own task.
    """

    def __init__(self, timezone: str = "UTC", scheduler: AsyncIOScheduler | None = None):
        self.timezone = timezone
        self.scheduler = scheduler or AsyncIOScheduler(timezone=timezone)
        self._jobs: dict[str, str] = {}  # workflow_id -> scheduler job id
        self._lock = threading.Lock()

    @staticmethod
    def _job_id(workflow_id: str) -> str:
        return f"workflow:{workflow_id}"

    def start(self) -> None:
        if self.scheduler.running:
            return
        logger.info("Starting workflow scheduler")
        self.scheduler.start()

    async def stop(self) -> None:
        """Drop every schedule and return once the dispatcher has shut down"""
        with self._lock:
            self._jobs.clear()
            self.scheduler.remove_all_jobs()
        if not self.scheduler.running:
            return
        logger.info("Stopping workflow scheduler")
        self.scheduler.shutdown(wait=False)
        # AsyncIOScheduler finishes its shutdown on a later loop iteration
        while self.scheduler.running:
            await asyncio.sleep(0)

    def add_workflow(self, workflow_id: str, schedule: str, callback: ScheduledCallback) -> None:
        """Register (or re-register) a workflow schedule"""
        if not schedule:
            raise SchedulerConfigurationError(
                "scheduled workflow has no schedule", workflow_id=workflow_id
            )
        try:
            trigger = build_cron_trigger(schedule, self.timezone)
        except SchedulerConfigurationError as e:
            e.details["workflow_id"] = workflow_id
            raise

        with self._lock:
            self._remove_locked(workflow_id)
            job = self.scheduler.add_job(
                callback,
                trigger=trigger,
                id=self._job_id(workflow_id),
                name=f"workflow {workflow_id}",
                replace_existing=True,
                max_instances=1,
                coalesce=True,
                misfire_grace_time=300,
            )
            self._jobs[workflow_id] = job.id

        logger.info("Scheduled workflow %s: %s", workflow_id, schedule)

    def add_interval_job(self, name: str, callback: ScheduledCallback, interval: timedelta) -> str:
        """Register a recurring housekeeping job that is not tied to a workflow"""
        job = self.scheduler.add_job(
            callback,
            trigger=IntervalTrigger(seconds=interval.total_seconds(), timezone=self.timezone),
            id=f"maintenance:{name}",
            name=name,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info("Scheduled %s every %s", name, interval)
        return job.id

    def remove_workflow(self, workflow_id: str) -> None:
        """Deregister a workflow schedule; unknown ids are ignored"""
        with self._lock:
            removed = self._remove_locked(workflow_id)
        if removed:
            logger.info("Removed scheduled workflow: %s", workflow_id)

    def _remove_locked(self, workflow_id: str) -> bool:
        job_id = self._jobs.pop(workflow_id, None)
        if job_id is None:
            return False
        if self.scheduler.get_job(job_id) is not None:
            self.scheduler.remove_job(job_id)
        return True

    def get_scheduled_workflows(self) -> list[str]:
        with self._lock:
            return list(self._jobs)

    def is_scheduled(self, workflow_id: str) -> bool:
        with self._lock:
            return workflow_id in self._jobs

    def next_run_time(self, workflow_id: str) -> datetime | None:
        with self._lock:
            job_id = self._jobs.get(workflow_id)
        if job_id is None:
            return None
        job = self.scheduler.get_job(job_id)
        return getattr(job, "next_run_time", None) if job else None
