"""APScheduler-backed notification facility.

Pending reminders are one-shot ``DateTrigger`` jobs kept in a job store
(the application database in production); a separate ``remind run``
process resumes the scheduler and delivers them when they fall due.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

import click
from apscheduler.jobstores.base import JobLookupError
from apscheduler.jobstores.sqlalchemy import SQLAlchemyJobStore
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.date import DateTrigger

from ..config import BaseConfig
from ..domain.repositories import SettingsRepository
from ..logging_config import get_logger
from .reminders import AuthorizationStatus, PendingRequest, TriggerComponents

logger = get_logger("notifications")

DELIVER_REF = "paybackpal.services.notifications:deliver_reminder"
MISFIRE_GRACE_SECONDS = 6 * 60 * 60


def deliver_reminder(title: str, body: str) -> None:
    """Job target: surface a due reminder."""
    logger.info("Delivering reminder", extra={"title": title})
    click.echo(f"\a{title}: {body}")


def build_scheduler(config: BaseConfig, *, blocking: bool = False) -> BaseScheduler:
    """Create an APScheduler instance whose jobs live in the application database."""
    jobstores = {
        "default": SQLAlchemyJobStore(
            url=config.DATABASE_URL, tablename=config.REMINDER_JOBS_TABLE
        )
    }
    scheduler_cls = BlockingScheduler if blocking else BackgroundScheduler
    return scheduler_cls(jobstores=jobstores)


class APSchedulerNotificationCenter:
    """Notification facility storing reminders as APScheduler jobs.

    Permission is a persisted setting: it starts undetermined and is settled
    the first time authorization is requested, by the auto-grant flag when
    set, otherwise by ``prompt``. Without either the request is denied.
    """

    def __init__(
        self,
        scheduler: BaseScheduler,
        settings_repo: SettingsRepository,
        *,
        authorization_key: str = "notificationAuthorization",
        prompt: Optional[Callable[[], bool]] = None,
        auto_grant: bool = False,
    ):
        self.scheduler = scheduler
        self.settings_repo = settings_repo
        self.authorization_key = authorization_key
        self.prompt = prompt
        self.auto_grant = auto_grant

    def open(self) -> None:
        """Start the scheduler paused so jobs are written without firing."""
        if not self.scheduler.running:
            self.scheduler.start(paused=True)

    def close(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    async def request_authorization(self) -> bool:
        if self.auto_grant:
            granted = True
        elif self.prompt is not None:
            granted = bool(await asyncio.to_thread(self.prompt))
        else:
            granted = False
        status = AuthorizationStatus.AUTHORIZED if granted else AuthorizationStatus.DENIED
        self.settings_repo.set(
            self.authorization_key, status.value, description="Notification permission"
        )
        logger.info("Notification authorization %s", status.value)
        return granted

    async def get_authorization_status(self) -> AuthorizationStatus:
        raw = self.settings_repo.get_value(self.authorization_key)
        if raw is None:
            return AuthorizationStatus.NOT_DETERMINED
        try:
            return AuthorizationStatus(raw)
        except ValueError:
            logger.warning("Unknown authorization value %r; treating as undetermined", raw)
            return AuthorizationStatus.NOT_DETERMINED

    async def list_pending_requests(self) -> list[PendingRequest]:
        return [PendingRequest(identifier=job.id) for job in self.scheduler.get_jobs()]

    async def schedule_request(
        self, identifier: str, title: str, body: str, trigger: TriggerComponents
    ) -> None:
        self.scheduler.add_job(
            DELIVER_REF,
            trigger=DateTrigger(run_date=trigger.to_datetime()),
            id=identifier,
            name=title,
            kwargs={"title": title, "body": body},
            replace_existing=True,
            misfire_grace_time=MISFIRE_GRACE_SECONDS,
        )

    async def cancel_pending_requests(self, identifiers: set[str]) -> None:
        for identifier in identifiers:
            try:
                self.scheduler.remove_job(identifier)
            except JobLookupError:
                logger.debug("Reminder %s already gone", identifier)


def run_reminder_daemon(config: BaseConfig) -> None:
    """Deliver due reminders until interrupted."""
    scheduler = build_scheduler(config, blocking=True)
    logger.info("Reminder delivery started")
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Reminder delivery stopped")
