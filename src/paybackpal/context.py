"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlmodel import Session

from .config import BaseConfig
from .infra.database import create_db_engine, create_session_factory, init_database
from .infra.repositories import SQLModelSettingsRepository
from .services.notifications import APSchedulerNotificationCenter, build_scheduler
from .services.payments_repository import PaymentsRepository
from .services.reminders import ReminderScheduler


@dataclass
class AppContext:
    """Explicitly constructed owner of the repository, scheduler and facility."""

    config: BaseConfig
    session_factory: Callable[[], Session]
    settings_repo: SQLModelSettingsRepository
    payments: PaymentsRepository
    notification_center: APSchedulerNotificationCenter
    reminders: ReminderScheduler

    def close(self) -> None:
        self.notification_center.close()


def create_app_context(
    config: Optional[BaseConfig] = None,
    *,
    prompt: Optional[Callable[[], bool]] = None,
    clock: Callable[[], datetime] = datetime.now,
) -> AppContext:
    """Create and initialize the application context."""

    if config is None:
        config = BaseConfig()

    engine = create_db_engine(config)
    init_database(engine)
    session_factory = create_session_factory(engine)

    settings_repo = SQLModelSettingsRepository(session_factory)
    payments = PaymentsRepository(
        settings_repo,
        storage_key=config.LEDGER_STORAGE_KEY,
        default_original_amount=config.DEFAULT_ORIGINAL_AMOUNT,
        clock=clock,
    )

    notification_center = APSchedulerNotificationCenter(
        build_scheduler(config),
        settings_repo,
        authorization_key=config.AUTHORIZATION_STORAGE_KEY,
        prompt=prompt,
        auto_grant=config.NOTIFICATIONS_AUTO_GRANT,
    )
    notification_center.open()

    reminders = ReminderScheduler(
        notification_center,
        settings_repo,
        anchor_key=config.ANCHOR_STORAGE_KEY,
        default_count=config.REMINDER_COUNT,
        clock=clock,
    )

    return AppContext(
        config=config,
        session_factory=session_factory,
        settings_repo=settings_repo,
        payments=payments,
        notification_center=notification_center,
        reminders=reminders,
    )
