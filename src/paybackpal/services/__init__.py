"""Service module exports."""

from . import (
    export_csv,
    history,
    notifications,
    payments_repository,
    payoff,
    reminders,
    reports,
)

__all__ = [
    "export_csv",
    "history",
    "notifications",
    "payments_repository",
    "payoff",
    "reminders",
    "reports",
]
