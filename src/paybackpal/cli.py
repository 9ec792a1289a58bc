"""Command-line interface for PaybackPal.

Commands chain, so one invocation is one session and shares one audit log::

    paybackpal pay 50 recurring 120 activity
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from uuid import UUID

import click

from .config import BaseConfig, DevConfig
from .context import AppContext, create_app_context
from .logging_config import setup_logging
from .services.export_csv import export_audit_csv, export_payments_csv
from .services.history import HistoryFilters, filter_payments, group_by_month
from .services.notifications import run_reminder_daemon
from .services.payments_repository import format_currency
from .services.payoff import periods_remaining
from .services.reports import payments_chart_png


class AmountType(click.ParamType):
    name = "amount"

    def convert(self, value, param, ctx):
        if isinstance(value, Decimal):
            return value
        try:
            amount = Decimal(str(value).replace("$", "").replace(",", "").strip())
        except InvalidOperation:
            self.fail(f"{value!r} is not a valid amount", param, ctx)
        if not amount.is_finite():
            self.fail(f"{value!r} is not a valid amount", param, ctx)
        return amount


class UUIDType(click.ParamType):
    name = "payment-id"

    def convert(self, value, param, ctx):
        if isinstance(value, UUID):
            return value
        try:
            return UUID(str(value))
        except ValueError:
            self.fail(f"{value!r} is not a payment id", param, ctx)


AMOUNT = AmountType()
PAYMENT_ID = UUIDType()
DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M"]


def _fmt_date(value: datetime | None) -> str:
    return value.strftime("%B %d, %Y") if value else "n/a"


def _confirm_notifications() -> bool:
    return click.confirm("Allow PaybackPal to send payday reminders?", default=True)


@click.group(chain=True, invoke_without_command=True)
@click.option("--dev", is_flag=True, help="Log to the console at INFO level.")
@click.pass_context
def cli(ctx: click.Context, dev: bool) -> None:
    """Track payments against your debt and get payday reminders."""

    config = DevConfig() if dev else BaseConfig()
    setup_logging(config)
    app = create_app_context(config, prompt=_confirm_notifications)
    ctx.obj = app
    ctx.call_on_close(app.close)
    if ctx.invoked_subcommand is None:
        ctx.invoke(status)


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print the stored record instead.")
@click.pass_obj
def status(app: AppContext, as_json: bool) -> None:
    """Show balance and payoff estimates."""

    repo = app.payments
    if as_json:
        click.echo(repo.export_state())
        return
    ledger = repo.ledger
    click.echo(f"Original debt:    {format_currency(ledger.original_amount)}")
    click.echo(f"Paid so far:      {format_currency(ledger.total_paid)}")
    click.echo(f"Current balance:  {format_currency(repo.current_balance)}")
    if repo.is_paid_off:
        click.secho("Paid off!", fg="green", bold=True)
        return
    click.echo(f"Per paycheck:     {format_currency(ledger.recurring_payment_amount)}")
    remaining = periods_remaining(repo.current_balance, ledger.recurring_payment_amount)
    if remaining is not None:
        click.echo(f"Paychecks to go:  {remaining}")
    click.echo(f"Planned payoff:   {_fmt_date(repo.planned_payoff_date())}")
    click.echo(f"At current pace:  {_fmt_date(repo.estimated_payoff_date())}")


@cli.command()
@click.argument("amount", type=AMOUNT)
@click.option("--date", "paid_on", type=click.DateTime(formats=DATE_FORMATS), default=None)
@click.pass_obj
def pay(app: AppContext, amount: Decimal, paid_on: datetime | None) -> None:
    """Record a payment of AMOUNT."""

    payment = app.payments.add_payment(amount, paid_on)
    click.echo(f"Recorded {format_currency(payment.amount)} ({payment.id})")


@cli.command()
@click.argument("payment_id", type=PAYMENT_ID)
@click.pass_obj
def delete(app: AppContext, payment_id: UUID) -> None:
    """Delete the payment with PAYMENT_ID."""

    if app.payments.delete_payment(payment_id):
        click.echo("Payment deleted")
    else:
        click.echo("No such payment; nothing changed")


@cli.command()
@click.argument("amount", type=AMOUNT)
@click.pass_obj
def recurring(app: AppContext, amount: Decimal) -> None:
    """Set the planned payment per paycheck."""

    if not Decimal(0) <= amount <= Decimal(500):
        raise click.BadParameter("must be between 0 and 500", param_hint="AMOUNT")
    stored = app.payments.set_recurring_payment_amount(amount)
    click.echo(f"Paycheck amount set to {format_currency(stored)}")


@cli.command()
@click.option("--since", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
@click.option("--until", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
@click.pass_obj
def history(app: AppContext, since: datetime | None, until: datetime | None) -> None:
    """List payments grouped by month."""

    filters = HistoryFilters(
        start_date=since.date() if since else None,
        end_date=until.date() if until else None,
    )
    groups = group_by_month(filter_payments(app.payments.payments, filters))
    if not groups:
        click.echo("No payments yet")
        return
    for group in groups:
        click.secho(f"{group.label}  {format_currency(group.total)}", bold=True)
        for payment in group.payments:
            click.echo(
                f"  {payment.date:%b %d %H:%M}  {format_currency(payment.amount):>12}  {payment.id}"
            )


@cli.command()
@click.pass_obj
def activity(app: AppContext) -> None:
    """Show this session's activity, newest first."""

    events = app.payments.audit_events()
    if not events:
        click.echo("No activity this session")
        return
    for event in events:
        click.echo(f"{event.timestamp:%Y-%m-%d %H:%M:%S}  {event.kind.title}: {event.message}")


@cli.command("export-activity")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_obj
def export_activity(app: AppContext, path: Path) -> None:
    """Write this session's activity to a CSV file."""

    written = export_audit_csv(events=app.payments.audit_snapshot(), output_path=path)
    click.echo(f"Activity written: {written}")


@cli.command("export-payments")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_obj
def export_payments(app: AppContext, path: Path) -> None:
    """Write all payments to a CSV file."""

    written = export_payments_csv(payments=app.payments.recent_payments, output_path=path)
    click.echo(f"Payments written: {written}")


@cli.command()
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--months", default=6, show_default=True)
@click.pass_obj
def chart(app: AppContext, path: Path, months: int) -> None:
    """Render a PNG of monthly payments and remaining balance."""

    written = payments_chart_png(
        payments=app.payments.payments,
        original_amount=app.payments.ledger.original_amount,
        output_path=path,
        months=months,
    )
    click.echo(f"Chart written: {written}")


@cli.command()
@click.argument("action", type=click.Choice(["status", "schedule", "default", "clear", "run"]))
@click.option(
    "--anchor",
    type=click.DateTime(formats=DATE_FORMATS),
    default=None,
    help="First payday; reminders repeat every 14 days from it.",
)
@click.pass_obj
def remind(app: AppContext, action: str, anchor: datetime | None) -> None:
    """Manage payday reminders (status, schedule, default, clear, run)."""

    scheduler = app.reminders
    if action == "run":
        app.close()
        click.echo("Delivering reminders; press Ctrl+C to stop.")
        run_reminder_daemon(app.config)
        return
    if action == "schedule":
        anchor = anchor or scheduler.anchor_date
        if anchor is None:
            raise click.UsageError("--anchor is required the first time")
        fired = asyncio.run(scheduler.schedule_from_anchor(anchor))
    elif action == "default":
        fired = asyncio.run(scheduler.schedule_default_biweekly())
    elif action == "clear":
        asyncio.run(scheduler.clear_scheduled())
        fired = []
    else:
        asyncio.run(scheduler.refresh_status())
        fired = []

    for when in fired:
        click.echo(f"Reminder set for {when:%a %b %d, %Y %H:%M}")
    click.echo(f"Permission: {'granted' if scheduler.has_permission else 'not granted'}")
    click.echo(f"Scheduled:  {'yes' if scheduler.is_scheduled else 'no'}")
    if scheduler.anchor_date:
        click.echo(f"Anchor:     {scheduler.anchor_date:%Y-%m-%d}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
