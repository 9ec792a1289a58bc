"""Tests for payment history grouping, filtering and chart/CSV output."""

from __future__ import annotations

import csv
from datetime import date, datetime
from decimal import Decimal

import pytest

from paybackpal.models.audit import AuditKind, AuditLog
from paybackpal.models.payment import Payment
from paybackpal.services.export_csv import export_audit_csv, export_payments_csv
from paybackpal.services.history import (
    HistoryFilters,
    balance_timeline,
    filter_payments,
    group_by_month,
    monthly_totals,
)
from paybackpal.services.reports import build_payments_chart, payments_chart_png


@pytest.fixture
def payments():
    return [
        Payment(amount=Decimal("40"), date=datetime(2024, 1, 10, 9)),
        Payment(amount=Decimal("60"), date=datetime(2024, 3, 2, 9)),
        Payment(amount=Decimal("25"), date=datetime(2024, 1, 24, 9)),
        Payment(amount=Decimal("100"), date=datetime(2024, 3, 16, 9)),
    ]


class TestGrouping:
    """group_by_month / monthly_totals"""

    def test_groups_newest_month_first(self, payments):
        groups = group_by_month(payments)

        assert [g.month for g in groups] == [date(2024, 3, 1), date(2024, 1, 1)]
        assert groups[0].total == Decimal("160")
        assert groups[1].total == Decimal("65")
        assert groups[1].label == "January 2024"
        assert [p.amount for p in groups[1].payments] == [Decimal("25"), Decimal("40")]

    def test_monthly_totals_fill_empty_months(self, payments):
        totals = monthly_totals(payments, months=4, today=date(2024, 3, 20))
        assert totals == [
            (date(2023, 12, 1), Decimal("0")),
            (date(2024, 1, 1), Decimal("65")),
            (date(2024, 2, 1), Decimal("0")),
            (date(2024, 3, 1), Decimal("160")),
        ]

    def test_empty(self):
        assert group_by_month([]) == []


class TestFilters:
    """filter_payments"""

    def test_date_bounds_are_inclusive(self, payments):
        filters = HistoryFilters(start_date=date(2024, 1, 24), end_date=date(2024, 3, 2))
        result = filter_payments(payments, filters)
        assert [p.amount for p in result] == [Decimal("60"), Decimal("25")]

    def test_min_amount(self, payments):
        result = filter_payments(payments, HistoryFilters(min_amount=Decimal("60")))
        assert [p.amount for p in result] == [Decimal("100"), Decimal("60")]

    def test_no_filters_sorts_newest_first(self, payments):
        result = filter_payments(payments, HistoryFilters())
        assert result[0].date == datetime(2024, 3, 16, 9)


def test_balance_timeline(payments):
    points = balance_timeline(Decimal("200"), payments)
    assert [balance for _, balance in points] == [
        Decimal("160"),
        Decimal("135"),
        Decimal("75"),
        Decimal("0"),
    ]


class TestExports:
    """CSV exports"""

    def test_audit_export_keeps_recorded_order(self, tmp_path):
        log = AuditLog()
        log.record(AuditKind.CREATED, "Created debt of $5,055.00")
        log.record(AuditKind.PAYMENT_ADDED, "Added payment: $50.00 on 2024-03-01T09:00:00")

        path = export_audit_csv(events=log.snapshot(), output_path=tmp_path / "out" / "activity.csv")

        with path.open(newline="", encoding="utf-8") as fh:
            rows = list(csv.DictReader(fh))
        assert list(rows[0]) == ["id", "timestamp", "kind", "message"]
        assert [r["kind"] for r in rows] == ["created", "paymentAdded"]
        assert rows[1]["message"].startswith("Added payment: $50.00")

    def test_payments_export(self, tmp_path, payments):
        path = export_payments_csv(payments=payments[:1], output_path=tmp_path / "payments.csv")
        with path.open(newline="", encoding="utf-8") as fh:
            rows = list(csv.DictReader(fh))
        assert rows == [
            {"id": str(payments[0].id), "date": "2024-01-10T09:00:00", "amount": "40"}
        ]


class TestCharts:
    """matplotlib rendering"""

    def test_chart_has_two_panels(self, payments):
        fig = build_payments_chart(
            payments=payments, original_amount=Decimal("500"), today=date(2024, 3, 20)
        )
        assert len(fig.axes) == 2
        assert len(fig.axes[0].patches) == 6

    def test_png_written(self, tmp_path, payments):
        path = payments_chart_png(
            payments=payments, original_amount=Decimal("500"), output_path=tmp_path / "chart.png"
        )
        assert path.exists()
        assert path.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"

    def test_png_without_payments(self, tmp_path):
        path = payments_chart_png(
            payments=[], original_amount=Decimal("500"), output_path=tmp_path / "empty.png"
        )
        assert path.exists()
