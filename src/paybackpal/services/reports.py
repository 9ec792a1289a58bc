"""Chart rendering for payment history."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Iterable, Optional

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.ticker as mticker
from matplotlib.figure import Figure

from ..models.payment import Payment
from .history import balance_timeline, monthly_totals


def build_payments_chart(
    *,
    payments: Iterable[Payment],
    original_amount: Decimal,
    months: int = 6,
    today: Optional[date] = None,
) -> Figure:
    """Monthly payment bars with the running balance underneath."""

    items = list(payments)
    fig, (bar_ax, line_ax) = plt.subplots(2, 1, figsize=(9, 7))

    totals = monthly_totals(items, months=months, today=today)
    labels = [start.strftime("%b %Y") for start, _ in totals]
    values = [float(total) for _, total in totals]
    bars = bar_ax.bar(labels, values, color="#2E7D32")
    bar_ax.set_title("Payments per month")
    bar_ax.yaxis.set_major_formatter(mticker.StrMethodFormatter("${x:,.0f}"))
    for bar, value in zip(bars, values):
        if value > 0:
            bar_ax.annotate(
                f"${value:,.0f}",
                (bar.get_x() + bar.get_width() / 2, value),
                ha="center",
                va="bottom",
                fontsize=9,
            )

    timeline = balance_timeline(original_amount, items)
    if timeline:
        xs = [point for point, _ in timeline]
        ys = [float(balance) for _, balance in timeline]
        line_ax.step(xs, ys, where="post", color="#1565C0", linewidth=2)
        line_ax.fill_between(xs, ys, step="post", alpha=0.15, color="#1565C0")
        line_ax.yaxis.set_major_formatter(mticker.StrMethodFormatter("${x:,.0f}"))
        fig.autofmt_xdate()
    else:
        line_ax.text(
            0.5, 0.5, "No payments yet\nRecord a payment to see your progress",
            ha="center", va="center", fontsize=12, color="#999",
        )
        line_ax.axis("off")
    line_ax.set_title("Remaining balance")

    fig.tight_layout()
    return fig


def payments_chart_png(
    *,
    payments: Iterable[Payment],
    original_amount: Decimal,
    output_path: Path,
    months: int = 6,
) -> Path:
    """Render the payments chart to ``output_path`` and return it."""

    fig = build_payments_chart(payments=payments, original_amount=original_amount, months=months)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, bbox_inches="tight", dpi=100)
    plt.close(fig)
    return output_path
