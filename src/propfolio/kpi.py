"""
Dashboard KPIs for propfolio.

Standalone functions computing the accounting dashboard's headline numbers
from a ledger: month-over-month comparison, all-time totals, recent and
upcoming transactions, and calendar tax-year summaries.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any

import pandas as pd

from .core.currency import HUNDRED, ZERO, present
from .core.errors import ConfigError
from .core.ledger import Ledger
from .core.models import Transaction, coerce_id
from .core.ranking import sort_transactions
from .core.report import ReportTotals
from .core.window import TimeWindow, WindowLabel, resolve_now, resolve_window


def _totals(transactions: Iterable[Transaction]) -> ReportTotals:
    income = ZERO
    expenses = ZERO
    for txn in transactions:
        if txn.is_income:
            income += txn.amount
        else:
            expenses += txn.amount
    return ReportTotals(income=income, expenses=expenses)


def change_percent(current: Decimal, previous: Decimal) -> Decimal:
    """
    Relative change from ``previous`` to ``current`` in percent.

    Returns 0 when ``previous`` is 0 (no baseline to compare against).
    """
    if previous == 0:
        return ZERO
    return (current - previous) / previous * HUNDRED


def calendar_month(when: datetime) -> TimeWindow:
    """Window covering the calendar month containing ``when``."""
    period = pd.Period(when, freq="M")
    return TimeWindow(
        period.start_time.to_pydatetime(),
        (period + 1).start_time.to_pydatetime(),
        WindowLabel.CUSTOM,
    )


@dataclass(frozen=True, slots=True)
class FinancialOverview:
    """
    Headline numbers for the accounting dashboard.

    Attributes:
        current_month: Totals for the calendar month containing ``now``
        previous_month: Totals for the calendar month before it
        all_time: Totals across the whole ledger
        income_change_percent: Month-over-month income change
        expenses_change_percent: Month-over-month expense change
        profit_change_percent: Month-over-month profit change
        property_count: Number of properties in the ledger
        recent: Most recent transactions dated at or before ``now``
        upcoming: Next recurring transactions dated after ``now``
    """

    current_month: ReportTotals
    previous_month: ReportTotals
    all_time: ReportTotals
    income_change_percent: Decimal
    expenses_change_percent: Decimal
    profit_change_percent: Decimal
    property_count: int
    recent: tuple[Transaction, ...]
    upcoming: tuple[Transaction, ...]

    def to_dict(self) -> dict[str, Any]:
        def txn(t: Transaction) -> dict[str, Any]:
            return {
                "id": t.id,
                "date": t.date.isoformat(),
                "type": t.type.value,
                "amount": present(t.amount),
                "description": t.description,
                "property_id": t.property_id,
                "recurring": t.recurring,
            }

        return {
            "current_month": self.current_month.to_dict(),
            "previous_month": self.previous_month.to_dict(),
            "all_time": self.all_time.to_dict(),
            "income_change_percent": present(self.income_change_percent),
            "expenses_change_percent": present(self.expenses_change_percent),
            "profit_change_percent": present(self.profit_change_percent),
            "property_count": self.property_count,
            "recent": [txn(t) for t in self.recent],
            "upcoming": [txn(t) for t in self.upcoming],
        }


def financial_overview(
    ledger: Ledger,
    now: datetime | date | None = None,
    *,
    recent_limit: int = 5,
    upcoming_limit: int = 5,
) -> FinancialOverview:
    """
    Compute the dashboard overview for a ledger.

    Args:
        ledger: Ledger snapshot
        now: Reference instant (default: current time)
        recent_limit: How many recent transactions to return
        upcoming_limit: How many upcoming recurring transactions to return

    Returns:
        FinancialOverview with month-over-month comparison and listings
    """
    now = resolve_now(now)
    this_month = calendar_month(now)
    last_month = calendar_month(this_month.start - timedelta(days=1))

    txns = ledger.transactions
    current = _totals(t for t in txns if this_month.contains(t.date))
    previous = _totals(t for t in txns if last_month.contains(t.date))

    past = [t for t in txns if t.date <= now]
    future_recurring = [t for t in txns if t.recurring and t.date > now]

    return FinancialOverview(
        current_month=current,
        previous_month=previous,
        all_time=_totals(txns),
        income_change_percent=change_percent(current.income, previous.income),
        expenses_change_percent=change_percent(current.expenses, previous.expenses),
        profit_change_percent=change_percent(current.profit, previous.profit),
        property_count=len(ledger.properties),
        recent=tuple(sort_transactions(past, "date", "desc")[:recent_limit]),
        upcoming=tuple(sort_transactions(future_recurring, "date", "asc")[:upcoming_limit]),
    )


@dataclass(frozen=True, slots=True)
class TaxYearSummary:
    """Calendar-year totals with an optional tax estimate."""

    year: int
    income: Decimal
    expenses: Decimal
    tax_rate: Decimal | None = None

    @property
    def net_income(self) -> Decimal:
        return self.income - self.expenses

    @property
    def estimated_tax(self) -> Decimal | None:
        # losses carry no tax; no rate means no estimate
        if self.tax_rate is None:
            return None
        return max(self.net_income, ZERO) * self.tax_rate

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "income": present(self.income),
            "expenses": present(self.expenses),
            "net_income": present(self.net_income),
            "tax_rate": self.tax_rate,
            "estimated_tax": present(self.estimated_tax),
        }


def tax_year_summary(
    ledger: Ledger,
    year: int,
    tax_rate: Decimal | float | str | None = None,
    property_scope: Any = None,
) -> TaxYearSummary:
    """
    Summarize one calendar tax year.

    Args:
        ledger: Ledger snapshot
        year: Calendar year
        tax_rate: Optional rate as a fraction (``0.25`` for 25 %)
        property_scope: Optional property id to restrict to

    Raises:
        InvalidWindowSelector: If ``year`` is not a valid year
        ConfigError: If ``tax_rate`` is not a number in ``[0, 1]``
    """
    window = resolve_window({"year": year})
    property_scope = coerce_id(property_scope)
    rate = None
    if tax_rate is not None:
        try:
            rate = Decimal(str(tax_rate).strip())
        except InvalidOperation as exc:
            raise ConfigError(f"tax_rate must be a number, got {tax_rate!r}") from exc
        if not rate.is_finite() or not ZERO <= rate <= 1:
            raise ConfigError(f"tax_rate must be a fraction between 0 and 1, got {tax_rate}")

    totals = _totals(
        t
        for t in ledger.transactions
        if window.contains(t.date)
        and (property_scope is None or t.property_id == property_scope)
    )
    return TaxYearSummary(
        year=window.start.year,
        income=totals.income,
        expenses=totals.expenses,
        tax_rate=rate,
    )
