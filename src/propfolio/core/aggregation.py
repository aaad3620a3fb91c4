"""
Aggregator for propfolio.

Reduces a filtered set of transactions into grouped income/expense sums and
derives profit, margin, ROI and category shares.

**Numeric semantics:**
- Income and expenses are exact ``Decimal`` sums of two-decimal amounts.
- ``profit = income - expenses`` (signed).
- ``profit_margin = profit / income * 100`` when ``income > 0``, else 0.
- ``roi = profit / purchase_price * 100`` only when the purchase price is
  known and positive; otherwise it is ``None``, never 0.
- Ratios keep full ``Decimal`` precision; rounding happens at presentation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

import pandas as pd

from .currency import ZERO, percent, present
from .errors import ConfigError
from .models import Property, Transaction, TransactionType
from .window import TimeWindow

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"
GENERAL = "General"


class GroupBy(Enum):
    """Grouping key for aggregate rows."""

    CATEGORY = "category"
    PROPERTY = "property"
    MONTH = "month"


def normalize_group_by(value: Any) -> GroupBy:
    """Coerce a string or ``GroupBy`` into a ``GroupBy`` (ConfigError otherwise)."""
    if isinstance(value, GroupBy):
        return value
    try:
        return GroupBy(str(value).strip().lower())
    except ValueError as exc:
        raise ConfigError(
            f"Unsupported group_by {value!r} (expected category, property or month)"
        ) from exc


@dataclass(frozen=True, slots=True)
class Appreciation:
    """Change in a property's value since purchase, independent of any window."""

    amount: Decimal
    percent: Decimal

    @classmethod
    def for_property(cls, prop: Property) -> Appreciation | None:
        """Return the appreciation, or None when either value is unknown."""
        if not prop.has_purchase_price or prop.current_value is None:
            return None
        gain = prop.current_value - prop.purchase_price
        return cls(amount=gain, percent=percent(gain, prop.purchase_price))

    def to_dict(self) -> dict[str, Decimal]:
        return {"amount": present(self.amount), "percent": present(self.percent)}


@dataclass(frozen=True, slots=True)
class AggregateRow:
    """
    One grouped financial summary (per property, category or month).

    ``profit`` and ``profit_margin`` are derived from ``income`` and
    ``expenses`` so the row invariants hold by construction.

    Attributes:
        entity_id: Property id, category id/name, or ``"YYYY-MM"`` month key;
            None for the synthetic "Uncategorized"/"General" buckets
        entity_name: Display label
        income: Sum of income amounts
        expenses: Sum of expense amounts
        transaction_count: Number of transactions folded into the row
        roi: Profit over purchase price in percent (property rows only)
        share_percent: Share of the group total in percent (category rows only)
        appreciation: Value change since purchase (property rows only)
    """

    entity_id: Any
    entity_name: str
    income: Decimal = ZERO
    expenses: Decimal = ZERO
    transaction_count: int = 0
    roi: Decimal | None = None
    share_percent: Decimal | None = None
    appreciation: Appreciation | None = None

    @property
    def profit(self) -> Decimal:
        return self.income - self.expenses

    @property
    def profit_margin(self) -> Decimal:
        if self.income > ZERO:
            return percent(self.profit, self.income)
        return ZERO

    def value(self, name: str) -> Any:
        """Field accessor used by the ranker."""
        if name == "name":
            return self.entity_name
        return getattr(self, name)

    def to_dict(self) -> dict[str, Any]:
        """Presentation view: two-decimal rounding, None kept for undefined values."""
        return {
            "entity_id": self.entity_id,
            "entity_name": self.entity_name,
            "income": present(self.income),
            "expenses": present(self.expenses),
            "profit": present(self.profit),
            "profit_margin": present(self.profit_margin),
            "roi": present(self.roi),
            "share_percent": present(self.share_percent),
            "appreciation": self.appreciation.to_dict() if self.appreciation else None,
            "transaction_count": self.transaction_count,
        }


@dataclass(slots=True)
class _Bucket:
    name: str
    income: Decimal = ZERO
    expenses: Decimal = ZERO
    count: int = 0

    def add(self, txn: Transaction) -> None:
        if txn.is_income:
            self.income += txn.amount
        else:
            self.expenses += txn.amount
        self.count += 1


def category_identity(txn: Transaction) -> tuple[Any, str]:
    """
    Grouping identity and display name of a transaction's category.

    Returns:
        ``(category_id, name)`` when classified by id, ``(category_name, name)``
        when only a name is known, ``(None, "Uncategorized")`` otherwise
    """
    if txn.category_id is not None:
        return txn.category_id, txn.category_name or f"Category {txn.category_id}"
    if txn.category_name:
        return txn.category_name, txn.category_name
    return None, UNCATEGORIZED


def _by_category(
    transactions: Iterable[Transaction], share_of: TransactionType
) -> list[AggregateRow]:
    buckets: dict[Any, _Bucket] = {}
    named: set[Any] = set()
    for txn in transactions:
        key, name = category_identity(txn)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = _Bucket(name)
        if key not in named and txn.category_name:
            bucket.name = txn.category_name
            named.add(key)
        bucket.add(txn)

    def measure(b: _Bucket) -> Decimal:
        return b.income if share_of is TransactionType.INCOME else b.expenses

    total = sum((measure(b) for b in buckets.values()), ZERO)
    return [
        AggregateRow(
            entity_id=key,
            entity_name=b.name,
            income=b.income,
            expenses=b.expenses,
            transaction_count=b.count,
            share_percent=percent(measure(b), total),
        )
        for key, b in buckets.items()
    ]


def _roi(profit: Decimal, prop: Property | None) -> Decimal | None:
    if prop is None or not prop.has_purchase_price:
        return None
    return percent(profit, prop.purchase_price)


def _by_property(
    transactions: Iterable[Transaction],
    properties: Iterable[Property],
    include_idle: bool,
) -> list[AggregateRow]:
    known = {p.id: p for p in properties}
    buckets: dict[Any, _Bucket] = {}
    if include_idle:
        for pid, prop in known.items():
            buckets[pid] = _Bucket(prop.name)

    for txn in transactions:
        pid = txn.property_id
        bucket = buckets.get(pid)
        if bucket is None:
            if pid is None:
                name = GENERAL
            elif pid in known:
                name = known[pid].name
            else:
                name = txn.property_name or f"Property {pid}"
            bucket = buckets[pid] = _Bucket(name)
        bucket.add(txn)

    rows = []
    for pid, b in buckets.items():
        prop = known.get(pid)
        profit = b.income - b.expenses
        rows.append(
            AggregateRow(
                entity_id=pid,
                entity_name=b.name,
                income=b.income,
                expenses=b.expenses,
                transaction_count=b.count,
                roi=_roi(profit, prop),
                appreciation=Appreciation.for_property(prop) if prop else None,
            )
        )
    return rows


def _by_month(
    transactions: list[Transaction], window: TimeWindow | None
) -> list[AggregateRow]:
    if window is not None:
        inside = [t for t in transactions if window.contains(t.date)]
        earliest = min((t.date for t in inside), default=None)
        periods = window.month_periods(earliest=earliest)
    else:
        inside = transactions
        if not inside:
            return []
        periods = pd.period_range(
            start=pd.Period(min(t.date for t in inside), freq="M"),
            end=pd.Period(max(t.date for t in inside), freq="M"),
            freq="M",
        )

    # Every month in range gets a row, even without transactions
    buckets: dict[pd.Period, _Bucket] = {p: _Bucket(p.strftime("%b %Y")) for p in periods}
    for txn in inside:
        buckets[pd.Period(txn.date, freq="M")].add(txn)

    return [
        AggregateRow(
            entity_id=str(period),
            entity_name=b.name,
            income=b.income,
            expenses=b.expenses,
            transaction_count=b.count,
        )
        for period, b in buckets.items()
    ]


def aggregate(
    transactions: Iterable[Transaction],
    group_by: GroupBy | str,
    properties: Iterable[Property] = (),
    *,
    window: TimeWindow | None = None,
    share_of: TransactionType | str = TransactionType.EXPENSE,
    include_idle_properties: bool = True,
) -> list[AggregateRow]:
    """
    Group transactions and compute per-group sums and derived ratios.

    Args:
        transactions: Already filtered transactions
        group_by: ``category``, ``property`` or ``month``
        properties: Properties in scope (property grouping; ROI and
            appreciation come from here)
        window: Window the transactions were filtered with; month grouping
            emits one row per calendar month it spans
        share_of: Measure category shares are computed on (expense or income)
        include_idle_properties: Emit zero rows for in-scope properties
            without transactions

    Returns:
        Aggregate rows in natural order (properties as given, categories as
        first seen, months chronologically); use the ranker for a defined order

    Example:
        ```python
        rows = aggregate(txns, "property", ledger.properties)
        rows[0].profit, rows[0].profit_margin, rows[0].roi
        ```
    """
    group = normalize_group_by(group_by)
    if not isinstance(share_of, TransactionType):
        try:
            share_of = TransactionType(str(share_of).strip().lower())
        except ValueError as exc:
            raise ConfigError(f"Unsupported share_of {share_of!r}") from exc

    txns = list(transactions)
    if group is GroupBy.CATEGORY:
        rows = _by_category(txns, share_of)
    elif group is GroupBy.PROPERTY:
        rows = _by_property(txns, properties, include_idle_properties)
    else:
        rows = _by_month(txns, window)

    logger.debug(
        "Aggregated %d transaction(s) into %d %s row(s)", len(txns), len(rows), group.value
    )
    return rows
