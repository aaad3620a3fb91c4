"""
Transaction Filter for propfolio.

Selects the subset of a ledger a report is computed over. Filtering is
side-effect-free: the input sequence is never mutated and the result is a new
list. Result order follows input order but callers must not rely on it; only
ranked output is deterministic.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from .errors import ConfigError
from .models import Property, Transaction, TransactionType
from .window import TimeWindow


def normalize_type_filter(value: Any) -> TransactionType | None:
    """
    Map ``"income"``/``"expense"``/``"all"``/``None`` onto a ``TransactionType``.

    Returns:
        The type to keep, or None when every type passes

    Raises:
        ConfigError: For any other value
    """
    if value is None or isinstance(value, TransactionType):
        return value
    key = str(value).strip().lower()
    if key in ("", "all"):
        return None
    try:
        return TransactionType(key)
    except ValueError as exc:
        raise ConfigError(
            f"Unsupported type filter {value!r} (expected income, expense or all)"
        ) from exc


def _amount_strings(amount: Decimal) -> tuple[str, ...]:
    # "1000.00" and "1000" both match a search for "1000"
    plain = format(amount.normalize(), "f")
    fixed = format(amount, "f")
    return (fixed,) if plain == fixed else (fixed, plain)


@dataclass(frozen=True, slots=True)
class TransactionFilter:
    """
    Conjunction of the inclusion predicates applied to each transaction.

    Attributes:
        window: Keep transactions dated in ``[window.start, window.end)``
        property_scope: Keep only transactions of this property id
        search: Case-insensitive substring matched against description,
            category name, property name and the amount's decimal string
        type_filter: Keep only income or only expense transactions
        recurring_only: Keep only recurring transactions
        on_date: Keep only transactions on this calendar day
    """

    window: TimeWindow | None = None
    property_scope: Any = None
    search: str | None = None
    type_filter: TransactionType | None = None
    recurring_only: bool = False
    on_date: date | None = None

    @property
    def search_term(self) -> str | None:
        if self.search is None:
            return None
        term = self.search.strip().casefold()
        return term or None

    def matches(self, txn: Transaction, property_name: str | None = None) -> bool:
        """Return True when ``txn`` passes every active predicate."""
        if self.window is not None and not self.window.contains(txn.date):
            return False
        if self.property_scope is not None and txn.property_id != self.property_scope:
            return False
        if self.type_filter is not None and txn.type is not self.type_filter:
            return False
        if self.recurring_only and not txn.recurring:
            return False
        if self.on_date is not None and txn.date.date() != self.on_date:
            return False

        term = self.search_term
        if term is None:
            return True
        haystack = [
            txn.description,
            txn.category_name,
            property_name or txn.property_name,
            *_amount_strings(txn.amount),
        ]
        return any(text and term in text.casefold() for text in haystack)

    def apply(
        self,
        transactions: Iterable[Transaction],
        properties: Iterable[Property] = (),
    ) -> list[Transaction]:
        """Return the transactions that pass the filter."""
        names = {p.id: p.name for p in properties}
        return [t for t in transactions if self.matches(t, names.get(t.property_id))]


def filter_transactions(
    transactions: Iterable[Transaction],
    window: TimeWindow | None = None,
    property_scope: Any = None,
    search_term: str | None = None,
    type_filter: TransactionType | str | None = None,
    recurring_only: bool = False,
    *,
    properties: Iterable[Property] = (),
    on_date: date | datetime | None = None,
) -> list[Transaction]:
    """
    Filter transactions by window, property, type, recurrence and search term.

    Args:
        transactions: Transactions to filter (not mutated)
        window: Optional time window
        property_scope: Optional property id
        search_term: Optional free-text search
        type_filter: ``"income"``, ``"expense"``, ``"all"`` or None
        recurring_only: Keep only recurring transactions
        properties: Properties used to resolve names for the search
        on_date: Optional single calendar day

    Returns:
        New list with the matching transactions
    """
    if isinstance(on_date, datetime):
        on_date = on_date.date()
    txn_filter = TransactionFilter(
        window=window,
        property_scope=property_scope,
        search=search_term,
        type_filter=normalize_type_filter(type_filter),
        recurring_only=recurring_only,
        on_date=on_date,
    )
    return txn_filter.apply(transactions, properties)
