"""
Ranker for propfolio.

Orders aggregate rows (and plain transaction listings) by a chosen field and
direction. Ties are always broken by ascending entity id, in both directions,
so ranked output is deterministic.

Undefined values (e.g. ROI of a property without a purchase price) rank as the
minimum: last when descending, first when ascending. They are never treated
as 0, which would put an unknown ROI above a provable break-even.
"""

from __future__ import annotations

import unicodedata
from collections.abc import Iterable
from decimal import Decimal
from enum import Enum
from typing import Any

from .aggregation import AggregateRow, GroupBy, normalize_group_by
from .errors import ConfigError, InvalidSortField
from .models import Transaction


class SortDirection(Enum):
    ASC = "asc"
    DESC = "desc"


_COMMON_FIELDS = ("name", "income", "expenses", "profit", "profit_margin", "transaction_count")

SORT_FIELDS: dict[GroupBy, tuple[str, ...]] = {
    GroupBy.PROPERTY: _COMMON_FIELDS + ("roi",),
    GroupBy.CATEGORY: _COMMON_FIELDS + ("share_percent",),
    GroupBy.MONTH: _COMMON_FIELDS + ("month",),
}

TRANSACTION_SORT_FIELDS = ("date", "amount", "description")

_FIELD_ALIASES = {
    "profitMargin": "profit_margin",
    "sharePercent": "share_percent",
    "transactionCount": "transaction_count",
    "entityName": "name",
    "entity_name": "name",
}


def normalize_direction(value: Any) -> SortDirection:
    if isinstance(value, SortDirection):
        return value
    try:
        return SortDirection(str(value).strip().lower())
    except ValueError as exc:
        raise ConfigError(f"Unsupported sort direction {value!r} (expected asc or desc)") from exc


def normalize_sort_field(field: str, group_by: GroupBy | str | None = None) -> str:
    """
    Canonical (snake_case) sort field, validated against the grouping.

    Raises:
        InvalidSortField: If the field is unknown or not available for ``group_by``
    """
    name = _FIELD_ALIASES.get(field, field) if isinstance(field, str) else field
    if group_by is None:
        allowed = sorted({f for fields in SORT_FIELDS.values() for f in fields})
        group_label = None
    else:
        group = normalize_group_by(group_by)
        allowed = list(SORT_FIELDS[group])
        group_label = group.value
    if name not in allowed:
        raise InvalidSortField(str(field), group_label, allowed)
    return name


def collation_key(text: str) -> tuple[str, str]:
    """
    Locale-aware ordering key: accents and case are ignored first, then used
    as a tie-break ("Ärzte" sorts with "Arzte", before "Bau").
    """
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(c for c in decomposed if not unicodedata.combining(c))
    return base.casefold(), text


def id_key(entity_id: Any) -> tuple:
    """Total order over mixed ids: numbers, then strings, then None."""
    if entity_id is None:
        return (2, 0, "")
    if isinstance(entity_id, (int, float, Decimal)) and not isinstance(entity_id, bool):
        return (0, entity_id, "")
    return (1, 0, str(entity_id))


def _numeric_key(value: Decimal | int | None) -> tuple:
    # undefined ranks below every defined value
    if value is None:
        return (0, 0)
    return (1, value)


def sort_rows(
    rows: Iterable[AggregateRow],
    field: str = "profit",
    direction: SortDirection | str = SortDirection.DESC,
    group_by: GroupBy | str | None = None,
) -> list[AggregateRow]:
    """
    Sort aggregate rows.

    Args:
        rows: Rows to sort (not mutated)
        field: ``name``, ``income``, ``expenses``, ``profit``,
            ``profit_margin``, ``transaction_count``, plus ``roi`` (property),
            ``share_percent`` (category) or ``month`` (month); camelCase
            aliases are accepted
        direction: ``asc`` or ``desc``
        group_by: Grouping the rows come from, used to validate ``field``

    Returns:
        New sorted list

    Raises:
        InvalidSortField: If ``field`` is not supported for ``group_by``
    """
    name = normalize_sort_field(field, group_by)
    descending = normalize_direction(direction) is SortDirection.DESC

    # Stable sorts: id order survives as the tie-break, also with reverse=True
    ordered = sorted(rows, key=lambda r: id_key(r.entity_id))
    if name == "name":
        return sorted(ordered, key=lambda r: collation_key(r.entity_name), reverse=descending)
    if name == "month":
        return sorted(ordered, key=lambda r: id_key(r.entity_id), reverse=descending)
    return sorted(ordered, key=lambda r: _numeric_key(r.value(name)), reverse=descending)


def sort_transactions(
    transactions: Iterable[Transaction],
    field: str = "date",
    direction: SortDirection | str = SortDirection.DESC,
) -> list[Transaction]:
    """Sort a transaction listing by ``date``, ``amount`` or ``description``."""
    if field not in TRANSACTION_SORT_FIELDS:
        raise InvalidSortField(field, None, list(TRANSACTION_SORT_FIELDS))
    descending = normalize_direction(direction) is SortDirection.DESC

    ordered = sorted(transactions, key=lambda t: id_key(t.id))
    if field == "description":
        key = lambda t: collation_key(t.description)  # noqa: E731
    else:
        key = lambda t: getattr(t, field)  # noqa: E731
    return sorted(ordered, key=key, reverse=descending)
