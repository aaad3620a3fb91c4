"""
Summary Composer for propfolio.

Assembles ranked aggregate rows, portfolio totals and metadata into a
``Report``. Composing never fails on empty input: zero rows give a report with
all totals at 0 and ``empty=True``.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

import pandas as pd

from .aggregation import AggregateRow, GroupBy
from .currency import ZERO, percent, present
from .models import Transaction
from .window import TimeWindow


class ReportEncoder(json.JSONEncoder):
    """JSON encoder for Decimal, datetime, Enum and pandas values found in reports."""

    def default(self, obj):
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, pd.Period):
            return str(obj)
        if isinstance(obj, pd.DataFrame):
            return obj.to_dict("records")
        return super().default(obj)


@dataclass(frozen=True, slots=True)
class ReportTotals:
    """
    Portfolio-level totals.

    The margin is computed from the summed income and profit, not averaged
    from per-row margins.
    """

    income: Decimal = ZERO
    expenses: Decimal = ZERO

    @property
    def profit(self) -> Decimal:
        return self.income - self.expenses

    @property
    def profit_margin(self) -> Decimal:
        if self.income > ZERO:
            return percent(self.profit, self.income)
        return ZERO

    @classmethod
    def from_rows(cls, rows: Sequence[AggregateRow]) -> ReportTotals:
        return cls(
            income=sum((r.income for r in rows), ZERO),
            expenses=sum((r.expenses for r in rows), ZERO),
        )

    def to_dict(self) -> dict[str, Decimal]:
        return {
            "income": present(self.income),
            "expenses": present(self.expenses),
            "profit": present(self.profit),
            "profit_margin": present(self.profit_margin),
        }


@dataclass(frozen=True, slots=True)
class Report:
    """
    Final report value handed to presentation layers.

    Attributes:
        rows: Ranked aggregate rows
        totals: Portfolio totals across all rows
        entity_count: Number of rows included
        total_entities: Number of entities available for this grouping
            ("showing N of M")
        transaction_count: Number of transactions the report was built from
        empty: True when no transaction matched
        group_by: Grouping of the rows
        window: Window the report covers
        sort_field: Field the rows are ranked by
        sort_direction: ``asc`` or ``desc``
    """

    rows: tuple[AggregateRow, ...]
    totals: ReportTotals
    entity_count: int
    total_entities: int
    transaction_count: int
    empty: bool
    group_by: GroupBy | None = None
    window: TimeWindow | None = None
    sort_field: str | None = None
    sort_direction: str | None = None

    def showing(self) -> str:
        noun = self.group_by.value if self.group_by else "entity"
        if self.group_by is GroupBy.PROPERTY:
            noun = "properties" if self.total_entities != 1 else "property"
        elif self.group_by is GroupBy.CATEGORY:
            noun = "categories" if self.total_entities != 1 else "category"
        elif self.total_entities != 1:
            noun += "s"
        return f"Showing {self.entity_count} of {self.total_entities} {noun}"

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation; values are rounded for presentation only here."""
        return {
            "group_by": self.group_by.value if self.group_by else None,
            "window": self.window.to_dict() if self.window else None,
            "sort": {"field": self.sort_field, "direction": self.sort_direction},
            "empty": self.empty,
            "entity_count": self.entity_count,
            "total_entities": self.total_entities,
            "transaction_count": self.transaction_count,
            "totals": self.totals.to_dict(),
            "rows": [row.to_dict() for row in self.rows],
        }

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), cls=ReportEncoder, indent=indent)

    def to_frame(self) -> pd.DataFrame:
        """
        Rows as a DataFrame for charts and tables.

        Monetary and percentage columns are floats rounded to two decimals;
        undefined ROI/share values become NaN. Month reports are indexed by a
        monthly ``PeriodIndex``.
        """
        columns = [
            "entity_id",
            "entity_name",
            "income",
            "expenses",
            "profit",
            "profit_margin",
            "roi",
            "share_percent",
            "transaction_count",
        ]
        records = []
        for row in self.rows:
            data = row.to_dict()
            records.append(
                {
                    col: (float(data[col]) if isinstance(data[col], Decimal) else data[col])
                    for col in columns
                }
            )
        df = pd.DataFrame.from_records(records, columns=columns)
        for col in ("income", "expenses", "profit", "profit_margin", "roi", "share_percent"):
            df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)
        if self.group_by is GroupBy.MONTH:
            df.index = pd.PeriodIndex([pd.Period(v, freq="M") for v in df["entity_id"]], freq="M")
        return df


def compose(
    rows: Sequence[AggregateRow],
    filtered_transactions: Sequence[Transaction],
    *,
    total_entities: int | None = None,
    group_by: GroupBy | None = None,
    window: TimeWindow | None = None,
    sort_field: str | None = None,
    sort_direction: str | None = None,
) -> Report:
    """
    Assemble a report from ranked rows and the transactions they came from.

    Args:
        rows: Ranked aggregate rows (order is kept)
        filtered_transactions: Transactions the rows were aggregated from
        total_entities: Entities available before filtering (defaults to the
            number of rows)
        group_by: Grouping of the rows
        window: Window the report covers
        sort_field: Ranking field, recorded as metadata
        sort_direction: Ranking direction, recorded as metadata

    Returns:
        Report with totals and metadata. When no transaction matched, the
        report has no rows, zero totals and ``empty=True``.
    """
    rows = tuple(rows) if filtered_transactions else ()
    totals = ReportTotals.from_rows(rows)
    return Report(
        rows=rows,
        totals=totals,
        entity_count=len(rows),
        total_entities=len(rows) if total_entities is None else total_entities,
        transaction_count=len(filtered_transactions),
        empty=not rows,
        group_by=group_by,
        window=window,
        sort_field=sort_field,
        sort_direction=sort_direction,
    )
