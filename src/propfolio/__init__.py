"""
propfolio - Financial aggregation for rental property portfolios

propfolio turns a ledger of dated income and expense transactions into
time-windowed summaries: per-property income, expenses, profit, margin and ROI,
portfolio totals, category breakdowns and monthly time series.

Key Features:
- **Pure pipeline**: resolve window, filter, aggregate, rank, compose; no I/O
  and no shared state between report requests
- **Exact money**: sums are ``Decimal`` additions, rounding happens only when
  a report is presented
- **Explicit unknowns**: ROI and appreciation are ``None`` when the purchase
  price is unknown, and rank below every known value
- **Continuous series**: month reports emit every month of the window

Quick Start:
    ```python
    from propfolio import Ledger, build_report

    ledger = Ledger(
        transactions=[
            {"id": 1, "date": "2026-03-01", "type": "income", "amount": 1000, "propertyId": 1},
            {"id": 2, "date": "2026-03-04", "type": "expense", "amount": 400, "propertyId": 1},
        ],
        properties=[{"id": 1, "name": "Altbau Mitte", "purchasePrice": 10000}],
    )
    report = build_report(ledger, {"window": "all", "groupBy": "property"})
    print(report.to_json())
    ```
"""

# Version information
__version__ = "0.1.0"
__description__ = "Financial aggregation engine for rental property portfolios"

from .core import (
    EPOCH,
    AggregateRow,
    Appreciation,
    ConfigError,
    GroupBy,
    InvalidSortField,
    InvalidWindowSelector,
    Ledger,
    LedgerReadCancelled,
    MalformedProperty,
    MalformedTransaction,
    Property,
    PropfolioError,
    Report,
    ReportConfig,
    ReportTotals,
    SortDirection,
    TimeWindow,
    Transaction,
    TransactionFilter,
    TransactionType,
    WindowLabel,
    aggregate,
    compose,
    filter_transactions,
    load_ledger,
    load_report_config,
    read_ledger_pages,
    resolve_window,
    sort_rows,
    sort_transactions,
)
from .engine import build_report
from .kpi import FinancialOverview, TaxYearSummary, financial_overview, tax_year_summary

__all__ = [
    "__version__",
    "EPOCH",
    "AggregateRow",
    "Appreciation",
    "ConfigError",
    "FinancialOverview",
    "GroupBy",
    "InvalidSortField",
    "InvalidWindowSelector",
    "Ledger",
    "LedgerReadCancelled",
    "MalformedProperty",
    "MalformedTransaction",
    "Property",
    "PropfolioError",
    "Report",
    "ReportConfig",
    "ReportTotals",
    "SortDirection",
    "TaxYearSummary",
    "TimeWindow",
    "Transaction",
    "TransactionFilter",
    "TransactionType",
    "WindowLabel",
    "aggregate",
    "build_report",
    "compose",
    "filter_transactions",
    "financial_overview",
    "load_ledger",
    "load_report_config",
    "read_ledger_pages",
    "resolve_window",
    "sort_rows",
    "sort_transactions",
    "tax_year_summary",
]
