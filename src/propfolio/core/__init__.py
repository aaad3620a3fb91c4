"""
Core module for propfolio.

This module contains the stages of the financial aggregation engine: ledger
records and reader, window resolver, transaction filter, aggregator, ranker and
summary composer.
"""

from .aggregation import (
    AggregateRow,
    Appreciation,
    GroupBy,
    aggregate,
    category_identity,
)
from .config import ReportConfig, load_report_config
from .currency import EUR, Currency, RoundingPolicy, to_decimal
from .errors import (
    ConfigError,
    InvalidSortField,
    InvalidWindowSelector,
    LedgerReadCancelled,
    MalformedProperty,
    MalformedTransaction,
    PropfolioError,
)
from .filters import TransactionFilter, filter_transactions
from .ledger import Ledger, load_ledger, read_ledger_pages
from .models import Property, Transaction, TransactionType
from .ranking import SortDirection, sort_rows, sort_transactions
from .report import Report, ReportEncoder, ReportTotals, compose
from .window import EPOCH, TimeWindow, WindowLabel, resolve_window

__all__ = [
    # Errors
    "PropfolioError",
    "ConfigError",
    "InvalidWindowSelector",
    "InvalidSortField",
    "MalformedTransaction",
    "MalformedProperty",
    "LedgerReadCancelled",
    # Currency
    "Currency",
    "RoundingPolicy",
    "EUR",
    "to_decimal",
    # Records and ledger
    "Transaction",
    "TransactionType",
    "Property",
    "Ledger",
    "load_ledger",
    "read_ledger_pages",
    # Windows
    "EPOCH",
    "TimeWindow",
    "WindowLabel",
    "resolve_window",
    # Filtering
    "TransactionFilter",
    "filter_transactions",
    # Aggregation
    "GroupBy",
    "AggregateRow",
    "Appreciation",
    "aggregate",
    "category_identity",
    # Ranking
    "SortDirection",
    "sort_rows",
    "sort_transactions",
    # Reports
    "Report",
    "ReportTotals",
    "ReportEncoder",
    "compose",
    # Config
    "ReportConfig",
    "load_report_config",
]
