"""
Report pipeline for propfolio.

``build_report`` runs the full chain over a ledger snapshot:

    Ledger -> resolve window -> filter -> aggregate -> rank -> compose

Every stage is a pure function over in-memory data. Nothing is cached between
calls, so concurrent requests (several dashboard widgets at once) never share
state, and building the same report twice from an unchanged ledger gives
identical output. All validation (window selector, sort field, config values)
happens before filtering starts.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

from .core.aggregation import GroupBy, aggregate, category_identity
from .core.config import ReportConfig
from .core.filters import TransactionFilter
from .core.ledger import Ledger
from .core.ranking import normalize_sort_field, sort_rows
from .core.report import Report, compose
from .core.window import resolve_window

logger = logging.getLogger(__name__)


def _available_entities(ledger: Ledger, config: ReportConfig, month_rows: int) -> int:
    scope = config.property_scope
    scoped = [
        t for t in ledger.transactions if scope is None or t.property_id == scope
    ]
    if config.group_by is GroupBy.PROPERTY:
        ids = {p.id for p in ledger.properties if scope is None or p.id == scope}
        ids.update(t.property_id for t in scoped)
        return len(ids)
    if config.group_by is GroupBy.CATEGORY:
        return len({category_identity(t)[0] for t in scoped})
    return month_rows


def build_report(
    ledger: Ledger,
    config: ReportConfig | dict[str, Any] | None = None,
    *,
    now: datetime | date | None = None,
    **overrides: Any,
) -> Report:
    """
    Build a financial report from a ledger snapshot.

    Args:
        ledger: Materialized, already-authorized ledger
        config: ``ReportConfig`` or a mapping accepted by
            ``ReportConfig.from_mapping`` (default: property report over the
            last 12 months, ranked by profit descending)
        now: Reference instant for relative windows (default: current time)
        **overrides: Individual ``ReportConfig`` fields to replace

    Returns:
        The composed report

    Raises:
        InvalidWindowSelector: Unrecognized window
        InvalidSortField: Sort field not supported for the grouping
        ConfigError: Invalid configuration value

    Example:
        ```python
        from propfolio import Ledger, build_report

        ledger = Ledger(
            transactions=[
                {"id": 1, "date": "2026-01-05", "type": "income", "amount": 1000, "propertyId": 1},
                {"id": 2, "date": "2026-01-09", "type": "expense", "amount": 400, "propertyId": 1},
            ],
            properties=[{"id": 1, "name": "Altbau Mitte", "purchasePrice": 10000}],
        )
        report = build_report(ledger, {"window": "all", "groupBy": "property"})
        row = report.rows[0]
        # row.profit == 600, row.profit_margin == 60, row.roi == 6
        ```
    """
    if config is None or isinstance(config, dict):
        config = ReportConfig.from_mapping(config)
    if overrides:
        config = config.with_overrides(**overrides)

    # Fail fast: nothing is filtered before every input is validated
    window = resolve_window(config.window, now)
    sort_field = normalize_sort_field(config.sort_field, config.group_by)

    in_scope = [
        p
        for p in ledger.properties
        if config.property_scope is None or p.id == config.property_scope
    ]
    txn_filter = TransactionFilter(
        window=window,
        property_scope=config.property_scope,
        search=config.search,
        type_filter=config.type_filter,
        recurring_only=config.recurring_only,
    )
    filtered = txn_filter.apply(ledger.transactions, ledger.properties)

    rows = aggregate(
        filtered,
        config.group_by,
        in_scope,
        window=window,
        share_of=config.effective_share_of,
        include_idle_properties=txn_filter.search_term is None,
    )
    ranked = sort_rows(rows, sort_field, config.sort_direction, config.group_by)

    report = compose(
        ranked,
        filtered,
        total_entities=_available_entities(ledger, config, len(rows)),
        group_by=config.group_by,
        window=window,
        sort_field=sort_field,
        sort_direction=config.sort_direction.value,
    )
    logger.debug(
        "Built %s report over %s: %d row(s) from %d of %d transaction(s)",
        config.group_by.value,
        window.describe(),
        report.entity_count,
        report.transaction_count,
        len(ledger),
    )
    return report
