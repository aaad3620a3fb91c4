"""
Build a few reports from the sample ledger.

Run from the repository root:
    python examples/report_example.py
"""

from datetime import datetime
from pathlib import Path

from propfolio import build_report, financial_overview, load_ledger

LEDGER = Path(__file__).parent / "ledgers" / "ledger.yaml"


def main() -> None:
    ledger = load_ledger(LEDGER)
    now = datetime(2026, 3, 15)

    by_property = build_report(ledger, {"window": "all", "groupBy": "property"}, now=now)
    for row in by_property.rows:
        roi = "-" if row.roi is None else f"{row.roi:.2f}%"
        print(f"{row.entity_name:<16} profit {row.profit:>10} ROI {roi}")
    print(by_property.showing())

    monthly = build_report(
        ledger, {"window": "quarter", "groupBy": "month", "sortField": "month", "sortDirection": "asc"}, now=now
    )
    print(monthly.to_frame()[["income", "expenses", "profit"]])

    overview = financial_overview(ledger, now)
    print(f"Income change vs last month: {overview.income_change_percent:.1f}%")


if __name__ == "__main__":
    main()
