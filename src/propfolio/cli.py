"""
Command-line interface for propfolio.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime

from propfolio import __version__
from propfolio.core.config import ReportConfig, load_report_config
from propfolio.core.errors import PropfolioError
from propfolio.core.ledger import Ledger, load_ledger
from propfolio.core.models import coerce_id
from propfolio.core.report import Report, ReportEncoder
from propfolio.core.window import resolve_now
from propfolio.engine import build_report
from propfolio.kpi import financial_overview, tax_year_summary


def _parse_now(value: str | None) -> datetime | None:
    return resolve_now(value) if value else None


def _dump_json(data: dict) -> None:
    json.dump(data, sys.stdout, indent=2, cls=ReportEncoder)
    sys.stdout.write("\n")


def _fmt_money(value) -> str:
    return "-" if value is None else f"{value:,.2f} EUR"


def _fmt_pct(value) -> str:
    return "-" if value is None else f"{value:.2f}%"


def _print_report(report: Report) -> None:
    """Print a report table to stdout."""
    window = report.window.describe() if report.window else "-"
    print(f"{report.group_by.value.title()} report | {window}")
    if report.empty:
        print("No transactions match the selected filters.")
        print(report.showing())
        return

    header = f"{'Name':<28} {'Income':>16} {'Expenses':>16} {'Profit':>16} {'Margin':>9}"
    extra = {"property": "ROI", "category": "Share"}.get(report.group_by.value)
    if extra:
        header += f" {extra:>9}"
    print(header)
    print("-" * len(header))
    for row in report.rows:
        data = row.to_dict()
        line = (
            f"{row.entity_name[:28]:<28} {_fmt_money(data['income']):>16} "
            f"{_fmt_money(data['expenses']):>16} {_fmt_money(data['profit']):>16} "
            f"{_fmt_pct(data['profit_margin']):>9}"
        )
        if extra == "ROI":
            line += f" {_fmt_pct(data['roi']):>9}"
        elif extra == "Share":
            line += f" {_fmt_pct(data['share_percent']):>9}"
        print(line)
    print("-" * len(header))
    totals = report.totals.to_dict()
    print(
        f"{'Total':<28} {_fmt_money(totals['income']):>16} "
        f"{_fmt_money(totals['expenses']):>16} {_fmt_money(totals['profit']):>16} "
        f"{_fmt_pct(totals['profit_margin']):>9}"
    )
    print(report.showing())


def _load(args) -> Ledger:
    return load_ledger(args.ledger)


def cmd_report(args) -> int:
    """Build an aggregated report from a ledger file."""
    try:
        ledger = _load(args)
        config = load_report_config(args.config) if args.config else ReportConfig()
        config = config.with_overrides(
            window=args.window,
            group_by=args.group_by,
            property_scope=coerce_id(args.property),
            type_filter=args.type,
            recurring_only=True if args.recurring_only else None,
            search=args.search,
            sort_field=args.sort,
            sort_direction=args.direction,
            share_of=args.share_of,
        )
        report = build_report(ledger, config, now=_parse_now(args.now))
    except (PropfolioError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        sys.stdout.write(report.to_json())
        sys.stdout.write("\n")
    else:
        _print_report(report)
    return 0


def cmd_overview(args) -> int:
    """Print the dashboard overview for a ledger file."""
    try:
        ledger = _load(args)
        overview = financial_overview(ledger, _parse_now(args.now))
    except (PropfolioError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        _dump_json(overview.to_dict())
        return 0

    data = overview.to_dict()
    for label, key in (
        ("This month", "current_month"),
        ("Last month", "previous_month"),
        ("All time", "all_time"),
    ):
        t = data[key]
        print(
            f"{label:<11} income {_fmt_money(t['income'])}, "
            f"expenses {_fmt_money(t['expenses'])}, profit {_fmt_money(t['profit'])}"
        )
    print(
        f"Change vs last month: income {_fmt_pct(data['income_change_percent'])}, "
        f"expenses {_fmt_pct(data['expenses_change_percent'])}, "
        f"profit {_fmt_pct(data['profit_change_percent'])}"
    )
    print(f"Properties: {data['property_count']}")
    if overview.upcoming:
        print("Upcoming recurring:")
        for t in overview.upcoming:
            print(f"  {t.date.date().isoformat()}  {t.type.value:<7} {_fmt_money(t.amount)}  {t.description}")
    return 0


def cmd_tax_year(args) -> int:
    """Print a calendar tax-year summary."""
    try:
        ledger = _load(args)
        summary = tax_year_summary(
            ledger, args.year, tax_rate=args.rate, property_scope=coerce_id(args.property)
        )
    except (PropfolioError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    data = summary.to_dict()
    if args.json:
        _dump_json(data)
        return 0
    print(f"Tax year {data['year']}")
    print(f"  Income:        {_fmt_money(data['income'])}")
    print(f"  Expenses:      {_fmt_money(data['expenses'])}")
    print(f"  Net income:    {_fmt_money(data['net_income'])}")
    print(f"  Estimated tax: {_fmt_money(data['estimated_tax'])}")
    return 0


def cmd_validate(args) -> int:
    """Check that a ledger file loads without malformed records."""
    try:
        ledger = _load(args)
    except (PropfolioError, FileNotFoundError) as e:
        print(f"Validation failed: {e}", file=sys.stderr)
        return 1
    print(
        f"OK: {len(ledger.transactions)} transaction(s), "
        f"{len(ledger.properties)} propert{'y' if len(ledger.properties) == 1 else 'ies'}"
    )
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="propfolio", description="propfolio - property portfolio bookkeeping reports"
    )
    parser.add_argument("--version", action="version", version=f"propfolio {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="cmd", required=True, help="Available commands")

    report_parser = subparsers.add_parser("report", help="Aggregate a ledger into a report")
    report_parser.add_argument("ledger", help="Ledger YAML/JSON file")
    report_parser.add_argument("-c", "--config", help="Report config YAML/JSON file")
    report_parser.add_argument(
        "--window", help="month, quarter, year, all, YYYY or YYYY-Qn (default: year)"
    )
    report_parser.add_argument("--group-by", choices=["category", "property", "month"])
    report_parser.add_argument("--property", help="Restrict to one property id")
    report_parser.add_argument("--type", choices=["income", "expense", "all"])
    report_parser.add_argument("--recurring-only", action="store_true")
    report_parser.add_argument("--search", help="Free-text search")
    report_parser.add_argument("--sort", help="Sort field (default: profit)")
    report_parser.add_argument("--direction", choices=["asc", "desc"])
    report_parser.add_argument("--share-of", choices=["income", "expense"])
    report_parser.add_argument("--now", help="Reference date for relative windows")
    report_parser.add_argument("--json", action="store_true", help="Output in JSON format")
    report_parser.set_defaults(func=cmd_report)

    overview_parser = subparsers.add_parser("overview", help="Dashboard overview")
    overview_parser.add_argument("ledger", help="Ledger YAML/JSON file")
    overview_parser.add_argument("--now", help="Reference date (default: today)")
    overview_parser.add_argument("--json", action="store_true", help="Output in JSON format")
    overview_parser.set_defaults(func=cmd_overview)

    tax_parser = subparsers.add_parser("tax-year", help="Calendar tax-year summary")
    tax_parser.add_argument("ledger", help="Ledger YAML/JSON file")
    tax_parser.add_argument("--year", type=int, required=True)
    tax_parser.add_argument("--rate", help="Tax rate as a fraction, e.g. 0.25")
    tax_parser.add_argument("--property", help="Restrict to one property id")
    tax_parser.add_argument("--json", action="store_true", help="Output in JSON format")
    tax_parser.set_defaults(func=cmd_tax_year)

    validate_parser = subparsers.add_parser("validate", help="Validate a ledger file")
    validate_parser.add_argument("ledger", help="Ledger YAML/JSON file")
    validate_parser.set_defaults(func=cmd_validate)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
