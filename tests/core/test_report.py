from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal

import pandas as pd
import pytest
from propfolio.core.aggregation import AggregateRow, GroupBy
from propfolio.core.report import ReportEncoder, ReportTotals, compose
from propfolio.core.window import resolve_window


@pytest.fixture
def rows():
    return [
        AggregateRow(1, "Altbau Mitte", Decimal("100.00"), Decimal("50.00"), 2, roi=Decimal("0.5")),
        AggregateRow(2, "Lindenhof 4", Decimal("300.00"), Decimal("0.00"), 1, roi=None),
    ]


class TestTotals:
    def test_margin_from_sums_not_average(self, rows, make_txn):
        report = compose(rows, [make_txn(1, "2026-01-01", "income", 1)])

        assert report.totals.income == Decimal("400.00")
        assert report.totals.expenses == Decimal("50.00")
        assert report.totals.profit == Decimal("350.00")
        # (100 - 50 + 300) / 400, not the mean of 50 % and 100 %
        assert report.totals.profit_margin == Decimal("87.5")

    def test_zero_income_margin(self):
        assert ReportTotals(expenses=Decimal("10")).profit_margin == 0


class TestCompose:
    def test_metadata(self, rows, make_txn):
        filtered = [make_txn(i, "2026-01-01", "income", 1) for i in range(3)]
        report = compose(rows, filtered, total_entities=3, group_by=GroupBy.PROPERTY)

        assert report.entity_count == 2
        assert report.total_entities == 3
        assert report.transaction_count == 3
        assert report.empty is False
        assert report.showing() == "Showing 2 of 3 properties"
        assert [r.entity_id for r in report.rows] == [1, 2]

    def test_empty_input(self):
        report = compose([], [], group_by=GroupBy.CATEGORY)

        assert report.empty is True
        assert report.rows == ()
        assert report.totals.income == report.totals.expenses == 0
        assert report.totals.profit == report.totals.profit_margin == 0
        assert report.entity_count == 0
        assert report.showing() == "Showing 0 of 0 categories"

    def test_idle_rows_dropped_when_nothing_matched(self, rows):
        report = compose(rows, [], total_entities=2, group_by=GroupBy.PROPERTY)
        assert report.empty is True
        assert report.rows == ()
        assert report.total_entities == 2

    def test_month_noun(self):
        report = compose([], [], total_entities=1, group_by=GroupBy.MONTH)
        assert report.showing() == "Showing 0 of 1 month"


class TestSerialization:
    def test_to_json_is_valid_and_stable(self, rows, make_txn):
        window = resolve_window({"year": 2026})
        report = compose(
            rows,
            [make_txn(1, "2026-01-01", "income", 1)],
            group_by=GroupBy.PROPERTY,
            window=window,
            sort_field="profit",
            sort_direction="desc",
        )
        text = report.to_json()
        data = json.loads(text)

        assert text == report.to_json()
        assert data["group_by"] == "property"
        assert data["window"]["description"] == "2026"
        assert data["sort"] == {"field": "profit", "direction": "desc"}
        assert data["totals"]["profit_margin"] == 87.5
        assert data["rows"][0]["roi"] == 0.5
        assert data["rows"][1]["roi"] is None

    def test_encoder_handles_dates_and_enums(self):
        payload = {"when": datetime(2026, 1, 2), "kind": GroupBy.MONTH, "p": pd.Period("2026-01", "M")}
        assert json.loads(json.dumps(payload, cls=ReportEncoder)) == {
            "when": "2026-01-02T00:00:00",
            "kind": "month",
            "p": "2026-01",
        }

    def test_to_frame(self, rows, make_txn):
        report = compose(rows, [make_txn(1, "2026-01-01", "income", 1)], group_by=GroupBy.PROPERTY)
        df = report.to_frame()

        assert list(df["entity_name"]) == ["Altbau Mitte", "Lindenhof 4"]
        assert df["profit"].tolist() == [50.0, 300.0]
        assert pd.isna(df.loc[1, "roi"])

    def test_month_frame_has_period_index(self, make_txn):
        rows = [AggregateRow("2026-01", "Jan 2026"), AggregateRow("2026-02", "Feb 2026")]
        report = compose(rows, [make_txn(1, "2026-01-01", "income", 1)], group_by=GroupBy.MONTH)
        df = report.to_frame()

        assert isinstance(df.index, pd.PeriodIndex)
        assert [str(p) for p in df.index] == ["2026-01", "2026-02"]
