from __future__ import annotations

from decimal import Decimal

import pytest
from propfolio.core.aggregation import AggregateRow, GroupBy
from propfolio.core.errors import ConfigError, InvalidSortField
from propfolio.core.ranking import (
    SortDirection,
    collation_key,
    id_key,
    normalize_sort_field,
    sort_rows,
    sort_transactions,
)


def row(entity_id, name="x", income="0", expenses="0", roi=None, share=None):
    return AggregateRow(
        entity_id=entity_id,
        entity_name=name,
        income=Decimal(income),
        expenses=Decimal(expenses),
        roi=None if roi is None else Decimal(roi),
        share_percent=None if share is None else Decimal(share),
    )


def ids(rows):
    return [r.entity_id for r in rows]


class TestNumericSort:
    def test_profit_descending(self):
        rows = [row(1, income="100"), row(2, income="300"), row(3, income="200")]
        assert ids(sort_rows(rows, "profit", "desc")) == [2, 3, 1]
        assert ids(sort_rows(rows, "profit", "asc")) == [1, 3, 2]

    def test_ties_break_by_ascending_id_both_directions(self):
        rows = [row(3, income="50"), row(1, income="50"), row(2, income="90")]
        assert ids(sort_rows(rows, "income", SortDirection.DESC)) == [2, 1, 3]
        assert ids(sort_rows(rows, "income", SortDirection.ASC)) == [1, 3, 2]

    def test_undefined_roi_ranks_as_minimum(self):
        rows = [row(1, roi=None), row(2, roi="-5"), row(3, roi="0"), row(4, roi="12.5")]

        assert ids(sort_rows(rows, "roi", "desc", GroupBy.PROPERTY)) == [4, 3, 2, 1]
        assert ids(sort_rows(rows, "roi", "asc", GroupBy.PROPERTY)) == [1, 2, 3, 4]

    def test_camel_case_alias(self):
        rows = [row(1, income="100", expenses="90"), row(2, income="100", expenses="10")]
        assert ids(sort_rows(rows, "profitMargin", "desc")) == [2, 1]

    def test_input_not_mutated(self):
        rows = [row(2, income="1"), row(1, income="2")]
        before = list(rows)
        sort_rows(rows, "income", "desc")
        assert rows == before

    def test_mixed_ids_with_general_bucket_last(self):
        rows = [row(None, income="5"), row("b", income="5"), row(2, income="5")]
        assert ids(sort_rows(rows, "income", "desc")) == [2, "b", None]


class TestNameSort:
    def test_accents_and_case_are_ignored(self):
        rows = [row(1, "Zeta"), row(2, "Ärzte"), row(3, "bau"), row(4, "Apfel")]
        assert [r.entity_name for r in sort_rows(rows, "name", "asc")] == [
            "Apfel",
            "Ärzte",
            "bau",
            "Zeta",
        ]

    def test_name_descending(self):
        rows = [row(1, "Alpha"), row(2, "Beta")]
        assert ids(sort_rows(rows, "name", "desc")) == [2, 1]

    def test_collation_key(self):
        assert collation_key("Ärzte")[0] == "arzte"
        assert collation_key("Éclair") < collation_key("Fenster")


class TestMonthSort:
    def test_chronological(self):
        rows = [row("2025-03"), row("2025-01"), row("2024-12")]
        assert ids(sort_rows(rows, "month", "asc", "month")) == ["2024-12", "2025-01", "2025-03"]
        assert ids(sort_rows(rows, "month", "desc", "month")) == ["2025-03", "2025-01", "2024-12"]


class TestSortFieldValidation:
    @pytest.mark.parametrize(
        "field, group_by",
        [
            ("roi", "category"),
            ("roi", "month"),
            ("share_percent", "property"),
            ("month", "property"),
            ("bogus", None),
        ],
    )
    def test_rejected(self, field, group_by):
        with pytest.raises(InvalidSortField) as excinfo:
            normalize_sort_field(field, group_by)
        assert excinfo.value.field == field
        assert excinfo.value.allowed

    def test_accepted(self):
        assert normalize_sort_field("sharePercent", "category") == "share_percent"
        assert normalize_sort_field("roi", GroupBy.PROPERTY) == "roi"
        assert normalize_sort_field("entityName") == "name"

    def test_sort_rows_validates_against_grouping(self):
        with pytest.raises(InvalidSortField):
            sort_rows([row(1)], "roi", "desc", "category")

    def test_invalid_direction(self):
        with pytest.raises(ConfigError):
            sort_rows([row(1)], "profit", "sideways")


def test_id_key_orders_numbers_strings_none():
    assert sorted([None, "a", 3, 1], key=id_key) == [1, 3, "a", None]


class TestSortTransactions:
    @pytest.fixture
    def txns(self, make_txn):
        return [
            make_txn(1, "2026-01-05", "income", "300.00", description="rent"),
            make_txn(2, "2026-03-01", "expense", "50.00", description="Äpfel"),
            make_txn(3, "2026-02-01", "expense", "300.00", description="Boiler"),
        ]

    def test_default_is_newest_first(self, txns):
        assert [t.id for t in sort_transactions(txns)] == [2, 3, 1]

    def test_amount_ties_by_id(self, txns):
        assert [t.id for t in sort_transactions(txns, "amount", "desc")] == [1, 3, 2]
        assert [t.id for t in sort_transactions(txns, "amount", "asc")] == [2, 1, 3]

    def test_description(self, txns):
        assert [t.id for t in sort_transactions(txns, "description", "asc")] == [2, 3, 1]

    def test_unknown_field(self, txns):
        with pytest.raises(InvalidSortField):
            sort_transactions(txns, "category")
