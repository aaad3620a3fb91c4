from __future__ import annotations

from datetime import date, datetime

import pytest
from propfolio.core.errors import ConfigError
from propfolio.core.filters import TransactionFilter, filter_transactions, normalize_type_filter
from propfolio.core.models import Property, TransactionType
from propfolio.core.window import resolve_window


@pytest.fixture
def txns(make_txn):
    return [
        make_txn(1, "2025-01-01", "income", "1000.00", propertyId=1, categoryName="Rent",
                 recurring=True, description="January rent"),
        make_txn(2, "2025-03-31T23:59:00", "expense", "250.50", propertyId=1,
                 categoryName="Repairs", description="Plumber"),
        make_txn(3, "2025-04-01", "expense", "80.00", propertyId=2, description="Garden"),
        make_txn(4, "2025-02-14", "income", "640.00", propertyId=2, recurring=True,
                 description="Parking"),
    ]


def ids(result):
    return sorted(t.id for t in result)


class TestWindowFilter:
    def test_start_inclusive_end_exclusive(self, txns):
        q1 = resolve_window({"year": 2025, "quarter": 1})
        assert ids(filter_transactions(txns, window=q1)) == [1, 2, 4]

    def test_no_window_keeps_everything(self, txns):
        assert ids(filter_transactions(txns)) == [1, 2, 3, 4]


class TestPredicates:
    def test_property_scope(self, txns):
        assert ids(filter_transactions(txns, property_scope=2)) == [3, 4]

    def test_type_filter(self, txns):
        assert ids(filter_transactions(txns, type_filter="income")) == [1, 4]
        assert ids(filter_transactions(txns, type_filter=TransactionType.EXPENSE)) == [2, 3]
        assert ids(filter_transactions(txns, type_filter="all")) == [1, 2, 3, 4]

    def test_recurring_only(self, txns):
        assert ids(filter_transactions(txns, recurring_only=True)) == [1, 4]

    def test_on_date(self, txns):
        assert ids(filter_transactions(txns, on_date=date(2025, 3, 31))) == [2]
        assert ids(filter_transactions(txns, on_date=datetime(2025, 4, 1, 18))) == [3]

    def test_predicates_combine(self, txns):
        q1 = resolve_window({"year": 2025, "quarter": 1})
        result = filter_transactions(
            txns, window=q1, property_scope=2, type_filter="income", recurring_only=True
        )
        assert ids(result) == [4]

    def test_invalid_type_filter(self, txns):
        with pytest.raises(ConfigError):
            filter_transactions(txns, type_filter="transfer")


class TestSearch:
    def test_description_case_insensitive(self, txns):
        assert ids(filter_transactions(txns, search_term="PLUMB")) == [2]

    def test_category_name(self, txns):
        assert ids(filter_transactions(txns, search_term="rent")) == [1]

    def test_property_name_from_properties(self, txns):
        props = [Property(id=2, name="Lindenhof 4")]
        assert ids(filter_transactions(txns, search_term="linden", properties=props)) == [3, 4]

    def test_amount_string(self, txns):
        assert ids(filter_transactions(txns, search_term="1000")) == [1]
        assert ids(filter_transactions(txns, search_term="250.5")) == [2]

    def test_blank_search_is_ignored(self, txns):
        assert ids(filter_transactions(txns, search_term="   ")) == [1, 2, 3, 4]

    def test_no_match(self, txns):
        assert filter_transactions(txns, search_term="elevator") == []


class TestPurity:
    def test_input_is_not_mutated(self, txns):
        before = list(txns)
        result = filter_transactions(txns, type_filter="expense")

        assert txns == before
        assert result is not txns

    def test_apply_returns_new_list(self, txns):
        match_all = TransactionFilter()
        result = match_all.apply(txns)
        assert result == txns
        assert result is not txns


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, None),
        ("", None),
        ("all", None),
        ("Income", TransactionType.INCOME),
        ("expense", TransactionType.EXPENSE),
    ],
)
def test_normalize_type_filter(value, expected):
    assert normalize_type_filter(value) is expected
