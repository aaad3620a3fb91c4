"""Shared fixtures for the propfolio test suite."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest
from propfolio.core.ledger import Ledger, load_ledger
from propfolio.core.models import Transaction

SAMPLE_LEDGER = Path(__file__).resolve().parents[1] / "examples" / "ledgers" / "ledger.yaml"

# Fixed reference instant; relative windows in tests are anchored here
NOW = datetime(2026, 4, 15, 12, 0)


def txn(txn_id, when, kind, amount, **extra) -> Transaction:
    """Build a transaction from loose values (camelCase keys accepted)."""
    return Transaction.from_mapping(
        {"id": txn_id, "date": when, "type": kind, "amount": amount, **extra}
    )


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_txn():
    return txn


@pytest.fixture
def sample_ledger() -> Ledger:
    return load_ledger(SAMPLE_LEDGER)


@pytest.fixture
def portfolio() -> Ledger:
    """Three properties, one without purchase price, plus a general expense."""
    return Ledger(
        transactions=[
            {"id": 1, "date": "2026-01-05", "type": "income", "amount": "1000.00", "propertyId": 1,
             "categoryId": 1, "categoryName": "Rent", "recurring": True, "description": "Rent Jan"},
            {"id": 2, "date": "2026-01-20", "type": "expense", "amount": "400.00", "propertyId": 1,
             "categoryId": 2, "categoryName": "Repairs", "description": "Roof fix"},
            {"id": 3, "date": "2026-02-05", "type": "income", "amount": "800.00", "propertyId": 2,
             "categoryId": 1, "categoryName": "Rent", "recurring": True, "description": "Rent Feb"},
            {"id": 4, "date": "2026-02-10", "type": "expense", "amount": "300.00", "propertyId": 2,
             "categoryId": 3, "categoryName": "Insurance", "description": "Annual policy"},
            {"id": 5, "date": "2026-03-01", "type": "expense", "amount": "100.00",
             "categoryId": 2, "categoryName": "Repairs", "description": "Tools"},
        ],
        properties=[
            {"id": 1, "name": "Altbau Mitte", "purchasePrice": 10000},
            {"id": 2, "name": "Lindenhof 4"},
            {"id": 3, "name": "Seeblick", "purchasePrice": 50000},
        ],
    )
