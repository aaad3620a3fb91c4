"""
Ledger Reader: an immutable, fully materialized snapshot of transactions and
the properties they may reference.

The persistence layer is responsible for authorization and tenancy scoping;
the engine assumes it only ever sees records the caller may see. Paged or
streamed sources are read to completion before a ``Ledger`` exists, so the
aggregation stages never see a partial read.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from copy import deepcopy
from pathlib import Path
from typing import Any, Protocol

import yaml

from .errors import ConfigError, LedgerReadCancelled
from .models import Property, Transaction

__all__ = [
    "Ledger",
    "CancelToken",
    "read_ledger_pages",
    "load_ledger",
]

logger = logging.getLogger(__name__)


class CancelToken(Protocol):
    """Anything exposing ``is_set()``, e.g. ``threading.Event``."""

    def is_set(self) -> bool: ...


class Ledger:
    """
    Read-only collection of transactions and properties.

    Attributes:
        transactions: Tuple of transactions (insertion order preserved)
        properties: Tuple of properties
    """

    def __init__(
        self,
        transactions: Iterable[Transaction | dict] = (),
        properties: Iterable[Property | dict] = (),
    ):
        self._transactions: tuple[Transaction, ...] = tuple(
            t if isinstance(t, Transaction) else Transaction.from_mapping(t)
            for t in transactions
        )
        self._properties: tuple[Property, ...] = tuple(
            p if isinstance(p, Property) else Property.from_mapping(p)
            for p in properties
        )
        self._by_id: dict[Any, Property] = {p.id: p for p in self._properties}

        unknown = {
            t.property_id
            for t in self._transactions
            if t.property_id is not None and t.property_id not in self._by_id
        }
        if unknown:
            logger.warning(
                "%d transaction(s) reference unknown properties: %s",
                sum(1 for t in self._transactions if t.property_id in unknown),
                sorted(unknown, key=str),
            )

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return self._transactions

    @property
    def properties(self) -> tuple[Property, ...]:
        return self._properties

    def get_property(self, property_id: Any) -> Property | None:
        """Look up a property by id (None when unknown)."""
        return self._by_id.get(property_id)

    def property_name(self, property_id: Any) -> str | None:
        prop = self._by_id.get(property_id)
        return prop.name if prop is not None else None

    def is_empty(self) -> bool:
        return not self._transactions

    def __len__(self) -> int:
        return len(self._transactions)

    def __repr__(self) -> str:
        return (
            f"Ledger(transactions={len(self._transactions)}, "
            f"properties={len(self._properties)})"
        )


def read_ledger_pages(
    pages: Iterable[Iterable[Transaction | dict]],
    properties: Iterable[Property | dict] = (),
    cancel: CancelToken | None = None,
) -> Ledger:
    """
    Materialize a paged transaction source into a ``Ledger``.

    Cancellation is only honoured here, between pages. Once the last page has
    been read the ledger is built and the caller owns a complete snapshot.

    Args:
        pages: Iterable of pages, each an iterable of transactions or mappings
        properties: Properties the transactions may reference
        cancel: Optional token checked before every page

    Returns:
        Ledger holding every transaction from every page

    Raises:
        LedgerReadCancelled: If ``cancel.is_set()`` becomes true before the
            read completes
    """
    collected: list[Transaction | dict] = []
    pages_read = 0
    for page in pages:
        if cancel is not None and cancel.is_set():
            raise LedgerReadCancelled(pages_read)
        collected.extend(page)
        pages_read += 1
    if cancel is not None and cancel.is_set():
        raise LedgerReadCancelled(pages_read)

    logger.debug("Read %d transaction(s) from %d page(s)", len(collected), pages_read)
    return Ledger(collected, properties)


def load_ledger(source: str | Path | dict[str, Any], *, format: str | None = None) -> Ledger:
    """
    Load a ledger from a YAML/JSON file or an in-memory mapping.

    The document holds two top-level lists, ``properties`` and
    ``transactions``; either may be omitted.
    """
    mapping, label = _read_source(source, format=format)
    transactions = mapping.get("transactions") or []
    properties = mapping.get("properties") or []
    if not isinstance(transactions, list) or not isinstance(properties, list):
        raise ConfigError(f"{label}: 'transactions' and 'properties' must be lists")

    ledger = Ledger(transactions, properties)
    logger.debug("Loaded %r from %s", ledger, label)
    return ledger


def _read_source(
    source: str | Path | dict[str, Any], *, format: str | None
) -> tuple[dict[str, Any], str]:
    if isinstance(source, dict):
        return deepcopy(source), "<mapping>"

    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(path)

    fmt = (format or path.suffix.lstrip(".")).lower()
    text = path.read_text(encoding="utf-8")
    if fmt in {"yaml", "yml", ""}:
        data = yaml.safe_load(text)
    elif fmt == "json":
        data = json.loads(text)
    else:
        raise ConfigError(f"Unsupported format '{fmt}' for {path}")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    return data, str(path)
