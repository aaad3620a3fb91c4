"""
Ledger records for propfolio.

Transactions and properties are owned by an external store; the engine only
reads them. Both are frozen dataclasses so a ledger snapshot cannot be mutated
by any stage of the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from .currency import ZERO, to_decimal
from .errors import MalformedProperty, MalformedTransaction

# camelCase keys used by the web application's JSON payloads
_TRANSACTION_ALIASES = {
    "propertyId": "property_id",
    "categoryId": "category_id",
    "categoryName": "category_name",
    "propertyName": "property_name",
}
_PROPERTY_ALIASES = {
    "purchasePrice": "purchase_price",
    "currentValue": "current_value",
    "acquisitionDate": "acquisition_date",
}


class TransactionType(Enum):
    """Direction of a ledger transaction."""

    INCOME = "income"
    EXPENSE = "expense"


def parse_timestamp(value: Any) -> datetime:
    """
    Normalize a date-like value to a timezone-naive ``datetime``.

    Accepts: datetime | date | ISO-8601 string (``"2025-03-01"`` or
    ``"2025-03-01T10:00:00"``). Aware datetimes lose their tzinfo; the ledger
    works in local business dates.
    """
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1]
        return datetime.fromisoformat(text).replace(tzinfo=None)
    raise TypeError(f"Unsupported date value: {value!r}")


def _normalize_keys(data: dict[str, Any], aliases: dict[str, str]) -> dict[str, Any]:
    return {aliases.get(key, key): value for key, value in data.items()}


def coerce_id(value: Any) -> Any:
    """Digit-only strings become ints (``"12"`` -> ``12``); anything else is kept."""
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return value


def _coerce_text(value: Any) -> str | None:
    """
    Scalar label to ``str``; YAML turns ``description: 2024`` into an int.

    Raises:
        ValueError: For containers, booleans and other non-scalar values
    """
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float, Decimal, date)) and not isinstance(value, bool):
        return value.isoformat() if isinstance(value, date) else str(value)
    raise ValueError(f"expected text, got {type(value).__name__}")


_TRUE = {"true", "yes", "1"}
_FALSE = {"false", "no", "0", ""}


def coerce_flag(value: Any) -> bool:
    """Strict boolean: ``"false"`` and ``"0"`` are False, not truthy strings."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        key = value.strip().lower()
        if key in _TRUE:
            return True
        if key in _FALSE:
            return False
    raise ValueError(f"expected a boolean, got {value!r}")


@dataclass(frozen=True, slots=True)
class Transaction:
    """
    A single dated income or expense record.

    Attributes:
        id: Unique identifier
        date: Business date of the transaction (timezone-naive)
        type: Income or expense
        amount: Non-negative EUR amount, two decimal places
        property_id: Property the transaction belongs to (None = portfolio-general)
        category_id: Optional category identifier
        category_name: Optional category label
        recurring: Whether the transaction repeats
        description: Free-text description
        property_name: Denormalized property label, if the store provides one
    """

    id: Any
    date: datetime
    type: TransactionType
    amount: Decimal
    property_id: Any = None
    category_id: Any = None
    category_name: str | None = None
    recurring: bool = False
    description: str = ""
    property_name: str | None = None

    def __post_init__(self):
        if self.id is None:
            raise MalformedTransaction("Transaction id is required", field="id")
        if not isinstance(self.date, datetime):
            raise MalformedTransaction(
                "date must be a datetime", record_id=self.id, field="date"
            )
        if not isinstance(self.type, TransactionType):
            raise MalformedTransaction(
                f"type must be income or expense, got {self.type!r}",
                record_id=self.id,
                field="type",
            )
        if not isinstance(self.amount, Decimal):
            raise MalformedTransaction(
                "amount must be a Decimal", record_id=self.id, field="amount"
            )
        if self.amount < ZERO:
            raise MalformedTransaction(
                f"amount must be non-negative, got {self.amount}",
                record_id=self.id,
                field="amount",
            )
        if not isinstance(self.recurring, bool):
            raise MalformedTransaction(
                "recurring must be a bool", record_id=self.id, field="recurring"
            )
        if not isinstance(self.description, str):
            raise MalformedTransaction(
                "description must be text", record_id=self.id, field="description"
            )
        for field_name in ("category_name", "property_name"):
            value = getattr(self, field_name)
            if value is not None and not isinstance(value, str):
                raise MalformedTransaction(
                    f"{field_name} must be text", record_id=self.id, field=field_name
                )

    @property
    def is_income(self) -> bool:
        return self.type is TransactionType.INCOME

    @property
    def is_expense(self) -> bool:
        return self.type is TransactionType.EXPENSE

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> Transaction:
        """
        Build a transaction from a raw mapping (camelCase or snake_case keys).

        Raises:
            MalformedTransaction: If ``id``, ``date``, ``type`` or ``amount`` is
                missing or cannot be interpreted
        """
        if not isinstance(data, dict):
            raise MalformedTransaction(f"Expected a mapping, got {type(data).__name__}")
        raw = _normalize_keys(data, _TRANSACTION_ALIASES)
        record_id = raw.get("id")

        for required in ("id", "date", "type", "amount"):
            if raw.get(required) is None:
                raise MalformedTransaction(
                    f"Missing required field '{required}'",
                    record_id=record_id,
                    field=required,
                )

        try:
            when = parse_timestamp(raw["date"])
        except (TypeError, ValueError) as exc:
            raise MalformedTransaction(
                f"Unparsable date {raw['date']!r}", record_id=record_id, field="date"
            ) from exc

        try:
            kind = TransactionType(str(raw["type"]).strip().lower())
        except ValueError as exc:
            raise MalformedTransaction(
                f"Unknown transaction type {raw['type']!r}",
                record_id=record_id,
                field="type",
            ) from exc

        try:
            amount = to_decimal(raw["amount"])
        except ValueError as exc:
            raise MalformedTransaction(
                str(exc), record_id=record_id, field="amount"
            ) from exc

        texts: dict[str, str | None] = {}
        for field_name in ("category_name", "description", "property_name"):
            try:
                texts[field_name] = _coerce_text(raw.get(field_name)) or None
            except ValueError as exc:
                raise MalformedTransaction(
                    str(exc), record_id=record_id, field=field_name
                ) from exc

        try:
            recurring = coerce_flag(raw.get("recurring"))
        except ValueError as exc:
            raise MalformedTransaction(
                str(exc), record_id=record_id, field="recurring"
            ) from exc

        return cls(
            id=record_id,
            date=when,
            type=kind,
            amount=amount,
            property_id=raw.get("property_id"),
            category_id=raw.get("category_id"),
            category_name=texts["category_name"],
            recurring=recurring,
            description=texts["description"] or "",
            property_name=texts["property_name"],
        )


@dataclass(frozen=True, slots=True)
class Property:
    """
    A rental property in the portfolio.

    ``purchase_price`` and ``current_value`` are optional; ROI and appreciation
    are undefined (not zero) when the purchase price is missing or zero.
    """

    id: Any
    name: str
    purchase_price: Decimal | None = None
    current_value: Decimal | None = None
    acquisition_date: datetime | None = None

    def __post_init__(self):
        if self.id is None:
            raise MalformedProperty("Property id is required", field="id")
        if not self.name:
            raise MalformedProperty("Property name is required", record_id=self.id, field="name")
        if not isinstance(self.name, str):
            raise MalformedProperty("name must be text", record_id=self.id, field="name")
        for field_name in ("purchase_price", "current_value"):
            value = getattr(self, field_name)
            if value is not None and value < ZERO:
                raise MalformedProperty(
                    f"{field_name} must be non-negative, got {value}",
                    record_id=self.id,
                    field=field_name,
                )

    @property
    def has_purchase_price(self) -> bool:
        return self.purchase_price is not None and self.purchase_price > ZERO

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> Property:
        """Build a property from a raw mapping (camelCase or snake_case keys)."""
        if not isinstance(data, dict):
            raise MalformedProperty(f"Expected a mapping, got {type(data).__name__}")
        raw = _normalize_keys(data, _PROPERTY_ALIASES)
        record_id = raw.get("id")

        values: dict[str, Decimal | None] = {}
        for field_name in ("purchase_price", "current_value"):
            value = raw.get(field_name)
            try:
                values[field_name] = None if value is None else to_decimal(value)
            except ValueError as exc:
                raise MalformedProperty(
                    str(exc), record_id=record_id, field=field_name
                ) from exc

        acquired = raw.get("acquisition_date")
        if acquired is not None:
            try:
                acquired = parse_timestamp(acquired)
            except (TypeError, ValueError) as exc:
                raise MalformedProperty(
                    f"Unparsable acquisition date {acquired!r}",
                    record_id=record_id,
                    field="acquisition_date",
                ) from exc

        try:
            name = _coerce_text(raw.get("name")) or ""
        except ValueError as exc:
            raise MalformedProperty(str(exc), record_id=record_id, field="name") from exc

        return cls(
            id=record_id,
            name=name,
            purchase_price=values["purchase_price"],
            current_value=values["current_value"],
            acquisition_date=acquired,
        )
