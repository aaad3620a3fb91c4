"""
Error classes for propfolio.

This module defines the exception taxonomy raised by the financial aggregation
engine. Every error is a local validation failure raised before any filtering
or aggregation begins, so a caller never receives a partially computed report.
"""

from __future__ import annotations


class PropfolioError(Exception):
    """Base class for all propfolio errors."""


class ConfigError(PropfolioError, ValueError):
    """
    Invalid report configuration or unreadable ledger/config source.

    **Common Causes:**
    - Unknown keys in a report configuration mapping
    - Unsupported ``group_by``, ``type_filter``, ``sort_direction`` or ``share_of``
    - Config or ledger file with an unsupported format

    **Example Usage:**
        ```python
        from propfolio.core.config import ReportConfig
        from propfolio.core.errors import ConfigError

        try:
            ReportConfig.from_mapping({"groupBy": "tenant"})
        except ConfigError as e:
            print(f"Configuration error: {e}")
        ```
    """


class InvalidWindowSelector(PropfolioError, ValueError):
    """Raised when a time window selector is not recognized."""

    def __init__(self, selector, reason: str | None = None):
        self.selector = selector
        message = f"Invalid window selector {selector!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class InvalidSortField(PropfolioError, ValueError):
    """
    Raised when a sort key is not supported for the requested grouping.

    Attributes:
        field: The rejected sort field
        group_by: The grouping the rows were produced with (if known)
        allowed: Sort fields that would have been accepted
    """

    def __init__(
        self,
        field: str,
        group_by: str | None = None,
        allowed: list[str] | None = None,
    ):
        self.field = field
        self.group_by = group_by
        self.allowed = allowed or []
        message = f"Unsupported sort field {field!r}"
        if group_by:
            message += f" for group_by={group_by!r}"
        if self.allowed:
            message += f" (expected one of: {', '.join(self.allowed)})"
        super().__init__(message)


class _MalformedRecord(PropfolioError, ValueError):
    """Shared formatting for records rejected at the ledger boundary."""

    record_kind = "Record"

    def __init__(self, message: str, record_id=None, field: str | None = None):
        self.record_id = record_id
        self.field = field
        super().__init__(self._fmt(message))

    def _fmt(self, msg: str) -> str:
        """Format the error message with the record id and field."""
        prefix = f"[{self.record_kind} {self.record_id}] " if self.record_id is not None else ""
        suffix = f" | field: {self.field}" if self.field else ""
        return f"{prefix}{msg}{suffix}"


class MalformedTransaction(_MalformedRecord):
    """
    Raised when an input transaction is missing a required field or holds an
    invalid value (negative amount, unknown type, unparsable date).

    Attributes:
        record_id: Identifier of the offending transaction, when known
        field: Name of the missing or invalid field
    """

    record_kind = "Transaction"


class MalformedProperty(_MalformedRecord):
    """Raised when a property record is missing its id/name or holds negative values."""

    record_kind = "Property"


class LedgerReadCancelled(PropfolioError):
    """Raised when a paged ledger read is cancelled before it completes."""

    def __init__(self, pages_read: int):
        self.pages_read = pages_read
        super().__init__(f"Ledger read cancelled after {pages_read} page(s)")
