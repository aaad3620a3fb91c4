"""Report configuration: the inputs recognized by the aggregation engine."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

from .aggregation import GroupBy, normalize_group_by
from .errors import ConfigError
from .filters import normalize_type_filter
from .ledger import _read_source
from .models import TransactionType, coerce_flag, coerce_id
from .ranking import SortDirection, normalize_direction

__all__ = ["ReportConfig", "load_report_config"]

_KEY_ALIASES = {
    "groupBy": "group_by",
    "propertyScope": "property_scope",
    "typeFilter": "type_filter",
    "recurringOnly": "recurring_only",
    "sortField": "sort_field",
    "sortDirection": "sort_direction",
    "shareOf": "share_of",
}


@dataclass(frozen=True, slots=True)
class ReportConfig:
    """
    Everything a report request can vary.

    Attributes:
        window: ``month``/``quarter``/``year``/``all``, ``{"year": y[, "quarter": q]}``
            or ``{"start": ..., "end": ...}``; validated when the window is resolved
        group_by: ``category``, ``property`` or ``month``
        property_scope: Restrict to one property id; digit-only strings
            (``"1"`` from a JSON or CLI source) are matched as integer ids
        type_filter: ``income``, ``expense`` or None for both
        recurring_only: Keep only recurring transactions
        search: Free-text search term
        sort_field: Ranking field; validated against ``group_by`` by the ranker
        sort_direction: ``asc`` or ``desc``
        share_of: Measure category shares are based on; defaults to income
            when ``type_filter`` is income, expenses otherwise
    """

    window: Any = "year"
    group_by: GroupBy = GroupBy.PROPERTY
    property_scope: Any = None
    type_filter: TransactionType | None = None
    recurring_only: bool = False
    search: str | None = None
    sort_field: str = "profit"
    sort_direction: SortDirection = SortDirection.DESC
    share_of: TransactionType | None = None

    def __post_init__(self):
        # frozen: normalize through object.__setattr__
        object.__setattr__(self, "group_by", normalize_group_by(self.group_by))
        object.__setattr__(self, "type_filter", normalize_type_filter(self.type_filter))
        object.__setattr__(self, "sort_direction", normalize_direction(self.sort_direction))
        if self.share_of is not None and not isinstance(self.share_of, TransactionType):
            try:
                share = TransactionType(str(self.share_of).strip().lower())
            except ValueError as exc:
                raise ConfigError(
                    f"Unsupported share_of {self.share_of!r} (expected income or expense)"
                ) from exc
            object.__setattr__(self, "share_of", share)
        object.__setattr__(self, "property_scope", coerce_id(self.property_scope))
        try:
            recurring_only = coerce_flag(self.recurring_only)
        except ValueError as exc:
            raise ConfigError(f"Unsupported recurring_only {self.recurring_only!r}") from exc
        object.__setattr__(self, "recurring_only", recurring_only)

    @property
    def effective_share_of(self) -> TransactionType:
        if self.share_of is not None:
            return self.share_of
        if self.type_filter is TransactionType.INCOME:
            return TransactionType.INCOME
        return TransactionType.EXPENSE

    def with_overrides(self, **overrides: Any) -> ReportConfig:
        """Copy with the given non-None fields replaced."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "window": self.window,
            "group_by": self.group_by.value,
            "property_scope": self.property_scope,
            "type_filter": self.type_filter.value if self.type_filter else "all",
            "recurring_only": self.recurring_only,
            "search": self.search,
            "sort_field": self.sort_field,
            "sort_direction": self.sort_direction.value,
            "share_of": self.effective_share_of.value,
        }

    @classmethod
    def from_mapping(cls, data: dict[str, Any] | None) -> ReportConfig:
        """
        Build a config from a mapping with snake_case or camelCase keys.

        Raises:
            ConfigError: On unknown keys or unsupported enum values
        """
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError(f"Report config must be a mapping, got {type(data).__name__}")

        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        unknown = []
        for key, value in data.items():
            name = _KEY_ALIASES.get(key, key)
            if name not in known:
                unknown.append(key)
                continue
            kwargs[name] = value
        if unknown:
            raise ConfigError(f"Unknown report config key(s): {', '.join(sorted(unknown))}")
        return cls(**kwargs)


def load_report_config(
    source: str | Path | dict[str, Any], *, format: str | None = None
) -> ReportConfig:
    """
    Load a report config from a YAML/JSON file or a mapping.

    A top-level ``report:`` section is used when present, so the config can
    live next to other settings in one file.
    """
    mapping, _label = _read_source(source, format=format)
    section = mapping.get("report", mapping)
    return ReportConfig.from_mapping(section)
