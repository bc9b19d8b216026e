# Overview: Static descriptor table for every time-versioned machine setting.

"""
Machine settings catalogue (authoritative)

- Every setting the resolver understands is listed here exactly once.
- Each descriptor fixes the value kind, how raw input is parsed, how the
  value is stored as history text, and how it is displayed.
- History rows always store the canonical field name; legacy names are
  normalized on input through FIELD_ALIASES.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from .currency import format_currency_bdt, format_percentage
from .errors import ValidationError


KIND_CURRENCY = "currency"
KIND_PERCENTAGE = "percentage"
KIND_TOKEN = "token"

DURATION_HALF_MONTH = "half_month"
DURATION_FULL_MONTH = "full_month"
DURATION_CHOICES = (DURATION_HALF_MONTH, DURATION_FULL_MONTH)


def _to_float(name: str, raw: Any) -> float:
    if isinstance(raw, bool):
        raise ValidationError(f"{name}: expected a number", {"field": name})
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        try:
            return float(raw.strip())
        except ValueError:
            pass
    raise ValidationError(f"{name}: expected a number", {"field": name, "value": raw})


def parse_currency(name: str, raw: Any) -> float:
    value = _to_float(name, raw)
    if value < 0:
        raise ValidationError(f"{name}: must be >= 0", {"field": name, "value": value})
    return value


def parse_percentage(name: str, raw: Any) -> float:
    value = _to_float(name, raw)
    if value < 0 or value > 100:
        raise ValidationError(f"{name}: must be between 0 and 100", {"field": name, "value": value})
    return value


def parse_duration(name: str, raw: Any) -> str:
    if not isinstance(raw, str) or raw.strip() not in DURATION_CHOICES:
        raise ValidationError(
            f"{name}: expected one of {list(DURATION_CHOICES)}",
            {"field": name, "value": raw},
        )
    return raw.strip()


@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    label: str
    kind: str
    parser: Callable[[str, Any], Any]

    @property
    def is_numeric(self) -> bool:
        return self.kind in (KIND_CURRENCY, KIND_PERCENTAGE)

    def parse(self, raw: Any):
        return self.parser(self.name, raw)

    def to_text(self, value: Any) -> str:
        """Serialize a parsed value for the history table's text column."""
        if self.is_numeric:
            return repr(float(value))
        return str(value)

    def from_text(self, text: str):
        """Read a stored history value back; stored rows are trusted."""
        if self.is_numeric:
            return float(text)
        return text

    def format(self, value: Any) -> str:
        if self.kind == KIND_CURRENCY:
            return format_currency_bdt(value)
        if self.kind == KIND_PERCENTAGE:
            return format_percentage(value)
        return str(value)


SETTINGS_CATALOG: dict[str, FieldDescriptor] = {
    d.name: d
    for d in (
        FieldDescriptor("coin_price", "Coin Price (BDT)", KIND_CURRENCY, parse_currency),
        FieldDescriptor("doll_price", "Doll Price (BDT)", KIND_CURRENCY, parse_currency),
        FieldDescriptor("electricity_cost", "Electricity Cost (BDT)", KIND_CURRENCY, parse_currency),
        FieldDescriptor("vat_percentage", "VAT Percentage (%)", KIND_PERCENTAGE, parse_percentage),
        FieldDescriptor("maintenance_percentage", "Maintenance Percentage (%)", KIND_PERCENTAGE, parse_percentage),
        FieldDescriptor(
            "owner_profit_share_percentage", "Owner Profit Share (%)", KIND_PERCENTAGE, parse_percentage
        ),
        FieldDescriptor(
            "clowee_profit_share_percentage", "Clowee Profit Share (%)", KIND_PERCENTAGE, parse_percentage
        ),
        FieldDescriptor("duration", "Duration", KIND_TOKEN, parse_duration),
    )
}

SETTING_FIELDS: tuple[str, ...] = tuple(SETTINGS_CATALOG)

# Older machine forms stored a single share column for the clowee side.
FIELD_ALIASES = {
    "profit_share_percentage": "clowee_profit_share_percentage",
}

SHARE_FIELDS = ("owner_profit_share_percentage", "clowee_profit_share_percentage")


def normalize_field_name(field_name: str) -> str:
    if not isinstance(field_name, str):
        raise ValidationError("field_name is required")
    name = field_name.strip()
    name = FIELD_ALIASES.get(name, name)
    if name not in SETTINGS_CATALOG:
        raise ValidationError(
            f"Unknown setting field: {field_name}",
            {"field": field_name, "allowed": list(SETTING_FIELDS)},
        )
    return name


def get_descriptor(field_name: str) -> FieldDescriptor:
    return SETTINGS_CATALOG[normalize_field_name(field_name)]


def validate_share_total(owner_share: float, clowee_share: float) -> None:
    """Owner + clowee share may not exceed 100%."""
    if owner_share + clowee_share > 100:
        raise ValidationError(
            "Owner + Clowee profit share cannot exceed 100%",
            {"owner_profit_share_percentage": owner_share, "clowee_profit_share_percentage": clowee_share},
        )
