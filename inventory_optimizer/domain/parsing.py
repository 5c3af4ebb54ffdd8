"""
Typed parsing of raw store values

Rows coming from the tabular store are loosely typed: numerics may arrive as
strings, Decimals, None or locale-formatted text. Instead of silently coercing
everything to 0, the parsers here return a tagged result. Callers decide the
fallback explicitly, e.g.:

    quantity = parse_number(row.get("quantity")).or_default(0)

Author: TM3
Date: 2025-11-03
"""
import math
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")

# Comma as decimal separator: "1.234,50" (dotted thousands) or "12,5" / "12,50".
# A lone comma followed by three digits ("1,234") is a thousands separator.
_COMMA_DECIMAL = re.compile(r"^-?(?:\d{1,3}(?:\.\d{3})+,\d+|\d+,\d{1,2})$")


@dataclass(frozen=True)
class Parsed(Generic[T]):
    """Result of parsing a raw value: either a value or an invalid reason"""
    value: Optional[T] = None
    reason: Optional[str] = None

    @classmethod
    def ok(cls, value: T) -> "Parsed[T]":
        return cls(value=value)

    @classmethod
    def invalid(cls, reason: str) -> "Parsed[T]":
        return cls(reason=reason)

    @property
    def is_valid(self) -> bool:
        return self.reason is None

    def or_default(self, default: T) -> T:
        """Return the parsed value, or ``default`` when invalid"""
        return self.value if self.is_valid else default


def parse_number(raw: Any) -> Parsed[float]:
    """
    Parse a numeric store value.

    Accepts int/float/Decimal and strings in either "1,234.50" or "1.234,50"
    notation. A comma is read as decimal separator only after dotted
    thousands or before one or two digits, so "1,234" is 1234.
    Booleans, NaN and infinities are rejected.
    """
    if raw is None:
        return Parsed.invalid("missing")
    if isinstance(raw, bool):
        return Parsed.invalid(f"boolean is not a number: {raw!r}")

    if isinstance(raw, (int, float, Decimal)):
        value = float(raw)
    elif isinstance(raw, str):
        text = raw.strip()
        if not text:
            return Parsed.invalid("empty")
        if _COMMA_DECIMAL.match(text):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "").replace(" ", "")
        try:
            value = float(text)
        except ValueError:
            return Parsed.invalid(f"not a number: {raw!r}")
    else:
        return Parsed.invalid(f"unsupported type {type(raw).__name__}")

    if not math.isfinite(value):
        return Parsed.invalid(f"not finite: {raw!r}")
    return Parsed.ok(value)


def parse_date(raw: Any) -> Parsed[date]:
    """
    Parse a date-only store value.

    Timestamps are truncated to their date part so no time-of-day or timezone
    can shift a record into a neighbouring month.
    """
    if raw is None:
        return Parsed.invalid("missing")
    if isinstance(raw, datetime):
        return Parsed.ok(raw.date())
    if isinstance(raw, date):
        return Parsed.ok(raw)
    if isinstance(raw, str):
        text = raw.strip()
        if len(text) < 10:
            return Parsed.invalid(f"not an ISO date: {raw!r}")
        try:
            return Parsed.ok(date.fromisoformat(text[:10]))
        except ValueError:
            return Parsed.invalid(f"not an ISO date: {raw!r}")
    return Parsed.invalid(f"unsupported type {type(raw).__name__}")
