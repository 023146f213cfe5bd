"""
Input validation for the product edit form.

Language independent product fields are coerced from the Product column
definitions:
- Integer: ints, integral floats, or plain digit strings
- Numeric: decimals with at most the column's scale
- Boolean: bools or the usual form spellings ("true", "off", ...)
- String / Text: stripped, length checked against String(n)

Everything here raises ValidationError (400). ConflictError (409) and
LimitExceededError (400) are raised by the services.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text


# Largest value Numeric(12, 2) holds
MAX_PRICE = Decimal("9999999999.99")

_TRUE_WORDS = frozenset({"true", "1", "yes", "on"})
_FALSE_WORDS = frozenset({"false", "0", "no", "off", ""})


class ValidationError(ValueError):
    """Malformed form input or an unacceptable file."""


class ConflictError(ValueError):
    """The write clashes with another row (duplicate slug)."""


class LimitExceededError(ValueError):
    """A batch would push a product past its image ceiling."""


@dataclass(frozen=True)
class FieldPolicy:
    """The columns of one model that a form is allowed to write."""
    model: Any
    writable: frozenset
    required: frozenset = field(default_factory=frozenset)

    def columns(self) -> dict:
        return {c.key: c for c in self.model.__mapper__.columns if c.key in self.writable}


def to_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{key} must be an integer, not a decimal")
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        digits = text[1:] if text[:1] in ("-", "+") else text
        if not (digits.isascii() and digits.isdigit()):
            raise ValidationError(f"{key} must be a plain integer")
        return int(text)
    raise ValidationError(f"{key} must be an integer")


def to_decimal(key: str, value: Any, scale: int | None = None) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    # repr() keeps 0.1 as "0.1" instead of the binary expansion
    text = repr(value) if isinstance(value, float) else str(value).strip()
    try:
        number = Decimal(text)
    except InvalidOperation:
        raise ValidationError(f"{key} must be a number")
    if not number.is_finite():
        raise ValidationError(f"{key} must be a finite number")
    if scale is None:
        return number

    quantum = Decimal(1).scaleb(-scale)
    rounded = number.quantize(quantum)
    if rounded != number:
        raise ValidationError(f"{key} allows at most {scale} decimal places")
    return rounded


def to_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise ValidationError(f"{key} must be a boolean")


def coerce_column(column, value: Any):
    """Convert one submitted value to the column's Python type."""
    coltype = column.type
    if isinstance(coltype, Boolean):
        return to_bool(column.key, value)
    if isinstance(coltype, Integer):
        return to_int(column.key, value)
    if isinstance(coltype, Numeric):
        return to_decimal(column.key, value, coltype.scale)
    if isinstance(coltype, (String, Text)):
        text = str(value).strip()
        length = getattr(coltype, "length", None)
        if length and len(text) > length:
            raise ValidationError(f"{column.key} exceeds max length {length}")
        if not text and not column.nullable:
            raise ValidationError(f"{column.key} cannot be blank")
        return text
    return value


def clean_fields(policy: FieldPolicy, payload: dict, *, partial: bool = True) -> dict:
    """
    Coerce the writable fields present in payload.

    Keys outside policy.writable are rejected. With partial=False every
    policy.required key must be present.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    unknown = sorted(set(payload) - set(policy.writable))
    if unknown:
        raise ValidationError(f"Field not allowed: {', '.join(unknown)}")

    if not partial:
        missing = sorted(policy.required - set(payload))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    columns = policy.columns()
    cleaned = {}
    for key, value in payload.items():
        column = columns[key]
        if value is None:
            if not column.nullable:
                raise ValidationError(f"{key} cannot be null")
            cleaned[key] = None
        else:
            cleaned[key] = coerce_column(column, value)
    return cleaned


def check_product_rules(fields: dict) -> None:
    """Rules the column types alone do not express."""
    price = fields.get("price")
    if price is not None:
        if price < 0:
            raise ValidationError("price must be >= 0")
        if price > MAX_PRICE:
            raise ValidationError(f"price cannot exceed {MAX_PRICE}")

    stock = fields.get("stock_quantity")
    if stock is not None and stock < 0:
        raise ValidationError("stock_quantity must be >= 0")
