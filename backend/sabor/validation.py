"""
Boundary parsing for inbound payloads.

Every loosely-typed value that arrives from a request body is turned into
a concrete Python value here, exactly once, or rejected with a
ValidationError naming the offending field. Services call these same
helpers so they hold their contract when used without the HTTP layer.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from .money import decimal_to_cents


# Maximum price: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

# Largest id or quantity accepted; matches a signed 32-bit INTEGER column
MAX_INT = 2**31 - 1

MAX_BARCODE_LENGTH = 64
MAX_NAME_LENGTH = 255
MAX_PAYMENT_TYPE_LENGTH = 64


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate barcode)."""


class NotFoundError(LookupError):
    """404-level missing record."""


@dataclass(frozen=True)
class CartItem:
    product_id: int
    quantity: int


def _parse_int(value: Any, field: str) -> int:
    parsed = _coerce_int(value, field)
    if abs(parsed) > MAX_INT:
        raise ValidationError(f"{field} cannot exceed {MAX_INT}")
    return parsed


def _coerce_int(value: Any, field: str) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if "." in stripped or "," in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    # JSON numbers such as 3.0 arrive as float; accept only whole values
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def parse_positive_int(value: Any, field: str) -> int:
    parsed = _parse_int(value, field)
    if parsed <= 0:
        raise ValidationError(f"{field} must be a positive integer")
    return parsed


def parse_non_negative_int(value: Any, field: str) -> int:
    parsed = _parse_int(value, field)
    if parsed < 0:
        raise ValidationError(f"{field} must be zero or positive")
    return parsed


def parse_text(value: Any, field: str, *, max_length: int) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    text = value.strip()
    if len(text) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return text


def parse_price_cents(value: Any, field: str = "price") -> int:
    """
    Parse a currency amount into integer cents.

    Accepts ints, floats (via their shortest repr) and strings using either
    ',' or '.' as the decimal separator; rounds half-up to the cent.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a decimal amount")

    if isinstance(value, (int, float)):
        raw = str(value)
    elif isinstance(value, str):
        raw = "".join(value.split()).replace(",", ".")
    else:
        raise ValidationError(f"{field} must be a decimal amount")

    try:
        amount = Decimal(raw)
    except InvalidOperation:
        raise ValidationError(f"{field} must be a decimal amount")

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a decimal amount")
    if amount < 0:
        raise ValidationError(f"{field} must be >= 0")
    # Checked before rounding too; quantize fails on very large exponents
    if amount * 100 > MAX_PRICE_CENTS + 1:
        raise ValidationError(f"{field} cannot exceed {MAX_PRICE_CENTS / 100:,.2f}")

    cents = decimal_to_cents(amount)
    if cents > MAX_PRICE_CENTS:
        raise ValidationError(f"{field} cannot exceed {MAX_PRICE_CENTS / 100:,.2f}")
    return cents


def parse_sale_items(payload: Any) -> list[CartItem]:
    """
    Turn an untrusted cart into CartItems, preserving order.

    Any price the client attached to an item is ignored; prices are always
    taken from the catalog when the sale is committed.
    """
    if not isinstance(payload, (list, tuple)) or len(payload) == 0:
        raise ValidationError("Add at least one item before finishing the sale")

    items = []
    for index, raw in enumerate(payload):
        if isinstance(raw, CartItem):
            product_id, quantity = raw.product_id, raw.quantity
        elif isinstance(raw, dict):
            if "product_id" not in raw or "quantity" not in raw:
                raise ValidationError(f"items[{index}] must have product_id and quantity")
            product_id, quantity = raw["product_id"], raw["quantity"]
        elif isinstance(raw, (list, tuple)) and len(raw) == 2:
            product_id, quantity = raw
        else:
            raise ValidationError(f"items[{index}] is not a valid sale item")

        items.append(
            CartItem(
                product_id=parse_positive_int(product_id, f"items[{index}].product_id"),
                quantity=parse_positive_int(quantity, f"items[{index}].quantity"),
            )
        )
    return items


def parse_payment_type(value: Any, default: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValidationError("payment_type must be a string")
    tag = value.strip()
    if not tag:
        return default
    if len(tag) > MAX_PAYMENT_TYPE_LENGTH:
        raise ValidationError(f"payment_type exceeds max length {MAX_PAYMENT_TYPE_LENGTH}")
    return tag


def reject_unknown_fields(payload: dict, allowed: set[str]) -> None:
    for key in payload.keys():
        if key not in allowed:
            raise ValidationError(f"Field not allowed: {key}")


def require_json_object(payload: Any) -> dict:
    """A missing body reads as {}; any other non-object body is rejected."""
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload
