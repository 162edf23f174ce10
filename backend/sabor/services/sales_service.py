"""
Sales Service - cart to committed sale in one atomic step.

WHY: A sale, its lines, the stock decrements and the ledger rows have to
land together or not at all. The cart is untrusted: prices are always
re-read from the catalog and the acting operator always comes from the
authenticated session.

Sequence (each failure aborts with nothing written):
1. cart shape            -> ValidationError
2. operator present      -> OperatorRequiredError
3. products exist        -> MissingProductError (names the ids)
4. enough stock          -> InsufficientStockError (names the products)
5. price from catalog, freeze onto lines, sum the total
6. commit: conditional decrements, sale + lines, SAIDA/VENDA movements
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Any

from flask import current_app
from sqlalchemy import update

from ..extensions import db
from ..models import Operator, Product, Sale, SaleLine, MOVEMENT_OUT, REASON_SALE
from ..time_utils import utcnow
from ..validation import NotFoundError, CartItem, parse_payment_type, parse_positive_int, parse_sale_items
from .concurrency import lock_for_update, unit_of_work
from .ledger_service import record_movement

DEFAULT_PAYMENT_TYPE = "Dinheiro"


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class OperatorRequiredError(SaleError):
    """No authenticated, active operator to attribute the sale to."""


class MissingProductError(SaleError):
    """A cart entry references a product that does not exist."""


class InsufficientStockError(SaleError):
    """Requested quantity exceeds what is on hand."""


def _default_payment_type() -> str:
    return current_app.config.get("DEFAULT_PAYMENT_TYPE") or DEFAULT_PAYMENT_TYPE


def _aggregate(cart: list[CartItem]) -> "OrderedDict[int, int]":
    requested: OrderedDict[int, int] = OrderedDict()
    for item in cart:
        requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity
    return requested


def _load_products(session, product_ids) -> dict[int, Product]:
    query = (
        session.query(Product)
        .populate_existing()
        .filter(Product.id.in_(list(product_ids)))
        .order_by(Product.id.asc())
    )
    return {p.id: p for p in lock_for_update(query).all()}


def _validate_on_hand(requested: "OrderedDict[int, int]", products: dict[int, Product]) -> None:
    insufficient = []
    for product_id, qty in requested.items():
        product = products[product_id]
        if product.quantity_on_hand < qty:
            insufficient.append({
                "product_id": product_id,
                "name": product.name,
                "requested_quantity": qty,
                "on_hand": product.quantity_on_hand,
            })

    if insufficient:
        names = ", ".join(item["name"] for item in insufficient)
        raise InsufficientStockError(
            f"Insufficient stock for {names}",
            details={"items": insufficient},
        )


def _decrement_stock(session, product: Product, quantity: int) -> None:
    """
    Conditional decrement: only succeeds if the row still holds enough.

    This re-verifies the stock precondition inside the committing
    transaction, so two racing sales cannot both take the last unit.
    """
    result = session.execute(
        update(Product)
        .where(Product.id == product.id, Product.quantity_on_hand >= quantity)
        .values(
            quantity_on_hand=Product.quantity_on_hand - quantity,
            version_id=Product.version_id + 1,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise InsufficientStockError(
            f"Insufficient stock for {product.name}",
            details={"items": [{
                "product_id": product.id,
                "name": product.name,
                "requested_quantity": quantity,
            }]},
        )
    session.expire(product, ["quantity_on_hand", "version_id", "updated_at"])


def submit_sale(items: Any, *, operator: Any, payment_type: Any = None) -> Sale:
    """
    Turn a proposed cart into a committed Sale.

    Args:
        items: sequence of {"product_id", "quantity"} dicts, (id, qty) pairs or CartItems
        operator: authenticated operator (anything with an `id`); never taken from the payload
        payment_type: free-form tag; blank or missing uses DEFAULT_PAYMENT_TYPE

    Returns:
        The committed Sale with its lines loaded.
    """
    cart = parse_sale_items(items)
    payment = parse_payment_type(payment_type, _default_payment_type())

    operator_id = getattr(operator, "id", None)
    if operator is None or operator_id is None:
        raise OperatorRequiredError("An authenticated operator is required to record a sale")

    requested = _aggregate(cart)

    with unit_of_work() as session:
        operator_row = session.get(Operator, operator_id)
        if operator_row is None or not operator_row.is_active:
            raise OperatorRequiredError("Operator is not valid", details={"operator_id": operator_id})

        products = _load_products(session, requested.keys())

        missing = [pid for pid in requested if pid not in products]
        if missing:
            raise MissingProductError(
                f"Product ID {missing[0]} not found",
                details={"product_ids": missing},
            )

        _validate_on_hand(requested, products)

        lines = []
        total_cents = 0
        for item in cart:
            # Price-at-moment: always the catalog's current price
            unit_price_cents = products[item.product_id].price_cents
            line_total_cents = unit_price_cents * item.quantity
            total_cents += line_total_cents
            lines.append(
                SaleLine(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_price_cents=unit_price_cents,
                    line_total_cents=line_total_cents,
                )
            )

        for product_id, qty in requested.items():
            _decrement_stock(session, products[product_id], qty)

        sale = Sale(
            created_at=utcnow(),
            total_cents=total_cents,
            payment_type=payment,
            operator_id=operator_row.id,
            lines=lines,
        )
        session.add(sale)
        session.flush()

        for product_id, qty in requested.items():
            record_movement(
                product_id=product_id,
                quantity=qty,
                movement_type=MOVEMENT_OUT,
                reason=REASON_SALE,
                sale_id=sale.id,
                operator_id=operator_row.id,
                occurred_at=sale.created_at,
                note=f"Sale {sale.id}",
            )

    return sale


def get_sale(sale_id: Any) -> Sale:
    sale_id = parse_positive_int(sale_id, "sale_id")
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise NotFoundError(f"Sale {sale_id} not found")
    return sale
