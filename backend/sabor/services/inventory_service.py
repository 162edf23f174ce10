# Overview: Service-layer operations for inventory; encapsulates business logic and database work.

# backend/sabor/services/inventory_service.py

from __future__ import annotations

from typing import Any

from ..models import Product, MOVEMENT_IN, MOVEMENT_OUT, REASON_MANUAL_ADJUSTMENT
from ..validation import NotFoundError, parse_non_negative_int, parse_positive_int
from .concurrency import lock_for_update, unit_of_work
from .ledger_service import record_movement
"""
Inventory Invariants (authoritative)

Stock model:
- Product.quantity_on_hand is the stored, authoritative on-hand count.
- It is never negative (CHECK constraint, conditional decrements).
- It changes only through adjust_stock (here) or the sale engine.

Adjustments:
- adjust_stock is a "set to" operation: the caller supplies the counted
  quantity, the service derives delta = target - current.
- delta == 0 writes the (unchanged) quantity and no ledger row.
- delta != 0 appends exactly one StockMovement with quantity |delta|,
  type ENTRADA for positive / SAIDA for negative, reason AJUSTE_MANUAL.
- Quantity write and ledger append share one transaction.

Concurrency:
- The product row is locked for the read (FOR UPDATE, or BEGIN IMMEDIATE
  on SQLite) and written through the ORM version counter, so a lost
  update surfaces as ConcurrencyConflictError instead of silently
  overwriting a concurrent sale.
"""


def adjust_stock(product_id: Any, target_quantity: Any, *, operator_id: int | None = None) -> Product:
    """
    Set a product's on-hand quantity to an absolute counted value.

    Raises:
        ValidationError: product_id not a positive integer, target negative or non-integer
        NotFoundError: unknown product
        ConcurrencyConflictError: another write changed the row mid-operation
    """
    product_id = parse_positive_int(product_id, "product_id")
    target = parse_non_negative_int(target_quantity, "quantity")

    with unit_of_work() as session:
        # populate_existing: never trust a stale copy already in the identity map
        query = session.query(Product).populate_existing().filter(Product.id == product_id)
        product = lock_for_update(query).first()
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")

        previous = product.quantity_on_hand
        delta = target - previous

        product.quantity_on_hand = target

        if delta != 0:
            record_movement(
                product_id=product.id,
                quantity=abs(delta),
                movement_type=MOVEMENT_IN if delta > 0 else MOVEMENT_OUT,
                reason=REASON_MANUAL_ADJUSTMENT,
                operator_id=operator_id,
                note=f"Manual adjustment {previous} -> {target}",
            )

    return product

