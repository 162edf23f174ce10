# Overview: Service-layer operations for the stock movement ledger.

from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..extensions import db
from ..models import StockMovement, MOVEMENT_TYPES, MOVEMENT_REASONS
from ..time_utils import utcnow
"""
Stock Movement Ledger Invariants (authoritative)

- Append-only: rows are inserted, never updated or deleted.
- quantity is a positive magnitude; direction is carried by type (ENTRADA/SAIDA).
- Movements are written inside the same DB transaction as the quantity
  change they record; this module flushes but never commits.
- Nothing in the write path reads the ledger back. Current stock lives on
  Product.quantity_on_hand.
"""


class LedgerError(ValueError):
    """Raised when a movement would violate the ledger's invariants."""


def record_movement(
    *,
    product_id: int,
    quantity: int,
    movement_type: str,
    reason: str,
    sale_id: int | None = None,
    operator_id: int | None = None,
    note: Optional[str] = None,
    occurred_at: Optional[datetime] = None,
) -> StockMovement:
    """
    Append one immutable stock movement.

    - No domain logic beyond shape checks.
    - Caller owns the transaction (use inside unit_of_work()).
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise LedgerError("movement quantity must be a positive integer")
    if movement_type not in MOVEMENT_TYPES:
        raise LedgerError(f"unknown movement type {movement_type!r}")
    if reason not in MOVEMENT_REASONS:
        raise LedgerError(f"unknown movement reason {reason!r}")

    movement = StockMovement(
        product_id=product_id,
        quantity=quantity,
        type=movement_type,
        reason=reason,
        sale_id=sale_id,
        operator_id=operator_id,
        note=note,
        occurred_at=occurred_at or utcnow(),
    )
    db.session.add(movement)
    db.session.flush()  # ensures movement.id is assigned without committing
    return movement


def list_movements(*, product_id: int, limit: int = 200) -> list[StockMovement]:
    """Most-recent-first audit view of a product's movements."""
    limit = min(max(int(limit or 200), 1), 1000)
    return (
        db.session.query(StockMovement)
        .filter(StockMovement.product_id == product_id)
        .order_by(StockMovement.occurred_at.desc(), StockMovement.id.desc())
        .limit(limit)
        .all()
    )
