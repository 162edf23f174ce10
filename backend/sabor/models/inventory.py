from __future__ import annotations

from ..extensions import db
from ..money import format_cents
from ..time_utils import to_utc_z
from .immutable import append_only


MOVEMENT_IN = "ENTRADA"
MOVEMENT_OUT = "SAIDA"
MOVEMENT_TYPES = (MOVEMENT_IN, MOVEMENT_OUT)

REASON_REGISTRATION = "CADASTRO"
REASON_MANUAL_ADJUSTMENT = "AJUSTE_MANUAL"
REASON_SALE = "VENDA"
MOVEMENT_REASONS = (REASON_REGISTRATION, REASON_MANUAL_ADJUSTMENT, REASON_SALE)


class Product(db.Model):
    """
    Sellable catalog item.

    BARCODE: unique business key used by the POS lookup. Assigned at
    registration and never edited afterwards.

    PRICE: price_cents is the *current* list price. Sales copy it onto
    their lines at commit time, so editing it never rewrites history.

    STOCK: quantity_on_hand is the authoritative on-hand count. It only
    changes through the sale engine or the stock adjustment service; both
    append a StockMovement in the same transaction. It can never go
    negative (CHECK constraint plus conditional decrements).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("barcode", name="uq_products_barcode"),
        db.CheckConstraint("quantity_on_hand >= 0", name="ck_products_quantity_non_negative"),
        db.CheckConstraint("price_cents >= 0", name="ck_products_price_non_negative"),
        db.Index("ix_products_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    barcode = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)

    # Authoritative storage in cents (API exposes "22.00" strings)
    price_cents = db.Column(db.Integer, nullable=False)

    quantity_on_hand = db.Column(db.Integer, nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} barcode={self.barcode!r} name={self.name!r} qty={self.quantity_on_hand}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "barcode": self.barcode,
            "name": self.name,
            "price": format_cents(self.price_cents),
            "price_cents": self.price_cents,
            "quantity_on_hand": self.quantity_on_hand,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


@append_only
class StockMovement(db.Model):
    """
    Append-only audit row for one change of a product's on-hand quantity.

    quantity is always a positive magnitude; the direction lives in
    `type` (ENTRADA / SAIDA). `reason` records the cause: CADASTRO for
    initial stocking, AJUSTE_MANUAL for operator corrections, VENDA for
    sale-driven decrements (linked through sale_id).

    The ledger is never read back to compute stock; it is downstream of
    Product.quantity_on_hand, not a source of truth for it.
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_stock_movements_quantity_positive"),
        db.CheckConstraint("type IN ('ENTRADA', 'SAIDA')", name="ck_stock_movements_type"),
        db.CheckConstraint(
            "reason IN ('CADASTRO', 'AJUSTE_MANUAL', 'VENDA')", name="ck_stock_movements_reason"
        ),
        db.Index("ix_stock_movements_product_occurred", "product_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Weak reference: audit display only
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    quantity = db.Column(db.Integer, nullable=False)
    type = db.Column(db.String(16), nullable=False, index=True)
    reason = db.Column(db.String(32), nullable=False, index=True)

    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True, index=True)
    operator_id = db.Column(db.Integer, db.ForeignKey("operators.id"), nullable=True)

    note = db.Column(db.String(255), nullable=True)

    occurred_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        index=True,
    )

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "type": self.type,
            "reason": self.reason,
            "sale_id": self.sale_id,
            "operator_id": self.operator_id,
            "note": self.note,
            "occurred_at": to_utc_z(self.occurred_at),
        }
