from __future__ import annotations

from ..extensions import db
from ..money import format_cents
from ..time_utils import to_utc_z
from .immutable import append_only


@append_only
class Sale(db.Model):
    """
    Committed sale header.

    Created together with its lines, stock decrements and stock movements
    in one transaction, and never updated or deleted afterwards.
    total_cents is the sum of the line totals at commit time and is never
    recomputed from the catalog.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_created", "created_at"),
        db.Index("ix_sales_payment_type", "payment_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Set by the sale engine at commit
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    total_cents = db.Column(db.Integer, nullable=False)
    payment_type = db.Column(db.String(64), nullable=False)

    # Always the authenticated operator who rang the sale
    operator_id = db.Column(db.Integer, db.ForeignKey("operators.id"), nullable=False, index=True)

    operator = db.relationship("Operator")
    lines = db.relationship(
        "SaleLine",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleLine.id",
        lazy="selectin",
    )

    def to_dict(self, include_lines: bool = True) -> dict:
        data = {
            "id": self.id,
            "created_at": to_utc_z(self.created_at),
            "total": format_cents(self.total_cents),
            "total_cents": self.total_cents,
            "payment_type": self.payment_type,
            "operator_id": self.operator_id,
            "operator": self.operator.to_public_dict() if self.operator else None,
        }
        if include_lines:
            data["lines"] = [line.to_dict() for line in self.lines]
        return data


@append_only
class SaleLine(db.Model):
    """
    One cart entry of a sale.

    unit_price_cents is the price-at-moment: copied from the product when
    the sale committed. The product reference is weak; product name and
    barcode are resolved live when the line is displayed.
    """
    __tablename__ = "sale_lines"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sale_lines_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)

    sale = db.relationship("Sale", back_populates="lines")
    product = db.relationship("Product", lazy="joined")

    def to_dict(self) -> dict:
        product = self.product
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": format_cents(self.unit_price_cents),
            "unit_price_cents": self.unit_price_cents,
            "line_total": format_cents(self.line_total_cents),
            "line_total_cents": self.line_total_cents,
            "product": (
                {"id": product.id, "name": product.name, "barcode": product.barcode}
                if product is not None
                else None
            ),
        }
