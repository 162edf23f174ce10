# backend/sabor/services/products_service.py
"""
Product Catalog Service

Registration, lookup and editing of catalog items. Stock is never
edited here: quantity changes go through inventory_service.adjust_stock
or the sale engine so that each one leaves a StockMovement behind.
"""
from __future__ import annotations

from typing import Any

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product, MOVEMENT_IN, REASON_REGISTRATION
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    MAX_BARCODE_LENGTH,
    MAX_INT,
    MAX_NAME_LENGTH,
    parse_non_negative_int,
    parse_positive_int,
    parse_price_cents,
    parse_text,
    reject_unknown_fields,
)
from .concurrency import unit_of_work
from .ledger_service import record_movement

PRODUCT_MUTABLE_FIELDS = {"name", "price"}


class OutOfStockError(Exception):
    """Raised when a barcode lookup resolves to a product with no stock."""
    def __init__(self, product: Product):
        super().__init__(f"Product {product.name} is out of stock")
        self.product = product


def register_product(
    *,
    name: Any,
    barcode: Any,
    unit_price: Any,
    initial_quantity: Any = 0,
    operator_id: int | None = None,
) -> Product:
    """
    Create a product and, when it starts with stock, its CADASTRO movement.

    Raises:
        ValidationError: malformed name/barcode/price/quantity
        ConflictError: barcode already registered
    """
    name = parse_text(name, "name", max_length=MAX_NAME_LENGTH)
    barcode = parse_text(barcode, "barcode", max_length=MAX_BARCODE_LENGTH)
    price_cents = parse_price_cents(unit_price, "price")
    quantity = parse_non_negative_int(initial_quantity, "quantity")

    try:
        with unit_of_work() as session:
            existing = session.query(Product.id).filter(Product.barcode == barcode).first()
            if existing:
                raise ConflictError("A product with this barcode already exists")

            product = Product(
                barcode=barcode,
                name=name,
                price_cents=price_cents,
                quantity_on_hand=quantity,
            )
            session.add(product)
            session.flush()  # ensure product.id exists before ledger append

            if quantity > 0:
                record_movement(
                    product_id=product.id,
                    quantity=quantity,
                    movement_type=MOVEMENT_IN,
                    reason=REASON_REGISTRATION,
                    operator_id=operator_id,
                    note=f"Initial stock for barcode {barcode}",
                )
    except IntegrityError as exc:
        # Lost a race with a concurrent registration of the same barcode
        raise ConflictError("A product with this barcode already exists") from exc

    return product


def get_product(product_id: Any) -> Product:
    product_id = parse_positive_int(product_id, "product_id")
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def find_by_barcode(barcode: Any, *, require_in_stock: bool = True) -> Product:
    """
    POS lookup for a scanned or typed barcode.

    Raises NotFoundError for an unknown barcode and OutOfStockError when
    require_in_stock is set and nothing is left to sell.
    """
    code = parse_text(barcode, "barcode", max_length=MAX_BARCODE_LENGTH)
    product = db.session.query(Product).filter(Product.barcode == code).first()
    if product is None:
        raise NotFoundError("Product not found")
    if require_in_stock and product.quantity_on_hand <= 0:
        raise OutOfStockError(product)
    return product


def list_products(page: int | None = None, per_page: int | None = None) -> dict:
    """
    Catalog listing ordered by name, with optional pagination.

    Args:
        page: Page number (1-indexed). If None, returns all items.
        per_page: Items per page (default 20, max 100)
    """
    base_query = db.session.query(Product).order_by(Product.name.asc(), Product.id.asc())

    # If no pagination requested, return all items
    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    per_page = min(max(per_page or 20, 1), 100)
    page = min(max(page, 1), MAX_INT)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def update_product(product_id: Any, patch: dict) -> Product:
    """
    Edit display name and/or current list price.

    Barcode and quantity are rejected here. Past sale lines keep their own
    price-at-moment, so a price change only affects future sales.
    """
    if not isinstance(patch, dict) or not patch:
        raise ValidationError("Nothing to update")
    reject_unknown_fields(patch, PRODUCT_MUTABLE_FIELDS)

    changes: dict = {}
    if "name" in patch:
        changes["name"] = parse_text(patch["name"], "name", max_length=MAX_NAME_LENGTH)
    if "price" in patch:
        changes["price_cents"] = parse_price_cents(patch["price"], "price")

    product_id = parse_positive_int(product_id, "product_id")
    with unit_of_work() as session:
        product = session.get(Product, product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")
        for key, value in changes.items():
            setattr(product, key, value)

    return product


# Starter menu for a fresh till: (name, barcode, price, quantity)
DEFAULT_CATALOG = (
    ("Kernel Burger", "1111111111111", "22.00", 35),
    ("Dual-Core Burger", "2222222222222", "28.00", 30),
    ("BaconByte", "3333333333333", "26.00", 28),
    ("Firewall (Frango Crocante)", "4444444444444", "25.00", 32),
    ("Debug Burger", "5555555555555", "27.00", 25),
    ("TeraBurger", "6666666666666", "35.00", 20),
    ("MegaFritas P", "7777777777771", "8.00", 40),
    ("MegaFritas M", "7777777777772", "12.00", 35),
    ("MegaFritas G", "7777777777773", "15.00", 30),
    ("Anéis de Rede", "8888888888888", "16.00", 28),
    ("Nuggets.zip 6", "9999999999996", "10.00", 32),
    ("Nuggets.zip 10", "9999999999990", "15.00", 26),
    ("Refrigerante Lata", "1010101010101", "6.00", 60),
    ("Refrigerante 500ml", "1010101010105", "8.00", 48),
    ("Suco Natural", "2020202020202", "9.00", 36),
    ("Água H2O-S", "3030303030303", "5.00", 42),
    ("Sundae Overflow", "4040404040404", "14.00", 24),
    ("Mouse de Chocolate", "5050505050505", "10.00", 30),
    ("Cookie Cache", "6060606060606", "7.00", 34),
)


def seed_catalog(entries=DEFAULT_CATALOG, *, operator_id: int | None = None) -> tuple[list[Product], list[str]]:
    """
    Register every entry whose barcode is not in the catalog yet.

    Existing products are left untouched, so running it twice is harmless.
    Returns (created products, skipped barcodes).
    """
    created: list[Product] = []
    skipped: list[str] = []
    for name, barcode, price, quantity in entries:
        try:
            created.append(
                register_product(
                    name=name,
                    barcode=barcode,
                    unit_price=price,
                    initial_quantity=quantity,
                    operator_id=operator_id,
                )
            )
        except ConflictError:
            skipped.append(barcode)
    return created, skipped
