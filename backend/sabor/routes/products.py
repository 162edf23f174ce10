# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/sabor/routes/products.py
"""
Product catalog routes.

SECURITY: All routes require an authenticated operator.
Quantity is never edited here; use POST /api/inventory/adjust.
"""
from flask import Blueprint, request, g, current_app

from ..services import products_service
from ..services.concurrency import ConcurrencyConflictError, StorageUnavailableError
from ..services.products_service import OutOfStockError
from ..validation import ValidationError, ConflictError, NotFoundError, require_json_object
from ..decorators import require_auth


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products():
    """
    List all products with optional pagination.

    Query params:
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    page = request.args.get("page", type=int)
    per_page = request.args.get("per_page", type=int)
    return products_service.list_products(page=page, per_page=per_page)


@products_bp.post("")
@require_auth
def create_product_route():
    """
    Register a product.

    Body: {"name", "barcode", "price", "quantity"?}
    A positive starting quantity is recorded as a CADASTRO movement.
    """
    try:
        payload = require_json_object(request.get_json(silent=True))
        product = products_service.register_product(
            name=payload.get("name"),
            barcode=payload.get("barcode"),
            unit_price=payload.get("price"),
            initial_quantity=payload.get("quantity", 0),
            operator_id=g.current_operator.id,
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        current_app.logger.info("Rejected duplicate barcode %r", payload.get("barcode"))
        return {"error": str(e)}, 409
    except StorageUnavailableError:
        current_app.logger.exception("Storage failure registering product")
        return {"error": "Internal server error"}, 500

    return {"product": product.to_dict()}, 201


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    try:
        product = products_service.get_product(product_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return {"product": product.to_dict()}, 200


@products_bp.get("/barcode/<string:barcode>")
@require_auth
def find_by_barcode_route(barcode: str):
    """
    POS lookup by barcode.

    - 404: no product with this barcode
    - 409: product exists but has no stock (pass ?include_out_of_stock=1 to get it anyway)
    """
    include_out_of_stock = request.args.get("include_out_of_stock", "").lower() in {"1", "true", "yes"}

    try:
        product = products_service.find_by_barcode(barcode, require_in_stock=not include_out_of_stock)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except OutOfStockError as e:
        return {"error": str(e), "product": e.product.to_dict()}, 409

    return {"product": product.to_dict()}, 200


@products_bp.patch("/<int:product_id>")
@require_auth
def update_product_route(product_id: int):
    """
    Edit name and/or price.

    Past sales keep the price they were sold at.
    """
    payload = request.get_json(silent=True) or {}

    try:
        product = products_service.update_product(product_id, payload)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConcurrencyConflictError as e:
        return {"error": str(e)}, 409
    except StorageUnavailableError:
        current_app.logger.exception("Storage failure updating product %s", product_id)
        return {"error": "Internal server error"}, 500

    return {"product": product.to_dict()}, 200
