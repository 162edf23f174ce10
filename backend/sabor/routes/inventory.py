# backend/sabor/routes/inventory.py
"""
Inventory management routes.

SECURITY: All routes require an authenticated operator.

- POST /adjust sets a product's on-hand quantity to a counted value and
  records the difference as an AJUSTE_MANUAL movement
- GET /<product_id>/movements is the audit trail, most recent first
"""
from flask import Blueprint, request, g, current_app

from ..services import inventory_service, ledger_service, products_service
from ..services.concurrency import ConcurrencyConflictError, StorageUnavailableError
from ..validation import ValidationError, NotFoundError, require_json_object
from ..decorators import require_auth


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.post("/adjust")
@require_auth
def adjust_inventory_route():
    """
    Set on-hand quantity.

    Body: {"product_id": int, "quantity": int >= 0}
    """
    try:
        payload = require_json_object(request.get_json(silent=True))
        product = inventory_service.adjust_stock(
            payload.get("product_id"),
            payload.get("quantity"),
            operator_id=g.current_operator.id,
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConcurrencyConflictError as e:
        current_app.logger.warning(
            "Stock adjustment conflict for product %s by operator %s",
            payload.get("product_id"), g.current_operator.id,
        )
        return {"error": str(e)}, 409
    except StorageUnavailableError:
        current_app.logger.exception(
            "Storage failure adjusting product %s by operator %s",
            payload.get("product_id"), g.current_operator.id,
        )
        return {"error": "Internal server error"}, 500

    return {"product": product.to_dict()}, 200


@inventory_bp.get("/<int:product_id>/movements")
@require_auth
def list_movements_route(product_id: int):
    """
    Query params:
    - limit: int (optional, default 200, max 1000)
    """
    limit = request.args.get("limit", default=200, type=int)

    try:
        product = products_service.get_product(product_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404

    movements = ledger_service.list_movements(product_id=product.id, limit=limit)
    return {
        "product": product.to_dict(),
        "movements": [m.to_dict() for m in movements],
    }, 200
