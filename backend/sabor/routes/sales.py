# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/sabor/routes/sales.py
"""Sales API routes: checkout, sale detail and sales history."""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import sales_service, reporting_service
from ..services.concurrency import ConcurrencyConflictError, StorageUnavailableError
from ..services.sales_service import (
    SaleError,
    InsufficientStockError,
    MissingProductError,
    OperatorRequiredError,
)
from ..validation import ValidationError, NotFoundError, require_json_object
from ..decorators import require_auth


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
@require_auth
def create_sale_route():
    """
    Finish a sale from a cart.

    Body: {"items": [{"product_id": int, "quantity": int}, ...], "payment_type": str?}

    The acting operator is always the authenticated one; any operator id
    or price in the body is ignored.
    """
    operator = g.current_operator

    try:
        data = require_json_object(request.get_json(silent=True))
        sale = sales_service.submit_sale(
            data.get("items"),
            operator=operator,
            payment_type=data.get("payment_type"),
        )
        current_app.logger.info(
            "Sale %s recorded by operator %s: total %s", sale.id, operator.id, sale.total_cents
        )
        return jsonify({"sale": sale.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except OperatorRequiredError as e:
        return jsonify({"error": str(e), "details": e.details}), 401
    except MissingProductError as e:
        current_app.logger.info("Sale rejected for operator %s: %s", operator.id, e)
        return jsonify({"error": str(e), "details": e.details}), 404
    except InsufficientStockError as e:
        current_app.logger.info("Sale rejected for operator %s: %s", operator.id, e)
        return jsonify({"error": str(e), "details": e.details}), 409
    except SaleError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except ConcurrencyConflictError as e:
        current_app.logger.warning("Sale conflict for operator %s: %s", operator.id, e)
        return jsonify({"error": str(e)}), 409
    except StorageUnavailableError:
        current_app.logger.exception("Storage failure recording sale for operator %s", operator.id)
        return jsonify({"error": "Failed to process sale"}), 500
    except Exception:
        current_app.logger.exception("Failed to record sale for operator %s", operator.id)
        return jsonify({"error": "Failed to process sale"}), 500


@sales_bp.get("")
@require_auth
def list_sales_route():
    """
    Sales history.

    Query params:
    - page: int (default 1, clamped to >= 1)
    - per_page: int (default 20, clamped to 1..100)
    """
    page = request.args.get("page", default=1, type=int)
    per_page = request.args.get("per_page", default=reporting_service.DEFAULT_PER_PAGE, type=int)

    try:
        result = reporting_service.list_sales(page=page, per_page=per_page)
    except Exception:
        current_app.logger.exception("Failed to load sales history")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(result), 200


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    """Get sale with lines."""
    try:
        sale = sales_service.get_sale(sale_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({"sale": sale.to_dict()}), 200
