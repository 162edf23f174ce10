# Overview: Service-layer operations for reporting; encapsulates business logic and database work.

from __future__ import annotations

from typing import Any

from sqlalchemy import func

from ..extensions import db
from ..models import Sale
from ..money import average_cents, format_cents
from ..time_utils import to_utc_z
from ..validation import MAX_INT

DEFAULT_PER_PAGE = 20
MAX_PER_PAGE = 100


def _clamp_int(value: Any, default: int, minimum: int, maximum: int | None = None) -> int:
    """Out-of-range or unparseable paging input is clamped, never rejected."""
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        parsed = default
    parsed = max(parsed, minimum)
    if maximum is not None:
        parsed = min(parsed, maximum)
    return parsed


def _sales_summary() -> dict:
    """
    Aggregates over every persisted sale, independent of the requested page.

    Sums are integer cents straight from SQL; the average is derived with
    Decimal arithmetic.
    """
    count, total_cents, first_at, last_at = db.session.query(
        func.count(Sale.id),
        func.coalesce(func.sum(Sale.total_cents), 0),
        func.min(Sale.created_at),
        func.max(Sale.created_at),
    ).one()

    count = int(count or 0)
    total_cents = int(total_cents or 0)

    by_payment_rows = (
        db.session.query(
            Sale.payment_type,
            func.count(Sale.id),
            func.coalesce(func.sum(Sale.total_cents), 0),
        )
        .group_by(Sale.payment_type)
        .order_by(func.sum(Sale.total_cents).desc(), Sale.payment_type.asc())
        .all()
    )

    return {
        "total_sales": count,
        "total_revenue": format_cents(total_cents),
        "average_sale": str(average_cents(total_cents, count)),
        "first_sale_at": to_utc_z(first_at),
        "last_sale_at": to_utc_z(last_at),
        "by_payment_type": [
            {
                "payment_type": payment_type,
                "count": int(group_count),
                "total": format_cents(int(group_total)),
            }
            for payment_type, group_count, group_total in by_payment_rows
        ],
    }


def list_sales(page: Any = 1, per_page: Any = DEFAULT_PER_PAGE) -> dict:
    """
    Sales history: one page of sales (most recent first) plus a summary of all sales.

    Each sale carries its operator and lines; line products are resolved
    live, while unit prices are the frozen price-at-moment.
    """
    page = _clamp_int(page, 1, 1, MAX_INT)
    per_page = _clamp_int(per_page, DEFAULT_PER_PAGE, 1, MAX_PER_PAGE)

    base_query = db.session.query(Sale).order_by(Sale.created_at.desc(), Sale.id.desc())

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    sales = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "sales": [sale.to_dict() for sale in sales],
        "summary": _sales_summary(),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }
