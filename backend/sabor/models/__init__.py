from .auth import Operator
from .inventory import (
    Product,
    StockMovement,
    MOVEMENT_IN,
    MOVEMENT_OUT,
    MOVEMENT_TYPES,
    REASON_REGISTRATION,
    REASON_MANUAL_ADJUSTMENT,
    REASON_SALE,
    MOVEMENT_REASONS,
)
from .sales import Sale, SaleLine
from .immutable import ImmutableRecordError

__all__ = [
    'Operator',
    'Product', 'StockMovement',
    'MOVEMENT_IN', 'MOVEMENT_OUT', 'MOVEMENT_TYPES',
    'REASON_REGISTRATION', 'REASON_MANUAL_ADJUSTMENT', 'REASON_SALE', 'MOVEMENT_REASONS',
    'Sale', 'SaleLine',
    'ImmutableRecordError',
]
