"""Service layer for the migration application."""

from .filter import filter_discounts
from .transformer import (
    DiscountTransformer,
    to_basis_points,
    transform_discount,
    transform_multiple,
)
from .validator import DiscountValidator, validate_discount

__all__ = [
    "filter_discounts",
    "DiscountTransformer",
    "to_basis_points",
    "transform_discount",
    "transform_multiple",
    "DiscountValidator",
    "validate_discount",
]
