"""Transformation of canonical discounts into Dodo Payments create requests."""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, List, Mapping, Optional, Union

from ..exceptions import InvalidDiscountError, UnsupportedDiscountError
from ..models.discount import CanonicalDiscount, DiscountType
from ..models.destination import DestinationContext, DiscountCreateRequest
from .validator import DiscountValidator

logger = logging.getLogger(__name__)

ContextLike = Union[DestinationContext, str, Mapping[str, Any]]


def to_basis_points(percent: float) -> int:
    """Convert percentage points to basis points, rounding half up (12.5 -> 1250)."""
    value = Decimal(str(percent)) * 100
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class DiscountTransformer:
    """
    Converts validated canonical discounts to the destination's wire format.

    Dodo Payments only accepts percentage discounts, expressed in basis
    points. Everything else about the discount is carried over unchanged,
    only renamed.
    """

    def __init__(self, validator: Optional[DiscountValidator] = None):
        """
        Initialize the transformer.

        Args:
            validator: Validator used before transforming (default rules if omitted)
        """
        self.validator = validator or DiscountValidator()

    def transform(
        self,
        discount: CanonicalDiscount,
        context: ContextLike
    ) -> DiscountCreateRequest:
        """
        Transform a single discount.

        Raises:
            InvalidDiscountError: If the discount breaks a model invariant
            UnsupportedDiscountError: If the discount is not percentage based
        """
        errors = [e for e in self.validator.validate(discount) if e.severity == "error"]
        if errors:
            raise InvalidDiscountError(discount.id, errors)

        return self._build_request(discount, DestinationContext.coerce(context))

    def transform_multiple(
        self,
        discounts: Iterable[CanonicalDiscount],
        context: ContextLike
    ) -> List[DiscountCreateRequest]:
        """
        Validate then transform a batch of discounts.

        Invalid discounts are dropped and reported with a single warning
        carrying their count. A valid discount that still cannot be
        transformed is logged and skipped without stopping the batch.
        """
        context = DestinationContext.coerce(context)
        discounts = list(discounts)
        valid = [d for d in discounts if self.validator.is_valid(d)]

        invalid_count = len(discounts) - len(valid)
        if invalid_count:
            logger.warning(f"{invalid_count} invalid discounts were filtered out during transformation")

        transformed = []
        for discount in valid:
            try:
                transformed.append(self._build_request(discount, context))
            except UnsupportedDiscountError as e:
                logger.warning(f"Skipping discount {discount.code or discount.id}: {e}")

        return transformed

    def _build_request(
        self,
        discount: CanonicalDiscount,
        context: DestinationContext
    ) -> DiscountCreateRequest:
        if not discount.is_percent:
            raise UnsupportedDiscountError(discount.id, DiscountType.FIXED.value)

        return DiscountCreateRequest(
            name=discount.name,
            code=discount.code,
            type=DiscountType.PERCENTAGE.value,
            amount=to_basis_points(discount.amount),
            usage_limit=_usage_limit(discount.usage_limit),
            expires_at=discount.expires_at,
            brand_id=context.brand_id,
            duration=getattr(discount.duration, "value", discount.duration),
            duration_in_months=discount.duration_in_months,
        )


def _usage_limit(value: Any) -> Optional[int]:
    # Malformed limits are only a validation warning; send them as unlimited.
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return None


_default_transformer = DiscountTransformer()


def transform_discount(discount: CanonicalDiscount, context: ContextLike) -> DiscountCreateRequest:
    """Transform one discount with the default validator."""
    return _default_transformer.transform(discount, context)


def transform_multiple(
    discounts: Iterable[CanonicalDiscount],
    context: ContextLike
) -> List[DiscountCreateRequest]:
    """Validate and transform a batch with the default validator."""
    return _default_transformer.transform_multiple(discounts, context)
