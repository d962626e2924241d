"""Validation service for canonical discounts."""

import math
import logging
from typing import Any, Callable, Dict, List, Sequence

from ..models.discount import CanonicalDiscount, DiscountDuration
from ..models.record import ValidationError

logger = logging.getLogger(__name__)


class DiscountValidator:
    """
    Checks canonical discounts against the model invariants.

    - ``id``, ``name`` and ``code`` are non-empty
    - ``amount`` is a non-negative number, at most 100 for percentages
    - ``duration`` is one of once, repeating, forever
    - ``duration_in_months`` is a positive integer exactly when the
      duration is repeating, and None otherwise

    ``usage_limit`` problems are reported as warnings and do not make a
    discount invalid.
    """

    REQUIRED_FIELDS = ("id", "name", "code")

    def __init__(self):
        """Initialize the validator."""
        self._custom_validators: Dict[str, Callable[[CanonicalDiscount], List[ValidationError]]] = {}

    def register_validator(self, name: str, func: Callable) -> None:
        """Register an extra rule returning a list of ValidationError."""
        self._custom_validators[name] = func

    def validate(self, discount: CanonicalDiscount) -> List[ValidationError]:
        """
        Validate a canonical discount.

        Args:
            discount: The discount to check

        Returns:
            List of validation errors, including warnings
        """
        errors = []

        for field_name in self.REQUIRED_FIELDS:
            value = getattr(discount, field_name, None)
            if value is None or not str(value).strip():
                errors.append(ValidationError(
                    field=field_name,
                    message="Required field is missing",
                    error_type="required",
                    value=value,
                ))

        errors.extend(self._validate_amount(discount.amount, discount.is_percent))
        errors.extend(self._validate_duration(discount))
        errors.extend(self._validate_usage_limit(discount.usage_limit))

        for rule in self._custom_validators.values():
            errors.extend(rule(discount))

        return errors

    def _validate_amount(self, amount: Any, is_percent: bool) -> List[ValidationError]:
        if not _is_number(amount):
            return [ValidationError(
                field="amount",
                message=f"Invalid type. Expected number, got {type(amount).__name__}",
                error_type="type",
                value=amount,
            )]
        if amount < 0:
            return [ValidationError(
                field="amount",
                message="Amount must not be negative",
                error_type="range",
                value=amount,
            )]
        if is_percent and amount > 100:
            return [ValidationError(
                field="amount",
                message="Percentage must not exceed 100",
                error_type="range",
                value=amount,
            )]
        return []

    def _validate_duration(self, discount: CanonicalDiscount) -> List[ValidationError]:
        try:
            duration = DiscountDuration(discount.duration)
        except ValueError:
            allowed = [d.value for d in DiscountDuration]
            return [ValidationError(
                field="duration",
                message=f"Invalid enum value. Must be one of: {allowed}",
                error_type="enum",
                value=discount.duration,
                suggested_fix=f"Use one of: {', '.join(allowed)}",
            )]

        months = discount.duration_in_months
        if duration == DiscountDuration.REPEATING:
            if not _is_integer(months) or months <= 0:
                return [ValidationError(
                    field="duration_in_months",
                    message="Repeating discounts need a positive number of months",
                    error_type="required",
                    value=months,
                )]
        elif months is not None:
            return [ValidationError(
                field="duration_in_months",
                message=f"Must be empty when duration is '{duration.value}'",
                error_type="consistency",
                value=months,
                suggested_fix="Set duration to 'repeating' or clear duration_in_months",
            )]
        return []

    def _validate_usage_limit(self, usage_limit: Any) -> List[ValidationError]:
        if usage_limit is None:
            return []
        if not _is_integer(usage_limit) or usage_limit < 0:
            return [ValidationError(
                field="usage_limit",
                message="Usage limit should be a non-negative integer or empty",
                error_type="range",
                severity="warning",
                value=usage_limit,
            )]
        return []

    def is_valid(self, discount: CanonicalDiscount) -> bool:
        """Quick check if a discount passes every error-level rule."""
        return not any(e.severity == "error" for e in self.validate(discount))

    def validate_batch(
        self,
        discounts: Sequence[CanonicalDiscount]
    ) -> Dict[str, List[ValidationError]]:
        """
        Validate many discounts.

        Returns:
            Dictionary mapping discount IDs to their error-level problems
        """
        all_errors = {}

        for discount in discounts:
            errors = [e for e in self.validate(discount) if e.severity == "error"]
            if errors:
                all_errors[str(discount.id)] = errors

        return all_errors


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


_default_validator = DiscountValidator()


def validate_discount(discount: CanonicalDiscount) -> bool:
    """True when the discount satisfies every model invariant."""
    return _default_validator.is_valid(discount)
