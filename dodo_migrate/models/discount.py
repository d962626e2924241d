"""Canonical, provider-agnostic discount model."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union
from enum import Enum


class DiscountProvider(str, Enum):
    """Source platforms discounts can be imported from."""
    LEMONSQUEEZY = "lemonsqueezy"
    STRIPE = "stripe"
    POLAR = "polar"
    PADDLE = "paddle"
    GUMROAD = "gumroad"
    RAZORPAY = "razorpay"
    TWOCHECKOUT = "2checkout"
    FASTSPRING = "fastspring"


class DiscountDuration(str, Enum):
    """How many billing cycles a discount applies to."""
    ONCE = "once"
    REPEATING = "repeating"
    FOREVER = "forever"


class DiscountStatus(str, Enum):
    """Lifecycle status of a discount. Only published ones are migrated by default."""
    PUBLISHED = "published"
    DRAFT = "draft"
    ARCHIVED = "archived"


class DiscountType(str, Enum):
    """Unit of a discount amount."""
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@dataclass(frozen=True)
class CanonicalDiscount:
    """
    A discount as read from a source provider, in one shape for all providers.

    ``amount`` is in percentage points when ``is_percent`` is true and in minor
    currency units otherwise. Instances are not validated on construction;
    see ``DiscountValidator`` for the invariants.
    """
    id: str
    provider: Union[DiscountProvider, str]
    name: str
    code: str
    amount: float
    is_percent: bool
    duration: Union[DiscountDuration, str] = DiscountDuration.ONCE
    duration_in_months: Optional[int] = None
    status: Union[DiscountStatus, str] = DiscountStatus.PUBLISHED
    usage_limit: Optional[int] = None
    expires_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    provider_data: Dict[str, Any] = field(default_factory=dict)

    @property
    def discount_type(self) -> DiscountType:
        """Percentage or fixed, derived from ``is_percent``."""
        return DiscountType.PERCENTAGE if self.is_percent else DiscountType.FIXED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "provider": _enum_value(self.provider),
            "name": self.name,
            "code": self.code,
            "amount": self.amount,
            "is_percent": self.is_percent,
            "duration": _enum_value(self.duration),
            "duration_in_months": self.duration_in_months,
            "status": _enum_value(self.status),
            "usage_limit": self.usage_limit,
            "expires_at": self.expires_at,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "provider_data": dict(self.provider_data),
        }


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value
