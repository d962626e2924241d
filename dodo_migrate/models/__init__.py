"""Data models for the migration application."""

from .discount import (
    CanonicalDiscount,
    DiscountProvider,
    DiscountDuration,
    DiscountStatus,
    DiscountType,
)
from .destination import (
    Brand,
    DestinationContext,
    DiscountCreateRequest,
    DiscountCreateResponse,
)
from .migration import (
    MigrationConfig,
    MigrationRun,
    MigrationStatus,
)
from .record import (
    MigrationResult,
    ValidationError,
)

__all__ = [
    "CanonicalDiscount",
    "DiscountProvider",
    "DiscountDuration",
    "DiscountStatus",
    "DiscountType",
    "Brand",
    "DestinationContext",
    "DiscountCreateRequest",
    "DiscountCreateResponse",
    "MigrationConfig",
    "MigrationRun",
    "MigrationStatus",
    "MigrationResult",
    "ValidationError",
]
