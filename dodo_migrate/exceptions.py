"""Exceptions raised by the migration toolkit."""

from typing import Any, List, Optional


class MigrationError(Exception):
    """Base class for all migration errors."""


class ConfigurationError(MigrationError):
    """Missing or invalid configuration (credentials, brand, filters)."""


class SourceFetchError(MigrationError):
    """The source provider's list call failed or returned an unexpected shape."""

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None):
        self.provider = provider
        self.status_code = status_code
        detail = f" (HTTP {status_code})" if status_code is not None else ""
        super().__init__(f"Failed to fetch discounts from {provider}{detail}: {message}")


class InvalidDiscountError(MigrationError):
    """A canonical discount breaks one of the model invariants."""

    def __init__(self, discount_id: Any, errors: Optional[List[Any]] = None):
        self.discount_id = discount_id
        self.errors = list(errors or [])
        reasons = "; ".join(f"{e.field}: {e.message}" for e in self.errors)
        super().__init__(f"Invalid discount data for {discount_id!r}: {reasons or 'failed validation'}")


class UnsupportedDiscountError(MigrationError):
    """A valid discount the destination cannot represent (e.g. fixed amounts)."""

    def __init__(self, discount_id: Any, discount_type: str):
        self.discount_id = discount_id
        self.discount_type = discount_type
        super().__init__(
            f"Dodo Payments only supports percentage discounts. "
            f"Cannot migrate {discount_type} discount: {discount_id}"
        )


class DestinationError(MigrationError):
    """The destination API rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
