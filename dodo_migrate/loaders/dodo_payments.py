"""Dodo Payments loader."""

import time
import logging
from typing import Any, Dict, List, Optional
from datetime import datetime

import dodopayments
from dodopayments import DodoPayments
from pydantic import ValidationError as PydanticValidationError

from .base import BaseLoader
from ..exceptions import ConfigurationError, DestinationError
from ..models.destination import Brand, DiscountCreateRequest, DiscountCreateResponse
from ..models.record import MigrationResult

logger = logging.getLogger(__name__)

# Create parameters the SDK names; the rest of the payload travels as extra body fields.
SDK_CREATE_FIELDS = ("amount", "type", "code", "name", "usage_limit", "expires_at", "subscription_cycles")


class DodoPaymentsLoader(BaseLoader):
    """
    Loader that creates discounts through the Dodo Payments SDK.

    Requests are sent one at a time and spaced by ``rate_limit``. Failed
    creates are never retried.
    """

    BASE_URLS = {
        "test_mode": "https://test.dodopayments.com",
        "live_mode": "https://live.dodopayments.com",
    }

    def __init__(
        self,
        api_key: str,
        mode: str = "test_mode",
        dry_run: bool = False,
        rate_limit: float = 10.0,
        timeout: float = 30.0,
        client: Optional[DodoPayments] = None
    ):
        """
        Initialize the Dodo Payments loader.

        Args:
            api_key: Dodo Payments API key
            mode: ``test_mode`` or ``live_mode``
            dry_run: If True, simulate without making changes
            rate_limit: Max requests per second
            timeout: Per-request timeout in seconds
            client: Custom SDK client
        """
        if mode not in self.BASE_URLS:
            raise ConfigurationError(
                f"Invalid Dodo Payments mode: {mode}. Must be one of: {', '.join(self.BASE_URLS)}"
            )
        if not api_key and not dry_run:
            raise ConfigurationError("A Dodo Payments API key is required")

        super().__init__("dodopayments", api_key, dry_run)
        self.mode = mode
        self.base_url = self.BASE_URLS[mode]
        self.rate_limit = rate_limit
        self.timeout = timeout
        self._last_request_time = 0.0
        self._client = client

    @property
    def client(self) -> DodoPayments:
        """The SDK client, created on first use so dry runs need no key."""
        if self._client is None:
            self._client = DodoPayments(
                bearer_token=self.api_key,
                environment=self.mode,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    def _rate_limit_wait(self):
        """Wait to respect rate limits."""
        if self.rate_limit > 0:
            elapsed = time.time() - self._last_request_time
            wait_time = (1.0 / self.rate_limit) - elapsed
            if wait_time > 0:
                time.sleep(wait_time)
        self._last_request_time = time.time()

    def list_brands(self) -> List[Brand]:
        """List the brands of the authenticated business."""
        self._rate_limit_wait()
        try:
            response = self.client.brands.list()
        except dodopayments.APIError as e:
            raise _destination_error(e) from e

        items = getattr(response, "items", None)
        if not isinstance(items, list):
            raise DestinationError("Brand list response is missing 'items'")
        try:
            return [Brand.model_validate(_to_dict(item)) for item in items]
        except PydanticValidationError as e:
            raise DestinationError(f"Unexpected brand record: {e}") from e

    def create_discount(self, request: DiscountCreateRequest) -> DiscountCreateResponse:
        """Create one discount and return the created resource."""
        payload = request.to_api_payload()
        params = {k: v for k, v in payload.items() if k in SDK_CREATE_FIELDS}
        extra_body = {k: v for k, v in payload.items() if k not in SDK_CREATE_FIELDS}

        self._rate_limit_wait()
        try:
            discount = self.client.discounts.create(**params, extra_body=extra_body or None)
        except dodopayments.APIError as e:
            raise _destination_error(e) from e

        try:
            return DiscountCreateResponse.model_validate(_to_dict(discount))
        except PydanticValidationError as e:
            raise DestinationError(f"Unexpected discount response: {e}") from e

    def load_record(self, request: DiscountCreateRequest) -> MigrationResult:
        """Create a single discount, reporting failures in the result."""
        if self.dry_run:
            logger.info(f"[dry run] Would create discount: {request.name} ({request.code})")
            return MigrationResult(
                record_id=request.code,
                success=True,
                loaded_at=datetime.utcnow(),
                response_data={"dry_run": True, "request": request.to_api_payload()},
            )

        try:
            response = self.create_discount(request)
        except DestinationError as e:
            logger.error(f"Failed to migrate discount {request.code}: {e}")
            return MigrationResult(
                record_id=request.code,
                success=False,
                error=str(e),
                error_code=str(e.status_code) if e.status_code is not None else None,
            )

        logger.info(f"Migrated discount: {request.name} ({request.code}) -> {response.discount_id}")
        return MigrationResult(
            record_id=request.code,
            target_id=response.discount_id,
            success=True,
            loaded_at=datetime.utcnow(),
            response_data=response.model_dump(),
        )

    def validate_connection(self) -> bool:
        """Validate the API key by listing brands."""
        try:
            self.list_brands()
            return True
        except DestinationError as e:
            logger.error(f"Dodo Payments connection validation failed: {e}")
            return False


def _to_dict(obj: Any) -> Dict[str, Any]:
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    return obj


def _destination_error(error: dodopayments.APIError) -> DestinationError:
    """Map an SDK error onto DestinationError, keeping the HTTP status."""
    status_code = getattr(error, "status_code", None)
    body = getattr(error, "body", None)
    if isinstance(body, dict):
        message = body.get("message") or body.get("error") or body.get("code")
        if message:
            return DestinationError(str(message), status_code=status_code)
    return DestinationError(f"Request to Dodo Payments failed: {error.message}", status_code=status_code)
