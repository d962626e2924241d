"""Razorpay coupon importer."""

import logging
from typing import Any, Dict, Optional

from .base import BaseDiscountImporter, Page, basic_auth_header, is_past, unix_to_iso
from ..models.discount import (
    CanonicalDiscount,
    DiscountDuration,
    DiscountProvider,
    DiscountStatus,
)

logger = logging.getLogger(__name__)


class RazorpayImporter(BaseDiscountImporter):
    """
    Importer for Razorpay coupons (``GET /v1/coupons``).

    Authenticates with the key ID as the API key and the key secret as a
    second credential. Pages with ``skip``/``count``; a short page is the last.
    """

    PROVIDER = DiscountProvider.RAZORPAY.value
    BASE_URL = "https://api.razorpay.com/v1"
    OPTIONS = {"key_secret": "Razorpay key secret (paired with the key ID)"}
    REQUIRED_OPTIONS = ("key_secret",)

    def __init__(self, api_key: str, key_secret: str = "", **kwargs):
        self.key_secret = key_secret
        kwargs["page_size"] = min(kwargs.get("page_size", 100), 100)
        super().__init__(api_key, **kwargs)

    def _get_auth_headers(self) -> Dict[str, str]:
        return basic_auth_header(self.api_key, self.key_secret)

    def fetch_page(self, cursor: Optional[Any] = None) -> Page:
        skip = cursor or 0
        logger.debug(f"Fetching Razorpay coupons (skip={skip})")
        data = self._get_json("/coupons", {"skip": skip, "count": self.page_size})
        items = self._require_list(data, "items")

        next_cursor = skip + self.page_size if len(items) >= self.page_size else None
        return Page(items=items, next_cursor=next_cursor)

    def map_to_canonical(
        self,
        raw: Dict[str, Any],
        lookups: Optional[Dict[str, Any]] = None
    ) -> Optional[CanonicalDiscount]:
        value = raw.get("value")
        if value is None:
            return None
        is_percent = raw.get("type") == "percentage"

        code = raw.get("code") or ""
        expires_at = raw.get("end_at") or raw.get("expires_at")
        if isinstance(expires_at, (int, float)):
            expires_at = unix_to_iso(expires_at)
        active = raw.get("status", "active") == "active" and not is_past(expires_at)

        provider_data = {"type": raw.get("type"), "description": raw.get("description") or ""}
        if not is_percent:
            provider_data["currency"] = (raw.get("currency") or "INR").upper()

        return CanonicalDiscount(
            id=str(raw.get("id", "")),
            provider=DiscountProvider.RAZORPAY,
            name=raw.get("name") or f"Coupon {code}",
            code=code,
            amount=value,
            is_percent=is_percent,
            duration=DiscountDuration.ONCE,
            status=DiscountStatus.PUBLISHED if active else DiscountStatus.ARCHIVED,
            usage_limit=raw.get("max_count") or raw.get("usage_limit"),
            expires_at=expires_at,
            provider_data=provider_data,
        )
