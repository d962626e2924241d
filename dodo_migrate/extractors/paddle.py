"""Paddle Billing discount importer."""

import logging
from typing import Any, Dict, Optional
from urllib.parse import parse_qs, urlparse

from .base import BaseDiscountImporter, Page, is_past
from ..models.discount import (
    CanonicalDiscount,
    DiscountDuration,
    DiscountProvider,
    DiscountStatus,
)

logger = logging.getLogger(__name__)

STATUS_MAP = {
    "active": DiscountStatus.PUBLISHED,
    "archived": DiscountStatus.ARCHIVED,
    "expired": DiscountStatus.ARCHIVED,
    "used": DiscountStatus.ARCHIVED,
}


class PaddleImporter(BaseDiscountImporter):
    """
    Importer for Paddle Billing discounts (``GET /discounts``).

    Paddle pages with an opaque ``after`` cursor embedded in
    ``meta.pagination.next``. Percentage amounts arrive as decimal strings
    ("20" means 20%); flat amounts are in minor currency units.
    """

    PROVIDER = DiscountProvider.PADDLE.value
    BASE_URL = "https://api.paddle.com"
    SANDBOX_URL = "https://sandbox-api.paddle.com"

    def __init__(self, api_key: str, **kwargs):
        kwargs["page_size"] = min(kwargs.get("page_size", 200), 200)
        super().__init__(api_key, **kwargs)

    def fetch_page(self, cursor: Optional[Any] = None) -> Page:
        params = {"per_page": self.page_size}
        if cursor:
            params["after"] = cursor

        data = self._get_json("/discounts", params)
        items = self._require_list(data, "data")

        pagination = (data.get("meta") or {}).get("pagination") or {}
        next_cursor = None
        if pagination.get("has_more", True) and pagination.get("next"):
            after = parse_qs(urlparse(pagination["next"]).query).get("after")
            next_cursor = after[0] if after else None

        return Page(items=items, next_cursor=next_cursor)

    def map_to_canonical(
        self,
        raw: Dict[str, Any],
        lookups: Optional[Dict[str, Any]] = None
    ) -> Optional[CanonicalDiscount]:
        discount_type = raw.get("type")
        is_percent = discount_type == "percentage"

        try:
            amount = float(raw.get("amount"))
        except (TypeError, ValueError):
            logger.warning(f"Invalid discount amount \"{raw.get('amount')}\" for discount \"{raw.get('code') or raw.get('id')}\"")
            return None
        if not is_percent and amount.is_integer():
            amount = int(amount)

        if not raw.get("recur"):
            duration, duration_in_months = DiscountDuration.ONCE, None
        elif raw.get("maximum_recurring_intervals") is None:
            duration, duration_in_months = DiscountDuration.FOREVER, None
        else:
            duration = DiscountDuration.REPEATING
            duration_in_months = raw.get("maximum_recurring_intervals")

        status = STATUS_MAP.get(raw.get("status"), DiscountStatus.DRAFT)
        if status == DiscountStatus.PUBLISHED and is_past(raw.get("expires_at")):
            status = DiscountStatus.ARCHIVED

        provider_data = {
            "type": discount_type,
            "status": raw.get("status"),
            "enabled_for_checkout": raw.get("enabled_for_checkout"),
        }
        if not is_percent:
            provider_data["currency"] = raw.get("currency_code")
        if raw.get("restrict_to"):
            provider_data["restrict_to"] = raw["restrict_to"]

        code = raw.get("code") or ""

        return CanonicalDiscount(
            id=str(raw.get("id", "")),
            provider=DiscountProvider.PADDLE,
            name=raw.get("description") or code,
            code=code,
            amount=amount,
            is_percent=is_percent,
            duration=duration,
            duration_in_months=duration_in_months,
            status=status,
            usage_limit=raw.get("usage_limit"),
            expires_at=raw.get("expires_at"),
            created_at=raw.get("created_at"),
            updated_at=raw.get("updated_at"),
            provider_data=provider_data,
        )
