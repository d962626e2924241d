"""Polar discount importer."""

import logging
from typing import Any, Dict, Optional

from .base import BaseDiscountImporter, Page, is_past
from ..models.discount import (
    CanonicalDiscount,
    DiscountDuration,
    DiscountProvider,
    DiscountStatus,
)

logger = logging.getLogger(__name__)


class PolarImporter(BaseDiscountImporter):
    """
    Importer for Polar discounts (``GET /v1/discounts/``).

    Polar stores percentage discounts in basis points; they are converted
    back to percentage points here so every provider shares one unit.
    """

    PROVIDER = DiscountProvider.POLAR.value
    BASE_URL = "https://api.polar.sh/v1"
    SANDBOX_URL = "https://sandbox-api.polar.sh/v1"
    OPTIONS = {"organization_id": "Only migrate discounts of this organization"}

    def __init__(self, api_key: str, organization_id: Optional[str] = None, **kwargs):
        super().__init__(api_key, **kwargs)
        self.organization_id = organization_id

    def fetch_page(self, cursor: Optional[Any] = None) -> Page:
        page_number = cursor or 1
        params = {"limit": self.page_size, "page": page_number}
        if self.organization_id:
            params["organization_id"] = self.organization_id

        data = self._get_json("/discounts/", params)
        items = self._require_list(data, "items")

        max_page = (data.get("pagination") or {}).get("max_page")
        if max_page is not None:
            next_cursor = page_number + 1 if page_number < int(max_page) else None
        else:
            next_cursor = page_number + 1 if len(items) >= self.page_size else None

        return Page(items=items, next_cursor=next_cursor)

    def map_to_canonical(
        self,
        raw: Dict[str, Any],
        lookups: Optional[Dict[str, Any]] = None
    ) -> Optional[CanonicalDiscount]:
        discount_type = str(raw.get("type") or "").lower()
        is_percent = discount_type == "percentage" or "percent" in discount_type

        if is_percent:
            basis_points = raw.get("basis_points")
            if basis_points is None:
                return None
            amount = basis_points / 100
        else:
            amount = raw.get("amount")
            if amount is None:
                return None

        name = raw.get("name") or ""
        duration = self.map_duration(raw.get("duration"), name or raw.get("id"))
        duration_in_months = raw.get("duration_in_months") if duration == DiscountDuration.REPEATING else None

        provider_data = {"type": discount_type}
        if not is_percent:
            provider_data["currency"] = (raw.get("currency") or "usd").upper()
        if raw.get("organization_id"):
            provider_data["organization_id"] = raw["organization_id"]
        if raw.get("starts_at"):
            provider_data["starts_at"] = raw["starts_at"]

        expires_at = raw.get("ends_at")

        return CanonicalDiscount(
            id=str(raw.get("id", "")),
            provider=DiscountProvider.POLAR,
            name=name,
            code=raw.get("code") or "",
            amount=amount,
            is_percent=is_percent,
            duration=duration,
            duration_in_months=duration_in_months,
            status=DiscountStatus.ARCHIVED if is_past(expires_at) else DiscountStatus.PUBLISHED,
            usage_limit=raw.get("max_redemptions"),
            expires_at=expires_at,
            created_at=raw.get("created_at"),
            updated_at=raw.get("modified_at") or raw.get("created_at"),
            provider_data=provider_data,
        )
