"""2Checkout (Verifone) coupon importer."""

from typing import Any, Dict, Optional

from .base import BaseDiscountImporter, Page, basic_auth_header
from ..models.discount import (
    CanonicalDiscount,
    DiscountDuration,
    DiscountProvider,
    DiscountStatus,
)


class TwoCheckoutImporter(BaseDiscountImporter):
    """
    Importer for 2Checkout coupons (``GET /rest/6.0/coupons``).

    Requests are signed with basic auth: merchant code as the user, API
    secret key as the password. Pages are numbered from 1.
    """

    PROVIDER = DiscountProvider.TWOCHECKOUT.value
    BASE_URL = "https://api.2checkout.com/rest/6.0"
    OPTIONS = {"merchant_code": "2Checkout merchant code (seller ID)"}
    REQUIRED_OPTIONS = ("merchant_code",)

    def __init__(self, api_key: str, merchant_code: str = "", **kwargs):
        self.merchant_code = merchant_code
        super().__init__(api_key, **kwargs)

    def _get_auth_headers(self) -> Dict[str, str]:
        return basic_auth_header(self.merchant_code, self.api_key)

    def fetch_page(self, cursor: Optional[Any] = None) -> Page:
        page_number = cursor or 1
        data = self._get_json("/coupons", {"page": page_number, "limit": self.page_size})
        items = self._require_list(data, "coupons")

        next_cursor = page_number + 1 if len(items) >= self.page_size else None
        return Page(items=items, next_cursor=next_cursor)

    def map_to_canonical(
        self,
        raw: Dict[str, Any],
        lookups: Optional[Dict[str, Any]] = None
    ) -> Optional[CanonicalDiscount]:
        value = raw.get("value")
        if value is None:
            return None
        is_percent = str(raw.get("discount_type") or "").lower() == "percentage"

        code = raw.get("code") or ""
        provider_data = {"discount_type": raw.get("discount_type")}
        if not is_percent:
            provider_data["currency"] = (raw.get("currency") or "").upper() or None

        return CanonicalDiscount(
            # Coupons have no separate ID; the code identifies them.
            id=code,
            provider=DiscountProvider.TWOCHECKOUT,
            name=raw.get("name") or f"Coupon {code}",
            code=code,
            amount=value,
            is_percent=is_percent,
            duration=DiscountDuration.ONCE,
            status=DiscountStatus.PUBLISHED,
            provider_data=provider_data,
        )
