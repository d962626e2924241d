"""FastSpring coupon importer."""

import logging
from typing import Any, Dict, Optional

from .base import BaseDiscountImporter, Page, basic_auth_header, is_past
from ..exceptions import SourceFetchError
from ..models.discount import (
    CanonicalDiscount,
    DiscountDuration,
    DiscountProvider,
    DiscountStatus,
)

logger = logging.getLogger(__name__)


class FastSpringImporter(BaseDiscountImporter):
    """
    Importer for FastSpring coupons (``GET /coupons``).

    FastSpring API credentials are a username and password; the password
    is passed as the API key. All coupons come back in one response, either
    as a bare JSON array or wrapped in ``{"coupons": [...]}``.
    """

    PROVIDER = DiscountProvider.FASTSPRING.value
    BASE_URL = "https://api.fastspring.com"
    OPTIONS = {"username": "FastSpring API username (the API key is its password)"}
    REQUIRED_OPTIONS = ("username",)

    def __init__(self, api_key: str, username: str = "", **kwargs):
        self.username = username
        super().__init__(api_key, **kwargs)

    def _get_auth_headers(self) -> Dict[str, str]:
        return basic_auth_header(self.username, self.api_key)

    def fetch_page(self, cursor: Optional[Any] = None) -> Page:
        data = self._get_body("/coupons")

        if isinstance(data, dict):
            if data.get("error"):
                raise SourceFetchError(self.PROVIDER, str(data["error"]))
            data = data.get("coupons")
        if not isinstance(data, list):
            raise SourceFetchError(self.PROVIDER, "Unexpected response format: expected a list of coupons")

        logger.debug(f"Fetched {len(data)} FastSpring coupons")

        return Page(items=data)

    def map_to_canonical(
        self,
        raw: Dict[str, Any],
        lookups: Optional[Dict[str, Any]] = None
    ) -> Optional[CanonicalDiscount]:
        is_percent = raw.get("discountType") == "percentage"
        amount = raw.get("discountPercent") if is_percent else raw.get("discountTotal")
        if amount is None:
            return None
        if not is_percent:
            # Totals are in major units; fixed amounts are kept in minor units.
            amount = int(round(float(amount) * 100))

        code = raw.get("code") or ""
        expires_at = raw.get("expirationDate")

        provider_data = {"discount_type": raw.get("discountType")}
        if not is_percent:
            provider_data["currency"] = raw.get("discountCurrency")

        return CanonicalDiscount(
            id=str(raw.get("id") or code),
            provider=DiscountProvider.FASTSPRING,
            name=raw.get("name") or code,
            code=code,
            amount=amount,
            is_percent=is_percent,
            duration=DiscountDuration.ONCE,
            status=DiscountStatus.ARCHIVED if is_past(expires_at) else DiscountStatus.PUBLISHED,
            usage_limit=raw.get("usageLimit"),
            expires_at=expires_at,
            provider_data=provider_data,
        )
