"""Gumroad offer code importer."""

import logging
from typing import Any, Dict, Optional

from .base import BaseDiscountImporter, Page
from ..exceptions import SourceFetchError
from ..models.discount import (
    CanonicalDiscount,
    DiscountDuration,
    DiscountProvider,
    DiscountStatus,
)

logger = logging.getLogger(__name__)


class GumroadImporter(BaseDiscountImporter):
    """
    Importer for Gumroad offer codes (``GET /v2/offer_codes``).

    Gumroad returns every offer code in one response. An offer code carries
    either ``percent_off`` or ``amount_off`` (in cents); a code with neither
    has no discount to migrate.
    """

    PROVIDER = DiscountProvider.GUMROAD.value
    BASE_URL = "https://api.gumroad.com/v2"
    OPTIONS = {"product_id": "Only migrate offer codes of this product"}

    def __init__(self, api_key: str, product_id: Optional[str] = None, **kwargs):
        super().__init__(api_key, **kwargs)
        self.product_id = product_id

    def fetch_page(self, cursor: Optional[Any] = None) -> Page:
        path = f"/products/{self.product_id}/offer_codes" if self.product_id else "/offer_codes"
        logger.debug(f"Fetching Gumroad offer codes from {path}")
        data = self._get_json(path)

        if data.get("success") is False:
            raise SourceFetchError(self.PROVIDER, str(data.get("message") or "Request was not successful"))

        return Page(items=self._require_list(data, "offer_codes"))

    def map_to_canonical(
        self,
        raw: Dict[str, Any],
        lookups: Optional[Dict[str, Any]] = None
    ) -> Optional[CanonicalDiscount]:
        percent_off = raw.get("percent_off") or 0
        amount_off = raw.get("amount_off") or raw.get("amount_cents") or 0

        if percent_off > 0:
            is_percent, amount = True, percent_off
        elif amount_off > 0:
            is_percent, amount = False, amount_off
        else:
            return None

        code = raw.get("offer_code") or raw.get("name") or ""
        provider_data = {"universal": raw.get("universal")}
        if self.product_id:
            provider_data["product_id"] = self.product_id

        return CanonicalDiscount(
            id=str(raw.get("id", "")),
            provider=DiscountProvider.GUMROAD,
            name=raw.get("name") or code,
            code=code,
            amount=amount,
            is_percent=is_percent,
            duration=DiscountDuration.ONCE,
            status=DiscountStatus.PUBLISHED,
            usage_limit=raw.get("max_purchase_count"),
            provider_data=provider_data,
        )
