"""LemonSqueezy discount importer."""

import logging
from typing import Any, Dict, Optional

from .base import BaseDiscountImporter, Page
from ..models.discount import CanonicalDiscount, DiscountDuration, DiscountProvider

logger = logging.getLogger(__name__)


class LemonSqueezyImporter(BaseDiscountImporter):
    """
    Importer for the LemonSqueezy JSON:API.

    Discounts come from ``GET /v1/discounts`` using ``page[number]`` and
    ``page[size]`` paging. Fixed-amount discounts are tagged with their
    store's currency, fetched once per store per import.
    """

    PROVIDER = DiscountProvider.LEMONSQUEEZY.value
    BASE_URL = "https://api.lemonsqueezy.com/v1"
    OPTIONS = {"store_id": "Only migrate discounts of this store"}
    DEFAULT_HEADERS = {
        "Accept": "application/vnd.api+json",
        "Content-Type": "application/vnd.api+json",
    }

    def __init__(self, api_key: str, store_id: Optional[str] = None, **kwargs):
        kwargs["page_size"] = min(kwargs.get("page_size", 100), 100)
        super().__init__(api_key, **kwargs)
        self.store_id = store_id

    def fetch_page(self, cursor: Optional[Any] = None) -> Page:
        page_number = cursor or 1
        params = {
            "page[number]": page_number,
            "page[size]": self.page_size,
        }
        if self.store_id:
            params["filter[store_id]"] = self.store_id

        data = self._get_json("/discounts", params)
        items = self._require_list(data, "data")

        page_meta = (data.get("meta") or {}).get("page") or {}
        last_page = page_meta.get("lastPage")
        if last_page is not None:
            next_cursor = page_number + 1 if page_number < int(last_page) else None
        else:
            next_cursor = page_number + 1 if (data.get("links") or {}).get("next") else None

        return Page(items=items, next_cursor=next_cursor)

    def map_to_canonical(
        self,
        raw: Dict[str, Any],
        lookups: Optional[Dict[str, Any]] = None
    ) -> Optional[CanonicalDiscount]:
        attributes = raw.get("attributes") or {}
        name = attributes.get("name") or ""

        duration = self.map_duration(attributes.get("duration"), name or raw.get("id"))
        duration_in_months = None
        if duration == DiscountDuration.REPEATING:
            duration_in_months = attributes.get("duration_in_months")

        is_percent = attributes.get("amount_type") == "percent"
        provider_data = {
            "store_id": attributes.get("store_id"),
            "amount_type": attributes.get("amount_type"),
        }
        if not is_percent and lookups is not None and attributes.get("store_id") is not None:
            provider_data["currency"] = self.get_store_currency(attributes["store_id"], lookups)

        return CanonicalDiscount(
            id=str(raw.get("id", "")),
            provider=DiscountProvider.LEMONSQUEEZY,
            name=name,
            code=attributes.get("code") or "",
            amount=attributes.get("amount"),
            is_percent=is_percent,
            duration=duration,
            duration_in_months=duration_in_months,
            status=attributes.get("status"),
            usage_limit=attributes.get("max_redemptions") if attributes.get("is_limited_redemptions") else None,
            expires_at=attributes.get("expires_at"),
            created_at=attributes.get("created_at"),
            updated_at=attributes.get("updated_at"),
            provider_data=provider_data,
        )

    def get_store_currency(self, store_id: Any, lookups: Dict[str, Any]) -> Optional[str]:
        """Currency of a store, memoised in the per-import lookups."""
        cache = lookups.setdefault("store_currencies", {})
        key = str(store_id)

        if key not in cache:
            logger.info(f"Fetching store data for store ID {store_id}")
            data = self._get_json(f"/stores/{store_id}")
            cache[key] = ((data.get("data") or {}).get("attributes") or {}).get("currency")
        else:
            logger.debug(f"Using cached store data for store ID {store_id}")

        return cache[key]
