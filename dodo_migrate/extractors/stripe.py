"""Stripe coupon and promotion code importer."""

import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional

import stripe

from .base import BaseDiscountImporter, Page, unix_to_iso
from ..exceptions import SourceFetchError
from ..models.discount import (
    CanonicalDiscount,
    DiscountDuration,
    DiscountProvider,
    DiscountStatus,
)

logger = logging.getLogger(__name__)


def _to_dict(obj: Any) -> Dict[str, Any]:
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj)


class StripeImporter(BaseDiscountImporter):
    """
    Importer for Stripe coupons.

    Stripe separates the discount (coupon) from the code customers type in
    (promotion code). Every promotion code becomes its own canonical
    discount; a coupon without promotion codes is imported once, using the
    coupon ID as its code.

    Listing goes through the official SDK, which follows ``starting_after``
    cursors itself.
    """

    PROVIDER = DiscountProvider.STRIPE.value
    BASE_URL = "https://api.stripe.com/v1"

    def __init__(self, api_key: str, client: Optional[stripe.StripeClient] = None, **kwargs):
        super().__init__(api_key, **kwargs)
        self.client = client or stripe.StripeClient(api_key, max_network_retries=self.max_retries)

    @property
    def _limit(self) -> int:
        return min(self.page_size, 100)

    def fetch_page(self, cursor: Optional[Any] = None) -> Page:
        params = {"limit": self._limit}
        if cursor:
            params["starting_after"] = cursor

        try:
            coupons = self.client.coupons.list(params=params)
        except stripe.StripeError as e:
            raise _fetch_error(e) from e

        items = [_to_dict(c) for c in coupons.data]
        next_cursor = items[-1].get("id") if coupons.has_more and items else None
        return Page(items=items, next_cursor=next_cursor)

    def iter_pages(self) -> Iterator[Page]:
        try:
            coupons = self.client.coupons.list(params={"limit": self._limit})
            items = [_to_dict(c) for c in coupons.auto_paging_iter()]
        except stripe.StripeError as e:
            raise _fetch_error(e) from e

        logger.debug(f"Fetched {len(items)} stripe coupons")
        yield Page(items=items)

    def list_promotion_codes(self, coupon_id: str) -> List[Dict[str, Any]]:
        """All promotion codes attached to a coupon."""
        try:
            codes = self.client.promotion_codes.list(params={"coupon": coupon_id, "limit": self._limit})
            return [_to_dict(p) for p in codes.auto_paging_iter()]
        except stripe.StripeError as e:
            raise _fetch_error(e) from e

    def map_records(
        self,
        raw: Dict[str, Any],
        lookups: Dict[str, Any]
    ) -> Iterable[CanonicalDiscount]:
        if raw.get("percent_off") is None and raw.get("amount_off") is None:
            logger.warning(f"Skipping coupon {raw.get('id')} - no discount value found")
            return []

        promotion_codes = self.list_promotion_codes(raw["id"])
        if not promotion_codes:
            return [self.map_to_canonical(raw)]

        return [self.map_promotion_code(raw, promo) for promo in promotion_codes]

    def map_to_canonical(
        self,
        raw: Dict[str, Any],
        lookups: Optional[Dict[str, Any]] = None
    ) -> Optional[CanonicalDiscount]:
        return self._build(raw, discount_id=raw.get("id"), code=raw.get("id"))

    def map_promotion_code(self, coupon: Dict[str, Any], promo: Dict[str, Any]) -> CanonicalDiscount:
        """Canonical discount for one promotion code of a coupon."""
        return self._build(
            coupon,
            discount_id=promo.get("id"),
            code=promo.get("code"),
            active=promo.get("active", True),
            usage_limit=promo.get("max_redemptions"),
            expires_at=promo.get("expires_at"),
            extra={"promotion_code_id": promo.get("id")},
        )

    def _build(
        self,
        coupon: Dict[str, Any],
        discount_id: Optional[str],
        code: Optional[str],
        active: bool = True,
        usage_limit: Optional[int] = None,
        expires_at: Optional[int] = None,
        extra: Optional[Dict[str, Any]] = None
    ) -> CanonicalDiscount:
        is_percent = coupon.get("percent_off") is not None
        name = coupon.get("name") or coupon.get("id") or ""

        duration = self.map_duration(coupon.get("duration"), name)
        duration_in_months = None
        if duration == DiscountDuration.REPEATING:
            duration_in_months = coupon.get("duration_in_months")

        valid = coupon.get("valid", True) and active
        provider_data = {"coupon_id": coupon.get("id")}
        if not is_percent:
            provider_data["currency"] = (coupon.get("currency") or "").upper() or None
        if extra:
            provider_data.update(extra)

        created_at = unix_to_iso(coupon.get("created"))

        return CanonicalDiscount(
            id=discount_id or "",
            provider=DiscountProvider.STRIPE,
            name=name,
            code=code or "",
            amount=coupon["percent_off"] if is_percent else coupon.get("amount_off"),
            is_percent=is_percent,
            duration=duration,
            duration_in_months=duration_in_months,
            status=DiscountStatus.PUBLISHED if valid else DiscountStatus.ARCHIVED,
            usage_limit=usage_limit if usage_limit is not None else coupon.get("max_redemptions"),
            expires_at=unix_to_iso(expires_at if expires_at is not None else coupon.get("redeem_by")),
            created_at=created_at,
            updated_at=created_at,
            provider_data=provider_data,
        )


def _fetch_error(error: stripe.StripeError) -> SourceFetchError:
    message = getattr(error, "user_message", None) or str(error) or type(error).__name__
    return SourceFetchError(DiscountProvider.STRIPE.value, message, getattr(error, "http_status", None))
