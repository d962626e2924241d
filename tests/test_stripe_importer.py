"""
Tests for the Stripe coupon importer.
"""

import pytest
import stripe
from unittest.mock import MagicMock

from dodo_migrate.exceptions import SourceFetchError
from dodo_migrate.extractors import StripeImporter
from dodo_migrate.extractors.stripe import unix_to_iso
from dodo_migrate.models.discount import DiscountDuration, DiscountStatus


def coupon(coupon_id, **fields):
    values = {
        "id": coupon_id,
        "object": "coupon",
        "name": "Launch",
        "percent_off": 25.0,
        "amount_off": None,
        "currency": None,
        "duration": "once",
        "duration_in_months": None,
        "max_redemptions": None,
        "redeem_by": None,
        "created": 1704067200,
        "valid": True,
    }
    values.update(fields)
    return values


def promo(promo_id, code, **fields):
    values = {"id": promo_id, "object": "promotion_code", "code": code, "active": True,
              "max_redemptions": None, "expires_at": None}
    values.update(fields)
    return values


def stripe_list(items, has_more=False):
    """A stand-in for the SDK's ListObject."""
    listing = MagicMock()
    listing.data = items
    listing.has_more = has_more
    listing.auto_paging_iter.return_value = iter(items)
    return listing


@pytest.fixture
def client():
    client = MagicMock()
    client.promotion_codes.list.return_value = stripe_list([])
    return client


@pytest.fixture
def importer(client):
    return StripeImporter("sk_test_key", client=client)


class TestStripeImporter:
    """Coupons, promotion codes and SDK paging."""

    def test_coupon_without_promotion_codes_uses_coupon_id(self, importer, client):
        client.coupons.list.return_value = stripe_list([coupon("LAUNCH25")])
        discounts = importer.import_discounts()

        assert len(discounts) == 1
        discount = discounts[0]
        assert discount.id == "LAUNCH25"
        assert discount.code == "LAUNCH25"
        assert discount.name == "Launch"
        assert discount.amount == 25.0
        assert discount.is_percent is True
        assert discount.status == DiscountStatus.PUBLISHED
        assert discount.created_at == "2024-01-01T00:00:00Z"
        assert discount.updated_at == discount.created_at

    def test_one_discount_per_promotion_code(self, importer, client):
        client.coupons.list.return_value = stripe_list([coupon("co_1", max_redemptions=100)])
        client.promotion_codes.list.return_value = stripe_list([
            promo("promo_1", "WELCOME", max_redemptions=5),
            promo("promo_2", "RETIRED", active=False),
        ])
        discounts = importer.import_discounts()

        assert [d.code for d in discounts] == ["WELCOME", "RETIRED"]
        assert [d.id for d in discounts] == ["promo_1", "promo_2"]
        assert discounts[0].usage_limit == 5
        assert discounts[1].usage_limit == 100
        assert discounts[1].status == DiscountStatus.ARCHIVED
        assert discounts[0].provider_data["coupon_id"] == "co_1"
        assert discounts[0].provider_data["promotion_code_id"] == "promo_1"
        assert client.promotion_codes.list.call_args.kwargs["params"] == {"coupon": "co_1", "limit": 100}

    def test_auto_paging_covers_every_coupon(self, importer, client):
        client.coupons.list.return_value = stripe_list([coupon("co_1"), coupon("co_2")], has_more=True)
        discounts = importer.import_discounts()

        assert [d.code for d in discounts] == ["co_1", "co_2"]
        client.coupons.list.assert_called_once_with(params={"limit": 100})

    def test_fetch_page_uses_starting_after(self, importer, client):
        client.coupons.list.return_value = stripe_list([coupon("co_1"), coupon("co_2")], has_more=True)
        page = importer.fetch_page("co_0")

        assert page.next_cursor == "co_2"
        assert client.coupons.list.call_args.kwargs["params"] == {"limit": 100, "starting_after": "co_0"}

    def test_fetch_page_last_page(self, importer, client):
        client.coupons.list.return_value = stripe_list([coupon("co_1")])
        assert importer.fetch_page().next_cursor is None

    def test_fixed_amount_coupon(self, importer, client):
        client.coupons.list.return_value = stripe_list([
            coupon("FIVE", percent_off=None, amount_off=500, currency="usd"),
        ])
        discount = importer.import_discounts()[0]
        assert discount.is_percent is False
        assert discount.amount == 500
        assert discount.provider_data["currency"] == "USD"

    def test_repeating_coupon_and_expiry(self, importer, client):
        raw = coupon("REPEAT", duration="repeating", duration_in_months=3, redeem_by=1735689600)
        client.coupons.list.return_value = stripe_list([raw])
        discount = importer.import_discounts()[0]
        assert discount.duration == DiscountDuration.REPEATING
        assert discount.duration_in_months == 3
        assert discount.expires_at == "2025-01-01T00:00:00Z"

    def test_invalid_coupon_is_archived(self, importer, client):
        client.coupons.list.return_value = stripe_list([coupon("OLD", valid=False)])
        assert importer.import_discounts()[0].status == DiscountStatus.ARCHIVED

    def test_coupon_without_value_is_skipped(self, importer, client, caplog):
        client.coupons.list.return_value = stripe_list([coupon("EMPTY", percent_off=None)])
        assert importer.import_discounts() == []
        assert "no discount value found" in caplog.text
        client.promotion_codes.list.assert_not_called()

    def test_page_size_is_capped(self, client):
        importer = StripeImporter("sk_test_key", client=client, page_size=500)
        client.coupons.list.return_value = stripe_list([])
        importer.import_discounts()
        assert client.coupons.list.call_args.kwargs["params"]["limit"] == 100

    def test_unix_to_iso(self):
        assert unix_to_iso(None) is None
        assert unix_to_iso(0) == "1970-01-01T00:00:00Z"


class TestStripeErrors:
    """SDK errors become SourceFetchError."""

    def test_list_error(self, importer, client):
        client.coupons.list.side_effect = stripe.AuthenticationError("Invalid API Key provided", http_status=401)
        with pytest.raises(SourceFetchError) as exc_info:
            importer.import_discounts()
        assert exc_info.value.status_code == 401
        assert "Invalid API Key provided" in str(exc_info.value)

    def test_promotion_code_error_aborts_import(self, importer, client):
        client.coupons.list.return_value = stripe_list([coupon("co_1")])
        client.promotion_codes.list.side_effect = stripe.APIConnectionError("Network down")
        with pytest.raises(SourceFetchError, match="Network down"):
            importer.import_discounts()

    def test_validate_connection(self, importer, client):
        client.coupons.list.return_value = stripe_list([])
        assert importer.validate_connection() is True
        client.coupons.list.side_effect = stripe.PermissionError("Forbidden", http_status=403)
        assert importer.validate_connection() is False
