"""
Tests for the 2Checkout coupon importer.
"""

import base64

import pytest

from dodo_migrate.exceptions import ConfigurationError, SourceFetchError
from dodo_migrate.extractors import TwoCheckoutImporter, create_importer
from dodo_migrate.models.discount import DiscountProvider, DiscountStatus


def tco_coupon(code, **fields):
    values = {"name": "Launch", "code": code, "discount_type": "percentage", "value": 20, "currency": None}
    values.update(fields)
    return values


@pytest.fixture
def importer(mock_session):
    return TwoCheckoutImporter("tco_secret", merchant_code="MERCH1", session=mock_session, page_size=2)


class TestTwoCheckoutImporter:
    """page/limit paging and coupon mapping."""

    def test_percentage_coupon(self, importer, mock_session, response_factory):
        mock_session.get.side_effect = [response_factory({"coupons": [tco_coupon("LAUNCH20")]})]
        discount = importer.import_discounts()[0]

        assert discount.id == "LAUNCH20"
        assert discount.provider == DiscountProvider.TWOCHECKOUT
        assert discount.code == "LAUNCH20"
        assert discount.name == "Launch"
        assert discount.amount == 20
        assert discount.is_percent is True
        assert discount.status == DiscountStatus.PUBLISHED
        assert mock_session.get.call_args.args[0] == "https://api.2checkout.com/rest/6.0/coupons"

    def test_page_limit_paging(self, importer, mock_session, response_factory):
        mock_session.get.side_effect = [
            response_factory({"coupons": [tco_coupon("A"), tco_coupon("B")]}),
            response_factory({"coupons": []}),
        ]
        assert [d.code for d in importer.import_discounts()] == ["A", "B"]
        params = [c.kwargs["params"] for c in mock_session.get.call_args_list]
        assert params == [{"page": 1, "limit": 2}, {"page": 2, "limit": 2}]

    def test_short_page_ends_paging(self, importer, mock_session, response_factory):
        mock_session.get.side_effect = [response_factory({"coupons": [tco_coupon("A")]})]
        importer.import_discounts()
        assert mock_session.get.call_count == 1

    def test_fixed_coupon(self, importer, mock_session, response_factory):
        raw = tco_coupon("TEN", discount_type="fixed", value=1000, currency="usd")
        mock_session.get.side_effect = [response_factory({"coupons": [raw]})]
        discount = importer.import_discounts()[0]
        assert discount.is_percent is False
        assert discount.provider_data["currency"] == "USD"

    def test_name_fallback(self, importer, mock_session, response_factory):
        mock_session.get.side_effect = [response_factory({"coupons": [tco_coupon("X", name="")]})]
        assert importer.import_discounts()[0].name == "Coupon X"

    def test_missing_coupons_raises(self, importer, mock_session, response_factory):
        mock_session.get.side_effect = [response_factory({"items": []})]
        with pytest.raises(SourceFetchError, match="'coupons'"):
            importer.import_discounts()

    def test_basic_auth_with_merchant_code(self):
        importer = TwoCheckoutImporter("tco_secret", merchant_code="MERCH1")
        expected = base64.b64encode(b"MERCH1:tco_secret").decode("ascii")
        assert importer._session.headers["Authorization"] == f"Basic {expected}"

    def test_merchant_code_required(self):
        with pytest.raises(ConfigurationError, match="merchant_code"):
            create_importer("2checkout", "tco_secret")
