"""
Tests for the Razorpay coupon importer.
"""

import base64

import pytest

from dodo_migrate.exceptions import ConfigurationError
from dodo_migrate.extractors import RazorpayImporter, create_importer
from dodo_migrate.models.discount import DiscountProvider, DiscountStatus


def razorpay_coupon(coupon_id, **fields):
    values = {
        "id": coupon_id,
        "code": "DIWALI15",
        "name": "Diwali",
        "description": "Festive offer",
        "type": "percentage",
        "value": 15,
        "currency": None,
    }
    values.update(fields)
    return values


@pytest.fixture
def importer(mock_session):
    return RazorpayImporter("rzp_key", key_secret="rzp_secret", session=mock_session, page_size=2)


class TestRazorpayImporter:
    """skip/count paging and coupon mapping."""

    def test_percentage_coupon(self, importer, mock_session, response_factory):
        mock_session.get.side_effect = [response_factory({"items": [razorpay_coupon("cpn_1")]})]
        discount = importer.import_discounts()[0]

        assert discount.id == "cpn_1"
        assert discount.provider == DiscountProvider.RAZORPAY
        assert discount.code == "DIWALI15"
        assert discount.name == "Diwali"
        assert discount.amount == 15
        assert discount.is_percent is True
        assert discount.status == DiscountStatus.PUBLISHED
        assert discount.provider_data["description"] == "Festive offer"

    def test_skip_count_paging(self, importer, mock_session, response_factory):
        mock_session.get.side_effect = [
            response_factory({"items": [razorpay_coupon("1", code="A"), razorpay_coupon("2", code="B")]}),
            response_factory({"items": [razorpay_coupon("3", code="C")]}),
        ]
        assert [d.code for d in importer.import_discounts()] == ["A", "B", "C"]
        params = [c.kwargs["params"] for c in mock_session.get.call_args_list]
        assert params == [{"skip": 0, "count": 2}, {"skip": 2, "count": 2}]

    def test_amount_coupon_is_fixed(self, importer, mock_session, response_factory):
        raw = razorpay_coupon("cpn_2", type="amount", value=10000, currency="inr")
        mock_session.get.side_effect = [response_factory({"items": [raw]})]
        discount = importer.import_discounts()[0]
        assert discount.is_percent is False
        assert discount.amount == 10000
        assert discount.provider_data["currency"] == "INR"

    def test_name_fallback(self, importer, mock_session, response_factory):
        mock_session.get.side_effect = [response_factory({"items": [razorpay_coupon("cpn_3", name=None)]})]
        assert importer.import_discounts()[0].name == "Coupon DIWALI15"

    def test_expired_coupon_is_archived(self, importer, mock_session, response_factory):
        mock_session.get.side_effect = [response_factory({"items": [razorpay_coupon("cpn_4", end_at=1577836800)]})]
        discount = importer.import_discounts()[0]
        assert discount.expires_at == "2020-01-01T00:00:00Z"
        assert discount.status == DiscountStatus.ARCHIVED

    def test_basic_auth(self):
        importer = RazorpayImporter("rzp_key", key_secret="rzp_secret")
        expected = base64.b64encode(b"rzp_key:rzp_secret").decode("ascii")
        assert importer._session.headers["Authorization"] == f"Basic {expected}"

    def test_key_secret_required(self):
        with pytest.raises(ConfigurationError, match="key_secret"):
            create_importer("razorpay", "rzp_key")
