"""
Tests for the Gumroad offer code importer.
"""

import pytest

from dodo_migrate.exceptions import SourceFetchError
from dodo_migrate.extractors import GumroadImporter
from dodo_migrate.models.discount import DiscountDuration, DiscountProvider, DiscountStatus


def offer_code(offer_id, **fields):
    values = {
        "id": offer_id,
        "name": "Black Friday",
        "offer_code": "BF30",
        "percent_off": 30,
        "amount_off": None,
        "max_purchase_count": None,
        "universal": True,
    }
    values.update(fields)
    return values


@pytest.fixture
def importer(mock_session):
    return GumroadImporter("gum_token", session=mock_session)


class TestGumroadImporter:
    """Offer codes, single response."""

    def test_percent_offer_code(self, importer, mock_session, response_factory):
        mock_session.get.side_effect = [
            response_factory({"success": True, "offer_codes": [offer_code("oc_1", max_purchase_count=50)]}),
        ]
        discounts = importer.import_discounts()

        assert len(discounts) == 1
        discount = discounts[0]
        assert discount.id == "oc_1"
        assert discount.provider == DiscountProvider.GUMROAD
        assert discount.name == "Black Friday"
        assert discount.code == "BF30"
        assert discount.amount == 30
        assert discount.is_percent is True
        assert discount.duration == DiscountDuration.ONCE
        assert discount.status == DiscountStatus.PUBLISHED
        assert discount.usage_limit == 50
        assert mock_session.get.call_args.args[0] == "https://api.gumroad.com/v2/offer_codes"
        assert mock_session.get.call_count == 1

    def test_amount_off_is_fixed(self, importer, mock_session, response_factory):
        raw = offer_code("oc_2", percent_off=None, amount_off=500)
        mock_session.get.side_effect = [response_factory({"success": True, "offer_codes": [raw]})]
        discount = importer.import_discounts()[0]
        assert discount.is_percent is False
        assert discount.amount == 500

    def test_offer_code_without_discount_is_skipped(self, importer, mock_session, response_factory, caplog):
        raw = offer_code("oc_3", percent_off=0, amount_off=0)
        mock_session.get.side_effect = [response_factory({"success": True, "offer_codes": [raw]})]
        assert importer.import_discounts() == []
        assert "Skipping gumroad discount oc_3" in caplog.text

    def test_name_is_code_fallback(self, importer, mock_session, response_factory):
        raw = offer_code("oc_4", offer_code=None, name="SPRING")
        mock_session.get.side_effect = [response_factory({"offer_codes": [raw]})]
        assert importer.import_discounts()[0].code == "SPRING"

    def test_product_scoped_offer_codes(self, mock_session, response_factory):
        importer = GumroadImporter("gum_token", product_id="prod_1", session=mock_session)
        mock_session.get.side_effect = [response_factory({"success": True, "offer_codes": [offer_code("oc_1")]})]
        discount = importer.import_discounts()[0]
        assert mock_session.get.call_args.args[0] == "https://api.gumroad.com/v2/products/prod_1/offer_codes"
        assert discount.provider_data["product_id"] == "prod_1"

    def test_unsuccessful_response_raises(self, importer, mock_session, response_factory):
        mock_session.get.side_effect = [response_factory({"success": False, "message": "The product was not found."})]
        with pytest.raises(SourceFetchError, match="not found"):
            importer.import_discounts()

    def test_missing_offer_codes_raises(self, importer, mock_session, response_factory):
        mock_session.get.side_effect = [response_factory({"success": True})]
        with pytest.raises(SourceFetchError, match="'offer_codes'"):
            importer.import_discounts()

    def test_bearer_auth(self):
        importer = GumroadImporter("gum_token")
        assert importer._session.headers["Authorization"] == "Bearer gum_token"
