"""
Tests for the Polar importer.
"""

import pytest

from dodo_migrate.extractors import PolarImporter
from dodo_migrate.models.discount import DiscountDuration, DiscountStatus


def polar_discount(discount_id, **fields):
    values = {
        "id": discount_id,
        "name": "Summer",
        "code": "SUMMER",
        "type": "percentage",
        "basis_points": 1250,
        "duration": "repeating",
        "duration_in_months": 2,
        "max_redemptions": 10,
        "starts_at": None,
        "ends_at": None,
        "created_at": "2024-03-01T00:00:00Z",
        "modified_at": None,
        "organization_id": "org_1",
    }
    values.update(fields)
    return values


def polar_page(items, max_page=1):
    return {"items": items, "pagination": {"total_count": len(items), "max_page": max_page}}


@pytest.fixture
def importer(mock_session):
    return PolarImporter("polar_key", session=mock_session)


class TestPolarImporter:
    """Paging and basis point conversion."""

    def test_basis_points_become_percent(self, importer, mock_session, response_factory):
        mock_session.get.side_effect = [response_factory(polar_page([polar_discount("1")]))]
        discount = importer.import_discounts()[0]

        assert discount.amount == 12.5
        assert discount.is_percent is True
        assert discount.duration == DiscountDuration.REPEATING
        assert discount.duration_in_months == 2
        assert discount.usage_limit == 10
        assert discount.status == DiscountStatus.PUBLISHED
        assert discount.updated_at == "2024-03-01T00:00:00Z"
        assert discount.provider_data["organization_id"] == "org_1"

    def test_follows_max_page(self, importer, mock_session, response_factory):
        mock_session.get.side_effect = [
            response_factory(polar_page([polar_discount("1", code="A")], max_page=2)),
            response_factory(polar_page([polar_discount("2", code="B")], max_page=2)),
        ]
        assert [d.code for d in importer.import_discounts()] == ["A", "B"]
        assert mock_session.get.call_args_list[1].kwargs["params"]["page"] == 2

    def test_fixed_discount(self, importer, mock_session, response_factory):
        raw = polar_discount("1", type="fixed", basis_points=None, amount=1000, currency="eur")
        mock_session.get.side_effect = [response_factory(polar_page([raw]))]
        discount = importer.import_discounts()[0]
        assert discount.is_percent is False
        assert discount.amount == 1000
        assert discount.provider_data["currency"] == "EUR"

    def test_missing_amount_is_skipped(self, importer, mock_session, response_factory):
        raw = polar_discount("1", basis_points=None)
        mock_session.get.side_effect = [response_factory(polar_page([raw]))]
        assert importer.import_discounts() == []

    def test_ended_discount_is_archived(self, importer, mock_session, response_factory):
        raw = polar_discount("1", ends_at="2020-01-01T00:00:00Z")
        mock_session.get.side_effect = [response_factory(polar_page([raw]))]
        assert importer.import_discounts()[0].status == DiscountStatus.ARCHIVED

    def test_once_duration_clears_months(self, importer, mock_session, response_factory):
        raw = polar_discount("1", duration="once", duration_in_months=4)
        mock_session.get.side_effect = [response_factory(polar_page([raw]))]
        assert importer.import_discounts()[0].duration_in_months is None

    def test_missing_code_is_kept_empty(self, importer, mock_session, response_factory):
        raw = polar_discount("1", code=None)
        mock_session.get.side_effect = [response_factory(polar_page([raw]))]
        assert importer.import_discounts()[0].code == ""

    def test_organization_filter(self, mock_session, response_factory):
        importer = PolarImporter("polar_key", organization_id="org_9", session=mock_session)
        mock_session.get.side_effect = [response_factory(polar_page([]))]
        importer.import_discounts()
        assert mock_session.get.call_args.kwargs["params"]["organization_id"] == "org_9"
