"""
Shared fixtures for the discount migration tests.

HTTP is never performed: importers and loaders receive a MagicMock session
whose ``get`` / ``request`` calls return canned responses.
"""

import json
import pytest
from typing import Any, Dict, Optional
from unittest.mock import MagicMock

from dodo_migrate.models.discount import (
    CanonicalDiscount,
    DiscountDuration,
    DiscountProvider,
    DiscountStatus,
)


# ============================================
# HTTP
# ============================================

def make_response(
    json_data: Any = None,
    status_code: int = 200,
    text: Optional[str] = None
) -> MagicMock:
    """Build a requests.Response stand-in."""
    response = MagicMock()
    response.status_code = status_code
    response.reason = "OK" if status_code < 400 else "Error"
    if text is not None:
        response.text = text
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.text = json.dumps(json_data)
        response.json.return_value = json_data
    return response


@pytest.fixture
def response_factory():
    return make_response


@pytest.fixture
def mock_session():
    """A session stub; tests set ``get.side_effect`` / ``request.side_effect``."""
    return MagicMock()


# ============================================
# DISCOUNTS
# ============================================

def make_discount(**overrides) -> CanonicalDiscount:
    """A valid published percentage discount, with any field overridden."""
    values: Dict[str, Any] = {
        "id": "d1",
        "provider": DiscountProvider.LEMONSQUEEZY,
        "name": "Spring",
        "code": "SPRING20",
        "amount": 20,
        "is_percent": True,
        "duration": DiscountDuration.ONCE,
        "duration_in_months": None,
        "status": DiscountStatus.PUBLISHED,
        "usage_limit": None,
        "expires_at": None,
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": "2024-01-01T00:00:00Z",
    }
    values.update(overrides)
    return CanonicalDiscount(**values)


@pytest.fixture
def discount_factory():
    return make_discount


@pytest.fixture
def spring_discount():
    return make_discount()


@pytest.fixture
def fixed_discount():
    return make_discount(id="d2", name="Five off", code="FIVEOFF", amount=500, is_percent=False)
