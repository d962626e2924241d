"""Selection of canonical discounts by status and type."""

from typing import Iterable, List, Optional, Union

from ..models.discount import CanonicalDiscount, DiscountStatus, DiscountType


def filter_discounts(
    discounts: Iterable[CanonicalDiscount],
    status_filter: Optional[Union[DiscountStatus, str]] = None,
    type_filter: Optional[Union[DiscountType, str]] = None
) -> List[CanonicalDiscount]:
    """
    Keep the discounts matching the given status and/or type.

    Either filter left as None places no constraint on that axis. Input
    order is preserved.

    Args:
        discounts: Canonical discounts to filter
        status_filter: Keep only discounts with this status
        type_filter: ``percentage`` keeps percent discounts, ``fixed`` the rest

    Returns:
        The matching discounts, in input order

    Raises:
        ValueError: If a filter value is not a known status or type
    """
    filtered = list(discounts)

    if status_filter is not None:
        status = DiscountStatus(status_filter)
        filtered = [d for d in filtered if d.status == status]

    if type_filter is not None:
        is_percent = DiscountType(type_filter) == DiscountType.PERCENTAGE
        filtered = [d for d in filtered if bool(d.is_percent) == is_percent]

    return filtered
