"""Dodo Payments request/response models and the destination context."""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import ConfigurationError


@dataclass(frozen=True)
class DestinationContext:
    """Where transformed discounts are created and what the destination accepts."""
    brand_id: str
    supported_discount_types: Tuple[str, ...] = ("percentage",)

    def supports(self, discount_type: Any) -> bool:
        value = getattr(discount_type, "value", discount_type)
        return value in self.supported_discount_types

    @classmethod
    def coerce(
        cls,
        value: Union["DestinationContext", str, Mapping[str, Any]]
    ) -> "DestinationContext":
        """Build a context from a context, a brand id, or a mapping holding one."""
        if isinstance(value, DestinationContext):
            return value
        if isinstance(value, str):
            brand_id = value
        elif isinstance(value, Mapping):
            brand_id = value.get("brand_id") or value.get("brandId")
        else:
            brand_id = None

        if not brand_id:
            raise ConfigurationError("A destination brand id is required")
        return cls(brand_id=str(brand_id))


# Request Models
class DiscountCreateRequest(BaseModel):
    """Body accepted by ``POST /discounts``. Built by the transformer only."""
    name: Optional[str] = None
    code: str
    type: str = "percentage"
    amount: int  # basis points for percentage discounts
    usage_limit: Optional[int] = None
    expires_at: Optional[str] = None
    brand_id: str
    duration: Optional[str] = None
    duration_in_months: Optional[int] = None

    def to_api_payload(self) -> Dict[str, Any]:
        """JSON body for the create call, with unset fields dropped."""
        payload = self.model_dump(exclude_none=True)
        if self.duration == "repeating" and self.duration_in_months:
            payload["subscription_cycles"] = self.duration_in_months
        return payload


# Response Models
class DiscountCreateResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    discount_id: str
    business_id: Optional[str] = None
    amount: Optional[int] = None
    type: Optional[str] = None
    code: Optional[str] = None
    created_at: Optional[str] = None
    expires_at: Optional[str] = None
    name: Optional[str] = None
    restricted_to: List[str] = Field(default_factory=list)
    subscription_cycles: Optional[int] = None
    times_used: int = 0
    usage_limit: Optional[int] = None


class Brand(BaseModel):
    model_config = ConfigDict(extra="ignore")

    brand_id: str
    name: Optional[str] = None
