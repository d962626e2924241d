"""Per-record results produced while validating and loading discounts."""

from dataclasses import dataclass
from typing import Any, Dict, Optional
from datetime import datetime


@dataclass
class ValidationError:
    """A validation problem found on a canonical discount."""
    field: str
    message: str
    error_type: str = "validation"
    severity: str = "error"  # error, warning
    value: Optional[Any] = None
    suggested_fix: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "field": self.field,
            "message": self.message,
            "error_type": self.error_type,
            "severity": self.severity,
            "value": self.value,
            "suggested_fix": self.suggested_fix,
        }


@dataclass
class MigrationResult:
    """Result of attempting to create one discount in the destination."""
    record_id: str  # discount code, unique per brand
    target_id: Optional[str] = None  # ID assigned by Dodo Payments
    success: bool = False
    error: Optional[str] = None
    error_code: Optional[str] = None
    response_data: Optional[Dict[str, Any]] = None
    loaded_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "record_id": self.record_id,
            "target_id": self.target_id,
            "success": self.success,
            "error": self.error,
            "error_code": self.error_code,
            "loaded_at": self.loaded_at.isoformat() if self.loaded_at else None,
        }
