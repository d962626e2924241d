"""Base loader interface for the destination service."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
from datetime import datetime
import logging

from ..models.destination import DiscountCreateRequest
from ..models.record import MigrationResult

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    """Result of a load operation."""
    entity: str = "discounts"
    total_attempted: int = 0
    total_succeeded: int = 0
    total_failed: int = 0
    results: List[MigrationResult] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_ids: List[str] = field(default_factory=list)

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    @property
    def success_rate(self) -> float:
        if self.total_attempted == 0:
            return 0.0
        return self.total_succeeded / self.total_attempted

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity": self.entity,
            "total_attempted": self.total_attempted,
            "total_succeeded": self.total_succeeded,
            "total_failed": self.total_failed,
            "success_rate": self.success_rate,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "created_ids": self.created_ids,
            "errors": self.errors,
        }


class BaseLoader(ABC):
    """
    Base class for destination loaders.

    Loaders create transformed discounts in the destination, one request
    at a time. A failed record is recorded and the next one is attempted.
    """

    SUPPORTED_DISCOUNT_TYPES: Tuple[str, ...] = ("percentage",)

    def __init__(
        self,
        target_service: str,
        api_key: Optional[str] = None,
        dry_run: bool = False
    ):
        """
        Initialize the loader.

        Args:
            target_service: Name of the target service
            api_key: API key for authentication
            dry_run: If True, simulate without making changes
        """
        self.target_service = target_service
        self.api_key = api_key
        self.dry_run = dry_run

    def supported_discount_types(self) -> Tuple[str, ...]:
        """Discount types the destination can create."""
        return self.SUPPORTED_DISCOUNT_TYPES

    @abstractmethod
    def load_record(self, request: DiscountCreateRequest) -> MigrationResult:
        """
        Create a single discount in the destination.

        Returns:
            MigrationResult indicating success/failure
        """
        pass

    def load_all(self, requests: Sequence[DiscountCreateRequest]) -> LoadResult:
        """
        Create every discount, sequentially.

        Args:
            requests: Transformed discounts to create

        Returns:
            LoadResult with per-record results
        """
        result = LoadResult()
        result.started_at = datetime.utcnow()

        for request in requests:
            logger.info(f"Migrating discount: {request.name} ({request.code})")
            try:
                migration_result = self.load_record(request)
            except Exception as e:
                logger.error(f"Failed to migrate discount {request.code}: {e}")
                migration_result = MigrationResult(
                    record_id=request.code,
                    success=False,
                    error=str(e),
                )

            result.results.append(migration_result)
            result.total_attempted += 1

            if migration_result.success:
                result.total_succeeded += 1
                if migration_result.target_id:
                    result.created_ids.append(migration_result.target_id)
            else:
                result.total_failed += 1
                result.errors.append({
                    "record_id": migration_result.record_id,
                    "error": migration_result.error,
                    "error_code": migration_result.error_code,
                })

        result.completed_at = datetime.utcnow()
        logger.info(f"Loaded discounts: {result.total_succeeded}/{result.total_attempted} succeeded")

        return result

    def validate_connection(self) -> bool:
        """Validate the connection to the target service."""
        return True
