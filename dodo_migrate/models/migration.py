"""Migration configuration and run tracking models."""

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional
from enum import Enum
from datetime import datetime
import uuid

from .record import MigrationResult


class MigrationStatus(str, Enum):
    """Status of a migration run."""
    PENDING = "pending"
    IMPORTING = "importing"
    FILTERING = "filtering"
    TRANSFORMING = "transforming"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    LOADING = "loading"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


DODO_MODES = ("test_mode", "live_mode")
PROVIDER_ENVIRONMENTS = ("production", "sandbox")

# Environment variable prefixes for providers whose name is not a valid one.
PROVIDER_ENV_PREFIXES = {"2checkout": "TWOCHECKOUT"}

SECRET_OPTION_MARKERS = ("secret", "password", "token")


@dataclass
class MigrationConfig:
    """Configuration for one discount migration."""
    provider: str
    provider_api_key: Optional[str] = None
    provider_environment: str = "production"  # Polar and Paddle have sandboxes
    provider_options: Dict[str, Any] = field(default_factory=dict)

    # Destination
    dodo_api_key: Optional[str] = None
    dodo_brand_id: Optional[str] = None
    mode: str = "test_mode"

    # Selection
    status_filter: Optional[str] = "published"
    type_filter: Optional[str] = None

    # Execution options
    dry_run: bool = False
    assume_yes: bool = False
    page_size: int = 100
    max_retries: int = 0
    rate_limit: float = 10.0  # Requests per second against Dodo Payments
    report_path: Optional[str] = None

    ENV_PREFIX_DODO = "DODO_PAYMENTS"

    @property
    def provider_env_prefix(self) -> str:
        return PROVIDER_ENV_PREFIXES.get(self.provider, self.provider.upper())

    @property
    def provider_env_var(self) -> str:
        return f"{self.provider_env_prefix}_API_KEY"

    def option_env_var(self, name: str) -> str:
        return f"{self.provider_env_prefix}_{name.upper()}"

    def apply_env(
        self,
        environ: Optional[Dict[str, str]] = None,
        option_names: Iterable[str] = ()
    ) -> "MigrationConfig":
        """Fill credentials, provider options and destination settings missing so far from the environment."""
        environ = os.environ if environ is None else environ

        if not self.provider_api_key:
            self.provider_api_key = environ.get(self.provider_env_var) or None
        for name in option_names:
            if not self.provider_options.get(name) and environ.get(self.option_env_var(name)):
                self.provider_options[name] = environ[self.option_env_var(name)]
        if not self.dodo_api_key:
            self.dodo_api_key = environ.get(f"{self.ENV_PREFIX_DODO}_API_KEY") or None
        if not self.dodo_brand_id:
            self.dodo_brand_id = environ.get(f"{self.ENV_PREFIX_DODO}_BRAND_ID") or None
        mode = environ.get(f"{self.ENV_PREFIX_DODO}_MODE")
        if mode and self.mode == "test_mode":
            self.mode = mode
        return self

    def validate(self) -> List[str]:
        """Return a list of configuration problems, empty when usable."""
        errors = []
        if not self.provider:
            errors.append("Source provider is required")
        if self.mode not in DODO_MODES:
            errors.append(f"Invalid Dodo Payments mode: {self.mode}. Must be one of: {', '.join(DODO_MODES)}")
        if self.provider_environment not in PROVIDER_ENVIRONMENTS:
            errors.append(
                f"Invalid provider environment: {self.provider_environment}. "
                f"Must be one of: {', '.join(PROVIDER_ENVIRONMENTS)}"
            )
        if self.page_size <= 0:
            errors.append("page_size must be positive")
        if self.max_retries < 0:
            errors.append("max_retries must not be negative")
        return errors

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation. API keys are never included."""
        return {
            "provider": self.provider,
            "provider_environment": self.provider_environment,
            "provider_options": {
                name: value for name, value in self.provider_options.items()
                if not any(marker in name for marker in SECRET_OPTION_MARKERS)
            },
            "dodo_brand_id": self.dodo_brand_id,
            "mode": self.mode,
            "status_filter": self.status_filter,
            "type_filter": self.type_filter,
            "dry_run": self.dry_run,
            "assume_yes": self.assume_yes,
            "page_size": self.page_size,
            "max_retries": self.max_retries,
            "rate_limit": self.rate_limit,
            "report_path": self.report_path,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationConfig":
        """Create from dictionary representation."""
        return cls(
            provider=data.get("provider", ""),
            provider_api_key=data.get("provider_api_key"),
            provider_environment=data.get("provider_environment", "production"),
            provider_options=data.get("provider_options", {}),
            dodo_api_key=data.get("dodo_api_key"),
            dodo_brand_id=data.get("dodo_brand_id"),
            mode=data.get("mode", "test_mode"),
            status_filter=data.get("status_filter", "published"),
            type_filter=data.get("type_filter"),
            dry_run=data.get("dry_run", False),
            assume_yes=data.get("assume_yes", False),
            page_size=data.get("page_size", 100),
            max_retries=data.get("max_retries", 0),
            rate_limit=data.get("rate_limit", 10.0),
            report_path=data.get("report_path"),
        )

    @classmethod
    def from_json_file(cls, path: str) -> "MigrationConfig":
        """Load from a JSON file."""
        with open(path) as f:
            return cls.from_dict(json.load(f))


@dataclass
class MigrationRun:
    """A single discount migration run."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    provider: str = ""
    brand_id: Optional[str] = None
    status: MigrationStatus = MigrationStatus.PENDING
    dry_run: bool = False

    # Timing
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    # Statistics
    imported: int = 0
    filtered_out: int = 0
    unsupported: int = 0
    invalid: int = 0
    transformed: int = 0
    succeeded: int = 0
    failed: int = 0

    results: List[MigrationResult] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "provider": self.provider,
            "brand_id": self.brand_id,
            "status": self.status.value,
            "dry_run": self.dry_run,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "imported": self.imported,
            "filtered_out": self.filtered_out,
            "unsupported": self.unsupported,
            "invalid": self.invalid,
            "transformed": self.transformed,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "results": [r.to_dict() for r in self.results],
            "errors": self.errors,
        }

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def add_error(self, phase: str, error: Exception) -> None:
        self.errors.append({
            "phase": phase,
            "error": str(error),
            "error_type": type(error).__name__,
            "timestamp": datetime.utcnow().isoformat(),
        })
