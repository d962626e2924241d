"""Migration orchestrator - coordinates one discount migration run."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from .exceptions import ConfigurationError, MigrationError
from .extractors import BaseDiscountImporter, create_importer
from .loaders import BaseLoader, DodoPaymentsLoader
from .models.destination import DestinationContext, DiscountCreateRequest
from .models.discount import CanonicalDiscount
from .models.migration import MigrationConfig, MigrationRun, MigrationStatus
from .services.filter import filter_discounts
from .services.transformer import DiscountTransformer

logger = logging.getLogger(__name__)

PreviewCallback = Callable[[List[DiscountCreateRequest]], None]
ConfirmCallback = Callable[[List[DiscountCreateRequest]], bool]


class DiscountMigrationOrchestrator:
    """
    Orchestrates the complete migration process.

    Handles:
    - Importing every discount from the source provider
    - Status, capability and type filtering
    - Validation and transformation to create requests
    - Preview and confirmation (through injected callbacks)
    - Sequential loading into Dodo Payments
    - Run statistics and the optional JSON report
    """

    def __init__(
        self,
        config: MigrationConfig,
        importer: BaseDiscountImporter,
        loader: BaseLoader,
        confirm: Optional[ConfirmCallback] = None,
        preview: Optional[PreviewCallback] = None,
        transformer: Optional[DiscountTransformer] = None
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Migration configuration
            importer: Importer for the source provider
            loader: Loader for the destination
            confirm: Called with the pending requests; returning False cancels the run.
                Skipped when ``config.assume_yes`` or ``config.dry_run`` is set.
            preview: Called with the pending requests before confirmation
            transformer: Transformer to use (default rules if omitted)
        """
        self.config = config
        self.importer = importer
        self.loader = loader
        self.confirm = confirm
        self.preview = preview
        self.transformer = transformer or DiscountTransformer()

        self.run: Optional[MigrationRun] = None

    @classmethod
    def from_config(
        cls,
        config: MigrationConfig,
        confirm: Optional[ConfirmCallback] = None,
        preview: Optional[PreviewCallback] = None
    ) -> "DiscountMigrationOrchestrator":
        """Build the importer and the Dodo Payments loader described by a config."""
        errors = config.validate()
        if errors:
            raise ConfigurationError("; ".join(errors))

        importer = create_importer(
            config.provider,
            config.provider_api_key,
            environment=config.provider_environment,
            page_size=config.page_size,
            max_retries=config.max_retries,
            **config.provider_options,
        )
        loader = DodoPaymentsLoader(
            api_key=config.dodo_api_key,
            mode=config.mode,
            dry_run=config.dry_run,
            rate_limit=config.rate_limit,
        )
        return cls(config, importer, loader, confirm=confirm, preview=preview)

    def run_migration(self, raise_on_error: bool = False) -> MigrationRun:
        """
        Run the complete migration.

        Args:
            raise_on_error: Re-raise the error that failed the run

        Returns:
            MigrationRun with results and statistics
        """
        self.run = MigrationRun(
            provider=self.config.provider,
            brand_id=self.config.dodo_brand_id,
            dry_run=self.config.dry_run,
        )
        self.run.started_at = datetime.utcnow()

        try:
            brand = DestinationContext.coerce(self.config.dodo_brand_id or "")
            context = DestinationContext(
                brand_id=brand.brand_id,
                supported_discount_types=tuple(self.loader.supported_discount_types()),
            )

            logger.info("=== PHASE 1: IMPORT ===")
            self.run.status = MigrationStatus.IMPORTING
            discounts = self.importer.import_discounts()
            self.run.imported = len(discounts)

            logger.info("=== PHASE 2: FILTERING ===")
            self.run.status = MigrationStatus.FILTERING
            candidates = self._run_filtering(discounts, context)

            logger.info("=== PHASE 3: TRANSFORMATION ===")
            self.run.status = MigrationStatus.TRANSFORMING
            requests = self._run_transformation(candidates, context)

            if not requests:
                logger.info("No discounts to migrate")
                self.run.status = MigrationStatus.COMPLETED
                return self.run

            if self.preview:
                self.preview(requests)

            self.run.status = MigrationStatus.AWAITING_CONFIRMATION
            if not self._confirmed(requests):
                logger.info("Migration cancelled by user")
                self.run.status = MigrationStatus.CANCELLED
                return self.run

            logger.info("=== PHASE 4: LOADING ===")
            self.run.status = MigrationStatus.LOADING
            self._run_loading(requests)

            self.run.status = MigrationStatus.COMPLETED
            logger.info("=== MIGRATION COMPLETED ===")

        except MigrationError as e:
            self._fail(e)
            if raise_on_error:
                raise

        except Exception as e:
            self._fail(e)
            raise

        finally:
            self.run.completed_at = datetime.utcnow()
            if self.config.report_path:
                try:
                    self.save_report(self.config.report_path)
                except OSError as e:
                    # Never replace the error that ended the run.
                    logger.error(f"Failed to save migration report to {self.config.report_path}: {e}")

        return self.run

    def _run_filtering(
        self,
        discounts: List[CanonicalDiscount],
        context: DestinationContext
    ) -> List[CanonicalDiscount]:
        """Apply the status filter, the destination's capabilities and the type filter."""
        status_filter = self.config.status_filter
        if status_filter == "any":
            status_filter = None

        try:
            selected = filter_discounts(discounts, status_filter=status_filter)
            self.run.filtered_out += len(discounts) - len(selected)

            supported = []
            for discount in selected:
                if context.supports(discount.discount_type):
                    supported.append(discount)
                else:
                    logger.info(
                        f"Skipping {discount.discount_type.value} discount {discount.code or discount.id}: "
                        f"not supported by Dodo Payments"
                    )
            self.run.unsupported = len(selected) - len(supported)

            candidates = filter_discounts(supported, type_filter=self.config.type_filter)
            self.run.filtered_out += len(supported) - len(candidates)
        except ValueError as e:
            raise ConfigurationError(f"Invalid filter: {e}") from e

        logger.info(
            f"{len(candidates)} of {len(discounts)} discounts selected "
            f"({self.run.filtered_out} filtered out, {self.run.unsupported} unsupported)"
        )
        return candidates

    def _run_transformation(
        self,
        candidates: List[CanonicalDiscount],
        context: DestinationContext
    ) -> List[DiscountCreateRequest]:
        """Validate and transform the selected discounts."""
        valid_count = sum(1 for d in candidates if self.transformer.validator.is_valid(d))
        self.run.invalid = len(candidates) - valid_count

        requests = self.transformer.transform_multiple(candidates, context)
        self.run.transformed = len(requests)
        logger.info(f"Transformed {len(requests)} discounts")
        return requests

    def _confirmed(self, requests: List[DiscountCreateRequest]) -> bool:
        if self.config.assume_yes or self.config.dry_run or self.confirm is None:
            return True
        return bool(self.confirm(requests))

    def _run_loading(self, requests: List[DiscountCreateRequest]):
        """Create the discounts in the destination."""
        result = self.loader.load_all(requests)
        self.run.results = result.results
        self.run.succeeded = result.total_succeeded
        self.run.failed = result.total_failed

        logger.info(f"Migration finished: {result.total_succeeded} succeeded, {result.total_failed} failed")

    def _fail(self, error: Exception):
        logger.error(f"Migration failed: {error}")
        phase = self.run.status.value
        self.run.status = MigrationStatus.FAILED
        self.run.add_error(phase, error)

    def save_report(self, path: str):
        """Save the migration report."""
        filepath = Path(path)
        if filepath.parent:
            filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, 'w') as f:
            json.dump(self.run.to_dict(), f, indent=2, default=str)
        logger.info(f"Saved migration report to {filepath}")
