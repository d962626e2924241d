"""Command-line interface for migrating discounts into Dodo Payments."""

import argparse
import getpass
import logging
import sys
from typing import Callable, List, Optional, Sequence

from .exceptions import ConfigurationError, DestinationError
from .extractors import IMPORTERS
from .loaders import DodoPaymentsLoader
from .models.destination import Brand, DiscountCreateRequest
from .models.migration import DODO_MODES, PROVIDER_ENVIRONMENTS, MigrationConfig, MigrationRun, MigrationStatus
from .orchestrator import DiscountMigrationOrchestrator

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG_ERROR = 2

STATUS_CHOICES = ("published", "draft", "archived", "any")
TYPE_CHOICES = ("percentage", "fixed")


class InteractivePrompter:
    """
    Prompts for whatever the flags, config file and environment left out.

    Supports:
    - Asking for API keys
    - Choosing a Dodo Payments brand from a numbered menu
    - Confirming the migration after the preview
    """

    def __init__(
        self,
        interactive: Optional[bool] = None,
        input_fn: Callable[[str], str] = input,
        secret_fn: Callable[[str], str] = getpass.getpass
    ):
        """
        Initialize the prompter.

        Args:
            interactive: Whether prompting is possible (defaults to stdin being a TTY)
            input_fn: Reads a visible answer
            secret_fn: Reads a hidden answer
        """
        self.interactive = sys.stdin.isatty() if interactive is None else interactive
        self.input_fn = input_fn
        self.secret_fn = secret_fn

    def ask_secret(self, label: str, flag: str, env_var: str) -> str:
        if not self.interactive:
            raise ConfigurationError(f"{label} is required: pass {flag} or set {env_var}")
        value = self.secret_fn(f"Enter your {label}: ").strip()
        if not value:
            raise ConfigurationError(f"{label} is required")
        return value

    def choose_brand(self, brands: List[Brand]) -> str:
        """Pick a brand, asking only when there is more than one."""
        if not brands:
            raise ConfigurationError("No brands found in your Dodo Payments account")
        if len(brands) == 1:
            logger.info(f"Using the only brand: {brands[0].name} ({brands[0].brand_id})")
            return brands[0].brand_id
        if not self.interactive:
            raise ConfigurationError("A brand id is required: pass --dodo-brand-id or set DODO_PAYMENTS_BRAND_ID")

        print("\n=== Dodo Payments Brands ===")
        for i, brand in enumerate(brands, 1):
            print(f"  {i}. {brand.name or '(unnamed)'} ({brand.brand_id})")

        while True:
            choice = self.input_fn("\nSelect the brand to migrate discounts to: ").strip()
            if choice.isdigit() and 1 <= int(choice) <= len(brands):
                return brands[int(choice) - 1].brand_id
            print("Invalid choice. Please try again.")

    def confirm(self, requests: List[DiscountCreateRequest]) -> bool:
        if not self.interactive:
            print("Not running interactively; pass --yes to proceed without confirmation.")
            return False
        answer = self.input_fn(f"\nMigrate {len(requests)} discounts to Dodo Payments? [y/N]: ")
        return answer.strip().lower() in ("y", "yes")


def print_preview(requests: List[DiscountCreateRequest]):
    """Print the discounts about to be created."""
    print("\n" + "=" * 60)
    print(f"  {len(requests)} discounts to migrate")
    print("=" * 60)
    for request in requests:
        details = [f"{request.amount / 100:g}% off"]
        if request.duration:
            details.append(request.duration)
        if request.usage_limit is not None:
            details.append(f"limit {request.usage_limit}")
        if request.expires_at:
            details.append(f"expires {request.expires_at}")
        print(f"  {request.code:<20} {request.name or '':<30} {', '.join(details)}")
    print("-" * 60)


def print_summary(run: MigrationRun):
    print("\n" + "=" * 60)
    print("MIGRATION DRY RUN COMPLETE" if run.dry_run else "MIGRATION COMPLETE")
    print("=" * 60)
    print(f"Status: {run.status.value}")
    print(f"Imported: {run.imported}")
    print(f"Filtered Out: {run.filtered_out}")
    print(f"Unsupported: {run.unsupported}")
    print(f"Invalid: {run.invalid}")
    print(f"Succeeded: {run.succeeded}")
    print(f"Failed: {run.failed}")
    if run.duration_seconds:
        print(f"Duration: {run.duration_seconds:.2f} seconds")
    for error in run.errors:
        print(f"Error ({error['phase']}): {error['error']}")
    for result in run.results:
        if not result.success:
            print(f"  - {result.record_id}: {result.error}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dodo-migrate",
        description="Migrate discounts from other payment platforms to Dodo Payments"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    for provider, importer_cls in IMPORTERS.items():
        provider_parser = subparsers.add_parser(provider, help=f"Migrate discounts from {provider}")
        provider_parser.add_argument("--provider-api-key", help=f"{provider} API key")
        provider_parser.add_argument(
            "--environment", choices=PROVIDER_ENVIRONMENTS,
            help="Provider environment (Polar and Paddle have sandboxes)"
        )
        for option, help_text in importer_cls.OPTIONS.items():
            provider_parser.add_argument(_option_flag(option), dest=option, help=help_text)
        _add_destination_arguments(provider_parser)
        provider_parser.add_argument("--dodo-brand-id", help="Dodo Payments brand to create discounts in")
        provider_parser.add_argument(
            "--status", choices=STATUS_CHOICES,
            help="Only migrate discounts with this status (default: published)"
        )
        provider_parser.add_argument("--type", choices=TYPE_CHOICES, help="Only migrate discounts of this type")
        provider_parser.add_argument("--yes", "-y", action="store_true", help="Skip the confirmation prompt")
        provider_parser.add_argument("--dry-run", action="store_true", help="Simulate without changes")
        provider_parser.add_argument("--config", help="Path to a JSON migration config file")
        provider_parser.add_argument("--report", help="Write a JSON migration report to this path")
        provider_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    brands_parser = subparsers.add_parser("brands", help="List your Dodo Payments brands")
    _add_destination_arguments(brands_parser)
    brands_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    return parser


def _option_flag(option: str) -> str:
    return "--" + option.replace("_", "-")


def _add_destination_arguments(parser: argparse.ArgumentParser):
    parser.add_argument("--dodo-api-key", help="Dodo Payments API key")
    parser.add_argument("--mode", choices=DODO_MODES, help="Dodo Payments mode (default: test_mode)")


def build_config(args: argparse.Namespace, environ=None) -> MigrationConfig:
    """Merge the config file, the environment and the command-line flags."""
    if getattr(args, "config", None):
        try:
            config = MigrationConfig.from_json_file(args.config)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Could not read config file {args.config}: {e}") from e
    else:
        config = MigrationConfig(provider=args.command)
    config.provider = args.command
    options = IMPORTERS[args.command].OPTIONS
    config.apply_env(environ, option_names=options)

    overrides = {
        "provider_api_key": getattr(args, "provider_api_key", None),
        "provider_environment": getattr(args, "environment", None),
        "dodo_api_key": getattr(args, "dodo_api_key", None),
        "dodo_brand_id": getattr(args, "dodo_brand_id", None),
        "mode": getattr(args, "mode", None),
        "status_filter": getattr(args, "status", None),
        "type_filter": getattr(args, "type", None),
        "report_path": getattr(args, "report", None),
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(config, name, value)

    for option in options:
        if getattr(args, option, None):
            config.provider_options[option] = getattr(args, option)

    if getattr(args, "dry_run", False):
        config.dry_run = True
    if getattr(args, "yes", False):
        config.assume_yes = True

    errors = config.validate()
    if errors:
        raise ConfigurationError("; ".join(errors))
    return config


def run_migration(
    args: argparse.Namespace,
    prompter: Optional[InteractivePrompter] = None,
    environ=None
) -> int:
    """Run a migration for the provider named by the sub-command."""
    prompter = prompter or InteractivePrompter()
    config = build_config(args, environ)

    if not config.provider_api_key:
        config.provider_api_key = prompter.ask_secret(
            f"{config.provider} API key", "--provider-api-key", config.provider_env_var
        )
    for option in IMPORTERS[config.provider].REQUIRED_OPTIONS:
        if not config.provider_options.get(option):
            config.provider_options[option] = prompter.ask_secret(
                f"{config.provider} {option.replace('_', ' ')}",
                _option_flag(option),
                config.option_env_var(option),
            )
    if not config.dodo_api_key:
        config.dodo_api_key = prompter.ask_secret(
            "Dodo Payments API key", "--dodo-api-key", "DODO_PAYMENTS_API_KEY"
        )
    if not config.dodo_brand_id:
        brands = _fetch_brands(DodoPaymentsLoader(api_key=config.dodo_api_key, mode=config.mode))
        config.dodo_brand_id = prompter.choose_brand(brands)

    orchestrator = DiscountMigrationOrchestrator.from_config(
        config,
        confirm=prompter.confirm,
        preview=print_preview,
    )
    run = orchestrator.run_migration()
    print_summary(run)

    if run.status == MigrationStatus.FAILED or run.failed:
        return EXIT_FAILED
    return EXIT_OK


def run_list_brands(
    args: argparse.Namespace,
    prompter: Optional[InteractivePrompter] = None,
    environ=None
) -> int:
    """List the brands of the Dodo Payments account."""
    prompter = prompter or InteractivePrompter()
    config = MigrationConfig(provider="", dodo_api_key=args.dodo_api_key).apply_env(environ)
    if args.mode:
        config.mode = args.mode
    if config.mode not in DODO_MODES:
        raise ConfigurationError(f"Invalid Dodo Payments mode: {config.mode}")
    if not config.dodo_api_key:
        config.dodo_api_key = prompter.ask_secret(
            "Dodo Payments API key", "--dodo-api-key", "DODO_PAYMENTS_API_KEY"
        )

    loader = DodoPaymentsLoader(api_key=config.dodo_api_key, mode=config.mode)
    brands = _fetch_brands(loader)

    print(f"\n=== Dodo Payments Brands ({config.mode}) ===")
    if not brands:
        print("No brands found.")
    for brand in brands:
        print(f"  {brand.brand_id}  {brand.name or ''}")
    return EXIT_OK


def _fetch_brands(loader: DodoPaymentsLoader) -> List[Brand]:
    try:
        return loader.list_brands()
    except DestinationError as e:
        raise ConfigurationError(f"Failed to fetch brands from Dodo Payments: {e}") from e


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Set up logging
    log_level = logging.DEBUG if getattr(args, "verbose", False) else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    if not args.command:
        parser.print_help()
        return EXIT_CONFIG_ERROR

    try:
        if args.command == "brands":
            return run_list_brands(args)
        return run_migration(args)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except KeyboardInterrupt:
        print("\nAborted.", file=sys.stderr)
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
