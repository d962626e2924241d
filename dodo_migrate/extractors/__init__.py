"""Discount importers for source providers."""

from typing import Dict, Type

from .base import BaseDiscountImporter, Page
from .fastspring import FastSpringImporter
from .gumroad import GumroadImporter
from .lemonsqueezy import LemonSqueezyImporter
from .paddle import PaddleImporter
from .polar import PolarImporter
from .razorpay import RazorpayImporter
from .stripe import StripeImporter
from .twocheckout import TwoCheckoutImporter
from ..exceptions import ConfigurationError

IMPORTERS: Dict[str, Type[BaseDiscountImporter]] = {
    "lemonsqueezy": LemonSqueezyImporter,
    "stripe": StripeImporter,
    "polar": PolarImporter,
    "paddle": PaddleImporter,
    "gumroad": GumroadImporter,
    "razorpay": RazorpayImporter,
    "2checkout": TwoCheckoutImporter,
    "fastspring": FastSpringImporter,
}


def create_importer(provider: str, api_key: str, **options) -> BaseDiscountImporter:
    """
    Build the importer for a provider.

    Raises:
        ConfigurationError: If the provider is unknown, or its API key or a
            required option is missing
    """
    importer_cls = IMPORTERS.get((provider or "").lower())
    if importer_cls is None:
        raise ConfigurationError(
            f"Unknown provider: {provider}. Supported: {', '.join(sorted(IMPORTERS))}"
        )
    if not api_key:
        raise ConfigurationError(f"An API key is required for {provider}")

    missing = [name for name in importer_cls.REQUIRED_OPTIONS if not options.get(name)]
    if missing:
        raise ConfigurationError(f"Missing required option for {provider}: {', '.join(missing)}")

    return importer_cls(api_key, **options)


__all__ = [
    "BaseDiscountImporter",
    "Page",
    "IMPORTERS",
    "create_importer",
    "FastSpringImporter",
    "GumroadImporter",
    "LemonSqueezyImporter",
    "PaddleImporter",
    "PolarImporter",
    "RazorpayImporter",
    "StripeImporter",
    "TwoCheckoutImporter",
]
