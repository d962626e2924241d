"""Loaders for the destination service."""

from .base import BaseLoader, LoadResult
from .dodo_payments import DodoPaymentsLoader

__all__ = [
    "BaseLoader",
    "LoadResult",
    "DodoPaymentsLoader",
]
