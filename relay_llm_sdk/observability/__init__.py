"""Observability layer: structured provider logging."""

from .logging import ProviderLogger

__all__ = [
    "ProviderLogger",
]
