"""
Provider Layer

Transports translate the normalized request into one vendor's wire format;
``ProviderAdapter`` composes a transport with the shared normalization and
reliability machinery. Use ``create_adapter`` to build one.
"""

from .base import (
    ContextLengthExceeded,
    DeadlineExceeded,
    MaxRetriesExceeded,
    NativeRequest,
    NativeResponse,
    ProviderError,
    ProviderFault,
    ProviderTransport,
    RateLimited,
    TransientOutputDefect,
    Unsupported,
)

__all__ = [
    "ProviderError",
    "ContextLengthExceeded",
    "RateLimited",
    "MaxRetriesExceeded",
    "TransientOutputDefect",
    "ProviderFault",
    "DeadlineExceeded",
    "Unsupported",
    "NativeRequest",
    "NativeResponse",
    "ProviderTransport",
]
