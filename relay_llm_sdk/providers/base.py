"""
Base Provider Transport Interface and Error Taxonomy

A transport is the only place that knows a vendor's request/response shapes.
It performs exactly one network call per method and reports the outcome as a
``NativeResponse`` or a ``ProviderError`` subclass. Retry, sanitizing and
tool-call normalization live in the adapter that composes the transport.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional

from ..models.conversation_types import ImagePart, Turn
from ..models.generation import ToolSpec


class ProviderError(Exception):
    """
    Base exception for provider-related errors.

    Attributes:
        message: Error message
        provider: Provider name
        status_code: HTTP status code if applicable
        retry_after: Seconds to wait before retry if applicable
        is_retryable: Whether this error should be retried
        original_error: The original exception if wrapped
        category: ErrorCategory assigned by the error mapper
    """

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: Optional[int] = None,
        retry_after: Optional[float] = None
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.status_code = status_code
        self.retry_after = retry_after
        self.is_retryable = False  # Default, should be set by error mapper
        self.original_error = None  # Will be set by error mapper if wrapping
        self.category = None


class ContextLengthExceeded(ProviderError):
    """The request's combined input exceeds the provider's token budget."""


class RateLimited(ProviderError):
    """The provider answered HTTP 429 or an equivalent throttle signal."""


class MaxRetriesExceeded(ProviderError):
    """Rate-limit backoff gave up after its retry cap."""


class TransientOutputDefect(ProviderError):
    """The completion is unusable as-is (e.g. cut off mid-reasoning)."""


class ProviderFault(ProviderError):
    """Opaque downstream failure: transport error, malformed or empty completion."""


class DeadlineExceeded(ProviderError):
    """The caller's deadline expired or the call was cancelled."""


class Unsupported(ProviderError):
    """The backend does not offer the requested capability."""


@dataclass
class NativeRequest:
    """Provider-agnostic request handed to a transport."""
    model: str
    turns: List[Turn]
    system_message: Optional[str] = None
    stop: Optional[List[str]] = None
    tools: Optional[List[ToolSpec]] = None
    tool_choice: Optional[str] = None
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class NativeResponse:
    """Raw outcome of one provider call, before normalization."""
    text: Optional[str] = None
    tool_calls: List[Any] = field(default_factory=list)
    finish_reason: Optional[str] = None


class ProviderTransport(ABC):
    """
    One network call per method, in the vendor's native shape.

    Transports must raise ``ProviderError`` subclasses (normally via
    ``ErrorMapper``) and never return fallback strings themselves.
    """

    provider: str = "unknown"

    @abstractmethod
    async def complete(self, request: NativeRequest) -> NativeResponse:
        """Single-shot completion."""

    async def stream(self, request: NativeRequest) -> AsyncIterator[str]:
        """Incremental completion; yields text chunks in arrival order."""
        raise Unsupported(f"Streaming is not supported by {self.provider}.", provider=self.provider)
        yield  # pragma: no cover

    async def embed(self, text: str, model: str) -> List[float]:
        raise Unsupported(f"Embeddings are not supported by {self.provider}.", provider=self.provider)

    @staticmethod
    def image_parts(turn: Turn) -> List[ImagePart]:
        if isinstance(turn.content, str):
            return []
        return [part for part in turn.content if isinstance(part, ImagePart)]
