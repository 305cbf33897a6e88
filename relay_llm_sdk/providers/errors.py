"""
Error mapping utilities for provider transports.

Converts vendor SDK and HTTP exceptions into the ``ProviderError`` taxonomy
so the retry engine can branch on exception type alone.
"""

from typing import Any, Dict, Optional, Type

import httpx

from ..observability.logging import ProviderLogger
from ..reliability.error_classifier import ErrorCategory, ErrorClassifier
from .base import ContextLengthExceeded, ProviderError, ProviderFault, RateLimited


class ErrorMapper:
    """Maps provider-specific errors to standardized ProviderError subclasses."""

    CATEGORY_TYPES: Dict[ErrorCategory, Type[ProviderError]] = {
        ErrorCategory.CONTEXT_LENGTH: ContextLengthExceeded,
        ErrorCategory.RATE_LIMIT: RateLimited,
    }

    @staticmethod
    def get_retry_after(error: Exception) -> Optional[float]:
        """
        Extract retry-after value from error if available.

        Args:
            error: The exception to check

        Returns:
            Optional[float]: Seconds to wait before retry, or None
        """
        response = getattr(error, 'response', None)
        headers = getattr(response, 'headers', None)
        if headers:
            retry_after = headers.get('Retry-After')
            if retry_after:
                try:
                    return float(retry_after)
                except ValueError:
                    pass

        retry_after = getattr(error, 'retry_after', None)
        if isinstance(retry_after, (int, float)):
            return float(retry_after)

        return None

    @staticmethod
    def map_error(error: Exception, provider: str) -> ProviderError:
        """
        Map any transport exception to a ProviderError subclass.

        ``ProviderError`` instances pass through untouched. Context overflow
        maps to ``ContextLengthExceeded``, throttling to ``RateLimited`` and
        everything else (including vision rejections, tagged with the
        ``VISION_UNSUPPORTED`` category) to ``ProviderFault``.

        Args:
            error: The exception raised by the SDK or HTTP client
            provider: Provider name for the error message

        Returns:
            ProviderError with appropriate metadata
        """
        if isinstance(error, ProviderError):
            return error

        classification = ErrorClassifier.classify_error(error)

        if isinstance(error, httpx.HTTPStatusError):
            status_code = error.response.status_code
        else:
            status_code = getattr(error, 'status_code', None)
        retry_after = classification.suggested_delay or ErrorMapper.get_retry_after(error)

        detail = getattr(error, 'message', None) or str(error) or type(error).__name__
        message = f"{provider} API error: {detail}"

        error_type = ErrorMapper.CATEGORY_TYPES.get(classification.category, ProviderFault)
        provider_error = error_type(
            message=message,
            provider=provider,
            status_code=status_code if isinstance(status_code, int) else None,
            retry_after=retry_after
        )
        provider_error.is_retryable = classification.is_retryable
        provider_error.original_error = error
        provider_error.category = classification.category

        return provider_error

    @staticmethod
    def get_error_classification(error: ProviderError) -> Dict[str, Any]:
        """
        Get error classification details for logging.

        Args:
            error: The ProviderError to describe

        Returns:
            Dict with error classification details
        """
        category = error.category.value if error.category is not None else 'unknown'
        return {
            'provider': error.provider,
            'status_code': error.status_code,
            'is_retryable': error.is_retryable,
            'retry_after': error.retry_after,
            'error_type': type(error.original_error).__name__ if error.original_error else type(error).__name__,
            'category': category,
        }

    @staticmethod
    def map_and_log(error: Exception, logger: ProviderLogger, model: Optional[str] = None) -> ProviderError:
        """Map ``error`` for ``logger.provider`` and record its classification at debug level."""
        provider_error = ErrorMapper.map_error(error, logger.provider)
        details = ErrorMapper.get_error_classification(provider_error)
        details.pop('provider')
        logger.debug("Provider call failed", model=model, **details)
        return provider_error
