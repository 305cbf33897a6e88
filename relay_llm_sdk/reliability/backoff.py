from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from ..config.constants import (
    BACKOFF_BASE_DELAY,
    BACKOFF_JITTER,
    BACKOFF_MAX_RETRIES,
    BACKOFF_MULTIPLIER,
)
from ..providers.base import MaxRetriesExceeded, RateLimited

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass(frozen=True)
class BackoffConfig:
    max_attempts: int = BACKOFF_MAX_RETRIES
    base_delay: float = BACKOFF_BASE_DELAY
    multiplier: float = BACKOFF_MULTIPLIER
    jitter: float = BACKOFF_JITTER


class RateLimitBackoff:
    """
    Exponential backoff for HTTP 429 responses.

    The delay before retry ``n`` (0-based) is
    ``multiplier ** n * base_delay + uniform(0, jitter)``. The random term
    spreads concurrent callers that share a per-second quota so they do not
    retry in lockstep. Sleeping is cooperative (``asyncio.sleep``), so other
    calls keep running while one backs off.
    """

    def __init__(
        self,
        config: Optional[BackoffConfig] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Callable[[float, float], float] = random.uniform,
    ):
        self.config = config or BackoffConfig()
        self._sleep = sleep
        self._rng = rng

    def compute_delay(self, retries: int) -> float:
        """Delay in seconds before retry number ``retries`` (0-based)."""
        cfg = self.config
        return (cfg.multiplier ** retries) * cfg.base_delay + self._rng(0, cfg.jitter)

    async def call(self, func: Callable[[], Awaitable[T]], provider: str = "unknown") -> T:
        """
        Run ``func``, retrying on ``RateLimited``.

        Args:
            func: Zero-argument coroutine function performing one attempt
            provider: Provider name for logging and the final error

        Returns:
            The first successful result

        Raises:
            MaxRetriesExceeded: After ``max_attempts`` rate-limited attempts
        """
        last_error: Optional[RateLimited] = None
        for retries in range(self.config.max_attempts):
            try:
                return await func()
            except RateLimited as e:
                last_error = e
                if retries + 1 >= self.config.max_attempts:
                    break
                delay = self.compute_delay(retries)
                logger.warning(
                    f"[provider={provider}] Rate limited, retrying in {delay:.2f}s "
                    f"(attempt {retries + 1}/{self.config.max_attempts})"
                )
                await self._sleep(delay)

        error = MaxRetriesExceeded(
            f"Max retries reached after {self.config.max_attempts} rate-limited attempts",
            provider=provider,
        )
        error.original_error = last_error
        raise error
