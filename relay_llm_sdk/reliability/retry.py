"""
Retry engine for one logical ``send_request`` call.

Two retry axes run inside one bounded loop over an immutable ``RetryState``:

- Context overflow: drop the oldest turn and try again; the attempt
  counter restarts for the shorter request.
- Output defects (truncated reasoning, retryable faults): same inputs,
  next attempt, up to ``max_attempts``.

Rate-limit backoff wraps the individual attempt (see ``backoff.py``) and is
invisible to this loop. Exhaustion always ends in a fixed fallback string;
only ``Unsupported`` is raised to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Sequence, Tuple, Union

from ..config.constants import (
    DEFAULT_MAX_ATTEMPTS,
    FALLBACK_DISCONNECTED,
    FALLBACK_THOUGHT_TOO_HARD,
    FALLBACK_VISION_UNSUPPORTED,
)
from ..core.normalization.thinking import ThinkingSanitizer
from ..core.normalization.tool_calls import is_tool_call_envelope
from ..models.conversation_types import Turn
from ..models.generation import ToolSpec
from ..observability.logging import ProviderLogger
from ..providers.base import (
    ContextLengthExceeded,
    DeadlineExceeded,
    MaxRetriesExceeded,
    ProviderError,
    TransientOutputDefect,
    Unsupported,
)
from .error_classifier import ErrorCategory

if TYPE_CHECKING:
    from ..config.providers import AdapterProfile
    from .deadline import Deadline


@dataclass(frozen=True)
class RetryPolicy:
    """Which retry axes apply, and how far."""
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_partial_thinking: bool = True
    shrink_on_overflow: bool = True
    retry_on_fault: bool = False

    @classmethod
    def from_profile(cls, profile: "AdapterProfile") -> "RetryPolicy":
        return cls(
            max_attempts=profile.max_attempts,
            retry_partial_thinking=profile.retry_partial_thinking,
            shrink_on_overflow=profile.shrink_on_overflow,
            retry_on_fault=profile.retry_on_fault,
        )


@dataclass(frozen=True)
class RetryState:
    """
    Inputs of one attempt.

    Only two transitions exist: ``shrink()`` for context overflow and
    ``next_attempt()`` for output defects. Each returns a new state.
    """
    turns: Tuple[Turn, ...]
    system_message: Optional[str] = None
    stop_seq: Optional[Union[str, Tuple[str, ...]]] = None
    tools: Optional[Tuple[ToolSpec, ...]] = None
    attempt: int = 1
    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    @classmethod
    def initial(cls, turns: Sequence[Turn], system_message: Optional[str] = None,
                stop_seq=None, tools: Optional[Sequence[ToolSpec]] = None,
                max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> "RetryState":
        if stop_seq is not None and not isinstance(stop_seq, str):
            stop_seq = tuple(stop_seq)
        return cls(
            turns=tuple(turns),
            system_message=system_message,
            stop_seq=stop_seq,
            tools=tuple(tools) if tools else None,
            max_attempts=max_attempts,
        )

    @property
    def can_shrink(self) -> bool:
        return len(self.turns) > 1

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.max_attempts

    def shrink(self) -> "RetryState":
        """Drop the oldest turn; the attempt counter restarts."""
        return replace(self, turns=self.turns[1:], attempt=1)

    def next_attempt(self) -> "RetryState":
        return replace(self, attempt=self.attempt + 1)


AttemptFn = Callable[[RetryState], Awaitable[str]]


class RetryEngine:
    """Drives attempts until a clean result or a fallback string."""

    def __init__(self, policy: Optional[RetryPolicy] = None,
                 sanitizer: Optional[ThinkingSanitizer] = None,
                 logger: Optional[ProviderLogger] = None):
        self.policy = policy or RetryPolicy()
        self.sanitizer = sanitizer or ThinkingSanitizer()
        self.logger = logger or ProviderLogger("unknown")

    async def execute(self, attempt_fn: AttemptFn, state: RetryState,
                      deadline: Optional["Deadline"] = None,
                      model: Optional[str] = None, request_id: Optional[str] = None) -> str:
        """
        Run ``attempt_fn`` until it yields usable output.

        Args:
            attempt_fn: Performs one provider call for a state; returns raw
                text or a tool-call envelope, raises ``ProviderError``
            state: Initial retry state
            deadline: Optional bound on the whole logical call
            model: Model name for log records
            request_id: Request id for log records

        Returns:
            Sanitized text, a tool-call envelope, or a fallback string

        Raises:
            Unsupported: The backend lacks the requested capability
        """
        provider = self.logger.provider
        while True:
            try:
                if deadline is not None:
                    raw = await deadline.run(attempt_fn(state), provider=provider)
                else:
                    raw = await attempt_fn(state)
            except Unsupported:
                raise
            except ContextLengthExceeded as e:
                if self.policy.shrink_on_overflow and state.can_shrink:
                    self.logger.warning(
                        f"Context length exceeded, dropping oldest turn ({len(state.turns)} -> {len(state.turns) - 1})",
                        model=model, request_id=request_id, attempt=state.attempt
                    )
                    state = state.shrink()
                    continue
                self.logger.warning("Context length exceeded with no turns left to drop",
                                    model=model, request_id=request_id, error=type(e).__name__)
                return FALLBACK_DISCONNECTED
            except TransientOutputDefect as e:
                next_state = self._next_defect_state(state)
                if next_state is None:
                    self._log_exhausted(state, model, request_id, e.message)
                    return FALLBACK_THOUGHT_TOO_HARD
                state = next_state
                continue
            except (DeadlineExceeded, MaxRetriesExceeded) as e:
                self.logger.error("Giving up on request", model=model, request_id=request_id, error=e)
                return FALLBACK_DISCONNECTED
            except ProviderError as e:
                if e.category == ErrorCategory.VISION_UNSUPPORTED:
                    self.logger.warning("Model rejected image input", model=model, request_id=request_id)
                    return FALLBACK_VISION_UNSUPPORTED
                if self.policy.retry_on_fault and not state.exhausted:
                    self.logger.warning("Provider fault, retrying", model=model, request_id=request_id,
                                        attempt=state.attempt, error=type(e).__name__)
                    state = state.next_attempt()
                    continue
                self.logger.error("Provider call failed", model=model, request_id=request_id, error=e)
                return FALLBACK_DISCONNECTED
            except Exception as e:
                # Attempt functions should only raise ProviderError
                self.logger.error("Unexpected error during attempt", model=model,
                                  request_id=request_id, error=e)
                return FALLBACK_DISCONNECTED

            if is_tool_call_envelope(raw):
                return raw

            result = self.sanitizer.sanitize(raw)
            if not result.partial:
                self.logger.log_attempt("succeeded", model=model, request_id=request_id,
                                        attempt=state.attempt, turns=len(state.turns))
                return result.clean

            next_state = self._next_defect_state(state)
            if next_state is None:
                self._log_exhausted(state, model, request_id, "partial reasoning block")
                return FALLBACK_THOUGHT_TOO_HARD
            self.logger.warning("Partial reasoning block, regenerating", model=model,
                                request_id=request_id, attempt=state.attempt)
            state = next_state

    def _next_defect_state(self, state: RetryState) -> Optional[RetryState]:
        if not self.policy.retry_partial_thinking or state.exhausted:
            return None
        return state.next_attempt()

    def _log_exhausted(self, state: RetryState, model, request_id, reason: str):
        self.logger.warning(f"Output defect not repaired after {state.attempt} attempts: {reason}",
                            model=model, request_id=request_id)
