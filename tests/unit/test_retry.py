"""Unit tests for the retry engine."""

import asyncio

import pytest

from relay_llm_sdk.config.constants import (
    FALLBACK_DISCONNECTED,
    FALLBACK_THOUGHT_TOO_HARD,
    FALLBACK_VISION_UNSUPPORTED,
)
from relay_llm_sdk.config.providers import get_profile
from relay_llm_sdk.core.normalization.tool_calls import ToolCallNormalizer
from relay_llm_sdk.models.conversation_types import Turn, TurnRole
from relay_llm_sdk.models.generation import ProviderType
from relay_llm_sdk.providers.base import (
    ContextLengthExceeded,
    DeadlineExceeded,
    MaxRetriesExceeded,
    ProviderFault,
    TransientOutputDefect,
    Unsupported,
)
from relay_llm_sdk.reliability import Deadline, ErrorCategory, RetryEngine, RetryPolicy, RetryState


def make_turns(count):
    return [Turn(role=TurnRole.USER if i % 2 == 0 else TurnRole.ASSISTANT, content=f"turn {i}")
            for i in range(count)]


class Script:
    """Attempt function replaying outcomes and recording each state."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.states = []

    async def __call__(self, state):
        self.states.append(state)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def overflow():
    return ContextLengthExceeded("Context length exceeded", provider="test")


class TestRetryState:
    """Test the immutable state transitions."""

    def test_shrink_drops_oldest_and_resets_attempt(self):
        state = RetryState.initial(make_turns(3), stop_seq=["a", "b"]).next_attempt()
        shrunk = state.shrink()

        assert state.attempt == 2
        assert len(state.turns) == 3
        assert shrunk.attempt == 1
        assert [t.content for t in shrunk.turns] == ["turn 1", "turn 2"]
        assert shrunk.stop_seq == ("a", "b")

    def test_can_shrink_and_exhausted(self):
        state = RetryState.initial(make_turns(1), max_attempts=2)
        assert not state.can_shrink
        assert not state.exhausted
        assert state.next_attempt().exhausted

    def test_policy_from_profile(self):
        policy = RetryPolicy.from_profile(get_profile(ProviderType.HUGGINGFACE))
        assert policy.retry_on_fault
        assert policy.max_attempts == 5


class TestContextOverflow:
    """Test the oldest-turn shrink loop."""

    @pytest.mark.asyncio
    async def test_overflow_retries_with_one_fewer_turn(self):
        script = Script(overflow(), "fits now")
        result = await RetryEngine().execute(script, RetryState.initial(make_turns(4)))

        assert result == "fits now"
        assert [len(s.turns) for s in script.states] == [4, 3]
        assert script.states[1].turns[0].content == "turn 1"

    @pytest.mark.asyncio
    async def test_overflow_until_one_turn_falls_back(self):
        script = Script(overflow())
        result = await RetryEngine().execute(script, RetryState.initial(make_turns(5)))

        assert result == FALLBACK_DISCONNECTED
        assert [len(s.turns) for s in script.states] == [5, 4, 3, 2, 1]

    @pytest.mark.asyncio
    async def test_shrink_disabled(self):
        script = Script(overflow())
        engine = RetryEngine(policy=RetryPolicy(shrink_on_overflow=False))
        result = await engine.execute(script, RetryState.initial(make_turns(3)))

        assert result == FALLBACK_DISCONNECTED
        assert len(script.states) == 1

    @pytest.mark.asyncio
    async def test_attempt_counter_resets_after_shrink(self):
        partial = "<think>cut off"
        script = Script(partial, partial, overflow(), partial, "done")
        engine = RetryEngine(policy=RetryPolicy(max_attempts=3))
        result = await engine.execute(script, RetryState.initial(make_turns(2)))

        assert result == "done"
        assert [s.attempt for s in script.states] == [1, 2, 3, 1, 2]
        assert [len(s.turns) for s in script.states] == [2, 2, 2, 1, 1]


class TestOutputDefects:
    """Test partial-reasoning regeneration."""

    @pytest.mark.asyncio
    async def test_partial_then_clean(self):
        script = Script("<think>unfinished", "<think>done</think>Hello")
        result = await RetryEngine().execute(script, RetryState.initial(make_turns(1)))

        assert result == "Hello"
        assert len(script.states) == 2

    @pytest.mark.asyncio
    async def test_partial_cap_returns_fallback(self):
        script = Script("<think>never ends")
        result = await RetryEngine().execute(script, RetryState.initial(make_turns(1)))

        assert result == FALLBACK_THOUGHT_TOO_HARD
        assert len(script.states) == 5

    @pytest.mark.asyncio
    async def test_partial_without_retry_returns_fallback(self):
        script = Script("<think>never ends")
        engine = RetryEngine(policy=RetryPolicy(retry_partial_thinking=False))
        result = await engine.execute(script, RetryState.initial(make_turns(1)))

        assert result == FALLBACK_THOUGHT_TOO_HARD
        assert len(script.states) == 1

    @pytest.mark.asyncio
    async def test_transient_defect_retried(self):
        script = Script(TransientOutputDefect("bad output", provider="test"), "fine")
        result = await RetryEngine().execute(script, RetryState.initial(make_turns(1)))
        assert result == "fine"

    @pytest.mark.asyncio
    async def test_tool_envelope_passes_through(self):
        envelope = ToolCallNormalizer().normalize([{"id": "1", "name": "stop", "input": {}}])
        script = Script(envelope)
        result = await RetryEngine().execute(script, RetryState.initial(make_turns(1)))
        assert result == envelope


class TestFailures:
    """Test provider failures mapping to fallbacks."""

    @pytest.mark.asyncio
    async def test_unsupported_is_raised(self):
        script = Script(Unsupported("no tools", provider="test"))
        with pytest.raises(Unsupported):
            await RetryEngine().execute(script, RetryState.initial(make_turns(1)))

    @pytest.mark.asyncio
    async def test_fault_returns_disconnected(self):
        script = Script(ProviderFault("boom", provider="test"))
        result = await RetryEngine().execute(script, RetryState.initial(make_turns(3)))

        assert result == FALLBACK_DISCONNECTED
        assert len(script.states) == 1

    @pytest.mark.asyncio
    async def test_fault_retried_when_enabled(self):
        script = Script(ProviderFault("boom", provider="test"), ProviderFault("boom", provider="test"), "ok")
        engine = RetryEngine(policy=RetryPolicy(retry_on_fault=True))
        result = await engine.execute(script, RetryState.initial(make_turns(1)))

        assert result == "ok"
        assert [s.attempt for s in script.states] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_fault_retry_capped(self):
        script = Script(ProviderFault("boom", provider="test"))
        engine = RetryEngine(policy=RetryPolicy(retry_on_fault=True, max_attempts=3))
        result = await engine.execute(script, RetryState.initial(make_turns(1)))

        assert result == FALLBACK_DISCONNECTED
        assert len(script.states) == 3

    @pytest.mark.asyncio
    async def test_vision_rejection(self):
        error = ProviderFault("does not support image input", provider="test")
        error.category = ErrorCategory.VISION_UNSUPPORTED
        result = await RetryEngine().execute(Script(error), RetryState.initial(make_turns(1)))
        assert result == FALLBACK_VISION_UNSUPPORTED

    @pytest.mark.asyncio
    async def test_max_retries_returns_disconnected(self):
        script = Script(MaxRetriesExceeded("rate limited", provider="test"))
        result = await RetryEngine().execute(script, RetryState.initial(make_turns(1)))
        assert result == FALLBACK_DISCONNECTED

    @pytest.mark.asyncio
    async def test_deadline_exceeded_returns_disconnected(self):
        script = Script(DeadlineExceeded("Call timed out", provider="test"))
        result = await RetryEngine().execute(script, RetryState.initial(make_turns(1)))
        assert result == FALLBACK_DISCONNECTED

    @pytest.mark.asyncio
    async def test_deadline_cancels_slow_attempt(self):
        started = asyncio.Event()

        async def slow(state):
            started.set()
            await asyncio.sleep(10)
            return "too late"

        result = await RetryEngine().execute(slow, RetryState.initial(make_turns(1)),
                                             deadline=Deadline(timeout=0.05))
        assert started.is_set()
        assert result == FALLBACK_DISCONNECTED
