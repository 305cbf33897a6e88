"""
Provider adapter: one instance per configured backend.

The adapter is the single entry point callers use. It composes a transport
(vendor wire format) with the shared machinery: message formatting, the
retry engine, reasoning sanitizing, tool-call normalization and rate-limit
backoff. Backends differ only through their ``AdapterProfile`` flags.
"""

import re
import time
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from ..config.providers import AdapterProfile
from ..core.normalization.messages import (
    AlternationPolicy,
    MessageFormatter,
    append_image_turn,
    split_system,
)
from ..core.normalization.thinking import ThinkingSanitizer
from ..core.normalization.tool_calls import ToolCallNormalizer
from ..models.conversation_types import Turn, coerce_turns
from ..models.generation import ProviderConfig, ToolSpec, coerce_tools
from ..observability.logging import ProviderLogger
from ..reliability.backoff import RateLimitBackoff
from ..reliability.deadline import Deadline
from ..reliability.retry import RetryEngine, RetryPolicy, RetryState
from ..streaming.accumulator import StreamAccumulator, accumulate
from .base import (
    ContextLengthExceeded,
    NativeRequest,
    NativeResponse,
    ProviderError,
    ProviderFault,
    ProviderTransport,
    Unsupported,
)
from .errors import ErrorMapper

# Reasoning model families that reject the stop parameter
REASONING_MODEL_PATTERN = re.compile(r"(^|/)(o\d|gpt-5)", re.IGNORECASE)

_PROFILE_DEFAULT = object()

StopSequence = Optional[Union[str, Sequence[str]]]


class ProviderAdapter:
    """
    Uniform ``send_request`` / ``send_vision_request`` / ``embed`` surface.

    Chat calls always resolve to a string: prose, a tool-call envelope, or a
    fixed fallback message. Only ``Unsupported`` is raised from chat calls.
    """

    def __init__(
        self,
        config: ProviderConfig,
        profile: AdapterProfile,
        transport: ProviderTransport,
        formatter: Optional[MessageFormatter] = None,
        engine: Optional[RetryEngine] = None,
        normalizer: Optional[ToolCallNormalizer] = None,
        backoff: Optional[RateLimitBackoff] = None,
    ):
        self.config = config
        self.profile = profile
        self.transport = transport
        self.provider = profile.provider.value
        self.logger = ProviderLogger(self.provider)
        self.formatter = formatter or MessageFormatter(
            alternation=AlternationPolicy.STRICT if profile.strict_alternation else AlternationPolicy.RELAXED,
            text_only=not profile.supports_vision,
        )
        self.engine = engine or RetryEngine(
            policy=RetryPolicy.from_profile(profile),
            sanitizer=ThinkingSanitizer(orphan_close=profile.orphan_close),
            logger=self.logger,
        )
        self.normalizer = normalizer or ToolCallNormalizer(provider=self.provider)
        self.backoff = backoff or RateLimitBackoff()

    @property
    def model(self) -> str:
        return self.config.model or self.profile.default_model

    @property
    def embedding_model(self) -> Optional[str]:
        return self.config.embedding_model or self.profile.default_embedding_model

    @property
    def params(self) -> Dict[str, Any]:
        return {**self.profile.default_params, **self.config.params}

    async def send_request(
        self,
        turns: Iterable[Union[Turn, dict]],
        system_message: Optional[str] = None,
        stop_seq: StopSequence = _PROFILE_DEFAULT,
        tools: Optional[Iterable[Union[ToolSpec, dict]]] = None,
        deadline: Optional[Deadline] = None,
    ) -> str:
        """
        Send a conversation and return the model's reply.

        Args:
            turns: Conversation in order (``Turn`` objects or role/content dicts)
            system_message: Instructions sent as the leading system turn
            stop_seq: Stop sequence or list of them; defaults to the profile's
            tools: Tool definitions enabling native tool calling
            deadline: Optional timeout/cancellation for the whole call

        Returns:
            Sanitized reply text, a serialized tool-call envelope (check with
            ``is_tool_call_envelope`` first) or a fixed fallback message

        Raises:
            Unsupported: Tools were given to a backend without tool support
        """
        tool_specs = coerce_tools(tools)
        if tool_specs and not self.profile.supports_tools:
            raise Unsupported(f"Native tool calling is not supported by {self.provider}.",
                              provider=self.provider)

        leading_system, conversation = split_system(coerce_turns(turns))
        if leading_system:
            system_message = leading_system
        if stop_seq is _PROFILE_DEFAULT:
            stop_seq = self.profile.default_stop

        state = RetryState.initial(
            conversation,
            system_message=system_message,
            stop_seq=stop_seq,
            tools=tool_specs,
            max_attempts=self.engine.policy.max_attempts,
        )
        with self.logger.track_request("send_request", self.model) as request_info:
            return await self.engine.execute(
                self._attempt, state, deadline=deadline,
                model=self.model, request_id=request_info["request_id"],
            )

    async def send_vision_request(
        self,
        turns: Iterable[Union[Turn, dict]],
        system_message: str,
        image: Union[bytes, str],
        mime_type: str = "image/jpeg",
        deadline: Optional[Deadline] = None,
    ) -> str:
        """
        Ask the model about an image.

        A user turn carrying ``system_message`` as text plus the image is
        appended to a copy of ``turns``.

        Raises:
            Unsupported: The backend does not accept image input
        """
        if not self.profile.supports_vision:
            raise Unsupported(f"Vision is not supported by {self.provider}.", provider=self.provider)
        vision_turns = append_image_turn(turns, system_message, image, mime_type)
        return await self.send_request(vision_turns, system_message, deadline=deadline)

    async def embed(self, text: str, deadline: Optional[Deadline] = None) -> List[float]:
        """
        Embed ``text`` with the configured embedding model.

        Rate limits are retried with exponential backoff; any other failure is
        raised, since an embedding has no meaningful fallback value.

        Raises:
            Unsupported: The backend offers no embeddings
            MaxRetriesExceeded: Still rate limited after the retry cap
        """
        if not self.profile.supports_embeddings or not self.embedding_model:
            raise Unsupported(f"Embeddings are not supported by {self.provider}.", provider=self.provider)

        model = self.embedding_model
        max_chars = self.profile.embed_max_chars
        if max_chars and len(text) > max_chars:
            text = text[:max_chars]

        with self.logger.track_request("embed", model):
            call = self.backoff.call(lambda: self.transport.embed(text, model), provider=self.provider)
            if deadline is not None:
                return await deadline.run(call, provider=self.provider)
            return await call

    def effective_stop(self, stop_seq: StopSequence, tools: Optional[Sequence[ToolSpec]]) -> Optional[List[str]]:
        """Stop sequences actually sent; dropped for tool calls, reasoning models and backends without support."""
        if tools or not self.profile.supports_stop or REASONING_MODEL_PATTERN.search(self.model):
            return None
        if stop_seq is None:
            return None
        stops = [stop_seq] if isinstance(stop_seq, str) else list(stop_seq)
        return [s for s in stops if s] or None

    def build_request(self, state: RetryState) -> NativeRequest:
        tools = list(state.tools) if state.tools else None
        return NativeRequest(
            model=self.model,
            turns=self.formatter.format(state.turns, state.system_message),
            system_message=state.system_message,
            stop=self.effective_stop(state.stop_seq, tools),
            tools=tools,
            tool_choice=self.profile.tool_choice if tools else None,
            params=self.params,
        )

    async def _call_transport(self, request: NativeRequest) -> NativeResponse:
        if self.profile.stream_text and not request.tools:
            accumulator = StreamAccumulator(request.stop)
            start = time.time()
            text = await accumulate(self.transport.stream(request), accumulator=accumulator)
            self.logger.log_streaming_metrics(accumulator.chunks, len(text), time.time() - start,
                                              model=request.model)
            return NativeResponse(text=text)
        return await self.transport.complete(request)

    async def _attempt(self, state: RetryState) -> str:
        try:
            return await self._run_attempt(state)
        except ProviderError:
            raise
        except Exception as e:
            raise ErrorMapper.map_and_log(e, self.logger, self.model) from e

    async def _run_attempt(self, state: RetryState) -> str:
        request = self.build_request(state)
        self.logger.debug(
            "Awaiting response" + (f" with native tool calling ({len(request.tools)} tools)" if request.tools else ""),
            model=request.model, attempt=state.attempt, turns=len(state.turns),
        )
        if self.profile.backoff_on_rate_limit:
            response = await self.backoff.call(lambda: self._call_transport(request), provider=self.provider)
        else:
            response = await self._call_transport(request)

        if response.tool_calls:
            if response.text:
                self.logger.info("Discarding prose that accompanied tool calls", model=request.model)
            self.logger.info(f"Received {len(response.tool_calls)} tool call(s)", model=request.model)
            return self.normalizer.normalize(response.tool_calls)

        if response.finish_reason == "length" and self.profile.overflow_on_length_finish:
            raise ContextLengthExceeded("Context length exceeded", provider=self.provider)

        if response.text is None:
            raise ProviderFault("Completion contained no text", provider=self.provider)

        text = response.text
        for token, replacement in self.profile.token_replacements:
            text = text.replace(token, replacement)
        return text
