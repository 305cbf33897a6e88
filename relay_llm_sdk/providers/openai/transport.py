"""
OpenAI wire-format transport.

Serves OpenAI itself and every OpenAI-compatible backend (Azure, DeepSeek,
xAI, OpenRouter, Groq, Mistral, Gemini's compat endpoint and others); they
differ only in base URL, key and profile flags.
"""

from typing import AsyncIterator, List, Optional, Union

from openai import AsyncAzureOpenAI, AsyncOpenAI

from ...core.normalization.messages import split_system
from ...observability.logging import ProviderLogger
from ..base import NativeRequest, NativeResponse, ProviderTransport
from ..errors import ErrorMapper
from .parsers import parse_chat_completion, parse_embedding, parse_responses_api
from .payloads import build_chat_payload, build_responses_payload
from .streaming import stream_chat_completion

# Only OpenAI and Azure accept encoding_format on the embeddings endpoint
_ENCODING_FORMAT_PROVIDERS = {"openai", "azure"}


class OpenAITransport(ProviderTransport):
    """Chat Completions, Responses API and embeddings over the OpenAI SDK."""

    def __init__(
        self,
        provider: str,
        api_key: Optional[str],
        base_url: Optional[str] = None,
        organization: Optional[str] = None,
        api_version: Optional[str] = None,
        use_responses_api: bool = False,
        timeout: float = 60.0,
    ):
        if provider == "azure" and not api_version:
            raise ValueError("Azure OpenAI requires 'api_version' in params")
        if provider == "azure" and not base_url:
            raise ValueError("Azure OpenAI requires an endpoint url")
        self.provider = provider
        self._api_key = api_key
        self._base_url = base_url
        self._organization = organization
        self._api_version = api_version
        self._timeout = timeout
        self.use_responses_api = use_responses_api
        self.logger = ProviderLogger(provider)
        self._client: Optional[Union[AsyncOpenAI, AsyncAzureOpenAI]] = None

    @property
    def client(self) -> Union[AsyncOpenAI, AsyncAzureOpenAI]:
        """Lazy initialization of the SDK client."""
        if self._client is None:
            if self.provider == "azure":
                self._client = AsyncAzureOpenAI(
                    api_key=self._api_key,
                    azure_endpoint=self._base_url,
                    api_version=self._api_version,
                    timeout=self._timeout,
                )
            else:
                # Keyless local servers (vLLM) still need a non-empty key for the SDK
                self._client = AsyncOpenAI(
                    api_key=self._api_key or "EMPTY",
                    base_url=self._base_url,
                    organization=self._organization,
                    timeout=self._timeout,
                )
        return self._client

    async def complete(self, request: NativeRequest) -> NativeResponse:
        try:
            if self.use_responses_api and not request.tools:
                instructions, turns = split_system(request.turns)
                payload = build_responses_payload(request, instructions, turns)
                self.logger.debug("Awaiting Responses API response", model=request.model)
                response = await self.client.responses.create(**payload)
                return parse_responses_api(response, request.stop)

            payload = build_chat_payload(request)
            if request.tools:
                self.logger.info(f"Using native tool calling with {len(request.tools)} tools",
                                 model=request.model)
            completion = await self.client.chat.completions.create(**payload)
            return parse_chat_completion(completion, self.provider)
        except Exception as e:
            raise ErrorMapper.map_and_log(e, self.logger, request.model) from e

    async def stream(self, request: NativeRequest) -> AsyncIterator[str]:
        payload = build_chat_payload(request)
        try:
            async for piece in stream_chat_completion(self.client, payload):
                yield piece
        except Exception as e:
            raise ErrorMapper.map_and_log(e, self.logger, request.model) from e

    async def embed(self, text: str, model: str) -> List[float]:
        kwargs = {"model": model, "input": text}
        if self.provider in _ENCODING_FORMAT_PROVIDERS:
            kwargs["encoding_format"] = "float"
        try:
            response = await self.client.embeddings.create(**kwargs)
            return parse_embedding(response, self.provider)
        except Exception as e:
            raise ErrorMapper.map_and_log(e, self.logger, model) from e
