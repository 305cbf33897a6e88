from typing import Optional

from anthropic import AsyncAnthropic

from ...core.normalization.messages import split_system
from ...observability.logging import ProviderLogger
from ..base import NativeRequest, NativeResponse, ProviderTransport
from ..errors import ErrorMapper
from .parsers import parse_message
from .payloads import build_messages_payload


class AnthropicTransport(ProviderTransport):
    """Claude Messages API; the system message travels out of band."""

    provider = "anthropic"

    def __init__(self, api_key: Optional[str], base_url: Optional[str] = None, timeout: float = 60.0):
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout
        self.logger = ProviderLogger(self.provider)
        self._client: Optional[AsyncAnthropic] = None

    @property
    def client(self) -> AsyncAnthropic:
        """Lazy initialization of Anthropic client."""
        if self._client is None:
            if not self._api_key:
                raise ValueError("Anthropic API key is required")
            self._client = AsyncAnthropic(api_key=self._api_key, base_url=self._base_url,
                                          timeout=self._timeout)
        return self._client

    async def complete(self, request: NativeRequest) -> NativeResponse:
        system, turns = split_system(request.turns)
        payload = build_messages_payload(request, system, turns)
        try:
            message = await self.client.messages.create(**payload)
            return parse_message(message, self.provider)
        except Exception as e:
            raise ErrorMapper.map_and_log(e, self.logger, request.model) from e
