"""
Ollama native API transport.

Talks to ``/api/chat`` and ``/api/embeddings`` directly over httpx. Images
ride in each message's ``images`` list as bare base64 strings.
"""

from typing import Any, Dict, List, Optional

import httpx

from ...models.conversation_types import Turn
from ...observability.logging import ProviderLogger
from ..base import NativeRequest, NativeResponse, ProviderFault, ProviderTransport
from ..errors import ErrorMapper
from ..http import HttpSession


def ollama_message(turn: Turn) -> Dict[str, Any]:
    message: Dict[str, Any] = {"role": turn.role, "content": turn.text()}
    images = [part.data for part in ProviderTransport.image_parts(turn)]
    if images:
        message["images"] = images
    return message


class OllamaTransport(ProviderTransport):
    """Local Ollama server."""

    provider = "ollama"
    CHAT_ENDPOINT = "/api/chat"
    EMBEDDING_ENDPOINT = "/api/embeddings"

    def __init__(self, base_url: str = "http://127.0.0.1:11434", timeout: float = 120.0,
                 http_client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip("/")
        self.session = HttpSession(timeout=timeout, client=http_client)
        self.logger = ProviderLogger(self.provider)

    def build_chat_body(self, request: NativeRequest) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "model": request.model,
            "messages": [ollama_message(turn) for turn in request.turns],
            "stream": False,
        }
        body.update(request.params)
        if request.tools:
            body["tools"] = [tool.to_openai() for tool in request.tools]
        elif request.stop:
            body.setdefault("options", {})["stop"] = list(request.stop)
        return body

    async def complete(self, request: NativeRequest) -> NativeResponse:
        body = self.build_chat_body(request)
        try:
            data = await self.session.post_json(self.base_url + self.CHAT_ENDPOINT, body)
        except Exception as e:
            raise ErrorMapper.map_and_log(e, self.logger, request.model) from e

        message = data.get("message") if isinstance(data, dict) else None
        if not isinstance(message, dict):
            raise ProviderFault("No response data.", provider=self.provider)

        # done_reason uses the OpenAI vocabulary ("stop", "length")
        return NativeResponse(
            text=message.get("content"),
            tool_calls=list(message.get("tool_calls") or []),
            finish_reason=data.get("done_reason"),
        )

    async def embed(self, text: str, model: str) -> List[float]:
        try:
            data = await self.session.post_json(self.base_url + self.EMBEDDING_ENDPOINT,
                                                {"model": model, "prompt": text})
        except Exception as e:
            raise ErrorMapper.map_and_log(e, self.logger, model) from e
        embedding = data.get("embedding") if isinstance(data, dict) else None
        if not embedding:
            raise ProviderFault("Ollama returned no embedding", provider=self.provider)
        return list(embedding)
