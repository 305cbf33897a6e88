"""
Replicate predictions transport.

Plain chat streams a single rendered prompt over server-sent events; tool
calling switches to a blocking prediction with chat-style ``messages``
input, since tool calls only arrive in a finished output.
"""

import asyncio
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from ...observability.logging import ProviderLogger
from ..base import NativeRequest, NativeResponse, ProviderFault, ProviderTransport
from ..errors import ErrorMapper
from ..http import HttpSession
from .payloads import messages_input, prediction_body, prompt_input
from .streaming import iter_sse_events

_TERMINAL_STATES = {"succeeded", "failed", "canceled"}


def _output_to_response(output: Any) -> NativeResponse:
    if isinstance(output, dict):
        tool_calls = output.get("tool_calls") or []
        if tool_calls:
            return NativeResponse(tool_calls=list(tool_calls))
        return NativeResponse(text=output.get("content") or "")
    if isinstance(output, list):
        return NativeResponse(text="".join(str(piece) for piece in output))
    return NativeResponse(text="" if output is None else str(output))


class ReplicateTransport(ProviderTransport):
    """Replicate HTTP API."""

    provider = "replicate"

    def __init__(self, api_key: str, base_url: str = "https://api.replicate.com/v1",
                 timeout: float = 120.0, poll_interval: float = 1.0,
                 http_client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip("/")
        self.poll_interval = poll_interval
        self.session = HttpSession(
            timeout=timeout,
            headers={"Authorization": f"Bearer {api_key}"},
            client=http_client,
        )
        self.logger = ProviderLogger(self.provider)

    def _prediction(self, data: Any) -> Dict[str, Any]:
        if not isinstance(data, dict):
            raise ProviderFault("No response data.", provider=self.provider)
        return data

    async def run(self, model: str, inputs: Dict[str, Any]) -> Any:
        """Create a prediction, wait for it to finish and return its output."""
        path, body = prediction_body(model, inputs)
        prediction = self._prediction(
            await self.session.post_json(self.base_url + path, body, headers={"Prefer": "wait"}))
        while prediction.get("status") not in _TERMINAL_STATES:
            await asyncio.sleep(self.poll_interval)
            prediction = self._prediction(await self.session.get_json(prediction["urls"]["get"]))
        if prediction["status"] != "succeeded":
            raise ProviderFault(
                f"Prediction {prediction.get('id')} {prediction['status']}: {prediction.get('error')}",
                provider=self.provider,
            )
        return prediction.get("output")

    async def complete(self, request: NativeRequest) -> NativeResponse:
        inputs = messages_input(request) if request.tools else prompt_input(request)
        try:
            output = await self.run(request.model, inputs)
        except Exception as e:
            raise ErrorMapper.map_and_log(e, self.logger, request.model) from e
        return _output_to_response(output)

    async def stream(self, request: NativeRequest) -> AsyncIterator[str]:
        path, body = prediction_body(request.model, prompt_input(request), stream=True)
        try:
            prediction = self._prediction(await self.session.post_json(self.base_url + path, body))
            stream_url = (prediction.get("urls") or {}).get("stream")
            if not stream_url:
                raise ProviderFault(f"Model {request.model} does not support streaming",
                                    provider=self.provider)
            async with self.session.open() as client:
                headers = {**self.session.headers, "Accept": "text/event-stream", "Cache-Control": "no-store"}
                async with client.stream("GET", stream_url, headers=headers) as response:
                    response.raise_for_status()
                    async for event in iter_sse_events(response.aiter_lines()):
                        if event.event == "output":
                            yield event.data
                        elif event.event == "error":
                            raise ProviderFault(f"Replicate stream error: {event.data}", provider=self.provider)
                        elif event.event == "done":
                            break
        except Exception as e:
            raise ErrorMapper.map_and_log(e, self.logger, request.model) from e

    async def embed(self, text: str, model: str) -> List[float]:
        try:
            output = await self.run(model, {"text": text})
        except Exception as e:
            raise ErrorMapper.map_and_log(e, self.logger, model) from e
        vectors = output.get("vectors") if isinstance(output, dict) else None
        if not vectors:
            raise ProviderFault("Replicate returned no vectors", provider=self.provider)
        return list(vectors)
