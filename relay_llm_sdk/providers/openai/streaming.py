from __future__ import annotations

import inspect
from typing import Any, AsyncGenerator, Dict


async def stream_chat_completion(client: Any, payload: Dict[str, Any]) -> AsyncGenerator[str, None]:
    """Stream from Chat Completions yielding only non-empty text deltas.

    The first chunk of an OpenAI stream usually carries only the role, so
    empty deltas are skipped rather than passed on as end-of-stream.
    """
    stream = await client.chat.completions.create(**payload, stream=True)
    try:
        async for chunk in stream:
            choices = getattr(chunk, "choices", None)
            if not choices:
                continue
            piece = getattr(choices[0].delta, "content", None)
            if piece:
                yield str(piece)
    finally:
        close = getattr(stream, "close", None)
        if callable(close):
            result = close()
            if inspect.isawaitable(result):
                await result
