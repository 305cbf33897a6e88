from __future__ import annotations

from dataclasses import dataclass
from typing import AsyncGenerator, AsyncIterable, List, Optional


@dataclass
class ServerSentEvent:
    event: str = "message"
    data: str = ""
    id: Optional[str] = None


async def iter_sse_events(lines: AsyncIterable[str]) -> AsyncGenerator[ServerSentEvent, None]:
    """Parse a text/event-stream line iterator into events.

    Multi-line ``data:`` fields are joined with newlines; a blank line
    dispatches the pending event.
    """
    event: Optional[str] = None
    data: List[str] = []
    event_id: Optional[str] = None
    async for line in lines:
        line = line.rstrip("\r")
        if line == "":
            if event is not None or data:
                yield ServerSentEvent(event=event or "message", data="\n".join(data), id=event_id)
            event, data, event_id = None, [], None
            continue
        if line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field == "event":
            event = value
        elif field == "data":
            data.append(value)
        elif field == "id":
            event_id = value
    if event is not None or data:
        yield ServerSentEvent(event=event or "message", data="\n".join(data), id=event_id)
