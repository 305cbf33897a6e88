"""
Stream accumulation for incremental-token backends.

Chunks are concatenated in arrival order; as soon as the buffer contains a
stop sequence it is truncated at the first occurrence and the source is
closed without waiting for the rest of the stream.
"""

import inspect
import logging
import time
from typing import AsyncIterable, List, Optional, Sequence, Union

logger = logging.getLogger(__name__)

StopSequence = Optional[Union[str, Sequence[str]]]


def _stop_list(stop_seq: StopSequence) -> List[str]:
    if stop_seq is None:
        return []
    if isinstance(stop_seq, str):
        return [stop_seq] if stop_seq else []
    return [s for s in stop_seq if s]


def truncate_at_stop(text: str, stop_seq: StopSequence) -> str:
    """Cut ``text`` at the earliest occurrence of any stop sequence."""
    cut = len(text)
    for stop in _stop_list(stop_seq):
        index = text.find(stop)
        if index != -1 and index < cut:
            cut = index
    return text[:cut]


class StreamAccumulator:
    """Incremental buffer with stop-sequence truncation."""

    def __init__(self, stop_seq: StopSequence = None):
        self.stops = _stop_list(stop_seq)
        self.chunks = 0
        self.stopped = False
        self._buffer = ""

    def feed(self, chunk: Optional[str]) -> bool:
        """
        Append a chunk.

        Returns:
            True when the stream should end: a stop sequence was seen, or
            the very first chunk was empty.
        """
        if self.stopped:
            return True
        chunk = chunk or ""
        if self.chunks == 0 and chunk == "":
            self.stopped = True
            return True
        self.chunks += 1
        self._buffer += chunk

        # Only the tail can contain a stop sequence that was not there before
        longest = max((len(s) for s in self.stops), default=0)
        window_start = max(0, len(self._buffer) - len(chunk) - longest + 1)
        tail = self._buffer[window_start:]
        truncated_tail = truncate_at_stop(tail, self.stops)
        if len(truncated_tail) != len(tail):
            self._buffer = self._buffer[:window_start] + truncated_tail
            self.stopped = True
        return self.stopped

    @property
    def text(self) -> str:
        return self._buffer


async def accumulate(source: AsyncIterable[str], stop_seq: StopSequence = None,
                     accumulator: Optional[StreamAccumulator] = None) -> str:
    """
    Drain ``source`` into one string, ending early at the stop sequence.

    Args:
        source: Async iterable of text chunks in arrival order
        stop_seq: Stop sequence or list of stop sequences
        accumulator: Optional pre-built accumulator (exposes chunk counts)

    Returns:
        The concatenated text, truncated before the first stop sequence
    """
    acc = accumulator or StreamAccumulator(stop_seq)
    start = time.time()
    iterator = source.__aiter__()
    try:
        async for chunk in iterator:
            if acc.feed(chunk):
                break
    finally:
        aclose = getattr(iterator, "aclose", None)
        if acc.stopped and aclose is not None:
            result = aclose()
            if inspect.isawaitable(result):
                await result
    logger.debug(
        f"Accumulated {acc.chunks} chunks ({len(acc.text)} chars) in "
        f"{int((time.time() - start) * 1000)}ms, stopped_early={acc.stopped}"
    )
    return acc.text
