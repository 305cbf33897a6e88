"""Streaming layer: accumulation of incremental text streams."""

from .accumulator import StreamAccumulator, accumulate, truncate_at_stop

__all__ = [
    "StreamAccumulator",
    "accumulate",
    "truncate_at_stop",
]
