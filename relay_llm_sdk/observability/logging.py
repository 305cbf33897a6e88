"""
Structured logging for adapters, transports and the retry engine.

Records share one bracketed prefix so a single logical call can be followed
across its retries::

    [provider=groq model=llama-3.3-70b request_id=1f3a9c2e attempt=2] Attempt succeeded

Fields whose value is None are left out.
"""

import logging
import time
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

LOGGER_NAMESPACE = "relay_llm_sdk.providers"


def new_request_id() -> str:
    """Short id tying together the records of one logical call."""
    return uuid.uuid4().hex[:8]


def format_fields(fields: Dict[str, Any]) -> str:
    return " ".join(f"{key}={value}" for key, value in fields.items() if value is not None)


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class ProviderLogger:
    """Logger bound to one backend; every record starts with ``provider=<name>``."""

    def __init__(self, provider_name: str):
        self.provider = provider_name
        self.logger = logging.getLogger(f"{LOGGER_NAMESPACE}.{provider_name}")

    def _log(self, level: int, message: str, model: Optional[str],
             request_id: Optional[str], fields: Dict[str, Any]) -> None:
        if not self.logger.isEnabledFor(level):
            return
        prefix = format_fields({"provider": self.provider, "model": model, "request_id": request_id, **fields})
        self.logger.log(level, f"[{prefix}] {message}")

    def debug(self, message: str, model: Optional[str] = None,
              request_id: Optional[str] = None, **fields):
        self._log(logging.DEBUG, message, model, request_id, fields)

    def info(self, message: str, model: Optional[str] = None,
             request_id: Optional[str] = None, **fields):
        self._log(logging.INFO, message, model, request_id, fields)

    def warning(self, message: str, model: Optional[str] = None,
                request_id: Optional[str] = None, **fields):
        self._log(logging.WARNING, message, model, request_id, fields)

    def error(self, message: str, model: Optional[str] = None, request_id: Optional[str] = None,
              error: Optional[Exception] = None, **fields):
        """Log at ERROR; ``error`` contributes its type name and message as fields."""
        if error is not None:
            fields.update(error_type=type(error).__name__, error_msg=str(error))
        self._log(logging.ERROR, message, model, request_id, fields)

    @contextmanager
    def track_request(self, method: str, model: str,
                      request_id: Optional[str] = None) -> Iterator[Dict[str, Any]]:
        """
        Time one public call such as ``send_request`` or ``embed``.

        Yields a dict carrying the ``request_id`` that retry logs should reuse.
        A normal exit is logged at INFO with its duration; an exception
        escaping the block is logged at ERROR and re-raised.
        """
        request_id = request_id or new_request_id()
        started = time.monotonic()
        self.debug(f"{method} started", model=model, request_id=request_id)
        try:
            yield {"request_id": request_id, "model": model, "method": method}
        except Exception as e:
            self.error(f"{method} failed", model=model, request_id=request_id,
                       error=e, duration_ms=_elapsed_ms(started))
            raise
        self.info(f"{method} completed", model=model, request_id=request_id,
                  duration_ms=_elapsed_ms(started))

    def log_attempt(self, outcome: str, model: str, request_id: Optional[str], attempt: int,
                    turns: int, **fields):
        """One pass of the retry loop and how it ended."""
        self.debug(f"Attempt {outcome}", model=model, request_id=request_id,
                   attempt=attempt, turns=turns, **fields)

    def log_streaming_metrics(self, chunks: int, total_chars: int, duration: float,
                              model: str, request_id: Optional[str] = None):
        rate = int(total_chars / duration) if duration > 0 else 0
        self.info("Stream drained", model=model, request_id=request_id, chunks=chunks,
                  total_chars=total_chars, duration_ms=int(duration * 1000), chars_per_second=rate)
