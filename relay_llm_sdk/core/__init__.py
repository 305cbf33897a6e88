"""Core provider-agnostic logic for the relay LLM SDK.

- normalization: message formatting, reasoning sanitizing, tool-call envelopes
"""

__all__ = []
