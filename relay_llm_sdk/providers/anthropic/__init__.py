from .transport import AnthropicTransport

__all__ = ["AnthropicTransport"]
