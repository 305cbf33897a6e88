from .transport import OpenAITransport

__all__ = ["OpenAITransport"]
