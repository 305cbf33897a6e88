from .transport import OllamaTransport

__all__ = ["OllamaTransport"]
