from .transport import ReplicateTransport

__all__ = ["ReplicateTransport"]
