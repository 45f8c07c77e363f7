"""Remote Package - HTTP retrieval of the canonical schema."""
from .remote import RemoteSource, RemoteSourceError

__all__ = ["RemoteSource", "RemoteSourceError"]
