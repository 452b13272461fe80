"""Infrastructure layer implementations."""

from src.infrastructure import connectivity, remote, storage

__all__ = ["storage", "remote", "connectivity"]
