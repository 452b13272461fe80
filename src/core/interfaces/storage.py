"""Abstract interface for durable local storage."""

from abc import ABC, abstractmethod


class IKeyValueStore(ABC):
    """
    Durable key-value persistence.

    ``set`` and ``delete`` must not return before the write is durable.
    """

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Get the value stored under key."""
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete key. Returns True if it existed."""
        pass

    @abstractmethod
    async def keys(self, prefix: str = "") -> list[str]:
        """List keys starting with prefix, in ascending order."""
        pass

    async def delete_many(self, keys: list[str]) -> int:
        """Delete several keys. Returns how many existed."""
        removed = 0
        for key in keys:
            if await self.delete(key):
                removed += 1
        return removed
