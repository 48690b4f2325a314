"""Abstract base classes for dependency injection."""

from abc import ABC, abstractmethod


class Storage(ABC):
    """Abstract base class for a durable key-value store.

    Values are JSON-serialisable objects. Implementations may block; the
    game core always calls them through `core.persistence.Persistence`,
    which runs them off the event loop.
    """

    @abstractmethod
    def get(self, key: str):
        """Load the value stored under key. Returns None if absent."""
        pass

    @abstractmethod
    def set(self, key: str, value) -> None:
        """Store value under key, replacing any previous value."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key. Deleting an absent key is not an error."""
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """List the keys currently stored."""
        pass

    def is_available(self) -> bool:
        """Probe the store with a throwaway write."""
        probe = '__storage_probe__'
        try:
            self.set(probe, 'ok')
            self.delete(probe)
            return True
        except Exception:
            return False

    def close(self) -> None:
        """Release any resources held by the store."""
        pass
