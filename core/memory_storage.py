"""In-process storage implementation."""

import copy

from .interfaces import Storage


class MemoryStorage(Storage):
    """Dict-backed storage; nothing survives the process."""

    def __init__(self, initial: dict = None):
        self._data = copy.deepcopy(initial) if initial else {}

    def get(self, key: str):
        return copy.deepcopy(self._data.get(key))

    def set(self, key: str, value) -> None:
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)
