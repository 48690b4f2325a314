"""Error types raised by the fillbox game core."""


class GameError(Exception):
    """Base class for recoverable game errors.

    The message is meant to be shown to the learner or the parent as-is.
    """


class NoListSelectedError(GameError):
    def __init__(self, message: str = "No content list selected"):
        super().__init__(message)


class EmptyListError(GameError):
    def __init__(self, message: str = "Selected content list is empty"):
        super().__init__(message)


class ListNotFoundError(GameError):
    def __init__(self, list_id: str):
        super().__init__(f"Content list not found: {list_id}")
        self.list_id = list_id


class UnknownBoxError(GameError):
    """A box id that is not part of the current round.

    Stale UI callbacks can legitimately reference boxes of a cleared round,
    so the engine treats this as a no-op instead of letting it escape.
    """

    def __init__(self, box_id: str):
        super().__init__(f"Unknown box: {box_id}")
        self.box_id = box_id


class InvalidConfigError(GameError):
    pass


class InvalidListError(GameError):
    pass


class PersistenceError(GameError):
    """A durable read or write failed."""

    def __init__(self, message: str, key: str = None):
        super().__init__(message)
        self.key = key
