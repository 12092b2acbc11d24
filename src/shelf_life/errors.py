"""Error types raised by Shelf Life."""

from uuid import UUID


class ShelfLifeError(Exception):
    """Base class for all Shelf Life errors."""


class MalformedSnapshot(ShelfLifeError):
    """Raised when a snapshot document fails schema or version validation.

    The import is aborted before the store is touched.
    """

    def __init__(self, message: str, problems: list[str] | None = None):
        self.problems = problems or []
        if self.problems:
            message = f"{message}: " + "; ".join(self.problems)
        super().__init__(message)


class PersistenceFailure(ShelfLifeError):
    """Raised when the underlying store rejects a read, write or commit."""


class ValidationFailure(ShelfLifeError):
    """Raised when an item breaks a basic field invariant."""

    def __init__(self, item_name: str, reason: str):
        self.item_name = item_name
        self.reason = reason
        super().__init__(f"Invalid item '{item_name}': {reason}")


class ItemNotFoundError(ShelfLifeError):
    """Raised when an item is not found."""

    def __init__(self, item_id: UUID | str):
        self.item_id = item_id
        super().__init__(f"Item with ID '{item_id}' not found")
