from __future__ import annotations


class CardError(Exception):
    pass


class ValidationError(CardError):
    """Identity or connection profile is unusable as a card."""


class FormatError(CardError):
    """Archive bytes are not a readable (or untampered) card archive."""


class NotFoundError(CardError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"The business network card {name} does not exist")


class StorageError(CardError):
    """Raised by storage providers; the store lets it through unchanged."""


class ConflictError(StorageError):
    pass
