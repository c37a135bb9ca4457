"""Error kinds surfaced by the catalog manager."""


class CatalogError(Exception):
    """Base class for catalog failures."""

    kind = "CatalogError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CatalogError):
    """A required candidate field is missing or unusable."""

    kind = "ValidationError"


class StoreError(CatalogError):
    """The record store read or write failed."""

    kind = "StoreError"


class DuplicateError(CatalogError):
    """A record with the same title, author and year already exists."""

    kind = "DuplicateError"
