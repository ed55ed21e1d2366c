class CatalogError(Exception):
    """Base class for catalog errors."""


class StoreError(CatalogError):
    """The record store could not answer a count or query call."""


class FetchError(CatalogError):
    """A list page could not be fetched across the HTTP boundary."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
