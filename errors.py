"""Error types raised by the scrape and publish pipelines."""

from __future__ import annotations


class LoaderError(Exception):
    """Base class for every pipeline failure."""


class StructureMismatchError(LoaderError):
    """A catalog or chapter page no longer has the shape the parsers expect."""


class MetadataMissingError(LoaderError):
    """A chapter page lacks the book abbreviation or verse count metadata."""


class SchemaValidationError(LoaderError):
    """The persisted verses artifact failed validation."""


class PayloadLimitError(LoaderError):
    """A payload cannot be built within the Notion request limits."""


class TransientDeliveryError(LoaderError):
    """A Notion API call failed and may succeed if retried."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DeliveryAbortedError(LoaderError):
    """A request exhausted its retry budget; the whole publish run stops."""

    def __init__(self, title: str, attempts: int, last_error: BaseException | None) -> None:
        super().__init__(f"request '{title}' failed after {attempts} attempts: {last_error}")
        self.title = title
        self.attempts = attempts
        self.last_error = last_error
