"""Exceptions raised inside the import package.

Service and storage errors never escape ``pipeline.process_statement_text``:
the pipeline turns them into a ``ProcessResult`` with ``success=False``.
"""

from __future__ import annotations

OVERLOAD_STATUSES = frozenset({429, 503})


class JoseImportError(Exception):
    """Base exception for the import package."""


class ExtractionError(JoseImportError):
    """A statement file could not be turned into text."""


class StorageError(JoseImportError):
    """The transaction store could not be read or written."""


class LLMServiceError(JoseImportError):
    """The text-completion service failed.

    Args:
        message: Description of the failure.
        status: HTTP status code returned by the service, if any.
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class AIOverloadedError(LLMServiceError):
    """The service is rate-limiting or temporarily unavailable."""
