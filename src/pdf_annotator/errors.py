"""Exception hierarchy for the PDF Annotator."""

from __future__ import annotations


class AnnotatorError(Exception):
    """Base class for all annotator errors."""


class SessionActiveError(AnnotatorError):
    """Raised when an interaction session starts while another is open."""


class DocumentLoadError(AnnotatorError):
    """Raised when a document cannot be opened or a page does not exist."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


class ExtractionError(AnnotatorError):
    """Raised when the text extraction collaborator fails."""

    def __init__(self, message: str, page_number: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.page_number = page_number
        self.stderr = stderr


class StorageError(AnnotatorError):
    """Raised when persisted data cannot be read or fails validation."""

    def __init__(self, message: str, path: str = "", errors: list[str] | None = None):
        super().__init__(message)
        self.path = path
        self.errors = errors or []
