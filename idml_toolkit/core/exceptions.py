from __future__ import annotations

"""IDML package exception classes.

Every error raised by the toolkit derives from :class:`IdmlError` so callers
can handle package failures with a single ``except`` clause. I/O failures,
malformed XML and reference misses each have their own branch of the
hierarchy.
"""

from pathlib import Path
from typing import Optional

__all__ = [
    "IdmlError",
    "PackageIOError",
    "ExtractionError",
    "ArchiveError",
    "MissingDesignMapError",
    "MissingComponentFileError",
    "DocumentParseError",
    "InvalidArgumentError",
    "NotFoundError",
    "StyleNotFoundError",
    "AttributeNotFoundError",
    "PropertyNotFoundError",
    "MarkupTagNotFoundError",
]


class IdmlError(Exception):
    """Base exception for all IDML package errors.

    Carries the offending file path (when there is one) and the underlying
    exception that triggered the failure.
    """

    def __init__(self, message: str, path: Optional[str | Path] = None,
                 cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.path = Path(path) if path is not None else None
        self.cause = cause

    def __str__(self) -> str:
        if self.path is not None:
            return f"[{self.path}] {super().__str__()}"
        return super().__str__()


# ---------------------------------------------------------------------------
# I/O
# ---------------------------------------------------------------------------

class PackageIOError(IdmlError):
    """Raised when a package file or directory cannot be read or written."""
    pass


class ExtractionError(PackageIOError):
    """Raised when an archive cannot be opened or one of its entries written.

    Also raised for archives holding unsafe member paths and for extraction
    targets that already exist.
    """
    pass


class ArchiveError(PackageIOError):
    """Raised when a working directory cannot be packed into an archive."""
    pass


class MissingDesignMapError(PackageIOError):
    """Raised when ``designmap.xml`` is absent from the working directory."""
    pass


class MissingComponentFileError(PackageIOError):
    """Raised when the design map references a component file that does not exist.

    Only raised under the ``error`` missing-component policy.
    """

    def __init__(self, message: str, path: Optional[str | Path] = None,
                 role: Optional[str] = None,
                 cause: Optional[Exception] = None) -> None:
        super().__init__(message, path, cause)
        self.role = role


class DocumentParseError(IdmlError):
    """Raised when a component document is not well-formed XML."""
    pass


class InvalidArgumentError(IdmlError, ValueError):
    """Raised when an argument is unusable, e.g. a directory path that is not a directory."""
    pass


# ---------------------------------------------------------------------------
# Resolution misses
# ---------------------------------------------------------------------------

class NotFoundError(IdmlError, LookupError):
    """Raised when a Self identifier cannot be found anywhere in the package."""

    def __init__(self, message: str, key: Optional[str] = None,
                 path: Optional[str | Path] = None,
                 cause: Optional[Exception] = None) -> None:
        super().__init__(message, path, cause)
        self.key = key


class StyleNotFoundError(NotFoundError):
    """Raised when the applied style of a style range cannot be resolved."""
    pass


class AttributeNotFoundError(NotFoundError):
    """Raised when no candidate of the style chain carries an attribute value."""
    pass


class PropertyNotFoundError(NotFoundError):
    """Raised when no candidate of the style chain carries a property."""
    pass


class MarkupTagNotFoundError(NotFoundError):
    """Raised when no XML markup tag is associated with a node."""
    pass
