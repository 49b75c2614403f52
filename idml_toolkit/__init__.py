"""Top-level package for IDML Toolkit.

Loads Adobe InDesign Markup Language packages into memory, resolves the
references between their documents and writes them back. Callers should
depend on the names re-exported here rather than importing internal modules
directly.
"""

from .core.exceptions import (
    IdmlError,
    PackageIOError,
    ExtractionError,
    ArchiveError,
    MissingDesignMapError,
    MissingComponentFileError,
    DocumentParseError,
    InvalidArgumentError,
    NotFoundError,
    StyleNotFoundError,
    AttributeNotFoundError,
    PropertyNotFoundError,
    MarkupTagNotFoundError,
)
from .core.models import IdmlDocument, PackageRole
from .core.package import IdmlPackage
from .core.settings import PackageSettings

__version__ = "1.0.0"

__all__: list[str] = [
    "IdmlPackage",
    "IdmlDocument",
    "PackageRole",
    "PackageSettings",
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
    "__version__",
]
