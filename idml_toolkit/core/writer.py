from __future__ import annotations

"""Write in-memory package documents back to their files."""

import logging
from pathlib import Path
from typing import Optional

from idml_toolkit.core.archive import create_archive
from idml_toolkit.core.exceptions import InvalidArgumentError
from idml_toolkit.core.models import IdmlDocument, PackageRole
from idml_toolkit.core.settings import PackageSettings
from idml_toolkit.core.store import DocumentStore
from idml_toolkit.core.utils import save_xml_file

logger = logging.getLogger(__name__)

__all__ = ["PackageWriter", "SAVE_ORDER"]

# Collections saved by save_all(), after the design map and before the
# single documents.
SAVE_ORDER = (PackageRole.STORY, PackageRole.MASTER_SPREAD, PackageRole.SPREAD)


class PackageWriter:
    """Serialise the documents of a :class:`DocumentStore` to disk."""

    def __init__(self, store: DocumentStore, settings: Optional[PackageSettings] = None) -> None:
        self.store = store
        self.settings = settings or PackageSettings()

    def save_document(self, document: IdmlDocument) -> None:
        """Write *document* to the path it was loaded from."""
        save_xml_file(document.tree, document.path, pretty=self.settings.pretty_print)

    def save_design_map(self) -> None:
        if self.store.design_map is None:
            raise InvalidArgumentError("No design map loaded")
        self.save_document(self.store.design_map)

    def save_collection(self, role: PackageRole | str) -> int:
        """Write every member of the collection of *role*; return the count."""
        count = 0
        for document in self.store.iter_multi(role):
            self.save_document(document)
            count += 1
        return count

    def save_singles(self) -> int:
        count = 0
        for _role, document in self.store.iter_singles():
            self.save_document(document)
            count += 1
        return count

    def save_all(self, directory: Optional[Path] = None,
                 archive_path: Optional[str | Path] = None) -> Optional[Path]:
        """Write every loaded document, then optionally re-archive.

        Order: design map, stories, master spreads, spreads, then the single
        documents in descriptor order. Nothing is rolled back when a write
        fails part way.

        Args:
            directory: Working directory to pack when *archive_path* is given
            archive_path: Target ``.idml`` file; no archive is written when
                omitted

        Returns:
            The archive path when one was written, else ``None``
        """
        self.save_design_map()
        written = 1
        for role in SAVE_ORDER:
            written += self.save_collection(role)
        written += self.save_singles()
        logger.info("Saved %d documents", written)

        if archive_path is None:
            return None
        if directory is None:
            raise InvalidArgumentError("A working directory is required to write an archive")
        return create_archive(directory, archive_path)
