from __future__ import annotations

"""Design-map driven loading of a package working directory.

The loader reads ``designmap.xml`` and, for every role of
:data:`~idml_toolkit.core.models.PACKAGE_ELEMENTS`, parses the files the map
references and hands them to the :class:`DocumentStore`.
"""

import logging
from pathlib import Path
from typing import List, Optional

from idml_toolkit.core.exceptions import (
    InvalidArgumentError,
    MissingComponentFileError,
    MissingDesignMapError,
)
from idml_toolkit.core.models import (
    DESIGN_MAP_FILENAME,
    IDML_NAMESPACE_PREFIX,
    IDML_NAMESPACES,
    PACKAGE_ELEMENTS,
    IdmlDocument,
    PackageElement,
)
from idml_toolkit.core.settings import PackageSettings
from idml_toolkit.core.store import DocumentStore

logger = logging.getLogger(__name__)

__all__ = ["PackageLoader"]


class PackageLoader:
    """Populate a :class:`DocumentStore` from an extracted package directory."""

    def __init__(self, store: DocumentStore, settings: Optional[PackageSettings] = None) -> None:
        self.store = store
        self.settings = settings or PackageSettings()

    def load(self, directory: str | Path) -> IdmlDocument:
        """Load the design map and every component it references.

        All slots and collections of the store are cleared first, so the
        store reflects exactly what the design map references after a
        successful call. Under the ``error`` policy a missing component
        stops the load; documents loaded before it remain in the store.

        Args:
            directory: Package working directory holding ``designmap.xml``

        Returns:
            The parsed design map, also recorded on the store

        Raises:
            InvalidArgumentError: If *directory* is not a directory, or a
                ``src`` points outside it (under either policy)
            MissingDesignMapError: If ``designmap.xml`` is absent
            MissingComponentFileError: If a referenced file is absent and the
                policy is ``error``
            DocumentParseError: If any document is not well-formed XML
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise InvalidArgumentError("Package path is not a directory", directory)

        design_map_path = directory / DESIGN_MAP_FILENAME
        if not design_map_path.is_file():
            raise MissingDesignMapError(f"{DESIGN_MAP_FILENAME} not found", directory)

        design_map = IdmlDocument.from_file(design_map_path)
        self.store.design_map = design_map
        self.store.clear_multi_collections()
        self.store.clear_single_slots()

        loaded = 0
        for element in PACKAGE_ELEMENTS:
            loaded += self._load_element(design_map, element, directory)

        logger.info("Loaded package %s: %d component documents", directory, loaded)
        return design_map

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _references(design_map: IdmlDocument, element: PackageElement) -> List[str]:
        nodes = design_map.root.xpath(
            f"//{IDML_NAMESPACE_PREFIX}:{element.role.value}", namespaces=IDML_NAMESPACES
        )
        return [node.get("src") for node in nodes if node.get("src")]

    def _load_element(self, design_map: IdmlDocument, element: PackageElement,
                      directory: Path) -> int:
        count = 0
        root = directory.resolve()
        for src in self._references(design_map, element):
            path = (directory / src).resolve()
            if root not in path.parents:
                raise InvalidArgumentError(
                    f"Referenced {element.role.value} file lies outside the package: {src}",
                    directory,
                )
            if not path.is_file():
                if self.settings.skip_missing:
                    logger.warning("Referenced %s file not found, skipping: %s",
                                   element.role.value, src)
                    continue
                raise MissingComponentFileError(
                    f"Referenced {element.role.value} file not found: {src}",
                    path,
                    role=element.role.value,
                )

            document = IdmlDocument.from_file(path)
            if element.is_multi:
                key = self.store.add_multi(element.role, document)
                logger.debug("Loaded %s %s from %s", element.role.value, key, src)
            else:
                self.store.set_single(element.role, document)
                logger.debug("Loaded %s from %s", element.role.value, src)
            count += 1
        return count
