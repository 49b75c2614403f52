from __future__ import annotations

"""The :class:`IdmlPackage` aggregate.

A package ties together one working directory, the documents loaded from
it and the services that resolve references and write changes back::

    with IdmlPackage("brochure.idml") as package:
        frame = package.find_by_self("u1d3")
        print(package.markup_tag(frame))
        package.save_all()

A package opened from an archive extracts it to a working directory that
the package owns and removes on :meth:`close`. A directory passed by the
caller is loaded in place and never removed.
"""

import copy
import logging
import shutil
import tempfile
import weakref
from pathlib import Path
from typing import Dict, List, Optional

from lxml import etree as ET

from idml_toolkit.core.archive import create_archive, extract_archive
from idml_toolkit.core.exceptions import (
    ExtractionError,
    IdmlError,
    InvalidArgumentError,
    PackageIOError,
)
from idml_toolkit.core.loader import PackageLoader
from idml_toolkit.core.models import (
    IDML_FILENAME_EXTENSION,
    IDML_NAMESPACE_URI,
    IdmlDocument,
    PackageRole,
)
from idml_toolkit.core.resolver import ReferenceResolver
from idml_toolkit.core.settings import PackageSettings
from idml_toolkit.core.store import DocumentStore
from idml_toolkit.core.writer import PackageWriter

logger = logging.getLogger(__name__)

__all__ = ["IdmlPackage"]


def _single_role(role: PackageRole, doc: str) -> property:
    """Property reading and replacing the single-document slot of *role*."""

    def getter(self: "IdmlPackage") -> Optional[IdmlDocument]:
        return self._store.get_single(role)

    def setter(self: "IdmlPackage", document: Optional[IdmlDocument]) -> None:
        self._store.set_single(role, document)

    return property(getter, setter, doc=doc)


class IdmlPackage:
    """In-memory model of one IDML package.

    Parameters
    ----------
    path
        An extracted package directory or an ``.idml`` archive (suffix
        matched case-insensitively). A directory wins even when its name
        ends in ``.idml``. Either is loaded immediately. ``None``
        creates an empty package to be pointed at a location later.
    settings
        Behaviour switches; read from the YAML configuration when omitted.
    extract_dir
        Explicit extraction target for archives. Must not exist yet.
    """

    def __init__(self, path: Optional[str | Path] = None, *,
                 settings: Optional[PackageSettings] = None,
                 extract_dir: Optional[str | Path] = None) -> None:
        self.settings = settings or PackageSettings.from_config()
        self._store = DocumentStore()
        self._loader = PackageLoader(self._store, self.settings)
        self._resolver = ReferenceResolver(self._store, self.settings)
        self._writer = PackageWriter(self._store, self.settings)

        self._directory: Optional[Path] = None
        self._archive_path: Optional[Path] = None
        self._extract_dir = Path(extract_dir) if extract_dir is not None else None
        self._cleanup: Optional[weakref.finalize] = None

        if path is None:
            return

        path = Path(path)
        if path.is_dir():
            self.set_directory(path)
        elif path.suffix.lower() == IDML_FILENAME_EXTENSION:
            self.set_archive(path)
        else:
            raise InvalidArgumentError("Not an .idml archive or a package directory", path)

        try:
            self.load()
        except IdmlError:
            self.close()
            raise

    # ------------------------------------------------------------------
    # Lifetime
    # ------------------------------------------------------------------

    def __enter__(self) -> "IdmlPackage":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Remove the working directory if this package extracted it.

        Safe to call more than once; documents already loaded stay usable in
        memory.
        """
        if self._cleanup is not None and self._cleanup.alive:
            logger.info("Removing extracted working directory %s", self._directory)
            self._cleanup()
            self._directory = None
        self._cleanup = None

    @property
    def owns_directory(self) -> bool:
        """True when the working directory was extracted by this package."""
        return self._cleanup is not None and self._cleanup.alive

    # ------------------------------------------------------------------
    # Location
    # ------------------------------------------------------------------

    @property
    def directory(self) -> Optional[Path]:
        return self._directory

    @property
    def archive_path(self) -> Optional[Path]:
        return self._archive_path

    def set_directory(self, path: str | Path) -> "IdmlPackage":
        """Use *path* as the working directory; an owned directory is released.

        Raises:
            InvalidArgumentError: If *path* is not an existing directory
        """
        path = Path(path)
        if not path.is_dir():
            raise InvalidArgumentError("Directory not found", path)
        self.close()
        self._directory = path.resolve()
        return self

    def set_archive(self, path: str | Path) -> "IdmlPackage":
        """Record *path* as the source archive.

        The current working directory is released so that the next
        :meth:`load` extracts the archive.

        Raises:
            PackageIOError: If *path* is not an existing file
        """
        path = Path(path)
        if not path.is_file():
            raise PackageIOError("Archive not found", path)
        self.close()
        self._directory = None
        self._archive_path = path.resolve()
        return self

    def _extraction_target(self) -> Path:
        if self._extract_dir is not None:
            target = self._extract_dir
        elif self.settings.extract_location == "sibling":
            target = self._archive_path.parent / f".{self._archive_path.name}"
        else:
            return Path(tempfile.mkdtemp(prefix=self.settings.extract_prefix))

        if target.exists():
            raise ExtractionError("Extraction target already exists", target)
        try:
            target.mkdir(parents=True)
        except OSError as exc:
            raise ExtractionError(f"Cannot create extraction target: {exc}", target, exc) from exc
        return target

    def _extract(self) -> None:
        target = self._extraction_target().resolve()
        cleanup = weakref.finalize(self, shutil.rmtree, str(target), True)
        try:
            extract_archive(self._archive_path, target)
        except IdmlError:
            # A partial extraction is never used as the working directory.
            cleanup()
            raise
        self._directory = target
        self._cleanup = cleanup
        logger.info("Extracted %s to %s", self._archive_path.name, self._directory)

    # ------------------------------------------------------------------
    # Loading and saving
    # ------------------------------------------------------------------

    def load(self) -> "IdmlPackage":
        """(Re)load every document referenced by the design map.

        An archive is extracted first when no working directory is set.

        Raises:
            InvalidArgumentError: If neither a directory nor an archive is set
        """
        if self._directory is None:
            if self._archive_path is None:
                raise InvalidArgumentError("No package directory or archive set")
            self._extract()
        self._loader.load(self._directory)
        return self

    def save_design_map(self) -> "IdmlPackage":
        self._writer.save_design_map()
        return self

    def save_stories(self) -> "IdmlPackage":
        self._writer.save_collection(PackageRole.STORY)
        return self

    def save_spreads(self) -> "IdmlPackage":
        self._writer.save_collection(PackageRole.SPREAD)
        return self

    def save_master_spreads(self) -> "IdmlPackage":
        self._writer.save_collection(PackageRole.MASTER_SPREAD)
        return self

    def save_all(self, archive_path: Optional[str | Path] = None) -> "IdmlPackage":
        """Write every document; re-archive when a target is known.

        The target is *archive_path* when given, else the source archive of a
        package opened from one. A package loaded from a caller's directory
        is not archived unless *archive_path* is passed.
        """
        if archive_path is None and self.owns_directory:
            archive_path = self._archive_path
        written = self._writer.save_all(self._directory, archive_path)
        if written is not None:
            self._archive_path = written
        return self

    def archive(self, dest: Optional[str | Path] = None) -> Path:
        """Pack the working directory into an ``.idml`` archive.

        Without *dest* the source archive is overwritten, or for a package
        loaded from a directory, ``<directory name>.idml`` is written next to
        the directory. Documents are not saved first; see :meth:`save_all`.
        """
        if self._directory is None:
            raise InvalidArgumentError("No working directory to archive")
        if dest is None:
            if self._archive_path is not None:
                dest = self._archive_path
            else:
                dest = self._directory.parent / f"{self._directory.name}{IDML_FILENAME_EXTENSION}"
        self._archive_path = create_archive(self._directory, dest)
        return self._archive_path

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    @property
    def design_map(self) -> Optional[IdmlDocument]:
        return self._store.design_map

    @design_map.setter
    def design_map(self, document: Optional[IdmlDocument]) -> None:
        self._store.design_map = document

    backing_story = _single_role(PackageRole.BACKING_STORY, "The BackingStory document.")
    fonts = _single_role(PackageRole.FONTS, "The Fonts document.")
    graphic = _single_role(PackageRole.GRAPHIC, "The Graphic document.")
    mapping = _single_role(PackageRole.MAPPING, "The Mapping document.")
    preferences = _single_role(PackageRole.PREFERENCES, "The Preferences document.")
    styles = _single_role(PackageRole.STYLES, "The Styles document.")
    tags = _single_role(PackageRole.TAGS, "The Tags document.")

    @property
    def spreads(self) -> Dict[str, IdmlDocument]:
        """Spreads keyed by Self (a copy; mutate through :meth:`add_spread`)."""
        return self._store.get_multi(PackageRole.SPREAD)

    @property
    def master_spreads(self) -> Dict[str, IdmlDocument]:
        return self._store.get_multi(PackageRole.MASTER_SPREAD)

    @property
    def stories(self) -> Dict[str, IdmlDocument]:
        """Stories keyed by filename key (``Story_u12f.xml`` is ``u12f``)."""
        return self._store.get_multi(PackageRole.STORY)

    def get_spread(self, key: str) -> Optional[IdmlDocument]:
        return self._store.get_multi(PackageRole.SPREAD, key)

    def get_master_spread(self, key: str) -> Optional[IdmlDocument]:
        return self._store.get_multi(PackageRole.MASTER_SPREAD, key)

    def get_story(self, key: str) -> Optional[IdmlDocument]:
        return self._store.get_multi(PackageRole.STORY, key)

    def add_spread(self, document: IdmlDocument) -> str:
        return self._store.add_multi(PackageRole.SPREAD, document)

    def add_master_spread(self, document: IdmlDocument) -> str:
        return self._store.add_multi(PackageRole.MASTER_SPREAD, document)

    def add_story(self, document: IdmlDocument) -> str:
        """Add *document* to the stories only; the design map is untouched."""
        return self._store.add_multi(PackageRole.STORY, document)

    def add_story_to_design_map(self, document: IdmlDocument) -> str:
        """Add a story and reference it from the design map.

        The story file must live inside the working directory; its ``src`` is
        the path relative to it. Nothing is written to disk.
        """
        if self.design_map is None or self._directory is None:
            raise InvalidArgumentError("No design map loaded")
        try:
            src = document.path.relative_to(self._directory).as_posix()
        except ValueError as exc:
            raise InvalidArgumentError("Story lies outside the package directory",
                                       document.path, exc) from exc

        key = self.add_story(document)
        ET.SubElement(self.design_map.root, f"{{{IDML_NAMESPACE_URI}}}Story", src=src)
        logger.debug("Referenced story %s from design map as %s", key, src)
        return key

    def first_spread(self) -> Optional[IdmlDocument]:
        """Return the first loaded spread.

        Unsafe for packages with several spreads: which spread is "first"
        depends on design map order. Prefer :meth:`get_spread`.
        """
        return self._store.first_of(PackageRole.SPREAD)

    def add_element_to_spread(self, element: ET._Element,
                              spread: Optional[IdmlDocument] = None) -> ET._Element:
        """Append a deep copy of *element* to a spread; return the copy.

        The copy goes into the last ``Spread`` element of *spread*, or of
        :meth:`first_spread` when no spread is given.
        """
        if spread is None:
            spread = self.first_spread()
            if spread is None:
                raise InvalidArgumentError("No spread loaded")
        targets = list(spread.root.iter("Spread"))
        if not targets:
            raise InvalidArgumentError("Document has no Spread element", spread.path)
        clone = copy.deepcopy(element)
        targets[-1].append(clone)
        return clone

    # ------------------------------------------------------------------
    # Reference resolution
    # ------------------------------------------------------------------

    def find_by_self(self, self_id: str) -> ET._Element:
        return self._resolver.find_by_self(self_id)

    def applied_style(self, node: ET._Element) -> ET._Element:
        return self._resolver.applied_style(node)

    def style_attribute(self, node: ET._Element, name: str) -> str:
        return self._resolver.style_attribute(node, name)

    def style_property(self, node: ET._Element, name: str) -> str:
        return self._resolver.style_property(node, name)

    def markup_tag(self, node: ET._Element) -> str:
        return self._resolver.markup_tag(node)

    def layers(self, selfs_only: bool = False, visible_only: bool = True) -> List:
        return self._resolver.layers(selfs_only=selfs_only, visible_only=visible_only)

    def __repr__(self) -> str:
        return (f"IdmlPackage(directory={self._directory!s}, archive={self._archive_path!s}, "
                f"spreads={len(self.spreads)}, stories={len(self.stories)})")
