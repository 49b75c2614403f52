from __future__ import annotations

"""Shared data structures used across the IDML Toolkit core.

This module is intentionally free of disk I/O beyond parsing a single file so
that the contained objects can be reused in any context (unit-tests, scripts,
services, etc.).
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

from lxml import etree as ET

from idml_toolkit.core.utils import local_name, parse_xml_file

logger = logging.getLogger(__name__)

__all__ = [
    "IDML_NAMESPACE_PREFIX",
    "IDML_NAMESPACE_URI",
    "IDML_NAMESPACES",
    "IDML_FILENAME_EXTENSION",
    "DESIGN_MAP_FILENAME",
    "Aggregation",
    "PackageRole",
    "IdmlDocument",
    "PackageElement",
    "PACKAGE_ELEMENTS",
    "package_element",
    "filename_key",
]

IDML_NAMESPACE_PREFIX = "idPkg"
IDML_NAMESPACE_URI = "http://ns.adobe.com/AdobeInDesign/idml/1.0/packaging"
IDML_NAMESPACES = {IDML_NAMESPACE_PREFIX: IDML_NAMESPACE_URI}
IDML_FILENAME_EXTENSION = ".idml"
DESIGN_MAP_FILENAME = "designmap.xml"


class Aggregation(str, Enum):
    """How documents of a role are held by the store."""

    SINGLE = "single"
    MULTI = "multi"


class PackageRole(str, Enum):
    """Logical role of a component document.

    The value is the local name of the ``idPkg`` element that references the
    document from the design map.
    """

    BACKING_STORY = "BackingStory"
    FONTS = "Fonts"
    GRAPHIC = "Graphic"
    MAPPING = "Mapping"
    MASTER_SPREAD = "MasterSpread"
    PREFERENCES = "Preferences"
    SPREAD = "Spread"
    STORY = "Story"
    STYLES = "Styles"
    TAGS = "Tags"


@dataclass
class IdmlDocument:
    """One parsed XML document of an IDML package.

    Attributes
    ----------
    tree
        Parsed ``lxml`` element tree; consumers mutate it in place.
    path
        Absolute path of the source file, used as the save target.
    """

    tree: ET._ElementTree
    path: Path

    @classmethod
    def from_file(cls, path: str | Path) -> "IdmlDocument":
        """Parse *path* into a document bound to its absolute location."""
        resolved = Path(path).resolve()
        return cls(tree=parse_xml_file(resolved), path=resolved)

    @property
    def root(self) -> ET._Element:
        return self.tree.getroot()

    @property
    def role_name(self) -> str:
        """Local name of the root element, without any ``idPkg:`` prefix."""
        return local_name(self.root)

    @property
    def self_id(self) -> Optional[str]:
        """Self identifier of the document's primary element.

        Component files wrap their content in a namespaced ``idPkg:<Role>``
        root whose first un-namespaced ``<Role>`` descendant carries the Self
        attribute; an un-namespaced root is its own primary element.
        """
        primary = next(self.root.iter(self.role_name), None)
        if primary is None:
            return None
        return primary.get("Self") or None

    @property
    def filename_key(self) -> str:
        return filename_key(self.path)


def filename_key(path: str | Path) -> str:
    """Derive a collection key from a component filename.

    ``Stories/Story_u12f.xml`` becomes ``u12f``; the role prefix is whatever
    precedes the first underscore.
    """
    stem = Path(path).name
    if stem.endswith(".xml"):
        stem = stem[: -len(".xml")]
    _, sep, rest = stem.partition("_")
    return rest if sep else stem


def _story_key(document: IdmlDocument) -> str:
    return document.filename_key


def _self_key(document: IdmlDocument) -> str:
    self_id = document.self_id
    if self_id:
        return self_id
    key = document.filename_key
    logger.warning("No Self attribute on %s; keying by filename as %s",
                   document.path.name, key)
    return key


@dataclass(frozen=True)
class PackageElement:
    """Static descriptor of one package element role."""

    role: PackageRole
    aggregation: Aggregation
    key_func: Optional[Callable[[IdmlDocument], str]] = None

    @property
    def is_multi(self) -> bool:
        return self.aggregation is Aggregation.MULTI

    def key_for(self, document: IdmlDocument) -> str:
        if self.key_func is None:
            raise TypeError(f"{self.role.value} is not a keyed collection")
        return self.key_func(document)


# Load order of the roles; single roles are saved in this order as well.
PACKAGE_ELEMENTS: Tuple[PackageElement, ...] = (
    PackageElement(PackageRole.BACKING_STORY, Aggregation.SINGLE),
    PackageElement(PackageRole.FONTS, Aggregation.SINGLE),
    PackageElement(PackageRole.GRAPHIC, Aggregation.SINGLE),
    PackageElement(PackageRole.MAPPING, Aggregation.SINGLE),
    PackageElement(PackageRole.MASTER_SPREAD, Aggregation.MULTI, _self_key),
    PackageElement(PackageRole.PREFERENCES, Aggregation.SINGLE),
    PackageElement(PackageRole.SPREAD, Aggregation.MULTI, _self_key),
    PackageElement(PackageRole.STORY, Aggregation.MULTI, _story_key),
    PackageElement(PackageRole.STYLES, Aggregation.SINGLE),
    PackageElement(PackageRole.TAGS, Aggregation.SINGLE),
)

_BY_ROLE: Dict[PackageRole, PackageElement] = {el.role: el for el in PACKAGE_ELEMENTS}


def package_element(role: PackageRole | str) -> PackageElement:
    """Return the descriptor for *role* (enum member or element name)."""
    return _BY_ROLE[PackageRole(role)]
