from __future__ import annotations

"""Simple reusable XML helper functions.

These helpers wrap ``lxml`` parsing and serialisation so every component
document of a package is read and written the same way.
"""

import logging
from pathlib import Path
from typing import Optional

from lxml import etree as ET

from idml_toolkit.core.exceptions import DocumentParseError, PackageIOError

__all__ = [
    "local_name",
    "parse_xml_file",
    "save_xml_file",
    "text_content",
    "find_ancestor",
]

logger = logging.getLogger(__name__)


def local_name(element: ET._Element) -> str:
    """Return the tag of *element* without its namespace.

    Comments and processing instructions have no tag name and yield ``""``.
    """
    tag = element.tag
    if not isinstance(tag, str):
        return ""
    return ET.QName(tag).localname


def text_content(element: ET._Element) -> str:
    """Concatenated text of *element* and all of its descendants."""
    return "".join(element.itertext())


def find_ancestor(element: ET._Element, name: str) -> Optional[ET._Element]:
    """Return the nearest ancestor of *element* whose local name is *name*."""
    for ancestor in element.iterancestors():
        if local_name(ancestor) == name:
            return ancestor
    return None


# ---------------------------------------------------------------------------
# XML convenience wrappers
# ---------------------------------------------------------------------------

def parse_xml_file(path: str | Path) -> ET._ElementTree:
    """Parse *path* into an element tree.

    Entity resolution is disabled and ignorable whitespace dropped so that
    documents can be re-indented on save.

    Raises
    ------
    PackageIOError
        The file cannot be read.
    DocumentParseError
        The file is not well-formed XML.
    """
    parser = ET.XMLParser(resolve_entities=False, remove_blank_text=True)
    try:
        tree = ET.parse(str(path), parser)
    except ET.XMLSyntaxError as exc:
        raise DocumentParseError(f"XML syntax error: {exc}", path, exc) from exc
    except OSError as exc:
        raise PackageIOError(f"Failed to read file: {exc}", path, exc) from exc
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("I/O: parsed XML path=%s", path)
    return tree


def save_xml_file(tree: ET._ElementTree, path: str | Path, *, pretty: bool = True) -> None:
    """Write *tree* to *path* with an XML declaration.

    Parameters
    ----------
    tree
        Element tree to serialise. Processing instructions and comments that
        are siblings of the root element are kept, as is the ``standalone``
        flag of the original declaration.
    path
        Destination file path (will be opened in binary mode).
    pretty
        When *True* (default) lxml pretty-prints the output for readability.
    """
    xml_bytes = ET.tostring(
        tree,
        pretty_print=pretty,
        xml_declaration=True,
        encoding="UTF-8",
        standalone=tree.docinfo.standalone,
    )
    try:
        with open(path, "wb") as fh:
            fh.write(xml_bytes)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("I/O: wrote XML path=%s bytes=%d", path, len(xml_bytes))
    except OSError as exc:
        logger.error("I/O FAIL: write XML path=%s", path, exc_info=True)
        raise PackageIOError(f"Failed to write file: {exc}", path, exc) from exc
