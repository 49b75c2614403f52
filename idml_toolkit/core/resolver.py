from __future__ import annotations

"""Cross-document reference resolution.

IDML documents refer to each other through ``Self`` identifiers: text frames
name their ``ParentStory``, style ranges name their ``Applied*Style`` and
backing-story ``XMLElement`` nodes name the content they tag. The
:class:`ReferenceResolver` answers these lookups against the documents held
by a :class:`DocumentStore`, with a fixed search order and typed errors for
every miss.
"""

import logging
from typing import Iterator, List, Optional
from urllib.parse import unquote_plus

from lxml import etree as ET

from idml_toolkit.core.exceptions import (
    AttributeNotFoundError,
    MarkupTagNotFoundError,
    NotFoundError,
    PropertyNotFoundError,
    StyleNotFoundError,
)
from idml_toolkit.core.models import IdmlDocument, PackageRole
from idml_toolkit.core.settings import PackageSettings
from idml_toolkit.core.store import DocumentStore
from idml_toolkit.core.utils import find_ancestor, local_name, text_content

logger = logging.getLogger(__name__)

__all__ = ["ReferenceResolver"]

_BY_SELF = ET.XPath("//*[@Self=$sid]")
_BY_XML_CONTENT = ET.XPath("//XMLElement[@XMLContent=$content]")

MARKUP_TAG_PREFIX = "XMLTag/"


class ReferenceResolver:
    """Resolve Self ids, applied styles and markup tags across a package."""

    def __init__(self, store: DocumentStore, settings: Optional[PackageSettings] = None) -> None:
        self.store = store
        self.settings = settings or PackageSettings()

    # ------------------------------------------------------------------
    # Self lookup
    # ------------------------------------------------------------------

    def _searchable_documents(self) -> Iterator[IdmlDocument]:
        yield from self.store.iter_multi(PackageRole.SPREAD)
        yield from self.store.iter_multi(PackageRole.MASTER_SPREAD)
        yield from self.store.iter_multi(PackageRole.STORY)
        backing_story = self.store.get_single(PackageRole.BACKING_STORY)
        if backing_story is not None:
            yield backing_story

    def find_by_self(self, self_id: str) -> ET._Element:
        """Return the first element whose ``Self`` attribute equals *self_id*.

        Spreads are searched first, then master spreads, stories and finally
        the backing story; within a document the first match in document
        order wins.

        Raises:
            NotFoundError: If *self_id* is empty or matches nothing
        """
        if self_id:
            for document in self._searchable_documents():
                matches = _BY_SELF(document.tree, sid=self_id)
                if matches:
                    return matches[0]
        raise NotFoundError(f"Unable to find element with Self attribute {self_id!r}", key=self_id)

    # ------------------------------------------------------------------
    # Styles
    # ------------------------------------------------------------------

    @staticmethod
    def applied_style_attribute(node: ET._Element) -> str:
        """Name of the attribute holding the applied style of *node*.

        ``CharacterStyleRange`` maps to ``AppliedCharacterStyle``.
        """
        return f"Applied{local_name(node).replace('StyleRange', '')}Style"

    def applied_style(self, node: ET._Element) -> ET._Element:
        """Return the style element applied to *node* from the styles document.

        Raises:
            StyleNotFoundError: If *node* has no applied style attribute, no
                styles document is loaded, or no style carries the id
        """
        attribute = self.applied_style_attribute(node)
        style_id = node.get(attribute)
        if not style_id:
            raise StyleNotFoundError(
                f"{local_name(node)} has no {attribute} attribute", key=attribute
            )

        styles = self.store.get_single(PackageRole.STYLES)
        if styles is None:
            raise StyleNotFoundError("No styles document loaded", key=style_id)

        matches = _BY_SELF(styles.tree, sid=style_id)
        if not matches:
            raise StyleNotFoundError(
                f"Unable to find style {style_id!r} for {local_name(node)}",
                key=style_id,
                path=styles.path,
            )
        return matches[0]

    def _optional_style(self, node: Optional[ET._Element]) -> Optional[ET._Element]:
        if node is None:
            return None
        try:
            return self.applied_style(node)
        except StyleNotFoundError as exc:
            logger.debug("Skipping style candidate: %s", exc)
            return None

    def _style_candidates(self, node: ET._Element) -> List[ET._Element]:
        """Node, its applied style, its parent and the parent's applied style."""
        parent = node.getparent()
        candidates = [node, self._optional_style(node), parent, self._optional_style(parent)]
        return [c for c in candidates if c is not None]

    def style_attribute(self, node: ET._Element, name: str) -> str:
        """Value of attribute *name* searched along the style chain of *node*.

        The first non-empty value among the node, its applied style, its
        parent and the parent's applied style is returned.

        Raises:
            AttributeNotFoundError: If no candidate carries a value
        """
        for candidate in self._style_candidates(node):
            value = candidate.get(name)
            if value:
                return value
        raise AttributeNotFoundError(f"Unable to find value for attribute {name}", key=name)

    def style_property(self, node: ET._Element, name: str) -> str:
        """Text of property *name* searched along the style chain of *node*.

        Properties live in a ``<Properties>`` child of each candidate, e.g.
        ``<Properties><Leading type="unit">12</Leading></Properties>``.

        Raises:
            PropertyNotFoundError: If no candidate carries the property
        """
        for candidate in self._style_candidates(node):
            properties = next((c for c in candidate if local_name(c) == "Properties"), None)
            if properties is None:
                continue
            for child in properties:
                if local_name(child) == name:
                    return text_content(child)
        raise PropertyNotFoundError(f"Unable to find value for property {name}", key=name)

    # ------------------------------------------------------------------
    # Markup tags
    # ------------------------------------------------------------------

    def markup_tag(self, node: ET._Element) -> str:
        """Return the XML markup tag associated with *node*.

        The nearest ``XMLElement`` ancestor of the node is used when there is
        one; otherwise the backing story is searched for an ``XMLElement``
        whose ``XMLContent`` names the node (or, for a ``TextFrame``, its
        parent story). The ``XMLTag/`` prefix is stripped and the name
        URL-decoded.

        Raises:
            MarkupTagNotFoundError: If no candidate yields a tag
        """
        # An XMLElement ancestor tags every candidate alike.
        ancestor = find_ancestor(node, "XMLElement")
        if ancestor is not None:
            located = [ancestor]
        else:
            located = self._backing_story_elements(self._markup_candidates(node))

        prefer_last = self.settings.markup_tag_precedence == "last"
        tag: Optional[str] = None
        for xml_element in located:
            markup = xml_element.get("MarkupTag")
            if markup:
                tag = unquote_plus(markup.removeprefix(MARKUP_TAG_PREFIX))
                if not prefer_last:
                    break

        if tag is None:
            raise MarkupTagNotFoundError(
                f"Unable to find markup tag for {local_name(node)} node", key=node.get("Self")
            )
        return tag

    @staticmethod
    def _markup_candidates(node: ET._Element) -> List[str]:
        """Self of *node* and, for a ``TextFrame``, its ``ParentStory``."""
        values = [node.get("Self")]
        if local_name(node) == "TextFrame":
            values.append(node.get("ParentStory"))
        candidates: List[str] = []
        for value in values:
            if value and value not in candidates:
                candidates.append(value)
        return candidates

    def _backing_story_elements(self, candidates: List[str]) -> List[ET._Element]:
        backing_story = self.store.get_single(PackageRole.BACKING_STORY)
        if backing_story is None:
            return []
        located = []
        for candidate in candidates:
            matches = _BY_XML_CONTENT(backing_story.tree, content=candidate)
            if matches:
                located.append(matches[0])
        return located

    # ------------------------------------------------------------------
    # Layers
    # ------------------------------------------------------------------

    def layers(self, selfs_only: bool = False, visible_only: bool = True):
        """Layer elements declared in the design map.

        Args:
            selfs_only: Return the sorted, de-duplicated Self ids instead of
                the elements
            visible_only: Only include layers with ``Visible="true"``

        Returns:
            A list of ``Layer`` elements, or of Self id strings
        """
        design_map = self.store.design_map
        if design_map is None:
            return []
        query = "//Layer[@Visible='true']" if visible_only else "//Layer"
        layers = design_map.root.xpath(query)
        if selfs_only:
            return sorted({layer.get("Self") for layer in layers if layer.get("Self")})
        return layers
