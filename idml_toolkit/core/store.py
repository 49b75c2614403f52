from __future__ import annotations

"""In-memory holder for the component documents of one package.

Single roles occupy one slot each; multi roles hold an insertion-ordered
mapping keyed by the descriptor's key function. The store never touches
disk.
"""

import logging
from typing import Dict, Iterator, Optional, Tuple, overload

from idml_toolkit.core.exceptions import InvalidArgumentError
from idml_toolkit.core.models import (
    PACKAGE_ELEMENTS,
    IdmlDocument,
    PackageElement,
    PackageRole,
    package_element,
)

logger = logging.getLogger(__name__)

__all__ = ["DocumentStore"]


class DocumentStore:
    """Role-indexed container of :class:`IdmlDocument` objects.

    The design map is held apart from the role slots in :attr:`design_map`
    since it references every other document rather than playing a role.
    """

    def __init__(self) -> None:
        self.design_map: Optional[IdmlDocument] = None
        self._singles: Dict[PackageRole, Optional[IdmlDocument]] = {
            el.role: None for el in PACKAGE_ELEMENTS if not el.is_multi
        }
        self._multis: Dict[PackageRole, Dict[str, IdmlDocument]] = {
            el.role: {} for el in PACKAGE_ELEMENTS if el.is_multi
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _descriptor(role: PackageRole | str, multi: bool) -> PackageElement:
        try:
            element = package_element(role)
        except ValueError as exc:
            raise InvalidArgumentError(f"Unknown package role: {role!r}", cause=exc) from exc
        if element.is_multi != multi:
            kind = "multi" if element.is_multi else "single"
            raise InvalidArgumentError(f"{element.role.value} is a {kind} role")
        return element

    # ------------------------------------------------------------------
    # Single slots
    # ------------------------------------------------------------------

    def set_single(self, role: PackageRole | str, document: Optional[IdmlDocument]) -> None:
        element = self._descriptor(role, multi=False)
        self._singles[element.role] = document

    def get_single(self, role: PackageRole | str) -> Optional[IdmlDocument]:
        element = self._descriptor(role, multi=False)
        return self._singles[element.role]

    def clear_single_slots(self) -> None:
        for role in self._singles:
            self._singles[role] = None

    def iter_singles(self) -> Iterator[Tuple[PackageRole, IdmlDocument]]:
        """Yield the populated single slots in descriptor order."""
        for role, document in self._singles.items():
            if document is not None:
                yield role, document

    # ------------------------------------------------------------------
    # Keyed collections
    # ------------------------------------------------------------------

    def add_multi(self, role: PackageRole | str, document: IdmlDocument) -> str:
        """Insert *document* into the collection of *role* and return its key.

        An existing member with the same key is replaced.
        """
        element = self._descriptor(role, multi=True)
        key = element.key_for(document)
        collection = self._multis[element.role]
        if key in collection and collection[key] is not document:
            logger.debug("Replacing %s %s with %s", element.role.value, key, document.path.name)
        collection[key] = document
        return key

    @overload
    def get_multi(self, role: PackageRole | str) -> Dict[str, IdmlDocument]: ...

    @overload
    def get_multi(self, role: PackageRole | str, key: str) -> Optional[IdmlDocument]: ...

    def get_multi(self, role, key=None):
        """Return a copy of the collection of *role*, or the member at *key*."""
        element = self._descriptor(role, multi=True)
        collection = self._multis[element.role]
        if key is None:
            return dict(collection)
        return collection.get(key)

    def iter_multi(self, role: PackageRole | str) -> Iterator[IdmlDocument]:
        element = self._descriptor(role, multi=True)
        return iter(list(self._multis[element.role].values()))

    def clear_multi_collections(self) -> None:
        for collection in self._multis.values():
            collection.clear()

    def first_of(self, role: PackageRole | str) -> Optional[IdmlDocument]:
        """Return the first-inserted member of the collection of *role*.

        Only meaningful when the collection holds a single document; with
        more members the result depends on load order and a warning is
        logged.
        """
        element = self._descriptor(role, multi=True)
        collection = self._multis[element.role]
        if len(collection) > 1:
            logger.warning("first_of(%s) called with %d members; result depends on load order",
                           element.role.value, len(collection))
        return next(iter(collection.values()), None)
