# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Object numbering and canonicalization for one document.

The registry hands out object numbers in strictly increasing order and
keeps the set of objects that will be written. Dedup-eligible kinds
(functions, shadings, patterns, links, destinations, actions, file
specifications, graphics states) go through
:meth:`ObjectRegistry.find_or_register`, which looks the candidate's
structural key up in a per-kind table: equal requests always get the
first registered instance back.
"""

import logging
from collections.abc import Iterator
from typing import TypeVar

from .exceptions import StructureError
from .objects.base import PdfObject

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=PdfObject)

# Kinds that are canonicalized by structural key
DEDUP_KINDS = frozenset(
    {
        "function",
        "shading",
        "pattern",
        "link",
        "destination",
        "goto",
        "goto_remote",
        "launch",
        "filespec",
        "gstate",
    }
)


class ObjectRegistry:
    """Owns the object numbering space of one document."""

    def __init__(self) -> None:
        self._next_number = 1
        self._objects: dict[int, PdfObject] = {}
        self._trailer_objects: dict[int, PdfObject] = {}
        self._tables: dict[str, dict[tuple, PdfObject]] = {
            kind: {} for kind in DEDUP_KINDS
        }

    def __len__(self) -> int:
        return len(self._objects)

    @property
    def object_count(self) -> int:
        """Number of object numbers handed out so far."""
        return self._next_number - 1

    def assign_number(self, obj: PdfObject) -> int:
        """Gives an object the next unused number.

        Raises:
            StructureError: If the object already has a number.
        """
        obj.set_number(self._next_number)
        self._next_number += 1
        return obj.number  # type: ignore[return-value]

    def is_registered(self, obj: PdfObject) -> bool:
        return obj.number is not None and self._objects.get(obj.number) is obj

    def register(self, obj: T) -> T:
        """Numbers an object (unless already numbered) and marks it for output.

        Raises:
            StructureError: If the object is already registered.
        """
        if self.is_registered(obj):
            raise StructureError(f"{obj!r} is already registered")
        if obj.number is None:
            self.assign_number(obj)
        self._objects[obj.number] = obj
        logger.debug("Registered %s", obj)
        return obj

    def add_trailer_object(self, obj: T) -> T:
        """Registers an object (if needed) and marks it as trailer-referenced."""
        if not self.is_registered(obj):
            self.register(obj)
        obj.trailer = True
        self._trailer_objects[obj.number] = obj
        return obj

    def _table(self, kind: str) -> dict[tuple, PdfObject]:
        table = self._tables.get(kind)
        if table is None:
            raise ValueError(f"Objects of kind '{kind}' are not canonicalized")
        return table

    def find(self, kind: str, candidate: PdfObject) -> PdfObject | None:
        """Returns the canonical instance equal to the candidate, if any."""
        return self._table(kind).get(candidate.structural_key())

    def find_or_register(
        self, kind: str, candidate: T, *, trailer: bool = False
    ) -> T:
        """Returns the canonical instance for the candidate's structural key.

        On a miss the candidate is registered (as a trailer object when
        ``trailer`` is set) and becomes the canonical instance.
        """
        table = self._table(kind)
        key = candidate.structural_key()
        if key is None:
            raise ValueError(f"{candidate!r} has no structural key")
        existing = table.get(key)
        if existing is not None:
            return existing  # type: ignore[return-value]
        if trailer:
            self.add_trailer_object(candidate)
        else:
            self.register(candidate)
        table[key] = candidate
        return candidate

    def objects(self) -> Iterator[PdfObject]:
        """Yields the registered objects by ascending object number."""
        for number in sorted(self._objects):
            yield self._objects[number]

    def trailer_objects(self) -> list[PdfObject]:
        return [self._trailer_objects[n] for n in sorted(self._trailer_objects)]

    def count(self, kind: str) -> int:
        """Number of registered objects of a kind."""
        return sum(1 for obj in self._objects.values() if obj.kind == kind)

    def get(self, number: int) -> PdfObject | None:
        return self._objects.get(number)
