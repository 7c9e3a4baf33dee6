# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Base classes for the objects of the document graph.

Every object knows how to turn itself into a pikepdf value through
:meth:`PdfObject.to_pikepdf`. References to other objects are resolved by
the ``ref`` callback passed in by the serializer, so objects never hold
pikepdf handles themselves.
"""

import logging
from collections.abc import Callable, Iterable
from typing import Any

from pikepdf import Array, Dictionary, Name, Object, String

from ..exceptions import StructureError

logger = logging.getLogger(__name__)

Ref = Callable[["PdfObject"], Object]

# Shell types created by the serializer before objects are filled in
SHELL_DICTIONARY = "dictionary"
SHELL_ARRAY = "array"
SHELL_STREAM = "stream"


class PdfObject:
    """An object of the document graph.

    Attributes:
        number: Object number, None until the registry assigns one.
        trailer: True if the object is referenced from the trailer set.
    """

    kind = "object"
    # Unnumbered direct objects are written inline where they are referenced
    direct = False
    shell = SHELL_DICTIONARY

    def __init__(self) -> None:
        self.number: int | None = None
        self.trailer = False

    def __repr__(self) -> str:
        return f"{type(self).__name__}(number={self.number})"

    @property
    def has_number(self) -> bool:
        return self.number is not None

    def set_number(self, number: int) -> None:
        """Sets the object number.

        Raises:
            StructureError: If the object already has a number.
        """
        if self.number is not None:
            raise StructureError(
                f"{self!r} already has object number {self.number}, "
                f"cannot assign {number}"
            )
        self.number = number

    def structural_key(self) -> tuple | None:
        """Hashable value over the semantic fields, None if not comparable."""
        return None

    def stream_data(self) -> bytes | None:
        return None

    def to_pikepdf(self, ref: Ref) -> Object:
        raise NotImplementedError


def reference_key(obj: PdfObject | None) -> tuple | None:
    """Key identifying a referenced object inside another structural key.

    Objects with a structural key compare by value; all others by identity.
    """
    if obj is None:
        return None
    key = obj.structural_key()
    if key is not None:
        return (obj.kind, key)
    return ("id", id(obj))


def as_tuple(values: Iterable[Any] | None) -> tuple | None:
    """Freezes a (possibly nested) sequence for use in a structural key."""
    if values is None:
        return None
    return tuple(
        as_tuple(v) if isinstance(v, list | tuple) else v for v in values
    )


def pdf_value(value: Any, ref: Ref) -> Any:
    """Converts a Python value into a pikepdf value.

    Objects are resolved through ``ref``, sequences become arrays and
    mappings become dictionaries. Strings are written as PDF strings; pass
    a :class:`pikepdf.Name` for names.
    """
    if isinstance(value, PdfObject):
        return ref(value)
    if isinstance(value, Object):
        return value
    if isinstance(value, str):
        return String(value)
    if isinstance(value, list | tuple):
        return Array([pdf_value(v, ref) for v in value])
    if isinstance(value, dict):
        return Dictionary({_key(k): pdf_value(v, ref) for k, v in value.items()})
    return value


def _key(key: str) -> str:
    return key if key.startswith("/") else f"/{key}"


def name(value: str) -> Name:
    """Creates a PDF name from a string without the leading slash."""
    return Name(_key(value))


class PdfStream(PdfObject):
    """A stream object with optional extra dictionary entries."""

    kind = "stream"
    shell = SHELL_STREAM

    def __init__(self, data: bytes = b"", **entries: Any) -> None:
        super().__init__()
        self._data = bytearray(data)
        self.entries: dict[str, Any] = dict(entries)

    def add(self, data: bytes) -> None:
        self._data += data

    def stream_data(self) -> bytes:
        return bytes(self._data)

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        return Dictionary(
            {_key(k): pdf_value(v, ref) for k, v in self.entries.items()}
        )
