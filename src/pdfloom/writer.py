# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Serialization of a document's object graph through pikepdf."""

import logging
from pathlib import Path
from typing import BinaryIO

import pikepdf
from pikepdf import Array, Dictionary, Object, Pdf, Stream

from .document import DocumentContext
from .exceptions import StructureError
from .objects.base import SHELL_ARRAY, PdfObject

logger = logging.getLogger(__name__)


class PdfSerializer:
    """Writes the registered objects of a document.

    Every registered object becomes one indirect object. Indirect objects
    are created in ascending object number order before any of them is
    filled in, so references may point forward. The document is closed
    (fonts finalized) before anything is written.

    Args:
        context: The document to write.
    """

    def __init__(self, context: DocumentContext) -> None:
        self.context = context
        self._handles: dict[int, Object] = {}

    def _ref(self, obj: PdfObject) -> Object:
        if obj.number is None:
            if obj.direct:
                return obj.to_pikepdf(self._ref)
            raise StructureError(f"Reference to unregistered object {obj!r}")
        handle = self._handles.get(obj.number)
        if handle is None or self.context.registry.get(obj.number) is not obj:
            raise StructureError(f"Reference to unregistered object {obj!r}")
        return handle

    def to_pikepdf(self) -> Pdf:
        """Builds a pikepdf document from the registered objects.

        Raises:
            StructureError: If the document has no catalog, or an object
                references an object that is not registered.
        """
        self.context.close()
        root = self.context.root
        if root is None:
            raise StructureError("Document has no catalog")

        pdf = Pdf.new()
        self._handles = {}
        objects = list(self.context.registry.objects())
        for obj in objects:
            data = obj.stream_data()
            if data is not None:
                shell: Object = Stream(pdf, data)
            elif obj.shell == SHELL_ARRAY:
                shell = Array()
            else:
                shell = Dictionary()
            self._handles[obj.number] = pdf.make_indirect(shell)  # type: ignore[index]

        for obj in objects:
            handle = self._handles[obj.number]  # type: ignore[index]
            value = obj.to_pikepdf(self._ref)
            if isinstance(handle, Array):
                handle.extend(value)
            else:
                for key, item in value.items():
                    handle[key] = item

        pdf.trailer.Root = self._ref(root)
        if self.context.info is not None:
            pdf.trailer.Info = self._ref(self.context.info)
        logger.debug(
            "Serialized %d objects (PDF %s)", len(objects), self.context.pdf_version
        )
        return pdf

    def save(self, output: str | Path | BinaryIO) -> None:
        """Writes the document to a path or binary stream."""
        pdf = self.to_pikepdf()
        try:
            pdf.save(
                output,
                linearize=False,
                force_version=self.context.pdf_version,
                deterministic_id=True,
                object_stream_mode=pikepdf.ObjectStreamMode.disable,
            )
        finally:
            pdf.close()
        logger.info("Document written (PDF %s)", self.context.pdf_version)
