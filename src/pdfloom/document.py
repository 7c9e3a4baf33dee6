# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Document-scoped state: options, registry, structure and fonts."""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from .constants import DEFAULT_PDF_VERSION, DEFAULT_PRODUCER
from .exceptions import ConfigurationError, PdfLoomError
from .fonts.subsetter import SubsettingResult
from .objects import Destination, Info, Pages, PdfObject, Resources, Root
from .registry import ObjectRegistry
from .utils import max_pdf_version, validate_pdf_version

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentOptions:
    """Options for building one document.

    Attributes:
        pdf_version: Minimum PDF version written to the header.
        force_to_unicode: Write ToUnicode CMaps for Standard 14 fonts with
            a custom encoding too.
        producer: Producer written to the info dictionary and XMP.
        actions_allowed: False for output profiles that forbid actions;
            action factories then raise ConfigurationError.
    """

    pdf_version: str = DEFAULT_PDF_VERSION
    force_to_unicode: bool = True
    producer: str = DEFAULT_PRODUCER
    actions_allowed: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "pdf_version", validate_pdf_version(self.pdf_version))
        if not self.producer.strip():
            raise PdfLoomError("Producer must not be empty")


class DocumentContext:
    """State of one document being built.

    The context owns the object registry; nothing is shared between
    documents. Work that depends on the final set of used glyphs (font
    subsetting, width arrays, ToUnicode CMaps) and on the complete set of
    named destinations is registered as finalizers and run once by
    :meth:`close`.
    """

    def __init__(self, options: DocumentOptions | None = None) -> None:
        self.options = options or DocumentOptions()
        self.registry = ObjectRegistry()
        self.pdf_version = self.options.pdf_version
        self.root: Root | None = None
        self.pages: Pages | None = None
        self.resources: Resources | None = None
        self.info: Info | None = None
        # font key -> font dictionary
        self.fonts: dict[str, PdfObject] = {}
        self.destinations: list[Destination] = []
        self.subsetting = SubsettingResult()
        self._finalizers: list[Callable[[], None]] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def require_pdf_version(self, version: str) -> None:
        """Raises the document's PDF version to at least ``version``."""
        new_version = max_pdf_version(self.pdf_version, version)
        if new_version != self.pdf_version:
            logger.info(
                "PDF version raised from %s to %s", self.pdf_version, new_version
            )
            self.pdf_version = new_version

    def verify_action_allowed(self) -> None:
        """Raises ConfigurationError if the output profile forbids actions."""
        if not self.options.actions_allowed:
            raise ConfigurationError("Actions are not allowed by the output profile")

    def add_finalizer(self, finalizer: Callable[[], None]) -> None:
        if self._closed:
            raise PdfLoomError("Document is already closed")
        self._finalizers.append(finalizer)

    def close(self) -> None:
        """Runs the finalizers. Later calls do nothing."""
        if self._closed:
            return
        self._closed = True
        for finalizer in self._finalizers:
            finalizer()
        self._finalizers.clear()
        logger.debug(
            "Document closed with %d objects", len(self.registry)
        )
