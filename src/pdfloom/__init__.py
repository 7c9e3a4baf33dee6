# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""pdfloom - Build PDF object graphs with shared objects and embedded fonts."""

from importlib.metadata import PackageNotFoundError, version

from .colors import Color
from .document import DocumentContext, DocumentOptions
from .exceptions import (
    ColorProfileError,
    ConfigurationError,
    FontEmbeddingError,
    GradientError,
    PdfLoomError,
    StructureError,
    UnsupportedFontError,
)
from .factory import DocumentFactory, LinkType
from .gradients import gradient_builder_for
from .registry import ObjectRegistry
from .writer import PdfSerializer

try:
    __version__ = version("pdfloom")
except PackageNotFoundError:
    __version__ = "unknown"

__all__ = [
    "__version__",
    "Color",
    "DocumentContext",
    "DocumentFactory",
    "DocumentOptions",
    "LinkType",
    "ObjectRegistry",
    "PdfSerializer",
    "gradient_builder_for",
    "PdfLoomError",
    "StructureError",
    "ConfigurationError",
    "FontEmbeddingError",
    "UnsupportedFontError",
    "GradientError",
    "ColorProfileError",
]
