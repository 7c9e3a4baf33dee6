# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Objects of the document graph."""

from .base import PdfObject, PdfStream, reference_key
from .fonts import (
    CIDFontDescriptor,
    CIDFontDict,
    Encoding,
    FontDescriptor,
    FontFile,
    SimpleFontDict,
    ToUnicodeCMap,
    Type0Font,
)
from .graphics import (
    DEFAULT_GSTATE,
    ExtGState,
    Function,
    ICCBasedColorSpace,
    ICCStream,
    Pattern,
    SeparationColorSpace,
    Shading,
)
from .navigation import (
    Destination,
    EmbeddedFile,
    FileSpec,
    GoTo,
    GoToRemote,
    JavaScript,
    Launch,
    Link,
    Navigator,
    Outline,
    SetOCGState,
    Transition,
    Uri,
)
from .structure import (
    Dests,
    EmbeddedFiles,
    Info,
    Layer,
    Metadata,
    Names,
    NameTreeNode,
    OutputIntent,
    Page,
    PageLabels,
    Pages,
    Resources,
    Root,
)

__all__ = [
    "CIDFontDescriptor",
    "CIDFontDict",
    "DEFAULT_GSTATE",
    "Destination",
    "Dests",
    "EmbeddedFile",
    "EmbeddedFiles",
    "Encoding",
    "ExtGState",
    "FileSpec",
    "FontDescriptor",
    "FontFile",
    "Function",
    "GoTo",
    "GoToRemote",
    "ICCBasedColorSpace",
    "ICCStream",
    "Info",
    "JavaScript",
    "Launch",
    "Layer",
    "Link",
    "Metadata",
    "NameTreeNode",
    "Names",
    "Navigator",
    "Outline",
    "OutputIntent",
    "Page",
    "PageLabels",
    "Pages",
    "Pattern",
    "PdfObject",
    "PdfStream",
    "Resources",
    "Root",
    "SeparationColorSpace",
    "SetOCGState",
    "Shading",
    "SimpleFontDict",
    "ToUnicodeCMap",
    "Transition",
    "Type0Font",
    "Uri",
    "reference_key",
]
