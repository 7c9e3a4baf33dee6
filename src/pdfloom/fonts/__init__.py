# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Font model, loading, subsetting and ToUnicode generation."""

from ..exceptions import FontEmbeddingError, UnsupportedFontError
from .cidset import CIDFull, CIDSubset, pack_cid_set
from .constants import STANDARD_14_FONTS
from .glyph_map import CharGlyphMap, CMapSegment
from .loader import FileResourceResolver, load_truetype_font, load_type1_font
from .metrics import FontMetricsExtractor
from .model import (
    CIDFont,
    CIDFontType,
    EmbeddingMode,
    Font,
    FontMetrics,
    FontType,
    SimpleFont,
    SingleByteEncoding,
)
from .subsetter import SubsettingResult

__all__ = [
    # Exceptions
    "FontEmbeddingError",
    "UnsupportedFontError",
    # Constants
    "STANDARD_14_FONTS",
    # Model
    "CIDFont",
    "CIDFontType",
    "EmbeddingMode",
    "Font",
    "FontMetrics",
    "FontType",
    "SimpleFont",
    "SingleByteEncoding",
    # Glyph mapping
    "CharGlyphMap",
    "CMapSegment",
    "CIDFull",
    "CIDSubset",
    "pack_cid_set",
    # Loading
    "FileResourceResolver",
    "load_truetype_font",
    "load_type1_font",
    # Helper classes
    "FontMetricsExtractor",
    "SubsettingResult",
]
