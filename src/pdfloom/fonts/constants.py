# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Font constants shared by the glyph map, font model and embedder."""

# Glyph index returned by forward lookups that find no mapping
NOT_FOUND_CODE_POINT = 0

# Character substituted for characters and glyphs that cannot be mapped
NOT_FOUND_CHAR = "#"

# Forward lookups below this code point are cached
FORWARD_CACHE_SIZE = 256

# Private-use overflow region for synthesized reverse mappings [start, end)
PRIVATE_USE_START = 0xE000
PRIVATE_USE_END = 0xF900

# Glyphs always retained in a subset (.notdef plus the two following slots)
RESERVED_GLYPHS = frozenset({0, 1, 2})

# CIDSystemInfo for Identity-H fonts
CID_REGISTRY = "Adobe"
CID_ORDERING = "UCS"
CID_SUPPLEMENT = 0

IDENTITY_H = "Identity-H"

DEFAULT_CID_WIDTH = 1000

# Simple-font encodings every PDF reader knows without a /Differences array
PREDEFINED_ENCODINGS = frozenset(
    {
        "WinAnsiEncoding",
        "MacRomanEncoding",
        "MacExpertEncoding",
        "StandardEncoding",
    }
)

# Standard 14 PDF fonts (never embedded, no font descriptor)
STANDARD_14_FONTS = frozenset(
    {
        "Courier",
        "Courier-Bold",
        "Courier-BoldOblique",
        "Courier-Oblique",
        "Helvetica",
        "Helvetica-Bold",
        "Helvetica-BoldOblique",
        "Helvetica-Oblique",
        "Times-Roman",
        "Times-Bold",
        "Times-BoldItalic",
        "Times-Italic",
        "Symbol",
        "ZapfDingbats",
    }
)

# Symbol fonts (use their built-in encoding)
SYMBOL_FONTS = frozenset({"Symbol", "ZapfDingbats"})

# Subset tag: "E" + five counter digits rewritten as letters A..J + "+"
SUBSET_PREFIX_START = "E"
SUBSET_PREFIX_DIGITS = 5

# Font descriptor flag bits (1-based bit positions in ISO 32000)
FLAG_FIXED_PITCH = 1 << 0
FLAG_SERIF = 1 << 1
FLAG_SYMBOLIC = 1 << 2
FLAG_SCRIPT = 1 << 3
FLAG_NONSYMBOLIC = 1 << 5
FLAG_ITALIC = 1 << 6

DEFAULT_FLAGS = FLAG_SYMBOLIC

# Units in which PDF glyph widths are expressed
PDF_GLYPH_UNITS = 1000
