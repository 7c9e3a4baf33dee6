# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Font model: simple (single-byte) and CID-keyed (multi-byte) fonts.

A font is one of two variants sharing :class:`FontBase`:

* :class:`SimpleFont` addresses glyphs through a single-byte encoding.
* :class:`CIDFont` addresses glyphs through a :class:`CharGlyphMap` and
  renumbers them through a :class:`CIDSet` when embedded.

Optional behaviour is described by the capability protocols
:class:`Kernable`, :class:`Substitutable` and :class:`Positionable`.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from .cidset import CIDFull, CIDSet, CIDSubset
from .constants import (
    CID_ORDERING,
    CID_REGISTRY,
    CID_SUPPLEMENT,
    DEFAULT_CID_WIDTH,
    DEFAULT_FLAGS,
    FLAG_SYMBOLIC,
    IDENTITY_H,
    NOT_FOUND_CHAR,
    NOT_FOUND_CODE_POINT,
    PDF_GLYPH_UNITS,
    PREDEFINED_ENCODINGS,
)
from .glyph_map import CharGlyphMap
from .utils import strip_whitespace

logger = logging.getLogger(__name__)

# Line thickness used when the font does not provide one
DEFAULT_LINE_THICKNESS = 50


class EmbeddingMode(Enum):
    """How much of a font program is embedded."""

    AUTO = "auto"
    FULL = "full"
    SUBSET = "subset"


class FontType(Enum):
    """PDF font subtype of the top-level font dictionary."""

    TYPE0 = "Type0"
    TYPE1 = "Type1"
    TRUETYPE = "TrueType"
    OTHER = "Other"


class CIDFontType(Enum):
    """Subtype of the descendant CIDFont dictionary."""

    CIDTYPE0 = "CIDFontType0"
    CIDTYPE2 = "CIDFontType2"


class ResourceResolver(Protocol):
    """Source of font program bytes."""

    def get_resource(self, locator: str) -> bytes | None: ...


@dataclass
class FontMetrics:
    """Font-wide metrics in 1/1000 em units.

    Zero for ``underline_position``, ``underline_thickness``,
    ``strikeout_position`` or ``strikeout_thickness`` means unknown;
    the scaled accessors on :class:`FontBase` then derive a default.
    """

    ascender: int = 0
    descender: int = 0
    cap_height: int = 0
    x_height: int = 0
    bbox: tuple[int, int, int, int] = (0, 0, 0, 0)
    flags: int = DEFAULT_FLAGS
    weight: int = 0
    stem_v: int = 0
    italic_angle: float = 0
    missing_width: int = 0
    underline_position: int = 0
    underline_thickness: int = 0
    strikeout_position: int = 0
    strikeout_thickness: int = 0


@dataclass
class SingleByteEncoding:
    """Code to glyph name and Unicode mapping of a simple font.

    Attributes:
        name: Name of a predefined encoding, or None for a custom one.
        code_to_name: Character code -> glyph name.
        code_to_unicode: Character code -> Unicode codepoint.
    """

    name: str | None
    code_to_name: dict[int, str] = field(default_factory=dict)
    code_to_unicode: dict[int, int] = field(default_factory=dict)
    _unicode_to_code: dict[int, int] = field(
        default_factory=dict, init=False, repr=False
    )

    def __post_init__(self) -> None:
        for code in sorted(self.code_to_unicode):
            self._unicode_to_code.setdefault(self.code_to_unicode[code], code)

    @property
    def is_predefined(self) -> bool:
        return self.name in PREDEFINED_ENCODINGS

    def code_for(self, char: int) -> int | None:
        """Returns the character code for a Unicode codepoint, if encoded."""
        return self._unicode_to_code.get(char)

    def differences(self, codes: set[int] | None = None) -> list[int | str]:
        """Builds a /Differences array as alternating start codes and names.

        Args:
            codes: Restrict the array to these codes (all codes if None).

        Returns:
            List of ints (start codes) and glyph names.
        """
        differences: list[int | str] = []
        prev = -2
        for code in sorted(self.code_to_name):
            if codes is not None and code not in codes:
                continue
            if code != prev + 1:
                differences.append(code)
            differences.append(self.code_to_name[code])
            prev = code
        return differences


def iter_code_points(text: str) -> Iterator[int]:
    """Yields the Unicode scalar values of a string.

    Surrogate pairs left in the string (for example by a ``surrogatepass``
    decode) are combined. Isolated surrogates are rejected.

    Raises:
        ValueError: If the text contains an isolated surrogate.
    """
    i = 0
    n = len(text)
    while i < n:
        cc = ord(text[i])
        if 0xD800 <= cc < 0xDC00:
            if i + 1 >= n:
                raise ValueError(
                    "ill-formed UTF-16 sequence, contains isolated high "
                    "surrogate at end of sequence"
                )
            low = ord(text[i + 1])
            if not 0xDC00 <= low < 0xE000:
                raise ValueError(
                    "ill-formed UTF-16 sequence, contains isolated high "
                    f"surrogate at index {i}"
                )
            cc = 0x10000 + ((cc - 0xD800) << 10) + (low - 0xDC00)
            i += 1
        elif 0xDC00 <= cc < 0xE000:
            raise ValueError(
                "ill-formed UTF-16 sequence, contains isolated low "
                f"surrogate at index {i}"
            )
        yield cc
        i += 1


class FontBase:
    """Attributes and metric accessors shared by all font variants.

    Args:
        font_name: PostScript name of the font.
        embedding_mode: Requested embedding mode.
        locator: Location of the font program, None for fonts that are
            never embedded (the Standard 14 fonts).
        resolver: Source of font program bytes for ``locator``.
    """

    font_type = FontType.OTHER

    def __init__(
        self,
        font_name: str,
        *,
        embedding_mode: EmbeddingMode = EmbeddingMode.AUTO,
        locator: str | None = None,
        resolver: ResourceResolver | None = None,
    ) -> None:
        self.font_name = font_name
        self.full_name = font_name
        self.family_names: set[str] = set()
        self.font_sub_name = ""
        self.embedding_mode = embedding_mode
        self.locator = locator
        self.resolver = resolver
        self.metrics = FontMetrics()
        self.first_char = 0
        self.last_char = 255
        self.use_kerning = True
        self.use_advanced = True
        self._kerning: dict[int, dict[int, int]] = {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.font_name!r})"

    @property
    def is_embeddable(self) -> bool:
        return self.locator is not None

    @property
    def embed_font_name(self) -> str:
        """Font name written to the document, whitespace-free if embedded."""
        if self.is_embeddable:
            return strip_whitespace(self.font_name)
        return self.font_name

    @property
    def encoding_name(self) -> str | None:
        return None

    @property
    def is_symbolic(self) -> bool:
        return bool(self.metrics.flags & FLAG_SYMBOLIC) or (
            self.encoding_name == "ZapfDingbatsEncoding"
        )

    def set_weight(self, weight: int) -> None:
        """Sets the weight, rounded down to a multiple of 100 in 100..900."""
        weight = (weight // 100) * 100
        self.metrics.weight = min(900, max(100, weight))

    def read_program(self) -> bytes | None:
        """Reads the font program through the resolver.

        Returns:
            Program bytes, or None if the font has no program or the
            resolver does not know the locator.

        Raises:
            OSError: If the resolver fails to read the program.
        """
        if self.locator is None or self.resolver is None:
            return None
        return self.resolver.get_resource(self.locator)

    # Scaled metrics (size in points, result in 1/1000 point units)

    def ascender(self, size: int = 1) -> int:
        return size * self.metrics.ascender

    def descender(self, size: int = 1) -> int:
        return size * self.metrics.descender

    def cap_height(self, size: int = 1) -> int:
        return size * self.metrics.cap_height

    def x_height(self, size: int = 1) -> int:
        return size * self.metrics.x_height

    def underline_position(self, size: int = 1) -> int:
        if self.metrics.underline_position == 0:
            return int(self.descender(size) / 2)
        return size * self.metrics.underline_position

    def underline_thickness(self, size: int = 1) -> int:
        return size * (self.metrics.underline_thickness or DEFAULT_LINE_THICKNESS)

    def strikeout_position(self, size: int = 1) -> int:
        if self.metrics.strikeout_position == 0:
            return int(self.x_height(size) / 2)
        return size * self.metrics.strikeout_position

    def strikeout_thickness(self, size: int = 1) -> int:
        if self.metrics.strikeout_thickness == 0:
            return self.underline_thickness(size)
        return size * self.metrics.strikeout_thickness

    # Kerning

    def put_kerning_entry(self, first: int, pairs: dict[int, int]) -> None:
        self._kerning[first] = dict(pairs)

    def has_kerning_info(self) -> bool:
        return self.use_kerning and bool(self._kerning)

    def kerning_info(self) -> dict[int, dict[int, int]]:
        """Returns the kerning map (first char -> second char -> value)."""
        if self.has_kerning_info():
            return self._kerning
        return {}


class SimpleFont(FontBase):
    """Single-byte font addressed through a :class:`SingleByteEncoding`.

    Widths are indexed by ``code - first_char``.
    """

    font_type = FontType.TYPE1

    def __init__(
        self,
        font_name: str,
        encoding: SingleByteEncoding,
        *,
        font_type: FontType = FontType.TYPE1,
        embedding_mode: EmbeddingMode = EmbeddingMode.AUTO,
        locator: str | None = None,
        resolver: ResourceResolver | None = None,
    ) -> None:
        super().__init__(
            font_name,
            embedding_mode=embedding_mode,
            locator=locator,
            resolver=resolver,
        )
        self.font_type = font_type
        self.encoding = encoding
        self.widths: list[int] = []
        self.used_codes: set[int] = set()
        # AFM or PFB metrics file the font was loaded from, if any
        self.metrics_locator: str | None = None

    @property
    def encoding_name(self) -> str | None:
        return self.encoding.name

    @property
    def is_subset_embedded(self) -> bool:
        return self.is_embeddable and self.embedding_mode == EmbeddingMode.SUBSET

    def map_char(self, char: str) -> int:
        """Maps a character to its code, recording it as used.

        Unencoded characters are replaced by the code of ``'#'``; if that
        is unencoded too, 0 is returned.
        """
        code = self.encoding.code_for(ord(char))
        if code is None:
            logger.warning(
                "Glyph for character U+%04X not available in font '%s'",
                ord(char),
                self.font_name,
            )
            code = self.encoding.code_for(ord(NOT_FOUND_CHAR))
            if code is None:
                return NOT_FOUND_CODE_POINT
        self.used_codes.add(code)
        return code

    def has_char(self, char: str) -> bool:
        return self.encoding.code_for(ord(char)) is not None

    def width_of(self, code: int, size: int = 1) -> int:
        index = code - self.first_char
        if 0 <= index < len(self.widths):
            return size * self.widths[index]
        return size * self.metrics.missing_width

    def used_char_range(self) -> tuple[int, int]:
        """Returns (first, last) character code written to the font dictionary.

        Subset-embedded fonts only cover the codes that were used.
        """
        if self.is_subset_embedded and self.used_codes:
            return min(self.used_codes), max(self.used_codes)
        return self.first_char, self.last_char

    def subset_widths(self) -> list[int]:
        """Widths from the first to the last written code.

        Codes that a subset-embedded font never used get width 0.
        """
        first, last = self.used_char_range()
        if not self.is_subset_embedded or not self.used_codes:
            return [self.width_of(code) for code in range(first, last + 1)]
        return [
            self.width_of(code) if code in self.used_codes else 0
            for code in range(first, last + 1)
        ]

    def used_glyph_names(self) -> set[str]:
        """Glyph names to keep when subsetting (always includes .notdef)."""
        names = {".notdef"}
        for code in self.used_codes:
            name = self.encoding.code_to_name.get(code)
            if name is not None:
                names.add(name)
        return names

    def to_unicode_map(self) -> dict[int, int]:
        """Code -> Unicode mapping for the codes in the written range."""
        first, last = self.used_char_range()
        return {
            code: uv
            for code, uv in self.encoding.code_to_unicode.items()
            if first <= code <= last
        }


class CIDFont(FontBase):
    """Multi-byte font using Identity-H and a CID renumbering policy.

    Args:
        font_name: PostScript name of the font.
        glyph_map: Unicode/glyph index map.
        widths: Advance widths by original glyph index, 1/1000 em.
        embedding_mode: FULL keeps original glyph indices, anything else
            renumbers used glyphs in first-use order.
        locator: Location of the font program.
        resolver: Source of font program bytes.
    """

    font_type = FontType.TYPE0
    registry = CID_REGISTRY
    ordering = CID_ORDERING
    supplement = CID_SUPPLEMENT

    def __init__(
        self,
        font_name: str,
        glyph_map: CharGlyphMap,
        widths: list[int] | None = None,
        *,
        embedding_mode: EmbeddingMode = EmbeddingMode.AUTO,
        locator: str | None = None,
        resolver: ResourceResolver | None = None,
    ) -> None:
        super().__init__(
            font_name,
            embedding_mode=embedding_mode,
            locator=locator,
            resolver=resolver,
        )
        self.glyph_map = glyph_map
        if not glyph_map.font_name:
            glyph_map.font_name = font_name
        self.widths: list[int] = list(widths or [])
        self.bounding_boxes: list[tuple[int, int, int, int]] = []
        self.glyph_names: list[str] = []
        self.cid_type = CIDFontType.CIDTYPE2
        self.is_otf = False
        self.ttc_index = 0
        self.default_width = DEFAULT_CID_WIDTH
        self.first_char = 0
        self.last_char = max(len(self.widths) - 1, 0)
        self.cid_set: CIDSet
        if embedding_mode != EmbeddingMode.FULL:
            self.cid_set = CIDSubset()
        else:
            self.cid_set = CIDFull(glyph_map, len(self.widths))
        self._gdef: Any = None
        self._gsub: Any = None
        self._gpos: Any = None

    @property
    def encoding_name(self) -> str:
        return IDENTITY_H

    @property
    def is_subset_embedded(self) -> bool:
        return self.embedding_mode != EmbeddingMode.FULL

    @property
    def used_glyphs(self) -> dict[int, int]:
        """Original glyph index -> output index of every used glyph."""
        return self.cid_set.glyphs

    def find_glyph_index(self, c: int) -> int:
        return self.glyph_map.find_glyph_index(c)

    def find_character(self, glyph_index: int, augment: bool = True) -> int:
        return self.glyph_map.find_character(glyph_index, augment)

    def has_char(self, char: str) -> bool:
        return self.glyph_map.has_char(ord(char))

    def map_char(self, char: str) -> int:
        """Maps a character to the glyph index written in content streams.

        Unmapped characters fall back to the glyph of ``'#'`` (except for
        OpenType CFF fonts). Embedded fonts renumber the glyph through the
        CID set.
        """
        c = ord(char)
        glyph_index = self.glyph_map.find_glyph_index(c)
        if glyph_index == NOT_FOUND_CODE_POINT:
            logger.warning(
                "Glyph for character U+%04X not available in font '%s'",
                c,
                self.font_name,
            )
            if not self.is_otf:
                glyph_index = self.glyph_map.find_glyph_index(ord(NOT_FOUND_CHAR))
        if self.is_embeddable:
            glyph_index = self.cid_set.map_char(glyph_index, c)
        return glyph_index

    def _original_index(self, index: int) -> int:
        if self.is_embeddable:
            return self.cid_set.original_glyph_index(index)
        return index

    def width_of(self, index: int, size: int = 1) -> int:
        original = self._original_index(index)
        if 0 <= original < len(self.widths):
            return size * self.widths[original]
        return size * self.default_width

    def bounding_box(self, index: int, size: int = 1) -> tuple[int, int, int, int]:
        """Returns (x, y, width, height) of a glyph, scaled by size."""
        original = self._original_index(index)
        if not 0 <= original < len(self.bounding_boxes):
            return (0, 0, 0, 0)
        x, y, w, h = self.bounding_boxes[original]
        return (x * size, y * size, w * size, h * size)

    def cid_widths(self) -> list[int]:
        """Widths indexed by CID (output glyph index)."""
        if not self.is_embeddable:
            return list(self.widths)
        return self.cid_set.widths(self.widths)

    def to_unicode_map(self) -> dict[int, int]:
        """CID -> Unicode mapping for the ToUnicode CMap."""
        if not self.is_embeddable:
            return self.glyph_map.chars_by_glyph()
        return {cid: uv for cid, uv in self.cid_set.chars().items() if uv}

    # Advanced typography tables

    @property
    def gdef(self) -> Any:
        return self._gdef

    def set_gdef(self, gdef: Any) -> None:
        if self._gdef is None or gdef is None:
            self._gdef = gdef
        else:
            raise ValueError("font already associated with GDEF table")

    @property
    def gsub(self) -> Any:
        return self._gsub

    def set_gsub(self, gsub: Any) -> None:
        if self._gsub is None or gsub is None:
            self._gsub = gsub
        else:
            raise ValueError("font already associated with GSUB table")

    @property
    def gpos(self) -> Any:
        return self._gpos

    def set_gpos(self, gpos: Any) -> None:
        if self._gpos is None or gpos is None:
            self._gpos = gpos
        else:
            raise ValueError("font already associated with GPOS table")

    def performs_substitution(self) -> bool:
        return self._gsub is not None and self.use_advanced

    def perform_substitution(
        self, text: str, script: str = "DFLT", language: str = "dflt"
    ) -> str:
        """Applies glyph substitutions and maps the result back to text.

        Glyphs without a Unicode mapping receive a private-use codepoint.
        Glyphs that cannot be mapped at all become ``'#'``.

        Raises:
            ValueError: If the text contains an isolated surrogate.
        """
        if not self.performs_substitution():
            return text
        glyphs = self._map_chars_to_glyphs(text)
        glyphs = self._gsub.substitute(glyphs, script, language)
        return self._map_glyphs_to_chars(glyphs)

    def performs_positioning(self) -> bool:
        return self._gpos is not None and self.use_advanced

    def perform_positioning(
        self,
        text: str,
        script: str = "DFLT",
        language: str = "dflt",
        size: int = 1000,
    ) -> list[list[int]] | None:
        """Computes glyph position adjustments for a text run.

        Returns:
            One ``[x placement, y placement, x advance, y advance]`` entry
            per glyph, scaled to ``size``, or None if nothing is adjusted.

        Raises:
            ValueError: If the text contains an isolated surrogate.
        """
        if not self.performs_positioning():
            return None
        glyphs = self._map_chars_to_glyphs(text)
        adjustments = self._gpos.position(glyphs, script, language)
        if adjustments is None:
            return None
        return [
            [int(value * size / PDF_GLYPH_UNITS) for value in gpa]
            for gpa in adjustments
        ]

    def _map_chars_to_glyphs(self, text: str) -> list[int]:
        missing = self.glyph_map.find_glyph_index(ord(NOT_FOUND_CHAR))
        glyphs = []
        for cc in iter_code_points(text):
            gi = self.glyph_map.find_glyph_index(cc)
            if gi == NOT_FOUND_CODE_POINT:
                logger.warning(
                    "Glyph for character U+%04X not available in font '%s'",
                    cc,
                    self.font_name,
                )
                gi = missing
            glyphs.append(gi)
        return glyphs

    def _map_glyphs_to_chars(self, glyphs: list[int]) -> str:
        chars = []
        for gi in glyphs:
            cc = self.glyph_map.find_character(gi, augment=True)
            if cc == 0 or cc > 0x10FFFF:
                logger.warning(
                    "Unable to map glyph index %d to Unicode scalar in font "
                    "'%s', substituting missing character '%s'",
                    gi,
                    self.full_name,
                    NOT_FOUND_CHAR,
                )
                chars.append(NOT_FOUND_CHAR)
            else:
                chars.append(chr(cc))
        return "".join(chars)


Font = SimpleFont | CIDFont


@runtime_checkable
class Kernable(Protocol):
    def has_kerning_info(self) -> bool: ...

    def kerning_info(self) -> dict[int, dict[int, int]]: ...


@runtime_checkable
class Substitutable(Protocol):
    def performs_substitution(self) -> bool: ...

    def perform_substitution(
        self, text: str, script: str = "DFLT", language: str = "dflt"
    ) -> str: ...


@runtime_checkable
class Positionable(Protocol):
    def performs_positioning(self) -> bool: ...

    def perform_positioning(
        self,
        text: str,
        script: str = "DFLT",
        language: str = "dflt",
        size: int = 1000,
    ) -> list[list[int]] | None: ...
