# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Font subsetting backends.

TrueType and OpenType/CFF programs are subset with fontTools.subset and
then reordered so that the glyph index of every used glyph in the subset
equals its CID, which lets the CIDFont use ``/CIDToGIDMap /Identity``.
Glyphs pulled in by composite closure are appended after the used glyphs.

Type 1 programs are subset by :class:`~.type1.Type1Subsetter`.
"""

import logging
from dataclasses import dataclass, field
from io import BytesIO
from typing import TYPE_CHECKING

from fontTools.subset import Options, Subsetter
from fontTools.ttLib.reorderGlyphs import reorderGlyphs

from ..exceptions import FontEmbeddingError, UnsupportedFontError
from .model import CIDFont, FontType, SimpleFont
from .type1 import Type1Program, Type1Subsetter
from .utils import is_font_collection, open_ttfont

if TYPE_CHECKING:
    from fontTools.ttLib import TTFont

logger = logging.getLogger(__name__)

# Layout tables are not needed once text is shaped into glyph indices
_DROPPED_TABLES = ["GSUB", "GPOS", "GDEF", "BASE", "JSTF", "MATH", "DSIG"]


@dataclass
class SubsettingResult:
    """Result of subsetting the fonts of one document.

    Attributes:
        fonts_subsetted: Names of the fonts that were subset.
        fonts_skipped: Names of the fonts that were skipped (with reason).
        bytes_saved: Total bytes saved by subsetting.
    """

    fonts_subsetted: list[str] = field(default_factory=list)
    fonts_skipped: list[str] = field(default_factory=list)
    bytes_saved: int = 0

    def record(self, font_name: str, original_size: int, new_size: int) -> None:
        saved = original_size - new_size
        self.fonts_subsetted.append(font_name)
        self.bytes_saved += saved
        logger.info(
            "Subsetted font '%s' (%d -> %d bytes, saved %d bytes)",
            font_name,
            original_size,
            new_size,
            saved,
        )


def _subset_options() -> Options:
    options = Options()
    options.retain_gids = False
    options.notdef_outline = True
    options.name_legacy = True
    options.name_IDs = ["*"]
    options.name_languages = ["*"]
    options.layout_features = []
    options.drop_tables = list(options.drop_tables) + _DROPPED_TABLES
    options.recalc_bounds = True
    return options


def used_glyph_names(font: CIDFont) -> list[str]:
    """Returns the names of the used glyphs, ordered by CID."""
    names = []
    for original, _cid in sorted(font.used_glyphs.items(), key=lambda kv: kv[1]):
        if 0 <= original < len(font.glyph_names):
            names.append(font.glyph_names[original])
        else:
            logger.warning(
                "Font '%s' has no glyph %d, skipped from subset",
                font.font_name,
                original,
            )
    return names


class TrueTypeSubsetter:
    """Subsets TrueType (glyf) programs for ``/FontFile2``."""

    def subset(self, data: bytes, font: CIDFont) -> bytes:
        """Builds a subset program whose glyph indices equal the CIDs.

        Args:
            data: Original font (or collection) bytes.
            font: Font whose used glyphs are kept.

        Returns:
            The subset font program.

        Raises:
            FontEmbeddingError: If the program cannot be parsed or subset.
        """
        tt_font = open_ttfont(data, font.ttc_index)
        try:
            self._subset_font(tt_font, font)
            return self._serialize(tt_font)
        finally:
            tt_font.close()

    def _subset_font(self, tt_font: "TTFont", font: CIDFont) -> None:
        ordered = used_glyph_names(font)
        subsetter = Subsetter(options=_subset_options())
        subsetter.populate(glyphs=ordered)
        try:
            subsetter.subset(tt_font)
        except (KeyError, ValueError, AssertionError) as e:
            raise FontEmbeddingError(
                f"Could not subset font '{font.font_name}': {e}"
            ) from e

        kept = set(tt_font.getGlyphOrder())
        used = [name for name in ordered if name in kept]
        used_set = set(used)
        extras = [name for name in tt_font.getGlyphOrder() if name not in used_set]
        new_order = used + extras
        reorderGlyphs(tt_font, new_order)
        if "glyf" in tt_font:
            tt_font["glyf"].glyphOrder = new_order
        if extras:
            logger.debug(
                "Font '%s': %d component glyphs appended to the subset",
                font.font_name,
                len(extras),
            )

    def _serialize(self, tt_font: "TTFont") -> bytes:
        output = BytesIO()
        tt_font.save(output)
        return output.getvalue()


class OpenTypeCFFSubsetter(TrueTypeSubsetter):
    """Subsets OpenType programs with CFF outlines.

    The result is the bare ``CFF `` table, embedded as ``/FontFile3``
    with ``/Subtype /CIDFontType0C``.
    """

    def _serialize(self, tt_font: "TTFont") -> bytes:
        if "CFF " not in tt_font:
            raise FontEmbeddingError("OpenType font has no CFF table")
        return tt_font["CFF "].compile(tt_font)


def extract_font(data: bytes, font_number: int) -> bytes:
    """Extracts one font from a TrueType collection.

    Single fonts are returned unchanged.
    """
    if not is_font_collection(data):
        return data
    tt_font = open_ttfont(data, font_number)
    try:
        output = BytesIO()
        tt_font.save(output)
        return output.getvalue()
    finally:
        tt_font.close()


class SimpleFontSubsetter:
    """Subsets the program of a single-byte Type 1 font."""

    def __init__(self) -> None:
        self._type1 = Type1Subsetter()

    def subset(self, data: bytes, font: SimpleFont) -> Type1Program:
        return self._type1.subset(data, font.used_glyph_names())


def subsetter_for(
    font: CIDFont | SimpleFont,
) -> TrueTypeSubsetter | SimpleFontSubsetter:
    """Selects the subsetting backend for a font.

    Raises:
        UnsupportedFontError: If the font type cannot be subset.
    """
    if isinstance(font, CIDFont):
        if font.is_otf:
            return OpenTypeCFFSubsetter()
        return TrueTypeSubsetter()
    if font.font_type == FontType.TYPE1:
        return SimpleFontSubsetter()
    raise UnsupportedFontError(
        f"Font '{font.font_name}' of type {font.font_type.value} cannot be subset"
    )
