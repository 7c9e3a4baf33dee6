# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Font loading: builds font models from font programs and metrics files."""

import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from fontTools.afmLib import AFM
from fontTools.afmLib import error as AFMError

from ..exceptions import FontEmbeddingError
from .constants import (
    FLAG_FIXED_PITCH,
    FLAG_ITALIC,
    FLAG_NONSYMBOLIC,
    FLAG_SYMBOLIC,
    PDF_GLYPH_UNITS,
)
from .glyph_map import CharGlyphMap
from .layout import (
    GlyphDefinitionTable,
    GlyphPositioningTable,
    GlyphSubstitutionTable,
)
from .metrics import FontMetricsExtractor
from .model import (
    CIDFont,
    CIDFontType,
    EmbeddingMode,
    FontMetrics,
    FontType,
    SimpleFont,
    SingleByteEncoding,
)
from .tounicode import generate_tounicode_for_winansi, resolve_glyph_to_unicode
from .utils import check_fstype_restrictions, open_ttfont

if TYPE_CHECKING:
    from fontTools.ttLib import TTFont

logger = logging.getLogger(__name__)

# Name table IDs
_NAME_FAMILY = 1
_NAME_SUBFAMILY = 2
_NAME_FULL = 4
_NAME_POSTSCRIPT = 6
_NAME_TYPO_FAMILY = 16


class FileResourceResolver:
    """Resolves font locators against a base directory.

    Args:
        base_dir: Directory relative locators are resolved against.
            Defaults to the current working directory.
    """

    def __init__(self, base_dir: str | Path | None = None) -> None:
        self.base_dir = Path(base_dir) if base_dir is not None else Path.cwd()

    def resolve_path(self, locator: str) -> Path:
        """Returns the filesystem path for a locator."""
        if locator.startswith("file://"):
            locator = locator[len("file://") :]
        path = Path(locator)
        if not path.is_absolute():
            path = self.base_dir / path
        return path

    def get_resource(self, locator: str) -> bytes | None:
        """Reads the bytes behind a locator.

        Returns:
            The file content, or None if the file does not exist.

        Raises:
            OSError: If the file exists but cannot be read.
        """
        path = self.resolve_path(locator)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            logger.debug("Font resource not found: %s", path)
            return None


def _name_record(tt_font: "TTFont", name_id: int) -> str | None:
    if "name" not in tt_font:
        return None
    record = tt_font["name"].getDebugName(name_id)
    return record or None


def _build_kerning(
    tt_font: "TTFont", glyph_to_char: dict[str, int], scale: float
) -> dict[int, dict[int, int]]:
    """Reads format 0 subtables of the kern table as char -> char -> value."""
    kerning: dict[int, dict[int, int]] = {}
    if "kern" not in tt_font:
        return kerning
    for subtable in getattr(tt_font["kern"], "kernTables", []):
        if getattr(subtable, "format", None) != 0:
            continue
        for (left, right), value in subtable.kernTable.items():
            first = glyph_to_char.get(left)
            second = glyph_to_char.get(right)
            if first is None or second is None or value == 0:
                continue
            kerning.setdefault(first, {})[second] = round(value * scale)
    return kerning


def load_truetype_font(
    locator: str,
    resolver: FileResourceResolver,
    *,
    embedding_mode: EmbeddingMode = EmbeddingMode.AUTO,
    font_name: str | None = None,
    ttc_index: int = 0,
) -> CIDFont:
    """Loads a TrueType or OpenType font as a CID-keyed font.

    Args:
        locator: Location of the font program.
        resolver: Resolver used to read the program.
        embedding_mode: Requested embedding mode.
        font_name: Overrides the PostScript name from the name table.
        ttc_index: Font index inside a TrueType collection.

    Returns:
        The CIDFont model.

    Raises:
        FontEmbeddingError: If the program cannot be read or parsed.
    """
    data = resolver.get_resource(locator)
    if data is None:
        raise FontEmbeddingError(f"Font program not found: {locator}")

    extractor = FontMetricsExtractor()
    tt_font = open_ttfont(data, ttc_index, lazy=False)
    try:
        glyph_order = tt_font.getGlyphOrder()
        best_cmap = tt_font.getBestCmap() or {}
        cmap = {code: tt_font.getGlyphID(name) for code, name in best_cmap.items()}

        is_symbol = "cmap" in tt_font and tt_font["cmap"].getcmap(3, 0) is not None
        metrics = extractor.extract_metrics(tt_font, is_symbol=is_symbol)
        if metrics is None:
            raise FontEmbeddingError(f"Font '{locator}' lacks head or OS/2 table")

        name = (
            font_name
            or _name_record(tt_font, _NAME_POSTSCRIPT)
            or Path(locator).stem
        )
        glyph_map = CharGlyphMap.from_cmap(cmap, font_name=name)

        effective_mode = embedding_mode
        embeddable_locator: str | None = locator
        os2 = tt_font["OS/2"]
        embedding_allowed, subsetting_allowed, warnings = check_fstype_restrictions(
            getattr(os2, "fsType", 0)
        )
        for warning in warnings:
            logger.warning("Font '%s': %s", name, warning)
        if not embedding_allowed:
            logger.warning("Font '%s' may not be embedded, referencing only", name)
            embeddable_locator = None
        elif not subsetting_allowed and embedding_mode != EmbeddingMode.FULL:
            logger.warning("Font '%s' may not be subset, embedding in full", name)
            effective_mode = EmbeddingMode.FULL

        font = CIDFont(
            name,
            glyph_map,
            extractor.extract_glyph_widths(tt_font),
            embedding_mode=effective_mode,
            locator=embeddable_locator,
            resolver=resolver,
        )
        font.metrics = metrics
        font.full_name = _name_record(tt_font, _NAME_FULL) or name
        font.font_sub_name = _name_record(tt_font, _NAME_SUBFAMILY) or ""
        for name_id in (_NAME_FAMILY, _NAME_TYPO_FAMILY):
            family = _name_record(tt_font, name_id)
            if family:
                font.family_names.add(family)
        font.glyph_names = list(glyph_order)
        font.bounding_boxes = extractor.extract_bounding_boxes(tt_font)
        font.is_otf = "CFF " in tt_font
        font.cid_type = CIDFontType.CIDTYPE0 if font.is_otf else CIDFontType.CIDTYPE2
        font.ttc_index = ttc_index
        font.last_char = max(len(glyph_order) - 1, 0)

        units_per_em = tt_font["head"].unitsPerEm
        glyph_to_char: dict[str, int] = {}
        for code in sorted(best_cmap):
            glyph_to_char.setdefault(best_cmap[code], code)
        for first, pairs in _build_kerning(
            tt_font, glyph_to_char, PDF_GLYPH_UNITS / units_per_em
        ).items():
            font.put_kerning_entry(first, pairs)

        gdef = None
        if "GDEF" in tt_font:
            gdef = GlyphDefinitionTable(tt_font["GDEF"].table, glyph_order)
            font.set_gdef(gdef)
        if "GSUB" in tt_font:
            font.set_gsub(GlyphSubstitutionTable(tt_font["GSUB"].table, glyph_order))
        if "GPOS" in tt_font:
            font.set_gpos(
                GlyphPositioningTable(
                    tt_font["GPOS"].table, glyph_order, units_per_em, gdef
                )
            )
    finally:
        tt_font.close()

    logger.debug(
        "Loaded font '%s' with %d glyphs and %d cmap segments",
        font.font_name,
        len(font.widths),
        len(glyph_map.segments),
    )
    return font


def _afm_number(afm: AFM, attr: str, default: float = 0) -> float:
    value = getattr(afm, attr, default)
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _type1_encoding(afm: AFM, symbolic: bool) -> SingleByteEncoding:
    """Builds the single-byte encoding of a Type 1 font from its AFM.

    Symbolic fonts keep their built-in codes. Other fonts are laid out on
    WinAnsiEncoding; glyphs outside it take the codes WinAnsi leaves free,
    which turns the encoding into a custom one.
    """
    glyph_unicode: dict[str, int] = {}
    for name in afm.chars():
        uv = resolve_glyph_to_unicode(name)
        if uv is not None:
            glyph_unicode[name] = uv

    if symbolic:
        code_to_name: dict[int, str] = {}
        code_to_unicode: dict[int, int] = {}
        for name in afm.chars():
            code = afm[name][0]
            if 0 <= code <= 255:
                code_to_name[code] = name
                if name in glyph_unicode:
                    code_to_unicode[code] = glyph_unicode[name]
        return SingleByteEncoding(None, code_to_name, code_to_unicode)

    unicode_glyph: dict[int, str] = {}
    for name, uv in sorted(glyph_unicode.items()):
        unicode_glyph.setdefault(uv, name)

    code_to_name = {}
    code_to_unicode = {}
    for code, uv in generate_tounicode_for_winansi().items():
        name = unicode_glyph.pop(uv, None)
        if name is not None:
            code_to_name[code] = name
            code_to_unicode[code] = uv

    encoding_name: str | None = "WinAnsiEncoding"
    free_codes = [c for c in range(33, 256) if c not in code_to_name]
    extras = sorted(unicode_glyph.items())
    if extras:
        encoding_name = None
        for code, (uv, name) in zip(free_codes, extras):
            code_to_name[code] = name
            code_to_unicode[code] = uv
        if len(extras) > len(free_codes):
            logger.warning(
                "Font '%s': %d glyphs do not fit into a single-byte encoding",
                afm.FontName,
                len(extras) - len(free_codes),
            )
    return SingleByteEncoding(encoding_name, code_to_name, code_to_unicode)


def _parse_afm(data: bytes) -> AFM:
    # AFM only reads from a path
    tmp_fd, tmp_path = tempfile.mkstemp(suffix=".afm")
    try:
        os.write(tmp_fd, data)
    finally:
        os.close(tmp_fd)
    try:
        return AFM(tmp_path)
    finally:
        os.unlink(tmp_path)


def load_type1_font(
    locator: str | None,
    afm_locator: str,
    resolver: FileResourceResolver,
    *,
    embedding_mode: EmbeddingMode = EmbeddingMode.AUTO,
) -> SimpleFont:
    """Loads a Type 1 font from its AFM metrics.

    Args:
        locator: Location of the PFB/PFA program, None to reference the
            font without embedding it.
        afm_locator: Location of the AFM file.
        resolver: Resolver for both locators.
        embedding_mode: Requested embedding mode.

    Returns:
        The SimpleFont model.

    Raises:
        FontEmbeddingError: If the AFM file cannot be read.
    """
    data = resolver.get_resource(afm_locator)
    if data is None:
        raise FontEmbeddingError(f"AFM file not found: {afm_locator}")
    try:
        afm = _parse_afm(data)
    except (OSError, ValueError, KeyError, AFMError) as e:
        raise FontEmbeddingError(f"Could not read AFM file '{afm_locator}': {e}") from e

    symbolic = getattr(afm, "EncodingScheme", "") == "FontSpecific"
    encoding = _type1_encoding(afm, symbolic)

    font = SimpleFont(
        afm.FontName,
        encoding,
        font_type=FontType.TYPE1,
        embedding_mode=embedding_mode,
        locator=locator,
        resolver=resolver,
    )
    font.metrics_locator = afm_locator
    font.full_name = getattr(afm, "FullName", afm.FontName)
    family = getattr(afm, "FamilyName", None)
    if family:
        font.family_names.add(str(family))

    italic_angle = _afm_number(afm, "ItalicAngle")
    flags = FLAG_SYMBOLIC if symbolic else FLAG_NONSYMBOLIC
    if str(getattr(afm, "IsFixedPitch", "false")).lower() == "true":
        flags |= FLAG_FIXED_PITCH
    if italic_angle != 0:
        flags |= FLAG_ITALIC
    bbox = getattr(afm, "FontBBox", (0, 0, 0, 0))
    font.metrics = FontMetrics(
        ascender=int(_afm_number(afm, "Ascender", bbox[3])),
        descender=int(_afm_number(afm, "Descender", bbox[1])),
        cap_height=int(_afm_number(afm, "CapHeight", bbox[3])),
        x_height=int(_afm_number(afm, "XHeight")),
        bbox=tuple(int(v) for v in bbox),
        flags=flags,
        stem_v=int(_afm_number(afm, "StdVW", 80)),
        italic_angle=italic_angle,
        underline_position=int(_afm_number(afm, "UnderlinePosition")),
        underline_thickness=int(_afm_number(afm, "UnderlineThickness")),
    )
    weight = str(getattr(afm, "Weight", "")).lower()
    font.set_weight(700 if "bold" in weight else 400)

    codes = sorted(encoding.code_to_name)
    if codes:
        font.first_char = codes[0]
        font.last_char = codes[-1]
    font.widths = [
        afm[encoding.code_to_name[code]][1] if code in encoding.code_to_name else 0
        for code in range(font.first_char, font.last_char + 1)
    ]

    name_to_char = {
        name: encoding.code_to_unicode[code]
        for code, name in encoding.code_to_name.items()
        if code in encoding.code_to_unicode
    }
    kerning: dict[int, dict[int, int]] = {}
    for left, right in afm.kernpairs():
        first = name_to_char.get(left)
        second = name_to_char.get(right)
        if first is not None and second is not None:
            kerning.setdefault(first, {})[second] = afm[(left, right)]
    for first, pairs in kerning.items():
        font.put_kerning_entry(first, pairs)

    logger.debug(
        "Loaded Type 1 font '%s' (%s), codes %d..%d",
        font.font_name,
        encoding.name or "custom encoding",
        font.first_char,
        font.last_char,
    )
    return font
