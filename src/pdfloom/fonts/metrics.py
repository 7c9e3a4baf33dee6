# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Font metrics extraction from TrueType/OpenType fonts."""

from typing import TYPE_CHECKING

from .constants import (
    FLAG_FIXED_PITCH,
    FLAG_ITALIC,
    FLAG_NONSYMBOLIC,
    FLAG_SCRIPT,
    FLAG_SERIF,
    FLAG_SYMBOLIC,
    PDF_GLYPH_UNITS,
)
from .model import FontMetrics

if TYPE_CHECKING:
    from fontTools.ttLib import TTFont

# Runs of at least this many equal widths use the range form in /W arrays
W_RANGE_MIN_RUN = 4


class FontMetricsExtractor:
    """Extracts font metrics from TTFont objects.

    Stateless helper; all values are returned in 1/1000 em units.
    """

    def compute_font_flags(self, tt_font: "TTFont", *, is_symbol: bool = False) -> int:
        """Computes PDF font flags from TrueType font data.

        PDF Font Flags (ISO 32000):
        - Bit 1 (1): FixedPitch - Monospace font
        - Bit 2 (2): Serif - Font has serifs
        - Bit 3 (4): Symbolic - Non-standard character set
        - Bit 4 (8): Script - Cursive/handwriting style
        - Bit 6 (32): Nonsymbolic - Standard Latin character set
        - Bit 7 (64): Italic - Slanted glyphs

        Args:
            tt_font: fonttools TTFont object.
            is_symbol: True for symbol fonts (sets Symbolic flag).

        Returns:
            Integer with combined font flags.
        """
        flags = FLAG_SYMBOLIC if is_symbol else FLAG_NONSYMBOLIC

        os2 = tt_font.get("OS/2")

        if "post" in tt_font and getattr(tt_font["post"], "isFixedPitch", 0):
            flags |= FLAG_FIXED_PITCH

        if not is_symbol and os2 is not None:
            family_class = getattr(os2, "sFamilyClass", 0) >> 8

            # sFamilyClass 1-7 are serif families
            if 1 <= family_class <= 7:
                flags |= FLAG_SERIF

            # sFamilyClass 10 is Scripts
            if family_class == 10:
                flags |= FLAG_SCRIPT

            if getattr(os2, "fsSelection", 0) & 0x0001:
                flags |= FLAG_ITALIC

        if not is_symbol and "post" in tt_font:
            if getattr(tt_font["post"], "italicAngle", 0) != 0:
                flags |= FLAG_ITALIC

        return flags

    def extract_metrics(
        self, tt_font: "TTFont", *, is_symbol: bool = False
    ) -> FontMetrics | None:
        """Extracts font-wide metrics.

        Args:
            tt_font: fonttools TTFont object.
            is_symbol: True for symbol fonts.

        Returns:
            FontMetrics, or None if the head or OS/2 table is missing.
        """
        if "head" not in tt_font or "OS/2" not in tt_font:
            return None
        head = tt_font["head"]
        os2 = tt_font["OS/2"]
        scale = PDF_GLYPH_UNITS / head.unitsPerEm

        bbox = (
            int(head.xMin * scale),
            int(head.yMin * scale),
            int(head.xMax * scale),
            int(head.yMax * scale),
        )
        weight = getattr(os2, "usWeightClass", 400)
        metrics = FontMetrics(
            ascender=int(os2.sTypoAscender * scale),
            descender=int(os2.sTypoDescender * scale),
            cap_height=int(getattr(os2, "sCapHeight", 700) * scale),
            x_height=int(getattr(os2, "sxHeight", 0) * scale),
            bbox=bbox,
            flags=self.compute_font_flags(tt_font, is_symbol=is_symbol),
            # Estimate StemV from usWeightClass: 10 + 220 * (weight/1000)^2
            stem_v=int(10 + 220 * (weight / 1000) ** 2),
            strikeout_position=int(getattr(os2, "yStrikeoutPosition", 0) * scale),
            strikeout_thickness=int(getattr(os2, "yStrikeoutSize", 0) * scale),
        )
        metrics.weight = min(900, max(100, (weight // 100) * 100))

        if "post" in tt_font:
            post = tt_font["post"]
            metrics.italic_angle = post.italicAngle
            metrics.underline_position = int(post.underlinePosition * scale)
            metrics.underline_thickness = int(post.underlineThickness * scale)

        return metrics

    def extract_glyph_widths(self, tt_font: "TTFont") -> list[int]:
        """Extracts advance widths indexed by glyph index.

        Args:
            tt_font: fonttools TTFont object.

        Returns:
            One width per glyph in glyph order, scaled to 1000 units.
        """
        scale = PDF_GLYPH_UNITS / tt_font["head"].unitsPerEm
        hmtx = tt_font["hmtx"]
        notdef_width = hmtx.metrics.get(".notdef", (500, 0))[0]
        return [
            round(hmtx.metrics.get(name, (notdef_width, 0))[0] * scale)
            for name in tt_font.getGlyphOrder()
        ]

    def extract_bounding_boxes(
        self, tt_font: "TTFont"
    ) -> list[tuple[int, int, int, int]]:
        """Extracts per-glyph (x, y, width, height) boxes in 1000 units.

        Glyphs without outlines (or fonts without a glyf table) get the
        box ``(0, 0, advance, 0)``.
        """
        scale = PDF_GLYPH_UNITS / tt_font["head"].unitsPerEm
        glyph_order = tt_font.getGlyphOrder()
        widths = self.extract_glyph_widths(tt_font)
        glyf = tt_font["glyf"] if "glyf" in tt_font else None

        boxes = []
        for gid, name in enumerate(glyph_order):
            glyph = glyf[name] if glyf is not None else None
            if (
                glyph is None
                or getattr(glyph, "numberOfContours", 0) == 0
                or not hasattr(glyph, "xMin")
            ):
                boxes.append((0, 0, widths[gid], 0))
                continue
            boxes.append(
                (
                    int(glyph.xMin * scale),
                    int(glyph.yMin * scale),
                    int((glyph.xMax - glyph.xMin) * scale),
                    int((glyph.yMax - glyph.yMin) * scale),
                )
            )
        return boxes

    def build_w_array(self, widths: list[int], first_cid: int = 0) -> list:
        """Creates a /W array for a CIDFont.

        Uses both PDF forms:
        ``cid [w1 w2 ...]`` for individual widths and
        ``cid_first cid_last width`` for runs of equal widths.

        Args:
            widths: Widths indexed by ``cid - first_cid``.
            first_cid: CID of the first width.

        Returns:
            List in sparse format for the /W array.
        """
        w_array: list = []
        run = list(enumerate(widths, start=first_cid))
        k = 0
        while k < len(run):
            w = run[k][1]
            m = k + 1
            while m < len(run) and run[m][1] == w:
                m += 1

            if m - k >= W_RANGE_MIN_RUN:
                w_array.extend([run[k][0], run[m - 1][0], w])
                k = m
                continue

            # Collect individual widths until the next run long enough
            # for the range form
            end = m
            while end < len(run):
                w2 = run[end][1]
                lookahead = end + 1
                while lookahead < len(run) and run[lookahead][1] == w2:
                    lookahead += 1
                if lookahead - end >= W_RANGE_MIN_RUN:
                    break
                end = lookahead
            w_array.append(run[k][0])
            w_array.append([run[n][1] for n in range(k, end)])
            k = end

        return w_array
