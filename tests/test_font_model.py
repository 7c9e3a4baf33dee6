# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Tests for fonts/model.py."""

import logging

import pytest

from pdfloom.fonts import (
    CharGlyphMap,
    CIDFont,
    CIDFull,
    CIDSubset,
    CMapSegment,
    EmbeddingMode,
    FontMetrics,
    SimpleFont,
    SingleByteEncoding,
)
from pdfloom.fonts.model import (
    Kernable,
    Positionable,
    Substitutable,
    iter_code_points,
)


def _simple_font(**kwargs) -> SimpleFont:
    encoding = SingleByteEncoding(
        None,
        {0x23: "numbersign", 0x41: "A", 0x42: "B", 0x43: "C"},
        {0x23: 0x23, 0x41: 0x41, 0x42: 0x42, 0x43: 0x43},
    )
    font = SimpleFont("Simple", encoding, **kwargs)
    font.first_char = 0x41
    font.last_char = 0x43
    font.widths = [600, 620, 640]
    font.metrics.missing_width = 250
    return font


def _cid_font(**kwargs) -> CIDFont:
    glyph_map = CharGlyphMap([CMapSegment(0x20, 0x7E, 1)])
    widths = [500, 250] + [600] * 94
    return CIDFont("Composite", glyph_map, widths, **kwargs)


class TestSingleByteEncoding:
    """Tests for SingleByteEncoding."""

    def test_predefined(self):
        """Only the standard encodings are predefined."""
        assert SingleByteEncoding("WinAnsiEncoding").is_predefined
        assert not SingleByteEncoding(None).is_predefined
        assert not SingleByteEncoding("Custom").is_predefined

    def test_lowest_code_wins(self):
        """A code point encoded twice uses the lower code."""
        encoding = SingleByteEncoding(None, {}, {0x80: 0x41, 0x41: 0x41})
        assert encoding.code_for(0x41) == 0x41
        assert encoding.code_for(0x42) is None

    def test_differences(self):
        """Runs of codes share a start code."""
        encoding = SingleByteEncoding(
            None, {1: "a", 2: "b", 5: "e", 6: "f", 9: "i"}, {}
        )
        assert encoding.differences() == [1, "a", "b", 5, "e", "f", 9, "i"]

    def test_differences_restricted(self):
        """Differences can be limited to a set of codes."""
        encoding = SingleByteEncoding(None, {1: "a", 2: "b", 3: "c"}, {})
        assert encoding.differences({1, 3}) == [1, "a", 3, "c"]


class TestIterCodePoints:
    """Tests for iter_code_points()."""

    def test_plain_text(self):
        """BMP characters are yielded as is."""
        assert list(iter_code_points("Ab")) == [0x41, 0x62]

    def test_astral_character(self):
        """Characters above the BMP are yielded as one scalar."""
        assert list(iter_code_points("\U0001f600")) == [0x1F600]

    def test_surrogate_pair_combined(self):
        """Surrogate pairs left in a string are combined."""
        assert list(iter_code_points("\ud83d\ude00")) == [0x1F600]

    @pytest.mark.parametrize("text", ["\ud83d", "\ud83dA", "\ude00"])
    def test_isolated_surrogates_rejected(self, text):
        """Isolated surrogates are ill-formed."""
        with pytest.raises(ValueError, match="ill-formed"):
            list(iter_code_points(text))


class TestMetrics:
    """Tests for the scaled metric accessors."""

    def test_scaled_by_size(self):
        """Accessors multiply by the font size."""
        font = _simple_font()
        font.metrics = FontMetrics(ascender=800, descender=-200, cap_height=700)
        assert font.ascender(12) == 9600
        assert font.descender(12) == -2400
        assert font.cap_height(2) == 1400

    def test_underline_defaults(self):
        """Unknown underline metrics are derived."""
        font = _simple_font()
        font.metrics = FontMetrics(descender=-200, x_height=500)
        assert font.underline_position(1) == -100
        assert font.underline_thickness(1) == 50
        assert font.strikeout_position(1) == 250
        assert font.strikeout_thickness(1) == 50

    def test_explicit_underline(self):
        """Known metrics are used as given."""
        font = _simple_font()
        font.metrics = FontMetrics(
            underline_position=-120,
            underline_thickness=40,
            strikeout_position=300,
            strikeout_thickness=30,
        )
        assert font.underline_position(2) == -240
        assert font.underline_thickness(2) == 80
        assert font.strikeout_position(2) == 600
        assert font.strikeout_thickness(2) == 60

    @pytest.mark.parametrize(
        ("weight", "expected"), [(50, 100), (450, 400), (700, 700), (1200, 900)]
    )
    def test_set_weight(self, weight, expected):
        """Weights are rounded down and clamped to 100..900."""
        font = _simple_font()
        font.set_weight(weight)
        assert font.metrics.weight == expected

    def test_embed_font_name_strips_whitespace(self):
        """Embedded fonts are written without whitespace in their name."""
        font = SimpleFont(
            "My Font", SingleByteEncoding("WinAnsiEncoding"), locator="x.pfb"
        )
        assert font.embed_font_name == "MyFont"
        assert SimpleFont("My Font", SingleByteEncoding(None)).embed_font_name == (
            "My Font"
        )


class TestSimpleFont:
    """Tests for SimpleFont."""

    def test_map_char(self):
        """Encoded characters map to their code and are recorded."""
        font = _simple_font()
        assert font.map_char("B") == 0x42
        assert font.used_codes == {0x42}

    def test_missing_character_uses_number_sign(self, caplog):
        """Unencoded characters fall back to '#'."""
        font = _simple_font()
        with caplog.at_level(logging.WARNING, logger="pdfloom"):
            assert font.map_char("Z") == 0x23
        assert "not available" in caplog.text

    def test_missing_number_sign(self):
        """Without '#' the fallback is code 0."""
        font = SimpleFont("Bare", SingleByteEncoding(None, {65: "A"}, {65: 65}))
        assert font.map_char("Z") == 0
        assert font.used_codes == set()

    def test_width_of(self):
        """Widths are indexed from first_char."""
        font = _simple_font()
        assert font.width_of(0x42) == 620
        assert font.width_of(0x42, 10) == 6200
        assert font.width_of(0x20) == 250

    def test_full_range(self):
        """Fonts that are not subset write their whole code range."""
        font = _simple_font()
        font.map_char("B")
        assert font.used_char_range() == (0x41, 0x43)
        assert font.subset_widths() == [600, 620, 640]

    def test_subset_range(self):
        """Subset fonts write the used range, unused codes with width 0."""
        font = _simple_font(embedding_mode=EmbeddingMode.SUBSET, locator="s.pfb")
        font.map_char("A")
        font.map_char("C")
        assert font.is_subset_embedded
        assert font.used_char_range() == (0x41, 0x43)
        assert font.subset_widths() == [600, 0, 640]

    def test_used_glyph_names(self):
        """Subsets keep .notdef and the used glyphs."""
        font = _simple_font()
        font.map_char("C")
        assert font.used_glyph_names() == {".notdef", "C"}

    def test_to_unicode_map_in_range(self):
        """Only codes of the written range are mapped."""
        font = _simple_font()
        assert font.to_unicode_map() == {0x41: 0x41, 0x42: 0x42, 0x43: 0x43}


class TestCIDFont:
    """Tests for CIDFont."""

    def test_policy_follows_embedding_mode(self):
        """FULL keeps glyph indices, other modes renumber."""
        assert isinstance(_cid_font().cid_set, CIDSubset)
        full = _cid_font(embedding_mode=EmbeddingMode.FULL)
        assert isinstance(full.cid_set, CIDFull)
        assert not full.is_subset_embedded

    def test_referenced_font_keeps_glyph_indices(self):
        """Fonts without a program are not renumbered."""
        font = _cid_font()
        assert font.map_char("A") == 34
        assert font.used_glyphs == {0: 0}

    def test_embedded_font_renumbers(self):
        """Embedded subset fonts return CIDs in first-use order."""
        font = _cid_font(locator="test.ttf")
        assert font.map_char("B") == 1
        assert font.map_char("A") == 2
        assert font.map_char("B") == 1
        assert font.used_glyphs == {0: 0, 35: 1, 34: 2}

    def test_missing_character_falls_back(self):
        """Unmapped characters use the glyph of '#'."""
        font = _cid_font()
        assert font.map_char("☺") == 4

    def test_missing_character_in_otf(self):
        """OpenType CFF fonts map unmapped characters to .notdef."""
        font = _cid_font()
        font.is_otf = True
        assert font.map_char("☺") == 0

    def test_width_of_cid(self):
        """Widths are looked up through the original glyph index."""
        font = _cid_font(locator="test.ttf")
        cid = font.map_char(" ")
        assert font.width_of(cid) == 250
        assert font.width_of(cid, 10) == 2500
        assert font.width_of(500) == 500

    def test_width_of_unknown_glyph(self):
        """Glyphs beyond the width table use the default width."""
        font = _cid_font()
        assert font.width_of(1000) == 1000

    def test_bounding_box(self):
        """Bounding boxes are scaled."""
        font = _cid_font()
        font.bounding_boxes = [(0, 0, 0, 0), (1, 2, 3, 4)]
        assert font.bounding_box(1, 2) == (2, 4, 6, 8)
        assert font.bounding_box(50) == (0, 0, 0, 0)

    def test_cid_widths(self):
        """CID widths follow the output order."""
        font = _cid_font(locator="test.ttf")
        font.map_char("A")
        font.map_char(" ")
        assert font.cid_widths() == [500, 600, 250]

    def test_to_unicode_map(self):
        """The ToUnicode map is keyed by CID."""
        font = _cid_font(locator="test.ttf")
        font.map_char("A")
        font.map_char("b")
        assert font.to_unicode_map() == {1: 0x41, 2: 0x62}

    def test_layout_table_set_once(self):
        """A font is associated with at most one GSUB table."""
        font = _cid_font()
        font.set_gsub(object())
        with pytest.raises(ValueError, match="GSUB"):
            font.set_gsub(object())
        font.set_gsub(None)
        assert font.gsub is None

    def test_no_layout_tables(self):
        """Without layout tables text is passed through."""
        font = _cid_font()
        assert font.perform_substitution("fi") == "fi"
        assert font.perform_positioning("AV") is None

    def test_use_advanced_disables_layout(self):
        """Advanced typography can be switched off."""
        font = _cid_font()
        font.set_gsub(object())
        font.use_advanced = False
        assert not font.performs_substitution()


class TestKerning:
    """Tests for kerning information."""

    def test_kerning_info(self):
        """Kerning pairs are returned by first character."""
        font = _simple_font()
        font.put_kerning_entry(0x41, {0x56: -80})
        assert font.has_kerning_info()
        assert font.kerning_info() == {0x41: {0x56: -80}}

    def test_kerning_disabled(self):
        """use_kerning hides the kerning table."""
        font = _simple_font()
        font.put_kerning_entry(0x41, {0x56: -80})
        font.use_kerning = False
        assert not font.has_kerning_info()
        assert font.kerning_info() == {}


class TestCapabilities:
    """Tests for the capability protocols."""

    def test_cid_font_capabilities(self):
        """CID fonts support kerning, substitution and positioning."""
        font = _cid_font()
        assert isinstance(font, Kernable)
        assert isinstance(font, Substitutable)
        assert isinstance(font, Positionable)

    def test_simple_font_capabilities(self):
        """Simple fonts only support kerning."""
        font = _simple_font()
        assert isinstance(font, Kernable)
        assert not isinstance(font, Substitutable)
        assert not isinstance(font, Positionable)
