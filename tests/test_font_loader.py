# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Tests for fonts/loader.py."""

import logging

import pytest
from font_helpers import (
    TEST_OTF_NAME,
    TEST_TTF_NAME,
    TYPE1_AFM,
    glyph_index_of,
    make_ttf_data,
)

from pdfloom.exceptions import FontEmbeddingError
from pdfloom.fonts import (
    CIDFontType,
    CIDFull,
    CIDSubset,
    CMapSegment,
    EmbeddingMode,
    FileResourceResolver,
    FontType,
    load_truetype_font,
    load_type1_font,
)
from pdfloom.fonts.constants import FLAG_NONSYMBOLIC, FLAG_SYMBOLIC


class TestFileResourceResolver:
    """Tests for FileResourceResolver."""

    def test_relative_locator(self, font_dir):
        """Relative locators are resolved against the base directory."""
        resolver = FileResourceResolver(font_dir)
        assert resolver.resolve_path("test.ttf") == font_dir / "test.ttf"
        assert resolver.get_resource("test.afm").startswith(b"StartFontMetrics")

    def test_file_url(self, font_dir):
        """file:// locators are plain paths."""
        resolver = FileResourceResolver(font_dir)
        path = font_dir / "test.ttf"
        assert resolver.resolve_path(f"file://{path}") == path

    def test_missing_resource(self, font_dir):
        """Missing files resolve to None."""
        assert FileResourceResolver(font_dir).get_resource("nope.ttf") is None


class TestLoadTrueType:
    """Tests for load_truetype_font()."""

    def test_names(self, resolver):
        """Names come from the name table."""
        font = load_truetype_font("test.ttf", resolver)
        assert font.font_name == TEST_TTF_NAME
        assert font.family_names == {"TestSans"}
        assert font.font_sub_name == "Regular"
        assert font.glyph_map.font_name == TEST_TTF_NAME

    def test_font_name_override(self, resolver):
        """An explicit name replaces the PostScript name."""
        font = load_truetype_font("test.ttf", resolver, font_name="Custom")
        assert font.font_name == "Custom"

    def test_glyph_map(self, resolver):
        """The cmap is merged into segments."""
        font = load_truetype_font("test.ttf", resolver)
        assert font.glyph_map.segments == (CMapSegment(0x20, 0x7E, 1),)
        assert font.find_glyph_index(ord("A")) == glyph_index_of("A")

    def test_widths_and_metrics(self, resolver):
        """Widths are indexed by glyph and metrics are in 1/1000 em."""
        font = load_truetype_font("test.ttf", resolver)
        assert font.widths[:3] == [500, 250, 600]
        assert len(font.widths) == 96
        assert font.last_char == 95
        assert font.metrics.ascender == 800
        assert font.metrics.flags == FLAG_NONSYMBOLIC

    def test_truetype_outlines(self, resolver):
        """glyf fonts are CIDFontType2."""
        font = load_truetype_font("test.ttf", resolver)
        assert font.font_type == FontType.TYPE0
        assert font.cid_type == CIDFontType.CIDTYPE2
        assert not font.is_otf
        assert isinstance(font.cid_set, CIDSubset)

    def test_cff_outlines(self, resolver):
        """CFF fonts are CIDFontType0."""
        font = load_truetype_font("test.otf", resolver)
        assert font.font_name == TEST_OTF_NAME
        assert font.is_otf
        assert font.cid_type == CIDFontType.CIDTYPE0

    def test_full_embedding(self, resolver):
        """FULL keeps the original glyph space."""
        font = load_truetype_font(
            "test.ttf", resolver, embedding_mode=EmbeddingMode.FULL
        )
        assert isinstance(font.cid_set, CIDFull)

    def test_no_subsetting_license(self, resolver, caplog):
        """Fonts that forbid subsetting are embedded in full."""
        with caplog.at_level(logging.WARNING, logger="pdfloom"):
            font = load_truetype_font("restricted.ttf", resolver)
        assert font.embedding_mode == EmbeddingMode.FULL
        assert "may not be subset" in caplog.text

    def test_restricted_license(self, font_dir, caplog):
        """Fonts that forbid embedding are only referenced."""
        (font_dir / "locked.ttf").write_bytes(make_ttf_data(fstype=0x0002))
        with caplog.at_level(logging.WARNING, logger="pdfloom"):
            font = load_truetype_font("locked.ttf", FileResourceResolver(font_dir))
        assert not font.is_embeddable
        assert "may not be embedded" in caplog.text

    def test_layout_tables_absent(self, resolver):
        """Fonts without layout tables do no advanced typography."""
        font = load_truetype_font("test.ttf", resolver)
        assert not font.performs_substitution()
        assert not font.performs_positioning()

    def test_missing_program(self, resolver):
        """Missing programs raise FontEmbeddingError."""
        with pytest.raises(FontEmbeddingError, match="not found"):
            load_truetype_font("missing.ttf", resolver)

    def test_unreadable_program(self, font_dir):
        """Programs that are not fonts raise FontEmbeddingError."""
        (font_dir / "bad.ttf").write_bytes(b"not a font")
        with pytest.raises(FontEmbeddingError):
            load_truetype_font("bad.ttf", FileResourceResolver(font_dir))

    def test_program_read_through_resolver(self, resolver):
        """The font reads its program through its resolver."""
        font = load_truetype_font("test.ttf", resolver)
        assert font.read_program() == resolver.get_resource("test.ttf")


class TestLoadType1:
    """Tests for load_type1_font()."""

    @pytest.fixture
    def font(self, resolver):
        return load_type1_font("test.pfb", "test.afm", resolver)

    def test_winansi_layout(self, font):
        """Standard glyphs are placed on their WinAnsi codes."""
        encoding = font.encoding
        assert encoding.name == "WinAnsiEncoding"
        assert encoding.code_to_name == {
            0x41: "A",
            0x42: "B",
            0xB4: "acute",
            0xC1: "Aacute",
        }
        assert encoding.code_for(0xC1) == 0xC1

    def test_code_range_and_widths(self, font):
        """Widths cover first_char..last_char, gaps with width 0."""
        assert (font.first_char, font.last_char) == (0x41, 0xC1)
        assert len(font.widths) == 0xC1 - 0x41 + 1
        assert font.width_of(0x41) == 600
        assert font.width_of(0x42) == 620
        assert font.width_of(0xB4) == 333
        assert font.width_of(0x43) == 0

    def test_metrics(self, font):
        """AFM header values become font metrics."""
        metrics = font.metrics
        assert metrics.cap_height == 700
        assert metrics.x_height == 500
        assert (metrics.ascender, metrics.descender) == (800, -200)
        assert metrics.bbox == (0, -200, 1000, 800)
        assert metrics.stem_v == 80
        assert metrics.flags == FLAG_NONSYMBOLIC
        assert metrics.weight == 400
        assert font.underline_position() == -100

    def test_names(self, font):
        """Names come from the AFM."""
        assert font.font_name == "TestType1"
        assert font.full_name == "Test Type1"
        assert font.family_names == {"TestType1"}
        assert font.metrics_locator == "test.afm"

    def test_kerning(self, font):
        """AFM kerning pairs are keyed by character."""
        assert font.kerning_info() == {0x41: {0x42: -40}}

    def test_reference_only(self, resolver):
        """Without a program locator the font is referenced only."""
        font = load_type1_font(None, "test.afm", resolver)
        assert not font.is_embeddable

    def test_symbolic_font(self, font_dir):
        """FontSpecific fonts keep their built-in codes."""
        afm = TYPE1_AFM.replace("AdobeStandardEncoding", "FontSpecific")
        (font_dir / "symbol.afm").write_text(afm, encoding="ascii")
        font = load_type1_font(None, "symbol.afm", FileResourceResolver(font_dir))
        assert font.encoding.name is None
        assert font.encoding.code_to_name == {65: "A", 66: "B", 194: "acute"}
        assert font.metrics.flags == FLAG_SYMBOLIC
        assert font.is_symbolic

    def test_glyphs_outside_winansi(self, font_dir):
        """Glyphs outside WinAnsi take free codes in a custom encoding."""
        afm = TYPE1_AFM.replace("StartCharMetrics 4", "StartCharMetrics 5").replace(
            "EndCharMetrics",
            "C -1 ; WX 500 ; N Amacron ; B 0 0 500 800 ;\nEndCharMetrics",
        )
        (font_dir / "extra.afm").write_text(afm, encoding="ascii")
        font = load_type1_font(None, "extra.afm", FileResourceResolver(font_dir))
        assert font.encoding.name is None
        assert font.encoding.code_to_name[33] == "Amacron"
        assert font.encoding.code_for(0x100) == 33
        assert font.first_char == 33

    def test_missing_afm(self, resolver):
        """Missing AFM files raise FontEmbeddingError."""
        with pytest.raises(FontEmbeddingError, match="AFM file not found"):
            load_type1_font("test.pfb", "missing.afm", resolver)

    def test_malformed_afm(self, font_dir):
        """AFM files that do not parse raise FontEmbeddingError."""
        (font_dir / "broken.afm").write_text("C 65 ; oops\n", encoding="ascii")
        with pytest.raises(FontEmbeddingError, match="Could not read AFM file"):
            load_type1_font(None, "broken.afm", FileResourceResolver(font_dir))

    def test_afm_read_through_resolver(self):
        """Metrics come from the resolver, not from the filesystem."""
        resources = {"mem:test.afm": TYPE1_AFM.encode("ascii")}

        class MemoryResolver:
            def get_resource(self, locator):
                return resources.get(locator)

        font = load_type1_font(None, "mem:test.afm", MemoryResolver())
        assert font.font_name == "TestType1"
        assert font.metrics_locator == "mem:test.afm"
        assert font.encoding.code_to_name[0x41] == "A"
