# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Tests for GSUB/GPOS application in fonts/layout.py."""

from types import SimpleNamespace

import pytest
from font_helpers import make_ttf_data

from pdfloom.fonts import FileResourceResolver, load_truetype_font
from pdfloom.fonts.constants import PRIVATE_USE_START
from pdfloom.fonts.layout import GlyphDefinitionTable

FEATURES = """languagesystem DFLT dflt;
feature liga { sub uni0066 uni0069 by f_i; } liga;
feature kern { pos uni0041 uni0056 -80; } kern;
"""


@pytest.fixture
def font(tmp_path):
    data = make_ttf_data(extra_glyphs=("f_i",), features=FEATURES)
    (tmp_path / "layout.ttf").write_bytes(data)
    return load_truetype_font("layout.ttf", FileResourceResolver(tmp_path))


class TestSubstitution:
    """Tests for ligature substitution."""

    def test_tables_loaded(self, font):
        """GSUB and GPOS tables are attached by the loader."""
        assert font.performs_substitution()
        assert font.performs_positioning()

    def test_ligature_gets_private_use_char(self, font):
        """An unmapped ligature glyph is mapped to a private-use character."""
        assert font.perform_substitution("fi") == chr(PRIVATE_USE_START)
        assert font.find_glyph_index(PRIVATE_USE_START) == 96

    def test_ligature_in_context(self, font):
        """Text around the ligature is kept."""
        assert font.perform_substitution("afix") == f"a{chr(PRIVATE_USE_START)}x"

    def test_no_match(self, font):
        """Text without ligature components is unchanged."""
        assert font.perform_substitution("if") == "if"

    def test_unknown_script_falls_back_to_default(self, font):
        """Unknown scripts and languages use the default language system."""
        assert font.perform_substitution("fi", "cyrl", "RUS") == chr(PRIVATE_USE_START)

    def test_mapped_ligature_is_stable(self, font):
        """Repeated substitutions reuse the synthesized character."""
        font.perform_substitution("fi")
        font.perform_substitution("fi")
        assert font.glyph_map.private_use_stats().num_mapped == 1

    def test_disabled(self, font):
        """use_advanced switches substitution off."""
        font.use_advanced = False
        assert font.perform_substitution("fi") == "fi"


class TestPositioning:
    """Tests for pair positioning."""

    def test_kerning_pair(self, font):
        """A kerned pair adjusts the advance of the first glyph."""
        assert font.perform_positioning("AV") == [[0, 0, -80, 0], [0, 0, 0, 0]]

    def test_scaled_to_size(self, font):
        """Adjustments are scaled to the requested size."""
        assert font.perform_positioning("AV", size=500) == [
            [0, 0, -40, 0],
            [0, 0, 0, 0],
        ]

    def test_no_pair(self, font):
        """Runs without kerned pairs are not adjusted."""
        assert font.perform_positioning("VA") is None

    def test_pair_inside_run(self, font):
        """Only the matching pair is adjusted."""
        assert font.perform_positioning("xAV") == [
            [0, 0, 0, 0],
            [0, 0, -80, 0],
            [0, 0, 0, 0],
        ]


class TestGlyphDefinitionTable:
    """Tests for GDEF glyph classes."""

    def test_glyph_classes(self):
        """Glyph classes are looked up by glyph index."""
        table = SimpleNamespace(
            GlyphClassDef=SimpleNamespace(classDefs={"A": 1, "acute": 3})
        )
        gdef = GlyphDefinitionTable(table, [".notdef", "A", "acute"])
        assert gdef.glyph_class(1) == 1
        assert gdef.is_mark(2)
        assert not gdef.is_mark(1)
        assert gdef.glyph_class(99) == 0

    def test_missing_class_def(self):
        """A GDEF table without class definitions classifies nothing."""
        gdef = GlyphDefinitionTable(SimpleNamespace(), ["A"])
        assert gdef.glyph_class(0) == 0
