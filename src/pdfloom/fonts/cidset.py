# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Glyph retention and renumbering policies for CID-keyed fonts.

``CIDFull`` keeps the original glyph space; ``CIDSubset`` assigns output
glyph indices in first-use order, with .notdef pinned to 0.
"""

import logging
from collections.abc import Iterable, Sequence
from typing import Protocol

from .constants import RESERVED_GLYPHS
from .glyph_map import CharGlyphMap

logger = logging.getLogger(__name__)


class CIDSet(Protocol):
    """Which glyphs of a CID-keyed font are used, and how they are numbered."""

    def map_char(self, glyph_index: int, char: int) -> int:
        """Records a used glyph and returns its output index."""
        ...

    def original_glyph_index(self, index: int) -> int: ...

    def unicode(self, index: int) -> int: ...

    @property
    def glyphs(self) -> dict[int, int]: ...

    def glyph_indices(self) -> set[int]: ...

    def chars(self) -> dict[int, int]: ...

    def widths(self, font_widths: Sequence[int]) -> list[int]: ...

    @property
    def number_of_glyphs(self) -> int: ...


class CIDFull:
    """Identity policy used when the whole font program is embedded."""

    def __init__(self, glyph_map: CharGlyphMap, num_glyphs: int = 0) -> None:
        self._glyph_map = glyph_map
        self._num_glyphs = num_glyphs

    def map_char(self, glyph_index: int, char: int) -> int:
        return glyph_index

    def original_glyph_index(self, index: int) -> int:
        return index

    def unicode(self, index: int) -> int:
        return self._glyph_map.find_character(index, augment=False)

    @property
    def glyphs(self) -> dict[int, int]:
        return {gid: gid for gid in sorted(self._glyph_map.glyph_indices())}

    def glyph_indices(self) -> set[int]:
        return self._glyph_map.glyph_indices()

    def chars(self) -> dict[int, int]:
        return self._glyph_map.chars_by_glyph()

    def widths(self, font_widths: Sequence[int]) -> list[int]:
        return list(font_widths)

    @property
    def number_of_glyphs(self) -> int:
        if self._num_glyphs:
            return self._num_glyphs
        return max(self._glyph_map.glyph_indices()) + 1


class CIDSubset:
    """First-use renumbering policy used when a font is subset.

    Output index 0 is always the original .notdef glyph. Every other glyph
    receives the next free output index the first time it is mapped and
    keeps it for the lifetime of the font.
    """

    def __init__(self) -> None:
        # original glyph index -> output index
        self._used_glyphs: dict[int, int] = {0: 0}
        # output index -> original glyph index
        self._used_glyphs_index: dict[int, int] = {0: 0}
        # output index -> Unicode code point
        self._used_chars_index: dict[int, int] = {0: 0}

    def map_char(self, glyph_index: int, char: int) -> int:
        selected = self._used_glyphs.get(glyph_index)
        if selected is None:
            selected = len(self._used_glyphs)
            self._used_glyphs[glyph_index] = selected
            self._used_glyphs_index[selected] = glyph_index
            self._used_chars_index[selected] = char
        return selected

    def original_glyph_index(self, index: int) -> int:
        original = self._used_glyphs_index.get(index)
        if original is None:
            logger.debug("No original glyph for subset index %d", index)
            return 0
        return original

    def unicode(self, index: int) -> int:
        return self._used_chars_index.get(index, 0)

    @property
    def glyphs(self) -> dict[int, int]:
        return dict(self._used_glyphs)

    def glyph_indices(self) -> set[int]:
        return set(RESERVED_GLYPHS) | set(self._used_glyphs)

    def chars(self) -> dict[int, int]:
        return {
            index: char for index, char in self._used_chars_index.items() if index
        }

    def widths(self, font_widths: Sequence[int]) -> list[int]:
        result = []
        for index in range(len(self._used_glyphs_index)):
            original = self._used_glyphs_index[index]
            result.append(font_widths[original] if original < len(font_widths) else 0)
        return result

    @property
    def number_of_glyphs(self) -> int:
        return len(self._used_glyphs)


def pack_cid_set(indices: Iterable[int]) -> bytes:
    """Packs glyph indices into a CIDSet bitmap.

    Bit ``i`` of the bitmap is the ``7 - i % 8`` bit of byte ``i // 8``
    (most significant bit first). The result is zero-padded to a whole
    byte.

    Args:
        indices: Original glyph indices to mark as present.

    Returns:
        The bitmap bytes, empty if no index is given.
    """
    indices = set(indices)
    if not indices:
        return b""
    if min(indices) < 0:
        raise ValueError("Glyph indices must not be negative")
    bitmap = bytearray(max(indices) // 8 + 1)
    for index in indices:
        bitmap[index // 8] |= 1 << (7 - index % 8)
    return bytes(bitmap)
