# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Bidirectional Unicode/glyph index map for CID-keyed fonts.

The map is an ordered, append-only list of segments. Each segment maps a
contiguous Unicode range onto a contiguous glyph range. Reverse lookups
for glyphs without any Unicode mapping (for example glyphs produced by a
substitution) lazily synthesize a one-to-one mapping from a code point in
the private-use region [U+E000, U+F900).

Private-use code points are allocated per font from a cursor that only
moves forward and are never reclaimed. When the region is exhausted the
glyph is counted as unmapped, a warning is logged and the reverse lookup
returns 0. Exhaustion never raises; callers that care can inspect
:meth:`CharGlyphMap.private_use_stats`.
"""

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass

from .constants import (
    FORWARD_CACHE_SIZE,
    NOT_FOUND_CODE_POINT,
    PRIVATE_USE_END,
    PRIVATE_USE_START,
    RESERVED_GLYPHS,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CMapSegment:
    """Maps unicode_start..unicode_end (inclusive) to glyph_start onward."""

    unicode_start: int
    unicode_end: int
    glyph_start: int

    def __post_init__(self) -> None:
        if self.unicode_end < self.unicode_start:
            raise ValueError(
                f"Invalid segment: end U+{self.unicode_end:04X} precedes "
                f"start U+{self.unicode_start:04X}"
            )

    @property
    def glyph_end(self) -> int:
        """Last glyph index covered by this segment."""
        return self.glyph_start + (self.unicode_end - self.unicode_start)


@dataclass(frozen=True)
class PrivateUseStats:
    """Diagnostics about private-use synthesis for one font."""

    num_mapped: int
    first_private: int
    last_private: int
    num_unmapped: int
    first_unmapped: int
    last_unmapped: int

    @property
    def exhausted(self) -> bool:
        return self.num_unmapped > 0


class CharGlyphMap:
    """Unicode to glyph index mapping with private-use overflow.

    Args:
        segments: Initial segments, in lookup order.
        font_name: Name used in log messages.
    """

    def __init__(
        self, segments: Iterable[CMapSegment] = (), font_name: str = ""
    ) -> None:
        self._segments: list[CMapSegment] = list(segments)
        self._cache: list[int] = [0] * FORWARD_CACHE_SIZE
        self._lock = threading.Lock()
        self.font_name = font_name

        self._next_private_use = PRIVATE_USE_START
        self._num_mapped = 0
        self._first_private = 0
        self._last_private = 0
        self._num_unmapped = 0
        self._first_unmapped = 0
        self._last_unmapped = 0

    @classmethod
    def from_cmap(cls, cmap: dict[int, int], font_name: str = "") -> "CharGlyphMap":
        """Builds segments from a code point to glyph index dictionary.

        Runs where both the code point and the glyph index advance by one
        are merged into a single segment.

        Args:
            cmap: Mapping of Unicode code points to glyph indices.
            font_name: Name used in log messages.

        Returns:
            A new CharGlyphMap.
        """
        segments: list[CMapSegment] = []
        start = end = glyph = None
        for code in sorted(cmap):
            gid = cmap[code]
            if start is not None and code == end + 1 and gid == glyph + (code - start):
                end = code
                continue
            if start is not None:
                segments.append(CMapSegment(start, end, glyph))
            start = end = code
            glyph = gid
        if start is not None:
            segments.append(CMapSegment(start, end, glyph))
        return cls(segments, font_name)

    @property
    def segments(self) -> tuple[CMapSegment, ...]:
        """Snapshot of the current segments."""
        return tuple(self._segments)

    def find_glyph_index(self, c: int) -> int:
        """Returns the glyph index for a Unicode code point.

        Args:
            c: Unicode scalar value.

        Returns:
            The glyph index, or NOT_FOUND_CODE_POINT (0) if unmapped.
        """
        if c < FORWARD_CACHE_SIZE and self._cache[c] != 0:
            return self._cache[c]

        for segment in self._segments:
            if segment.unicode_start <= c <= segment.unicode_end:
                glyph = segment.glyph_start + c - segment.unicode_start
                if glyph == NOT_FOUND_CODE_POINT:
                    continue
                if c < FORWARD_CACHE_SIZE:
                    self._cache[c] = glyph
                return glyph
        return NOT_FOUND_CODE_POINT

    def has_char(self, c: int) -> bool:
        return self.find_glyph_index(c) != NOT_FOUND_CODE_POINT

    def find_character(self, glyph_index: int, augment: bool = True) -> int:
        """Returns the code point mapped to a glyph index.

        When several code points map to the glyph, the one from the earliest
        segment wins.

        Args:
            glyph_index: Glyph index to look up.
            augment: Synthesize a private-use mapping when none exists.

        Returns:
            The Unicode scalar value, or 0 if the glyph has no mapping and
            none could be synthesized.
        """
        for segment in self._segments:
            if segment.glyph_start <= glyph_index <= segment.glyph_end:
                return segment.unicode_start + (glyph_index - segment.glyph_start)
        if augment:
            return self._create_private_use_mapping(glyph_index)
        return 0

    def _create_private_use_mapping(self, glyph_index: int) -> int:
        with self._lock:
            # Another caller may have mapped this glyph while we waited
            for segment in self._segments:
                if segment.glyph_start <= glyph_index <= segment.glyph_end:
                    return segment.unicode_start + (glyph_index - segment.glyph_start)

            while (
                self._next_private_use < PRIVATE_USE_END
                and self.find_glyph_index(self._next_private_use)
                != NOT_FOUND_CODE_POINT
            ):
                self._next_private_use += 1

            if self._next_private_use < PRIVATE_USE_END:
                pu = self._next_private_use
                self._segments.append(CMapSegment(pu, pu, glyph_index))
                self._next_private_use += 1
                if self._first_private == 0:
                    self._first_private = pu
                self._last_private = pu
                self._num_mapped += 1
                logger.debug(
                    "Created private use mapping from U+%04X to glyph index %d "
                    "in font '%s'",
                    pu,
                    glyph_index,
                    self.font_name,
                )
                return pu

            if self._first_unmapped == 0:
                self._first_unmapped = glyph_index
            self._last_unmapped = glyph_index
            self._num_unmapped += 1
            logger.warning(
                "Exhausted private use area: unable to map %d glyphs in glyph "
                "index range [%d,%d] (inclusive) of font '%s'",
                self._num_unmapped,
                self._first_unmapped,
                self._last_unmapped,
                self.font_name,
            )
            return 0

    def glyph_indices(self) -> set[int]:
        """Returns every glyph reachable from a segment plus the reserved ones."""
        indices = set(RESERVED_GLYPHS)
        for segment in self._segments:
            indices.update(range(segment.glyph_start, segment.glyph_end + 1))
        return indices

    def chars_by_glyph(self) -> dict[int, int]:
        """Returns glyph index to code point, earliest segment winning."""
        chars: dict[int, int] = {}
        for segment in self._segments:
            for offset in range(segment.unicode_end - segment.unicode_start + 1):
                chars.setdefault(
                    segment.glyph_start + offset, segment.unicode_start + offset
                )
        return chars

    def private_use_stats(self) -> PrivateUseStats:
        return PrivateUseStats(
            num_mapped=self._num_mapped,
            first_private=self._first_private,
            last_private=self._last_private,
            num_unmapped=self._num_unmapped,
            first_unmapped=self._first_unmapped,
            last_unmapped=self._last_unmapped,
        )
