# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Utility functions for font handling."""

import logging
from io import BytesIO

from fontTools.ttLib import TTFont, TTLibError

from ..exceptions import FontEmbeddingError

logger = logging.getLogger(__name__)

# fsType bit masks (OpenType OS/2 table)
FSTYPE_RESTRICTED_LICENSE = 0x0002
FSTYPE_PREVIEW_AND_PRINT = 0x0004
FSTYPE_EDITABLE = 0x0008
FSTYPE_NO_SUBSETTING = 0x0100
FSTYPE_BITMAP_ONLY = 0x0200

_TTC_TAG = b"ttcf"


def strip_whitespace(name: str) -> str:
    """Removes all whitespace from a font name."""
    return "".join(name.split())


def is_font_collection(font_data: bytes) -> bool:
    return font_data[:4] == _TTC_TAG


def open_ttfont(
    font_data: bytes, font_number: int = 0, *, lazy: bool | None = None
) -> TTFont:
    """Parses TrueType/OpenType font data.

    Args:
        font_data: Raw font (or font collection) bytes.
        font_number: Font index inside a collection, ignored otherwise.
        lazy: Passed to TTFont; False decompiles tables fully on access so
            they stay usable after the font is closed.

    Returns:
        The parsed TTFont. The caller closes it.

    Raises:
        FontEmbeddingError: If the data is not a readable font.
    """
    try:
        if is_font_collection(font_data):
            return TTFont(BytesIO(font_data), fontNumber=font_number, lazy=lazy)
        return TTFont(BytesIO(font_data), lazy=lazy)
    except (TTLibError, OSError, ValueError) as e:
        raise FontEmbeddingError(f"Could not parse font program: {e}") from e


def get_fstype(font_data: bytes, font_number: int = 0) -> int | None:
    """Extracts the fsType embedding permission field from font data.

    Args:
        font_data: Raw TrueType or OpenType font bytes.
        font_number: Font index inside a collection.

    Returns:
        The fsType value as an integer, or None if the OS/2 table
        is not present or the font cannot be read.
    """
    try:
        tt_font = open_ttfont(font_data, font_number)
    except FontEmbeddingError:
        return None
    try:
        os2_table = tt_font.get("OS/2")
        if os2_table is None:
            return None
        return os2_table.fsType
    finally:
        tt_font.close()


def check_fstype_restrictions(
    fstype: int,
) -> tuple[bool, bool, list[str]]:
    """Checks fsType for embedding and subsetting restrictions.

    Args:
        fstype: The fsType value from the OS/2 table.

    Returns:
        Tuple of (embedding_allowed, subsetting_allowed, warnings).
        embedding_allowed is False only for Restricted License (0x0002).
        subsetting_allowed is False if the No Subsetting bit (0x0100) is set.
        warnings contains human-readable descriptions of restrictions found.
    """
    warnings: list[str] = []
    embedding_allowed = True
    subsetting_allowed = True

    if fstype & FSTYPE_RESTRICTED_LICENSE:
        embedding_allowed = False
        warnings.append("Restricted License embedding (fsType bit 1)")

    if fstype & FSTYPE_PREVIEW_AND_PRINT:
        warnings.append("Preview & Print embedding only (fsType bit 2)")

    if fstype & FSTYPE_NO_SUBSETTING:
        subsetting_allowed = False
        warnings.append("No subsetting allowed (fsType bit 8)")

    if fstype & FSTYPE_BITMAP_ONLY:
        warnings.append("Bitmap embedding only (fsType bit 9)")

    return embedding_allowed, subsetting_allowed, warnings
