# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""ToUnicode CMap generation for embedded fonts."""

import logging
import re

from fontTools.agl import AGL2UV

from .constants import PRIVATE_USE_END, PRIVATE_USE_START

logger = logging.getLogger(__name__)

# Unicode values that must not appear as ToUnicode destinations
INVALID_UNICODE_VALUES = frozenset({0x0000, 0xFEFF, 0xFFFE})

_SURROGATE_RANGE = range(0xD800, 0xE000)

# Maximum number of entries in one bfchar block
BFCHAR_CHUNK_SIZE = 100


def _is_invalid_unicode(val: int) -> bool:
    """Return True if a Unicode value may not be used as a ToUnicode target."""
    return val in INVALID_UNICODE_VALUES or val in _SURROGATE_RANGE


def filter_invalid_unicode_values(
    code_to_unicode: dict[int, int],
) -> dict[int, int]:
    """Replaces forbidden Unicode values with Private Use Area codepoints.

    U+0000, U+FEFF, U+FFFE and surrogates are replaced by codepoints from
    the private-use region, avoiding collisions with values already
    present in the mapping.

    Args:
        code_to_unicode: Mapping from character codes to Unicode codepoints.

    Returns:
        New mapping with invalid values replaced by PUA codepoints.
    """
    if not any(_is_invalid_unicode(v) for v in code_to_unicode.values()):
        return code_to_unicode

    existing_pua = {
        v for v in code_to_unicode.values() if PRIVATE_USE_START <= v < PRIVATE_USE_END
    }
    next_pua = PRIVATE_USE_START
    result = {}

    for code, unicode_val in code_to_unicode.items():
        if _is_invalid_unicode(unicode_val):
            while next_pua in existing_pua and next_pua < PRIVATE_USE_END:
                next_pua += 1
            if next_pua < PRIVATE_USE_END:
                result[code] = next_pua
                existing_pua.add(next_pua)
                next_pua += 1
            else:
                logger.warning(
                    "No private use codepoint left for code 0x%X, dropping it",
                    code,
                )
        else:
            result[code] = unicode_val

    return result


def generate_tounicode_for_winansi() -> dict[int, int]:
    """Generates code-to-Unicode mapping for WinAnsiEncoding (CP1252).

    Returns:
        Dictionary mapping character codes to Unicode codepoints.
    """
    code_to_unicode: dict[int, int] = {}
    for code in range(256):
        try:
            char = bytes([code]).decode("cp1252")
            code_to_unicode[code] = ord(char)
        except UnicodeDecodeError:
            pass
    return code_to_unicode


def resolve_glyph_to_unicode(glyph_name: str) -> int | None:
    """Resolves a glyph name to its Unicode codepoint.

    Uses the Adobe Glyph List, then the ``uniXXXX`` and ``uXXXX[X]``
    naming conventions.

    Args:
        glyph_name: Adobe glyph name.

    Returns:
        Unicode codepoint, or None if not found.
    """
    if glyph_name in AGL2UV:
        return AGL2UV[glyph_name]

    if glyph_name.startswith("uni") and len(glyph_name) == 7:
        try:
            val = int(glyph_name[3:], 16)
        except ValueError:
            return None
        return None if _is_invalid_unicode(val) else val

    if glyph_name.startswith("u") and len(glyph_name) in (5, 6):
        try:
            val = int(glyph_name[1:], 16)
        except ValueError:
            return None
        return None if _is_invalid_unicode(val) else val

    return None


def _build_cmap(code_to_unicode: dict[int, int], code_digits: int) -> bytes:
    code_to_unicode = filter_invalid_unicode_values(code_to_unicode)
    max_code = "F" * code_digits
    lines = [
        "/CIDInit /ProcSet findresource begin",
        "12 dict begin",
        "begincmap",
        "/CIDSystemInfo <<",
        "  /Registry (Adobe)",
        "  /Ordering (UCS)",
        "  /Supplement 0",
        ">> def",
        "/CMapName /Adobe-Identity-UCS def",
        "/CMapType 2 def",
        "1 begincodespacerange",
        f"<{0:0{code_digits}X}> <{max_code}>",
        "endcodespacerange",
    ]

    sorted_codes = sorted(code_to_unicode.keys())
    for i in range(0, len(sorted_codes), BFCHAR_CHUNK_SIZE):
        chunk = sorted_codes[i : i + BFCHAR_CHUNK_SIZE]
        lines.append(f"{len(chunk)} beginbfchar")
        for code in chunk:
            unicode_val = code_to_unicode[code]
            if unicode_val <= 0xFFFF:
                lines.append(f"<{code:0{code_digits}X}> <{unicode_val:04X}>")
            else:
                # Surrogate pair for Unicode > 0xFFFF
                high = 0xD800 + ((unicode_val - 0x10000) >> 10)
                low = 0xDC00 + ((unicode_val - 0x10000) & 0x3FF)
                lines.append(f"<{code:0{code_digits}X}> <{high:04X}{low:04X}>")
        lines.append("endbfchar")

    lines.extend(
        [
            "endcmap",
            "CMapName currentdict /CMap defineresource pop",
            "end",
            "end",
        ]
    )

    result = "\n".join(lines).encode("ascii")
    validate_tounicode_cmap(result)
    return result


def generate_tounicode_cmap_data(code_to_unicode: dict[int, int]) -> bytes:
    """Generates ToUnicode CMap data for simple fonts (8-bit codes).

    Args:
        code_to_unicode: Mapping from character codes to Unicode.

    Returns:
        CMap data as bytes.
    """
    return _build_cmap(code_to_unicode, 2)


def generate_cidfont_tounicode_cmap(code_to_unicode: dict[int, int]) -> bytes:
    """Generates ToUnicode CMap data for CID-keyed fonts (16-bit codes).

    Args:
        code_to_unicode: Mapping from CIDs to Unicode.

    Returns:
        CMap data as bytes.
    """
    return _build_cmap(code_to_unicode, 4)


def validate_tounicode_cmap(data: bytes) -> None:
    """Validates the structural syntax of a generated ToUnicode CMap.

    Checks for required PostScript elements, balanced begin/end blocks,
    correct bfchar entry counts, and valid hex values.

    Args:
        data: CMap data as bytes.

    Raises:
        ValueError: If the CMap syntax is invalid.
    """
    try:
        text = data.decode("ascii")
    except UnicodeDecodeError as e:
        raise ValueError(f"CMap contains non-ASCII bytes: {e}") from e

    required = [
        "/CIDInit /ProcSet findresource begin",
        "begincmap",
        "endcmap",
        "/CIDSystemInfo",
        "/Registry (Adobe)",
        "/Ordering (UCS)",
        "begincodespacerange",
        "endcodespacerange",
        "CMapName currentdict /CMap defineresource pop",
    ]
    for element in required:
        if element not in text:
            raise ValueError(f"Missing required CMap element: {element}")

    codespace_match = re.search(
        r"(\d+)\s+begincodespacerange\s*(.*?)\s*endcodespacerange",
        text,
        re.DOTALL,
    )
    if codespace_match is None:
        raise ValueError("Invalid codespacerange block")
    declared_count = int(codespace_match.group(1))
    range_entries = re.findall(
        r"<([0-9A-Fa-f]+)>\s*<([0-9A-Fa-f]+)>",
        codespace_match.group(2),
    )
    if len(range_entries) != declared_count:
        raise ValueError(
            f"codespacerange declares {declared_count} entries "
            f"but contains {len(range_entries)}"
        )

    bfchar_blocks = re.finditer(
        r"(\d+)\s+beginbfchar\s*(.*?)\s*endbfchar", text, re.DOTALL
    )
    hex_entry = re.compile(r"<([0-9A-Fa-f]+)>\s*<([0-9A-Fa-f]+)>")

    for block in bfchar_blocks:
        declared = int(block.group(1))
        if declared > BFCHAR_CHUNK_SIZE:
            raise ValueError(
                f"bfchar block declares {declared} entries "
                f"(max {BFCHAR_CHUNK_SIZE})"
            )
        entries = hex_entry.findall(block.group(2))
        if len(entries) != declared:
            raise ValueError(
                f"bfchar block declares {declared} entries but contains {len(entries)}"
            )

    if text.count("begincmap") != text.count("endcmap"):
        raise ValueError("Unbalanced begincmap/endcmap")

