# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Type 1 font programs: PFB/PFA parsing and CharStrings subsetting.

A Type 1 program embedded in a PDF (``/FontFile``) consists of three
parts, whose lengths go into ``/Length1``, ``/Length2`` and ``/Length3``:

1. the clear-text header, up to and including ``currentfile eexec``,
2. the binary eexec-encrypted private part,
3. the trailer (512 zeros and ``cleartomark``).

Subsetting decrypts the private part, keeps the CharStrings of the used
glyphs (plus ``.notdef`` and seac components), removes the UniqueID and
re-encrypts.
"""

import binascii
import logging
import re
from dataclasses import dataclass

from fontTools.encodings.StandardEncoding import StandardEncoding
from fontTools.misc.eexec import decrypt as eexec_decrypt
from fontTools.misc.eexec import encrypt as eexec_encrypt

from ..exceptions import FontEmbeddingError

logger = logging.getLogger(__name__)

# PFB segment markers
PFB_MARKER = 0x80
PFB_ASCII = 1
PFB_BINARY = 2
PFB_EOF = 3

EEXEC_KEY = 55665
CHARSTRING_KEY = 4330
DEFAULT_LEN_IV = 4

_EEXEC_MARKER = b"currentfile eexec"
_CLEARTOMARK = b"cleartomark"
_TRAILER_ZEROS = 512
_UNIQUE_ID = re.compile(rb"/UniqueID\s+\d+\s+def\s*")
_LEN_IV = re.compile(rb"/lenIV\s+(\d+)")
_CHARSTRINGS = re.compile(rb"/CharStrings\s+(\d+)\s+dict\s+")
_END = re.compile(rb"\bend\b")

# Type 1 charstring operators
_OP_ESCAPE = 12
_OP_SEAC = 6


@dataclass
class Type1Program:
    """A Type 1 font program laid out for a /FontFile stream.

    Attributes:
        data: Clear text, binary encrypted part and trailer, concatenated.
        length1: Length of the clear-text part.
        length2: Length of the encrypted part.
        length3: Length of the trailer.
    """

    data: bytes
    length1: int
    length2: int
    length3: int

    @property
    def cleartext(self) -> bytes:
        return self.data[: self.length1]

    @property
    def encrypted(self) -> bytes:
        return self.data[self.length1 : self.length1 + self.length2]

    @property
    def trailer(self) -> bytes:
        return self.data[self.length1 + self.length2 :]


def is_pfb(data: bytes) -> bool:
    return len(data) > 1 and data[0] == PFB_MARKER and data[1] == PFB_ASCII


def _read_pfb(data: bytes) -> tuple[bytes, bytes, bytes]:
    """Splits a PFB file into its ASCII, binary and trailing segments."""
    parts: list[bytes] = [b"", b"", b""]
    pos = 0
    seen_binary = False
    while pos < len(data):
        if data[pos] != PFB_MARKER:
            raise FontEmbeddingError(f"Invalid PFB segment marker at offset {pos}")
        segment_type = data[pos + 1]
        if segment_type == PFB_EOF:
            break
        length = int.from_bytes(data[pos + 2 : pos + 6], "little")
        body = data[pos + 6 : pos + 6 + length]
        if len(body) != length:
            raise FontEmbeddingError("Truncated PFB segment")
        if segment_type == PFB_BINARY:
            parts[1] += body
            seen_binary = True
        elif segment_type == PFB_ASCII:
            parts[2 if seen_binary else 0] += body
        else:
            raise FontEmbeddingError(f"Unknown PFB segment type {segment_type}")
        pos += 6 + length
    return parts[0], parts[1], parts[2]


def _read_pfa(data: bytes) -> tuple[bytes, bytes, bytes]:
    """Splits a PFA file; the hex encrypted part is converted to binary."""
    marker = data.find(_EEXEC_MARKER)
    if marker < 0:
        raise FontEmbeddingError("Type 1 program has no eexec section")
    header_end = marker + len(_EEXEC_MARKER)
    while header_end < len(data) and data[header_end] in b"\r\n \t":
        header_end += 1

    # The trailer is 512 zeros (with line breaks) in front of cleartomark
    mark = data.rfind(_CLEARTOMARK)
    if mark < 0:
        raise FontEmbeddingError("Type 1 program has no cleartomark")
    trailer_start = mark
    zeros = 0
    while trailer_start > header_end and zeros < _TRAILER_ZEROS:
        byte = data[trailer_start - 1]
        if byte == ord("0"):
            zeros += 1
        elif byte not in b"\r\n \t":
            break
        trailer_start -= 1

    hex_part = b"".join(data[header_end:trailer_start].split())
    try:
        binary = binascii.unhexlify(hex_part)
    except (binascii.Error, ValueError) as e:
        raise FontEmbeddingError(f"Invalid hex eexec section: {e}") from e
    return data[:header_end], binary, data[trailer_start:]


def read_type1_program(data: bytes) -> Type1Program:
    """Parses a PFB or PFA file into its three /FontFile parts.

    Raises:
        FontEmbeddingError: If the data is not a Type 1 program.
    """
    if is_pfb(data):
        cleartext, encrypted, trailer = _read_pfb(data)
    elif data[:2] == b"%!":
        cleartext, encrypted, trailer = _read_pfa(data)
    else:
        raise FontEmbeddingError("Not a Type 1 font program")
    if not encrypted:
        raise FontEmbeddingError("Type 1 program has an empty eexec section")
    return Type1Program(
        cleartext + encrypted + trailer,
        len(cleartext),
        len(encrypted),
        len(trailer),
    )


def _decode_charstring_numbers(program: bytes) -> list[int | tuple[int, int]]:
    """Tokenizes a decrypted charstring into numbers and operators.

    Operators are returned as ``(op, escape)`` tuples, ``escape`` being
    the second byte of two-byte operators or -1.
    """
    tokens: list[int | tuple[int, int]] = []
    i = 0
    n = len(program)
    while i < n:
        v = program[i]
        if v >= 32:
            if v <= 246:
                tokens.append(v - 139)
                i += 1
            elif v <= 250:
                tokens.append((v - 247) * 256 + program[i + 1] + 108)
                i += 2
            elif v <= 254:
                tokens.append(-(v - 251) * 256 - program[i + 1] - 108)
                i += 2
            else:
                value = program[i + 1 : i + 5]
                tokens.append(int.from_bytes(value, "big", signed=True))
                i += 5
        elif v == _OP_ESCAPE:
            tokens.append((v, program[i + 1] if i + 1 < n else -1))
            i += 2
        else:
            tokens.append((v, -1))
            i += 1
    return tokens


def seac_components(charstring: bytes, len_iv: int = DEFAULT_LEN_IV) -> list[str]:
    """Returns the base and accent glyph names of a seac charstring."""
    plain, _ = eexec_decrypt(charstring, CHARSTRING_KEY)
    stack: list[int] = []
    for token in _decode_charstring_numbers(plain[len_iv:]):
        if isinstance(token, int):
            stack.append(token)
            continue
        if token == (_OP_ESCAPE, _OP_SEAC) and len(stack) >= 2:
            base, accent = stack[-2], stack[-1]
            return [
                StandardEncoding[code]
                for code in (base, accent)
                if 0 <= code < len(StandardEncoding)
            ]
        stack.clear()
    return []


@dataclass
class _CharString:
    name: str
    start: int
    end: int
    data: bytes


class Type1Subsetter:
    """Reduces a Type 1 program to the CharStrings of a glyph set.

    Subrs and OtherSubrs are kept unchanged.
    """

    def subset(self, data: bytes, glyph_names: set[str]) -> Type1Program:
        """Builds a subset program.

        Args:
            data: PFB or PFA font program.
            glyph_names: Glyphs to keep; ``.notdef`` and the components of
                accented (seac) glyphs are always added.

        Returns:
            The subset program.

        Raises:
            FontEmbeddingError: If the program cannot be parsed.
        """
        program = read_type1_program(data)
        decrypted_full, _ = eexec_decrypt(program.encrypted, EEXEC_KEY)
        seed = decrypted_full[:4]
        private = decrypted_full[4:]

        len_iv = DEFAULT_LEN_IV
        len_iv_match = _LEN_IV.search(private)
        if len_iv_match:
            len_iv = int(len_iv_match.group(1))

        header = _CHARSTRINGS.search(private)
        if header is None:
            raise FontEmbeddingError("Type 1 program has no CharStrings dictionary")
        rd_cmd, nd_cmd = self._commands(private)
        charstrings, end_pos = self._read_charstrings(
            private, header.end(), rd_cmd, nd_cmd
        )
        by_name = {cs.name: cs for cs in charstrings}

        keep = set(glyph_names) | {".notdef"}
        for name in list(keep):
            cs = by_name.get(name)
            if cs is not None:
                keep.update(seac_components(cs.data, len_iv))
        missing = sorted(name for name in keep if name not in by_name)
        if missing:
            logger.debug("Glyphs not in Type 1 program: %s", ", ".join(missing))

        kept = [cs for cs in charstrings if cs.name in keep]
        first_entry = charstrings[0].start if charstrings else end_pos
        body = b"".join(private[cs.start : cs.end] + b"\n" for cs in kept)
        new_private = (
            private[: header.start(1)]
            + str(len(kept)).encode("ascii")
            + private[header.end(1) : first_entry]
            + body
            + private[end_pos:]
        )
        new_private = _UNIQUE_ID.sub(b"", new_private)
        encrypted, _ = eexec_encrypt(seed + new_private, EEXEC_KEY)

        cleartext = _UNIQUE_ID.sub(b"", program.cleartext)
        trailer = program.trailer
        logger.debug(
            "Type 1 subset keeps %d of %d CharStrings", len(kept), len(charstrings)
        )
        return Type1Program(
            cleartext + encrypted + trailer,
            len(cleartext),
            len(encrypted),
            len(trailer),
        )

    @staticmethod
    def _commands(private: bytes) -> tuple[bytes, bytes]:
        # Some fonts define -| and |- instead of RD and ND
        if re.search(rb"\s-\|\s", private) and not re.search(rb"\sRD\s", private):
            return b"-|", b"|-"
        return b"RD", b"ND"

    @staticmethod
    def _read_charstrings(
        private: bytes, start: int, rd_cmd: bytes, nd_cmd: bytes
    ) -> tuple[list[_CharString], int]:
        """Reads the CharStrings entries up to the closing ``end``.

        Returns:
            The entries and the offset of the closing ``end`` keyword.
        """
        entry = re.compile(
            rb"/([^\s/\[\]{}()<>%]+)\s+(\d+)\s+" + re.escape(rd_cmd) + rb" "
        )
        nd_pattern = re.compile(
            rb"\s*(?:" + re.escape(nd_cmd) + rb"|noaccess\s+def|def)"
        )
        charstrings: list[_CharString] = []
        pos = start
        while True:
            match = entry.search(private, pos)
            end_match = _END.search(private, pos)
            if end_match is None:
                raise FontEmbeddingError("Unterminated CharStrings dictionary")
            if match is None or end_match.start() < match.start():
                return charstrings, end_match.start()
            length = int(match.group(2))
            data_start = match.end()
            data_end = data_start + length
            nd = nd_pattern.match(private, data_end)
            if nd is None:
                raise FontEmbeddingError(
                    f"Malformed CharString for glyph '{match.group(1).decode()}'"
                )
            charstrings.append(
                _CharString(
                    match.group(1).decode("latin-1"),
                    match.start(),
                    nd.end(),
                    private[data_start:data_end],
                )
            )
            pos = nd.end()
