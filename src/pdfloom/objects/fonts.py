# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Font objects: font dictionaries, descriptors, programs and CMaps."""

import logging
from typing import Any

from pikepdf import Array, Dictionary, Name, String

from .base import PdfObject, PdfStream, Ref, name, pdf_value

logger = logging.getLogger(__name__)

# Descriptor keys of the embedded program streams
FONT_FILE = "FontFile"
FONT_FILE2 = "FontFile2"
FONT_FILE3 = "FontFile3"


class FontFile(PdfStream):
    """Embedded font program.

    Args:
        descriptor_key: ``FontFile`` (Type 1), ``FontFile2`` (TrueType) or
            ``FontFile3`` (CFF and OpenType).
        data: Program bytes.
        subtype: ``/Subtype`` of a FontFile3 stream.
        lengths: ``/Length1``, ``/Length2`` and ``/Length3`` entries.
        subset: True if the program holds only the used glyphs in CID
            order.
    """

    kind = "font_file"

    def __init__(
        self,
        descriptor_key: str,
        data: bytes,
        *,
        subtype: str | None = None,
        lengths: tuple[int, ...] = (),
        subset: bool = False,
    ) -> None:
        entries: dict[str, Any] = {}
        if subtype is not None:
            entries["Subtype"] = name(subtype)
        for index, length in enumerate(lengths, start=1):
            entries[f"Length{index}"] = length
        super().__init__(data, **entries)
        self.descriptor_key = descriptor_key
        self.subtype = subtype
        self.subset = subset


class ToUnicodeCMap(PdfStream):
    """ToUnicode CMap stream."""

    kind = "to_unicode"


class FontDescriptor(PdfObject):
    """Font descriptor of a simple font."""

    kind = "font_descriptor"

    def __init__(
        self,
        font_name: str,
        *,
        flags: int,
        bbox: tuple[int, int, int, int],
        italic_angle: float,
        ascent: int,
        descent: int,
        cap_height: int,
        stem_v: int,
        x_height: int = 0,
    ) -> None:
        super().__init__()
        self.font_name = font_name
        self.flags = flags
        self.bbox = tuple(bbox)
        self.italic_angle = italic_angle
        self.ascent = ascent
        self.descent = descent
        self.cap_height = cap_height
        self.stem_v = stem_v
        self.x_height = x_height
        self.font_file: FontFile | None = None

    def set_font_file(self, font_file: FontFile) -> None:
        self.font_file = font_file

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        descriptor = Dictionary(
            Type=Name.FontDescriptor,
            FontName=name(self.font_name),
            Flags=self.flags,
            FontBBox=Array(list(self.bbox)),
            ItalicAngle=self.italic_angle,
            Ascent=self.ascent,
            Descent=self.descent,
            CapHeight=self.cap_height,
            StemV=self.stem_v,
        )
        if self.x_height:
            descriptor[Name.XHeight] = self.x_height
        if self.font_file is not None:
            descriptor[name(self.font_file.descriptor_key)] = ref(self.font_file)
        return descriptor


class CIDFontDescriptor(FontDescriptor):
    """Font descriptor of a CIDFont, with the optional CIDSet stream.

    Ascent and descent are taken from the bounding box.
    """

    def __init__(
        self,
        font_name: str,
        *,
        flags: int,
        bbox: tuple[int, int, int, int],
        italic_angle: float,
        cap_height: int,
        stem_v: int,
    ) -> None:
        super().__init__(
            font_name,
            flags=flags,
            bbox=bbox,
            italic_angle=italic_angle,
            ascent=bbox[3],
            descent=bbox[1],
            cap_height=cap_height,
            stem_v=stem_v,
        )
        self.cid_set: PdfStream | None = None

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        descriptor = super().to_pikepdf(ref)
        if self.cid_set is not None:
            descriptor[Name.CIDSet] = ref(self.cid_set)
        return descriptor


class Encoding(PdfObject):
    """Encoding dictionary with a /Differences array."""

    kind = "encoding"

    def __init__(
        self,
        base_encoding: str | None = None,
        differences: list[int | str] | None = None,
    ) -> None:
        super().__init__()
        self.base_encoding = base_encoding
        self.differences = list(differences or [])

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        encoding = Dictionary(Type=Name.Encoding)
        if self.base_encoding:
            encoding[Name.BaseEncoding] = name(self.base_encoding)
        if self.differences:
            encoding[Name.Differences] = Array(
                [d if isinstance(d, int) else name(d) for d in self.differences]
            )
        return encoding


class SimpleFontDict(PdfObject):
    """Type 1 or TrueType font dictionary.

    Fonts without a descriptor are Standard 14 fonts.
    """

    kind = "font"

    def __init__(self, subtype: str, base_font: str) -> None:
        super().__init__()
        self.subtype = subtype
        self.base_font = base_font
        self.first_char: int | None = None
        self.last_char: int | None = None
        self.widths: list[int] | None = None
        self.descriptor: FontDescriptor | None = None
        self.encoding: str | Encoding | None = None
        self.to_unicode: ToUnicodeCMap | None = None

    def set_width_metrics(
        self, first_char: int, last_char: int, widths: list[int]
    ) -> None:
        self.first_char = first_char
        self.last_char = last_char
        self.widths = list(widths)

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        font = Dictionary(
            Type=Name.Font,
            Subtype=name(self.subtype),
            BaseFont=name(self.base_font),
        )
        if self.widths is not None:
            font[Name.FirstChar] = self.first_char
            font[Name.LastChar] = self.last_char
            font[Name.Widths] = Array(self.widths)
        if self.descriptor is not None:
            font[Name.FontDescriptor] = ref(self.descriptor)
        if isinstance(self.encoding, str):
            font[Name.Encoding] = name(self.encoding)
        elif self.encoding is not None:
            font[Name.Encoding] = ref(self.encoding)
        if self.to_unicode is not None:
            font[Name.ToUnicode] = ref(self.to_unicode)
        return font


class CIDFontDict(PdfObject):
    """Descendant CIDFont dictionary of a Type 0 font."""

    kind = "cid_font"

    def __init__(
        self,
        cid_type: str,
        base_font: str,
        *,
        registry: str,
        ordering: str,
        supplement: int,
    ) -> None:
        super().__init__()
        self.cid_type = cid_type
        self.base_font = base_font
        self.registry = registry
        self.ordering = ordering
        self.supplement = supplement
        self.descriptor: FontDescriptor | None = None
        self.default_width: int | None = None
        self.w_array: list[Any] = []
        # "Identity" or a stream mapping CIDs to glyph indices
        self.cid_to_gid_map: str | PdfStream = "Identity"

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        font = Dictionary(
            Type=Name.Font,
            Subtype=name(self.cid_type),
            BaseFont=name(self.base_font),
            CIDSystemInfo=Dictionary(
                Registry=String(self.registry),
                Ordering=String(self.ordering),
                Supplement=self.supplement,
            ),
        )
        if self.descriptor is not None:
            font[Name.FontDescriptor] = ref(self.descriptor)
        if self.default_width is not None:
            font[Name.DW] = self.default_width
        if self.w_array:
            font[Name.W] = pdf_value(self.w_array, ref)
        if self.cid_type == "CIDFontType2":
            if isinstance(self.cid_to_gid_map, str):
                font[Name.CIDToGIDMap] = name(self.cid_to_gid_map)
            else:
                font[Name.CIDToGIDMap] = ref(self.cid_to_gid_map)
        return font


class Type0Font(PdfObject):
    """Composite font dictionary with one descendant CIDFont."""

    kind = "font"

    def __init__(self, base_font: str, encoding: str, descendant: CIDFontDict):
        super().__init__()
        self.base_font = base_font
        self.encoding = encoding
        self.descendant = descendant
        self.to_unicode: ToUnicodeCMap | None = None

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        font = Dictionary(
            Type=Name.Font,
            Subtype=Name.Type0,
            BaseFont=name(self.base_font),
            Encoding=name(self.encoding),
            DescendantFonts=Array([ref(self.descendant)]),
        )
        if self.to_unicode is not None:
            font[Name.ToUnicode] = ref(self.to_unicode)
        return font
