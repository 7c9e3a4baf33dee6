# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Functions, shadings, patterns, color spaces and graphics states."""

import logging
from collections.abc import Sequence
from typing import Any

from pikepdf import Array, Dictionary, Name

from .base import (
    SHELL_ARRAY,
    PdfObject,
    PdfStream,
    Ref,
    as_tuple,
    name,
    pdf_value,
    reference_key,
)

logger = logging.getLogger(__name__)

FUNCTION_SAMPLED = 0
FUNCTION_EXPONENTIAL = 2
FUNCTION_STITCHING = 3
FUNCTION_POSTSCRIPT = 4

SHADING_FUNCTION_BASED = 1
SHADING_AXIAL = 2
SHADING_RADIAL = 3

PATTERN_TILING = 1
PATTERN_SHADING = 2

# Graphics state parameters that hold names
_NAME_PARAMETERS = frozenset({"RI", "BM", "SMask"})

# Values every graphics state starts from
DEFAULT_GSTATE: dict[str, Any] = {
    "LW": 1.0,
    "LC": 0,
    "LJ": 0,
    "ML": 10.0,
    "RI": "RelativeColorimetric",
    "OP": False,
    "op": False,
    "OPM": 1,
    "FL": 1.0,
    "SM": 0.0,
    "SA": False,
    "BM": "Normal",
    "SMask": "None",
    "CA": 1.0,
    "ca": 1.0,
    "AIS": False,
    "TK": False,
}


def _color_space_key(color_space: "str | SeparationColorSpace") -> Any:
    if isinstance(color_space, PdfObject):
        return reference_key(color_space)
    return color_space


def _color_space_value(color_space: "str | SeparationColorSpace", ref: Ref) -> Any:
    if isinstance(color_space, PdfObject):
        return ref(color_space)
    return name(color_space)


class Function(PdfObject):
    """A PDF function (types 0, 2, 3 and 4).

    Sampled (type 0) and PostScript calculator (type 4) functions are
    streams; exponential (type 2) and stitching (type 3) functions are
    dictionaries.
    """

    kind = "function"

    def __init__(
        self,
        function_type: int,
        domain: Sequence[float],
        range_: Sequence[float] | None = None,
        *,
        c0: Sequence[float] | None = None,
        c1: Sequence[float] | None = None,
        interpolation: float | None = None,
        functions: "Sequence[Function] | None" = None,
        bounds: Sequence[float] | None = None,
        encode: Sequence[float] | None = None,
        size: Sequence[int] | None = None,
        bits_per_sample: int | None = None,
        order: int | None = None,
        decode: Sequence[float] | None = None,
        samples: bytes | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__()
        if function_type not in (
            FUNCTION_SAMPLED,
            FUNCTION_EXPONENTIAL,
            FUNCTION_STITCHING,
            FUNCTION_POSTSCRIPT,
        ):
            raise ValueError(f"Unsupported function type: {function_type}")
        self.function_type = function_type
        self.domain = list(domain)
        self.range = list(range_) if range_ is not None else None
        self.c0 = list(c0) if c0 is not None else None
        self.c1 = list(c1) if c1 is not None else None
        self.interpolation = interpolation
        self.functions = list(functions) if functions is not None else None
        self.bounds = list(bounds) if bounds is not None else None
        self.encode = list(encode) if encode is not None else None
        self.size = list(size) if size is not None else None
        self.bits_per_sample = bits_per_sample
        self.order = order
        self.decode = list(decode) if decode is not None else None
        self.samples = samples
        self.code = code

    def structural_key(self) -> tuple:
        return (
            self.function_type,
            as_tuple(self.domain),
            as_tuple(self.range),
            as_tuple(self.c0),
            as_tuple(self.c1),
            self.interpolation,
            None
            if self.functions is None
            else tuple(reference_key(f) for f in self.functions),
            as_tuple(self.bounds),
            as_tuple(self.encode),
            as_tuple(self.size),
            self.bits_per_sample,
            self.order,
            as_tuple(self.decode),
            self.samples,
            self.code,
        )

    def stream_data(self) -> bytes | None:
        if self.function_type == FUNCTION_SAMPLED:
            return self.samples or b""
        if self.function_type == FUNCTION_POSTSCRIPT:
            return (self.code or "{ }").encode("ascii")
        return None

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        function = Dictionary(
            FunctionType=self.function_type, Domain=Array(self.domain)
        )
        if self.range is not None:
            function[Name.Range] = Array(self.range)
        if self.function_type == FUNCTION_SAMPLED:
            function[Name.Size] = Array(self.size or [])
            function[Name.BitsPerSample] = self.bits_per_sample or 8
            if self.order is not None:
                function[Name.Order] = self.order
            if self.encode is not None:
                function[Name.Encode] = Array(self.encode)
            if self.decode is not None:
                function[Name.Decode] = Array(self.decode)
        elif self.function_type == FUNCTION_EXPONENTIAL:
            if self.c0 is not None:
                function[Name.C0] = Array(self.c0)
            if self.c1 is not None:
                function[Name.C1] = Array(self.c1)
            function[Name.N] = self.interpolation if self.interpolation else 1
        elif self.function_type == FUNCTION_STITCHING:
            function[Name.Functions] = Array(
                [ref(f) for f in self.functions or []]
            )
            function[Name.Bounds] = Array(self.bounds or [])
            function[Name.Encode] = Array(self.encode or [])
        return function


class Shading(PdfObject):
    """Function-based, axial or radial shading.

    ``name`` is the resource name given when the shading is added to a
    resource dictionary; it is not part of the structural key.
    """

    kind = "shading"

    def __init__(
        self,
        shading_type: int,
        color_space: "str | SeparationColorSpace",
        function: Function,
        *,
        coords: Sequence[float] | None = None,
        domain: Sequence[float] | None = None,
        extend: Sequence[bool] | None = None,
        matrix: Sequence[float] | None = None,
        background: Sequence[float] | None = None,
        bbox: Sequence[float] | None = None,
        anti_alias: bool = False,
    ) -> None:
        super().__init__()
        self.shading_type = shading_type
        self.color_space = color_space
        self.function = function
        self.coords = list(coords) if coords is not None else None
        self.domain = list(domain) if domain is not None else None
        self.extend = list(extend) if extend is not None else None
        self.matrix = list(matrix) if matrix is not None else None
        self.background = list(background) if background is not None else None
        self.bbox = list(bbox) if bbox is not None else None
        self.anti_alias = anti_alias
        self.name: str | None = None

    def structural_key(self) -> tuple:
        return (
            self.shading_type,
            _color_space_key(self.color_space),
            reference_key(self.function),
            as_tuple(self.coords),
            as_tuple(self.domain),
            as_tuple(self.extend),
            as_tuple(self.matrix),
            as_tuple(self.background),
            as_tuple(self.bbox),
            self.anti_alias,
        )

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        shading = Dictionary(
            ShadingType=self.shading_type,
            ColorSpace=_color_space_value(self.color_space, ref),
            Function=ref(self.function),
        )
        if self.coords is not None:
            shading[Name.Coords] = Array(self.coords)
        if self.domain is not None:
            shading[Name.Domain] = Array(self.domain)
        if self.shading_type == SHADING_FUNCTION_BASED and self.matrix is not None:
            shading[Name.Matrix] = Array(self.matrix)
        if self.extend is not None:
            shading[Name.Extend] = Array(self.extend)
        if self.background is not None:
            shading[Name.Background] = Array(self.background)
        if self.bbox is not None:
            shading[Name.BBox] = Array(self.bbox)
        if self.anti_alias:
            shading[Name.AntiAlias] = True
        return shading


class Pattern(PdfObject):
    """Shading pattern (type 2) or tiling pattern (type 1).

    Tiling patterns are streams holding their cell's content.
    """

    kind = "pattern"

    def __init__(
        self,
        pattern_type: int,
        *,
        shading: Shading | None = None,
        matrix: Sequence[float] | None = None,
        ext_gstate: "ExtGState | None" = None,
        paint_type: int = 1,
        tiling_type: int = 1,
        bbox: Sequence[float] | None = None,
        x_step: float | None = None,
        y_step: float | None = None,
        resources: PdfObject | None = None,
        content: bytes | None = None,
    ) -> None:
        super().__init__()
        self.pattern_type = pattern_type
        self.shading = shading
        self.matrix = list(matrix) if matrix is not None else None
        self.ext_gstate = ext_gstate
        self.paint_type = paint_type
        self.tiling_type = tiling_type
        self.bbox = list(bbox) if bbox is not None else None
        self.x_step = x_step
        self.y_step = y_step
        self.resources = resources
        self.content = content
        self.name: str | None = None

    def structural_key(self) -> tuple:
        return (
            self.pattern_type,
            reference_key(self.shading),
            as_tuple(self.matrix),
            reference_key(self.ext_gstate),
            self.paint_type,
            self.tiling_type,
            as_tuple(self.bbox),
            self.x_step,
            self.y_step,
            reference_key(self.resources),
            self.content,
        )

    def stream_data(self) -> bytes | None:
        if self.pattern_type == PATTERN_TILING:
            return self.content or b""
        return None

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        pattern = Dictionary(Type=Name.Pattern, PatternType=self.pattern_type)
        if self.pattern_type == PATTERN_TILING:
            pattern[Name.PaintType] = self.paint_type
            pattern[Name.TilingType] = self.tiling_type
            pattern[Name.BBox] = Array(self.bbox or [0, 0, 0, 0])
            pattern[Name.XStep] = self.x_step or 0
            pattern[Name.YStep] = self.y_step or 0
            if self.resources is not None:
                pattern[Name.Resources] = ref(self.resources)
        elif self.shading is not None:
            pattern[Name.Shading] = ref(self.shading)
        if self.matrix is not None:
            pattern[Name.Matrix] = Array(self.matrix)
        if self.ext_gstate is not None:
            pattern[Name.ExtGState] = ref(self.ext_gstate)
        return pattern


class SeparationColorSpace(PdfObject):
    """Separation color space with a DeviceRGB alternate."""

    kind = "color_space"
    shell = SHELL_ARRAY

    def __init__(self, color_name: str, tint_function: Function) -> None:
        super().__init__()
        self.color_name = color_name
        self.tint_function = tint_function
        self.name: str | None = None

    def to_pikepdf(self, ref: Ref) -> Array:
        return Array(
            [
                Name.Separation,
                name(self.color_name),
                Name.DeviceRGB,
                ref(self.tint_function),
            ]
        )


class ICCStream(PdfStream):
    """ICC profile stream.

    Args:
        profile: Raw ICC profile bytes.
        components: Number of color components, written as /N.
        alternate: Device color space used by readers that cannot
            process the profile.
    """

    kind = "icc_stream"

    def __init__(
        self, profile: bytes, components: int, alternate: str | None = None
    ) -> None:
        entries: dict[str, Any] = {"N": components}
        if alternate is not None:
            entries["Alternate"] = name(alternate)
        super().__init__(profile, **entries)
        self.components = components
        self.alternate = alternate


class ICCBasedColorSpace(PdfObject):
    """ICCBased color space over an ICC profile stream.

    ``explicit_name`` is the resource name to use instead of a generated
    one.
    """

    kind = "color_space"
    shell = SHELL_ARRAY

    def __init__(
        self, icc_stream: ICCStream, explicit_name: str | None = None
    ) -> None:
        super().__init__()
        self.icc_stream = icc_stream
        self.explicit_name = explicit_name
        self.name: str | None = None

    def to_pikepdf(self, ref: Ref) -> Array:
        return Array([Name.ICCBased, ref(self.icc_stream)])


class ExtGState(PdfObject):
    """Graphics state parameter dictionary.

    Only the explicitly set parameters are written. Two graphics states are
    equal when their parameters, completed with :data:`DEFAULT_GSTATE`, are.
    """

    kind = "gstate"

    def __init__(self, settings: dict[str, Any]) -> None:
        super().__init__()
        self.settings = dict(settings)
        self.name: str | None = None

    def structural_key(self) -> tuple:
        wanted = {**DEFAULT_GSTATE, **self.settings}
        return tuple(
            (key, as_tuple(v) if isinstance(v, list | tuple) else v)
            for key, v in sorted(wanted.items())
        )

    def to_pikepdf(self, ref: Ref) -> Dictionary:
        gstate = Dictionary(Type=Name.ExtGState)
        for key, value in self.settings.items():
            if key in _NAME_PARAMETERS and isinstance(value, str):
                gstate[name(key)] = name(value)
            else:
                gstate[name(key)] = pdf_value(value, ref)
        return gstate
