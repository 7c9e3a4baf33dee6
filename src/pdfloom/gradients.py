# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Gradient construction for PDF and PostScript output.

A gradient over N colors becomes N-1 exponential interpolation functions
(one per adjacent color pair), chained by a stitching function over N-2
bounds, wrapped in an axial or radial shading and a shading pattern.
:class:`GradientBuilder` orchestrates these steps; the concrete builders
decide what a function, shading or pattern is in their output format.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from .colors import Color, to_srgb
from .exceptions import GradientError
from .objects.graphics import (
    FUNCTION_EXPONENTIAL,
    FUNCTION_STITCHING,
    PATTERN_SHADING,
    SHADING_AXIAL,
    SHADING_RADIAL,
)
from .utils import format_number

if TYPE_CHECKING:
    from .factory import DocumentFactory

logger = logging.getLogger(__name__)

TARGET_PDF = "pdf"
TARGET_PS = "ps"

# Gradient stops are converted to sRGB, so shadings are always DeviceRGB
GRADIENT_COLOR_SPACE = "DeviceRGB"

UNIT_DOMAIN = (0.0, 1.0)
# Exponent of the interpolation functions (linear)
LINEAR_INTERPOLATION = 1.0


class GradientBuilder(ABC):
    """Builds a shading pattern from a list of colors.

    Subclasses provide the output-format specific objects.
    """

    def create_gradient(
        self,
        radial: bool,
        color_space: str,
        colors: list[Color],
        bounds: Sequence[float],
        coords: Sequence[float],
        matrix: Sequence[float] | None = None,
    ) -> Any:
        """Creates a gradient pattern.

        Non-sRGB colors in ``colors`` are replaced in place by their sRGB
        conversion.

        Args:
            radial: True for a radial (type 3) shading, False for axial.
            color_space: Color space of the shading; only ``DeviceRGB``
                is accepted.
            colors: Gradient stops, at least two.
            bounds: Split points between the stops, ``len(colors) - 2``.
            coords: Axial ``[x0 y0 x1 y1]``; radial ``[x0 y0 r0 x1 y1 r1]``
                or ``[x y r]`` (the second circle is the center with
                radius 0).
            matrix: Pattern matrix.

        Returns:
            The pattern object of the output format.

        Raises:
            GradientError: If the color space, colors, bounds or
                coordinates are invalid.
        """
        if color_space != GRADIENT_COLOR_SPACE:
            raise GradientError(
                f"Gradient colors are converted to sRGB, color space must be "
                f"{GRADIENT_COLOR_SPACE}, got {color_space}"
            )
        if len(colors) < 2:
            raise GradientError("A gradient needs at least two colors")
        if len(bounds) != len(colors) - 2:
            raise GradientError(
                f"A gradient over {len(colors)} colors needs "
                f"{len(colors) - 2} bounds, got {len(bounds)}"
            )
        coords = list(coords)
        if radial:
            if len(coords) == 3:
                x, y, _r = coords
                coords = [*coords, x, y, 0.0]
            elif len(coords) != 6:
                raise GradientError(
                    f"Radial gradient needs 3 or 6 coordinates, got {len(coords)}"
                )
        elif len(coords) != 4:
            raise GradientError(
                f"Axial gradient needs 4 coordinates, got {len(coords)}"
            )

        to_srgb(colors)
        functions = [
            self.make_exponential_function(
                UNIT_DOMAIN,
                list(current.components),
                list(following.components),
                LINEAR_INTERPOLATION,
            )
            for current, following in zip(colors, colors[1:])
        ]
        stitching = self.make_stitching_function(
            UNIT_DOMAIN, functions, list(bounds), [0.0, 1.0] * len(functions)
        )
        shading_type = SHADING_RADIAL if radial else SHADING_AXIAL
        shading = self.make_shading(shading_type, color_space, coords, stitching)
        logger.debug(
            "Created %s gradient with %d stops",
            "radial" if radial else "axial",
            len(colors),
        )
        return self.make_pattern(PATTERN_SHADING, shading, matrix)

    @abstractmethod
    def make_exponential_function(
        self,
        domain: Sequence[float],
        c0: Sequence[float],
        c1: Sequence[float],
        interpolation: float,
    ) -> Any: ...

    @abstractmethod
    def make_stitching_function(
        self,
        domain: Sequence[float],
        functions: list[Any],
        bounds: Sequence[float],
        encode: Sequence[float],
    ) -> Any: ...

    @abstractmethod
    def make_shading(
        self,
        shading_type: int,
        color_space: str,
        coords: Sequence[float],
        function: Any,
    ) -> Any: ...

    @abstractmethod
    def make_pattern(
        self, pattern_type: int, shading: Any, matrix: Sequence[float] | None
    ) -> Any: ...


class PdfGradientBuilder(GradientBuilder):
    """Registers gradient objects through a document factory.

    Structurally equal functions, shadings and patterns are shared.
    """

    def __init__(self, factory: "DocumentFactory") -> None:
        self._factory = factory

    def make_exponential_function(self, domain, c0, c1, interpolation):
        return self._factory.make_function(
            FUNCTION_EXPONENTIAL,
            domain,
            c0=c0,
            c1=c1,
            interpolation=interpolation,
        )

    def make_stitching_function(self, domain, functions, bounds, encode):
        return self._factory.make_function(
            FUNCTION_STITCHING,
            domain,
            functions=functions,
            bounds=bounds,
            encode=encode,
        )

    def make_shading(self, shading_type, color_space, coords, function):
        return self._factory.make_shading(
            shading_type, color_space, function, coords=coords
        )

    def make_pattern(self, pattern_type, shading, matrix):
        return self._factory.make_pattern(pattern_type, shading=shading, matrix=matrix)


def _ps_array(values: Sequence[float]) -> str:
    return "[ " + " ".join(format_number(v) for v in values) + " ]"


class PSFunction:
    """PostScript function dictionary."""

    def __init__(
        self,
        function_type: int,
        domain: Sequence[float],
        *,
        c0: Sequence[float] | None = None,
        c1: Sequence[float] | None = None,
        interpolation: float | None = None,
        functions: "list[PSFunction] | None" = None,
        bounds: Sequence[float] | None = None,
        encode: Sequence[float] | None = None,
    ) -> None:
        self.function_type = function_type
        self.domain = list(domain)
        self.c0 = list(c0) if c0 is not None else None
        self.c1 = list(c1) if c1 is not None else None
        self.interpolation = interpolation
        self.functions = functions or []
        self.bounds = list(bounds) if bounds is not None else None
        self.encode = list(encode) if encode is not None else None

    def to_postscript(self) -> str:
        lines = [
            "<<",
            f"/FunctionType {self.function_type}",
            f"/Domain {_ps_array(self.domain)}",
        ]
        if self.function_type == FUNCTION_EXPONENTIAL:
            lines.append(f"/C0 {_ps_array(self.c0 or [])}")
            lines.append(f"/C1 {_ps_array(self.c1 or [])}")
            lines.append(f"/N {format_number(self.interpolation or 1)}")
        else:
            functions = " ".join(f.to_postscript() for f in self.functions)
            lines.append(f"/Functions [ {functions} ]")
            lines.append(f"/Encode {_ps_array(self.encode or [])}")
            lines.append(f"/Bounds {_ps_array(self.bounds or [])}")
        lines.append(">>")
        return "\n".join(lines)

    def to_bytes(self) -> bytes:
        return self.to_postscript().encode("utf-8")


class PSShading:
    """PostScript shading dictionary."""

    def __init__(
        self,
        shading_type: int,
        color_space: str,
        coords: Sequence[float],
        function: PSFunction,
    ) -> None:
        self.shading_type = shading_type
        self.color_space = color_space
        self.coords = list(coords)
        self.function = function

    def to_postscript(self) -> str:
        return "\n".join(
            [
                "<<",
                f"/ShadingType {self.shading_type}",
                f"/ColorSpace /{self.color_space}",
                f"/Coords {_ps_array(self.coords)}",
                "/Extend [ true true ]",
                f"/Function {self.function.to_postscript()}",
                ">>",
            ]
        )


class PSPattern:
    """PostScript shading pattern, instantiated with ``makepattern``."""

    def __init__(
        self,
        pattern_type: int,
        shading: PSShading,
        matrix: Sequence[float] | None = None,
    ) -> None:
        self.pattern_type = pattern_type
        self.shading = shading
        self.matrix = list(matrix) if matrix is not None else None

    def to_postscript(self) -> str:
        matrix = self.matrix if self.matrix is not None else [1, 0, 0, 1, 0, 0]
        return "\n".join(
            [
                "<<",
                f"/PatternType {self.pattern_type}",
                f"/Shading {self.shading.to_postscript()}",
                ">>",
                f"{_ps_array(matrix)}",
                "makepattern",
            ]
        )


class PostScriptGradientBuilder(GradientBuilder):
    """Builds gradients as PostScript dictionary text."""

    def make_exponential_function(self, domain, c0, c1, interpolation):
        return PSFunction(
            FUNCTION_EXPONENTIAL, domain, c0=c0, c1=c1, interpolation=interpolation
        )

    def make_stitching_function(self, domain, functions, bounds, encode):
        return PSFunction(
            FUNCTION_STITCHING,
            domain,
            functions=functions,
            bounds=bounds,
            encode=encode,
        )

    def make_shading(self, shading_type, color_space, coords, function):
        return PSShading(shading_type, color_space, coords, function)

    def make_pattern(self, pattern_type, shading, matrix):
        return PSPattern(pattern_type, shading, matrix)


def gradient_builder_for(
    target: str, factory: "DocumentFactory | None" = None
) -> GradientBuilder:
    """Returns the gradient builder for an output format.

    Args:
        target: ``"pdf"`` or ``"ps"``.
        factory: Document factory, required for PDF output.

    Raises:
        ValueError: If the target is unknown or a PDF builder has no factory.
    """
    if target == TARGET_PDF:
        if factory is None:
            raise ValueError("PDF gradients need a document factory")
        return PdfGradientBuilder(factory)
    if target == TARGET_PS:
        return PostScriptGradientBuilder()
    raise ValueError(f"Unknown gradient target: {target}")
