# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Colors used by gradients and separation color spaces."""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

RGB = "rgb"
GRAY = "gray"
CMYK = "cmyk"

_COMPONENT_COUNTS = {RGB: 3, GRAY: 1, CMYK: 4}


@dataclass(frozen=True)
class Color:
    """A color in the sRGB, gray or CMYK device space.

    Components are in the range 0..1.
    """

    space: str
    components: tuple[float, ...]

    def __post_init__(self) -> None:
        expected = _COMPONENT_COUNTS.get(self.space)
        if expected is None:
            raise ValueError(f"Unknown color space: {self.space}")
        if len(self.components) != expected:
            raise ValueError(
                f"{self.space} color needs {expected} components, "
                f"got {len(self.components)}"
            )
        object.__setattr__(
            self, "components", tuple(float(c) for c in self.components)
        )

    @classmethod
    def rgb(cls, red: float, green: float, blue: float) -> "Color":
        return cls(RGB, (red, green, blue))

    @classmethod
    def gray(cls, level: float) -> "Color":
        return cls(GRAY, (level,))

    @classmethod
    def cmyk(cls, cyan: float, magenta: float, yellow: float, black: float) -> "Color":
        return cls(CMYK, (cyan, magenta, yellow, black))

    @property
    def is_srgb(self) -> bool:
        return self.space == RGB

    def to_srgb(self) -> "Color":
        """Converts the color to sRGB (naive device conversion)."""
        if self.space == RGB:
            return self
        if self.space == GRAY:
            (level,) = self.components
            return Color.rgb(level, level, level)
        cyan, magenta, yellow, black = self.components
        return Color.rgb(
            1.0 - min(1.0, cyan + black),
            1.0 - min(1.0, magenta + black),
            1.0 - min(1.0, yellow + black),
        )


def to_srgb(colors: list[Color]) -> list[Color]:
    """Replaces every non-sRGB color of the list in place.

    Returns:
        The same list.
    """
    for index, color in enumerate(colors):
        if not color.is_srgb:
            colors[index] = color.to_srgb()
            logger.debug("Converted %s color to sRGB", color.space)
    return colors
