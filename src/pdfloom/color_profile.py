# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""ICC profile checks for ICCBased color spaces and output intents."""

import logging

from .exceptions import ColorProfileError

logger = logging.getLogger(__name__)

ICC_HEADER_SIZE = 128

# Named color (nmcl), link and abstract profiles cannot describe a
# color space or an output device
_ALLOWED_DEVICE_CLASSES = frozenset({b"mntr", b"prtr", b"scnr", b"spac"})

# Data color space signature (header bytes 16-19) -> component count
_COMPONENTS = {
    b"GRAY": 1,
    b"RGB ": 3,
    b"Lab ": 3,
    b"CMYK": 4,
}

# Device space used by readers that cannot process the profile
_ALTERNATES = {1: "DeviceGray", 3: "DeviceRGB", 4: "DeviceCMYK"}


def validate_icc_profile(profile_data: bytes) -> None:
    """Checks the header of an ICC profile.

    Args:
        profile_data: Raw ICC profile bytes.

    Raises:
        ColorProfileError: If the header is truncated, lacks the ``acsp``
            signature, declares a different size, has a major version
            other than 2 or 4, or is of an unsupported device class.
    """
    if len(profile_data) < ICC_HEADER_SIZE:
        raise ColorProfileError(
            f"ICC profile is {len(profile_data)} bytes, shorter than its header"
        )

    if profile_data[36:40] != b"acsp":
        raise ColorProfileError("ICC profile lacks the 'acsp' signature")

    declared_size = int.from_bytes(profile_data[0:4], byteorder="big")
    if declared_size != len(profile_data):
        raise ColorProfileError(
            f"ICC profile declares {declared_size} bytes, "
            f"has {len(profile_data)}"
        )

    major_version = profile_data[8]
    if major_version not in (2, 4):
        raise ColorProfileError(f"Unsupported ICC profile version {major_version}")

    device_class = profile_data[12:16]
    if device_class not in _ALLOWED_DEVICE_CLASSES:
        raise ColorProfileError(
            f"Unsupported ICC device class {device_class.decode('latin-1')!r}"
        )


def icc_component_count(profile_data: bytes) -> int:
    """Returns the number of color components of a profile's data space.

    Raises:
        ColorProfileError: If the data color space is not gray, RGB,
            Lab or CMYK.
    """
    signature = bytes(profile_data[16:20])
    components = _COMPONENTS.get(signature)
    if components is None:
        raise ColorProfileError(
            f"Unsupported ICC color space {signature.decode('latin-1')!r}"
        )
    return components


def default_alternate(components: int) -> str:
    """Device color space matching a component count."""
    return _ALTERNATES[components]
