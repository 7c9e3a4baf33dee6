# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Utility functions for pdfloom."""

import logging
import sys

from .constants import SUPPORTED_PDF_VERSIONS
from .exceptions import PdfLoomError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbose: bool = False, quiet: bool = False) -> logging.Logger:
    """Configures logging for pdfloom.

    Args:
        verbose: If True, DEBUG level is used.
        quiet: If True, only ERROR and higher are output.
            Takes precedence over verbose.

    Returns:
        Configured logger for pdfloom.
    """
    # Determine log level (quiet takes precedence)
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    pdfloom_logger = logging.getLogger("pdfloom")
    pdfloom_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    pdfloom_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)
    handler.setFormatter(formatter)
    pdfloom_logger.addHandler(handler)

    logger.debug("Logging configured with level: %s", logging.getLevelName(level))
    return pdfloom_logger


def validate_pdf_version(version: str) -> str:
    """Validates a PDF version string.

    Args:
        version: PDF version (e.g., "1.4").

    Returns:
        The version string, stripped.

    Raises:
        PdfLoomError: If the version is not a supported PDF version.
    """
    version = version.strip()
    if version not in SUPPORTED_PDF_VERSIONS:
        raise PdfLoomError(
            f"Invalid PDF version: {version}. "
            f"Allowed: {', '.join(SUPPORTED_PDF_VERSIONS)}"
        )
    return version


def max_pdf_version(current: str, required: str) -> str:
    """Returns the higher of two PDF version strings."""
    if SUPPORTED_PDF_VERSIONS.index(required) > SUPPORTED_PDF_VERSIONS.index(
        current
    ):
        return required
    return current


def format_number(value: float) -> str:
    """Formats a number for PostScript/PDF text output.

    Integral values are written without a fractional part, other values
    with up to six decimals and no trailing zeros.
    """
    if float(value).is_integer():
        return str(int(value))
    text = f"{value:.6f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text
