# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Custom exceptions for pdfloom."""


class PdfLoomError(Exception):
    """Base exception for all pdfloom errors."""


class StructureError(PdfLoomError):
    """The object graph is inconsistent.

    Raised when an object number would be assigned twice, or when the
    serializer meets a reference to an object that was never registered.
    """


class FontEmbeddingError(PdfLoomError):
    """Font program could not be read or embedded."""


class UnsupportedFontError(FontEmbeddingError):
    """Font program type cannot be embedded."""


class ConfigurationError(PdfLoomError):
    """A prerequisite structure is missing from the document."""


class GradientError(PdfLoomError):
    """Gradient definition is invalid."""


class ColorProfileError(PdfLoomError):
    """ICC profile is malformed or of an unsupported class."""
