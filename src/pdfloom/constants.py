# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Document-level constants for pdfloom."""

SUPPORTED_PDF_VERSIONS = ("1.3", "1.4", "1.5", "1.6", "1.7", "2.0")

DEFAULT_PDF_VERSION = "1.4"

# Embedding a full CFF program as FontFile3 /OpenType needs PDF 1.6
FULL_CFF_PDF_VERSION = "1.6"

DEFAULT_PRODUCER = "pdfloom"

# Prefixes recognized by the external action router
EMBEDDED_FILE_PREFIX = "embedded-file:"
HTTP_PREFIXES = ("http://", "https://")
FILE_URL_PREFIX = "file://"
PDF_PAGE_FRAGMENT = ".pdf#page="
PDF_DEST_FRAGMENT = ".pdf#dest="

# Output intents need PDF 1.4; optional content, navigators and the
# SetOCGState and Trans actions need PDF 1.5
OUTPUT_INTENT_PDF_VERSION = "1.4"
OPTIONAL_CONTENT_PDF_VERSION = "1.5"

PDFA_OUTPUT_INTENT = "GTS_PDFA1"
ICC_REGISTRY_NAME = "http://www.color.org"
