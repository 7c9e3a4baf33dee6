# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""XMP metadata and PDF date handling."""

import logging
import re
from datetime import UTC, datetime
from typing import Any

from lxml import etree
from lxml.builder import ElementMaker

logger = logging.getLogger(__name__)

# Regex matching control characters forbidden in XML 1.0
# (U+0000-U+0008, U+000B-U+000C, U+000E-U+001F)
_XML_ILLEGAL_CTRL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")

# XML namespaces for XMP metadata
NAMESPACES = {
    "x": "adobe:ns:meta/",
    "rdf": "http://www.w3.org/1999/02/22-rdf-syntax-ns#",
    "dc": "http://purl.org/dc/elements/1.1/",
    "xmp": "http://ns.adobe.com/xap/1.0/",
    "pdf": "http://ns.adobe.com/pdf/1.3/",
}

for _prefix, _uri in NAMESPACES.items():
    etree.register_namespace(_prefix, _uri)

_XML_LANG = "{http://www.w3.org/XML/1998/namespace}lang"

# XMP packet header and trailer
XMP_HEADER = b'<?xpacket begin="\xef\xbb\xbf" id="W5M0MpCehiHzreSzNTczkc9d"?>\n'
XMP_TRAILER = b'\n<?xpacket end="w"?>'

# Padding left before the trailer for in-place editing
XMP_PADDING_SIZE = 2048


def _sanitize_xml_text(text: str) -> str:
    """Remove control characters that are illegal in XML 1.0."""
    return _XML_ILLEGAL_CTRL_RE.sub("", text)


def format_pdf_date(dt: datetime) -> str:
    """
    Format datetime to PDF date string.

    Produces format D:YYYYMMDDHHmmSS+00'00'.

    Args:
        dt: Datetime object (naive values are taken as UTC).

    Returns:
        PDF date string in UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    utc_dt = dt.astimezone(UTC)
    return utc_dt.strftime("D:%Y%m%d%H%M%S+00'00'")


def _format_iso_date(dt: datetime | None) -> str:
    """
    Format datetime to ISO 8601 for XMP.

    Args:
        dt: Datetime object or None.

    Returns:
        ISO 8601 formatted string or current time if dt is None.
    """
    if dt is None:
        dt = datetime.now(UTC)
    elif dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)

    # Format: YYYY-MM-DDTHH:MM:SS+00:00
    return dt.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S+00:00")


def _alt(parent: etree._Element, ns_rdf: str, text: str) -> None:
    alt = etree.SubElement(parent, f"{{{ns_rdf}}}Alt")
    li = etree.SubElement(alt, f"{{{ns_rdf}}}li")
    li.set(_XML_LANG, "x-default")
    li.text = text


def create_xmp_metadata(
    info: dict[str, Any], now: datetime | None = None
) -> bytes:
    """
    Create an XMP metadata packet from document information.

    Args:
        info: Document information with the optional keys ``title``,
            ``author``, ``subject``, ``keywords``, ``creator``,
            ``producer`` and ``creation_date``.
        now: Current timestamp for modification/metadata dates.
             If None, datetime.now(UTC) is used.

    Returns:
        UTF-8 encoded XMP metadata bytes with packet wrapper.
    """
    if now is None:
        now = datetime.now(UTC)
    ns_rdf = NAMESPACES["rdf"]
    ns_dc = NAMESPACES["dc"]
    ns_xmp = NAMESPACES["xmp"]
    ns_pdf = NAMESPACES["pdf"]
    nsmap = {"rdf": ns_rdf, "dc": ns_dc, "xmp": ns_xmp, "pdf": ns_pdf}

    rdf = ElementMaker(namespace=ns_rdf, nsmap=nsmap)
    dc = ElementMaker(namespace=ns_dc, nsmap=nsmap)

    description = rdf("Description", {f"{{{ns_rdf}}}about": ""})

    format_elem = dc("format")
    format_elem.text = "application/pdf"
    description.append(format_elem)

    title = _sanitize_xml_text(info.get("title") or "")
    if title:
        title_elem = dc("title")
        _alt(title_elem, ns_rdf, title)
        description.append(title_elem)

    author = _sanitize_xml_text(info.get("author") or "")
    if author:
        creator_elem = dc("creator")
        creator_seq = etree.SubElement(creator_elem, f"{{{ns_rdf}}}Seq")
        creator_li = etree.SubElement(creator_seq, f"{{{ns_rdf}}}li")
        creator_li.text = author
        description.append(creator_elem)

    subject = _sanitize_xml_text(info.get("subject") or "")
    if subject:
        desc_elem = dc("description")
        _alt(desc_elem, ns_rdf, subject)
        description.append(desc_elem)

    create_date_elem = etree.SubElement(description, f"{{{ns_xmp}}}CreateDate")
    create_date_elem.text = _format_iso_date(info.get("creation_date") or now)
    modify_date_elem = etree.SubElement(description, f"{{{ns_xmp}}}ModifyDate")
    modify_date_elem.text = _format_iso_date(now)
    metadata_date_elem = etree.SubElement(description, f"{{{ns_xmp}}}MetadataDate")
    metadata_date_elem.text = _format_iso_date(now)

    creator_tool = _sanitize_xml_text(info.get("creator") or "")
    if creator_tool:
        creator_tool_elem = etree.SubElement(description, f"{{{ns_xmp}}}CreatorTool")
        creator_tool_elem.text = creator_tool

    producer_elem = etree.SubElement(description, f"{{{ns_pdf}}}Producer")
    producer_elem.text = _sanitize_xml_text(info.get("producer") or "pdfloom")

    keywords = _sanitize_xml_text(info.get("keywords") or "")
    if keywords:
        keywords_elem = etree.SubElement(description, f"{{{ns_pdf}}}Keywords")
        keywords_elem.text = keywords

    rdf_root = rdf("RDF")
    rdf_root.append(description)

    xmpmeta = etree.Element(
        f"{{{NAMESPACES['x']}}}xmpmeta",
        nsmap={"x": NAMESPACES["x"]},
    )
    xmpmeta.append(rdf_root)

    xml_bytes = etree.tostring(
        xmpmeta,
        encoding="utf-8",
        xml_declaration=False,
        pretty_print=True,
    )

    _padding_line = b" " * 100 + b"\n"
    _num_lines = XMP_PADDING_SIZE // len(_padding_line)
    _remainder = XMP_PADDING_SIZE % len(_padding_line)
    padding_block = _padding_line * _num_lines + b" " * _remainder

    result = XMP_HEADER + xml_bytes + b"\n" + padding_block + XMP_TRAILER

    logger.debug("XMP metadata created: %d bytes", len(result))
    return result
