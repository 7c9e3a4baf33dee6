# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Tests for writer.py."""

from io import BytesIO

import pytest
from conftest import open_pdf, resolve
from pikepdf import Name

from pdfloom.document import DocumentContext, DocumentOptions
from pdfloom.exceptions import StructureError
from pdfloom.factory import DocumentFactory
from pdfloom.objects import Link, PdfStream, Uri
from pdfloom.writer import PdfSerializer


class TestSerialization:
    """Tests for writing a document and reading it back."""

    def test_minimal_document(self, factory, page, write_and_reopen):
        """A single empty page round-trips through pikepdf."""
        pdf = write_and_reopen(factory.context)
        assert len(pdf.pages) == 1
        assert pdf.Root.Type == Name.Catalog
        assert list(pdf.pages[0].MediaBox) == [0, 0, 612, 792]

    def test_info_in_trailer(self, factory, write_and_reopen):
        """The info dictionary is referenced from the trailer."""
        factory.context.info.title = "Report"
        pdf = write_and_reopen(factory.context)
        assert str(pdf.trailer.Info.Producer) == "pdfloom"
        assert str(pdf.trailer.Info.Title) == "Report"

    def test_header_version(self, factory, write_and_reopen):
        """The header carries the document's PDF version."""
        pdf = write_and_reopen(factory.context)
        assert pdf.pdf_version == "1.4"

    def test_raised_version(self, factory, write_and_reopen):
        """A raised version is written to the header."""
        factory.context.require_pdf_version("1.6")
        pdf = write_and_reopen(factory.context)
        assert pdf.pdf_version == "1.6"

    def test_contents_stream(self, factory, page, write_and_reopen):
        """Page content streams keep their data."""
        factory.make_stream(b"0 0 m 10 10 l S", page)
        pdf = write_and_reopen(factory.context)
        assert pdf.pages[0].Contents.read_bytes() == b"0 0 m 10 10 l S"

    def test_forward_reference(self, factory, page, write_and_reopen):
        """Objects may reference objects with higher numbers."""
        stream = factory.make_stream(b"q Q")
        assert stream.number > page.number
        page.add_contents(stream)
        pdf = write_and_reopen(factory.context)
        assert pdf.pages[0].Contents.read_bytes() == b"q Q"

    def test_inline_uri_action(self, factory, page, write_and_reopen):
        """URI actions are written as direct dictionaries."""
        link = factory.make_link((0, 0, 10, 10), Uri("https://example.com"))
        page.add_annotation(link)
        pdf = write_and_reopen(factory.context)
        annot = resolve(pdf.pages[0].Annots[0])
        assert annot.A.S == Name.URI
        assert str(annot.A.URI) == "https://example.com"
        assert not annot.A.is_indirect

    def test_save_to_path(self, factory, tmp_path):
        """save() accepts a filesystem path."""
        output = tmp_path / "out.pdf"
        PdfSerializer(factory.context).save(output)
        pdf = open_pdf(output)
        assert pdf.Root.Pages.Count == 0

    def test_save_closes_document(self, factory):
        """Writing closes the document context."""
        PdfSerializer(factory.context).save(BytesIO())
        assert factory.context.closed


class TestStructureErrors:
    """Tests for inconsistent object graphs."""

    def test_no_catalog(self):
        """A document without a catalog cannot be written."""
        context = DocumentContext(DocumentOptions())
        with pytest.raises(StructureError, match="no catalog"):
            PdfSerializer(context).to_pikepdf()

    def test_unregistered_reference(self, factory, page):
        """A reference to an unregistered object is detected."""
        page.add_contents(PdfStream(b"BT ET"))
        with pytest.raises(StructureError, match="unregistered"):
            PdfSerializer(factory.context).to_pikepdf()

    def test_reference_to_object_of_other_document(self, factory, page):
        """Objects numbered by another registry are not referenced."""
        other = DocumentFactory(DocumentContext())
        other.make_document_structure()
        foreign = other.make_stream(b"q Q")
        page.add_contents(foreign)
        with pytest.raises(StructureError):
            PdfSerializer(factory.context).to_pikepdf()

    def test_unregistered_link_action(self, factory, page):
        """Only direct objects may be referenced without a number."""
        link = Link((0, 0, 1, 1), PdfStream())
        factory.registry.register(link)
        page.add_annotation(link)
        with pytest.raises(StructureError):
            PdfSerializer(factory.context).to_pikepdf()
