# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Pytest fixtures for the pdfloom test suite."""

from io import BytesIO
from pathlib import Path

import pytest
from font_helpers import (
    TYPE1_AFM,
    make_otf_data,
    make_ttf_data,
    make_type1_pfb,
)
from pikepdf import Pdf

from pdfloom.document import DocumentContext, DocumentOptions
from pdfloom.factory import DocumentFactory
from pdfloom.fonts.loader import FileResourceResolver
from pdfloom.writer import PdfSerializer

# -- Global PDF tracker --

_tracked_pdfs: list[Pdf] = []


@pytest.fixture(autouse=True)
def _auto_close_pdfs():
    """Close all tracked PDF objects after each test."""
    yield
    for pdf in reversed(_tracked_pdfs):
        try:
            pdf.close()
        except Exception:
            pass
    _tracked_pdfs.clear()


def open_pdf(source, **kwargs) -> Pdf:
    """Open a tracked Pdf (auto-closed after test)."""
    pdf = Pdf.open(source, **kwargs)
    _tracked_pdfs.append(pdf)
    return pdf


ICC_PROFILE_SIZE = 132


def make_icc_profile(
    color_space: bytes = b"RGB ", device_class: bytes = b"mntr", version: int = 2
) -> bytes:
    """Build a minimal ICC profile: a header and an empty tag table."""
    profile = bytearray(ICC_PROFILE_SIZE)
    profile[0:4] = ICC_PROFILE_SIZE.to_bytes(4, "big")
    profile[8] = version
    profile[12:16] = device_class
    profile[16:20] = color_space
    profile[20:24] = b"XYZ "
    profile[36:40] = b"acsp"
    return bytes(profile)


def resolve(obj: object) -> object:
    """Safely resolve an indirect reference."""
    try:
        return obj.get_object()
    except (AttributeError, TypeError, ValueError):
        return obj


def write_and_reopen(context: DocumentContext) -> Pdf:
    """Serialize a document to bytes and reopen it (auto-tracked)."""
    buf = BytesIO()
    PdfSerializer(context).save(buf)
    buf.seek(0)
    return open_pdf(buf)


@pytest.fixture(name="write_and_reopen")
def _write_and_reopen_fixture():
    return write_and_reopen


# -- Document fixtures --


@pytest.fixture
def context() -> DocumentContext:
    """Empty document context with default options."""
    return DocumentContext(DocumentOptions())


@pytest.fixture
def factory(context: DocumentContext) -> DocumentFactory:
    """Factory for a document with page tree, resources, catalog and info."""
    factory = DocumentFactory(context)
    factory.make_document_structure()
    return factory


@pytest.fixture
def page(factory: DocumentFactory):
    """A US Letter page of the factory's document."""
    return factory.make_page((0, 0, 612, 792))


# -- Font fixtures --


@pytest.fixture
def font_dir(tmp_path: Path) -> Path:
    """Directory holding the synthesized test fonts.

    Contains ``test.ttf``, ``test.otf``, ``restricted.ttf`` (no
    subsetting allowed), ``test.pfb`` and ``test.afm``.
    """
    (tmp_path / "test.ttf").write_bytes(make_ttf_data())
    (tmp_path / "test.otf").write_bytes(make_otf_data())
    (tmp_path / "restricted.ttf").write_bytes(make_ttf_data(fstype=0x0100))
    (tmp_path / "test.pfb").write_bytes(make_type1_pfb())
    (tmp_path / "test.afm").write_text(TYPE1_AFM, encoding="ascii")
    return tmp_path


@pytest.fixture
def resolver(font_dir: Path) -> FileResourceResolver:
    return FileResourceResolver(font_dir)
