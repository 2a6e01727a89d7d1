"""Unit tests for the PDF converter."""
from unittest.mock import MagicMock, patch

import pytest

from wepub.config import Settings
from wepub.export.errors import ExportError, ExportErrorCode
from wepub.export.pdf import PDFConverter
from wepub.models.export import ExportFormat, ExportJob


@pytest.fixture
def pdf_job(export_contents):
    return ExportJob(title="My PDF", author="Jane", format=ExportFormat.PDF, contents=export_contents)


def fake_create_pdf(err=0, log=None):
    """Stand-in for ``pisa.CreatePDF`` that writes a fixed payload."""
    captured = {}

    def _create(src, dest, encoding):
        captured["html"] = src.read()
        dest.write(b"%PDF-1.4 fake")
        return MagicMock(err=err, log=log or [])

    return _create, captured


def test_flags_default_to_settings():
    converter = PDFConverter(settings=Settings(pdf_include_cover=True))

    assert converter.include_cover is True
    assert converter.include_toc is False


def test_document_without_cover_or_toc(pdf_job):
    document = PDFConverter(settings=Settings()).build_document(pdf_job)

    assert 'class="cover"' not in document
    assert "Contents" not in document
    assert document.count("page-break-before") == len(pdf_job.contents) - 1
    for article in pdf_job.contents:
        assert article.title in document


def test_document_with_cover_and_toc(pdf_job):
    converter = PDFConverter(settings=Settings(), include_cover=True, include_toc=True)

    document = converter.build_document(pdf_job)

    assert 'class="cover"' in document
    assert document.index("Contents") < document.index('<a name="article-0">')
    for index in range(len(pdf_job.contents)):
        assert f'href="#article-{index}"' in document
    assert document.count("page-break-before") == len(pdf_job.contents) + 1


@pytest.mark.asyncio
async def test_convert_renders_with_xhtml2pdf(pdf_job):
    create, captured = fake_create_pdf()

    with patch("wepub.export.pdf.pisa.CreatePDF", side_effect=create):
        data = await PDFConverter(settings=Settings()).convert(pdf_job)

    assert data == b"%PDF-1.4 fake"
    assert "Post 1" in captured["html"]


@pytest.mark.asyncio
async def test_renderer_errors_become_process_errors(pdf_job):
    create, _ = fake_create_pdf(err=1, log=[("error", "bad css")])

    with patch("wepub.export.pdf.pisa.CreatePDF", side_effect=create):
        with pytest.raises(ExportError) as excinfo:
            await PDFConverter(settings=Settings()).convert(pdf_job)

    assert excinfo.value.code == ExportErrorCode.PROCESS_ERROR
    assert "bad css" in excinfo.value.details


@pytest.mark.asyncio
async def test_empty_contents_are_rejected():
    with patch("wepub.export.pdf.pisa.CreatePDF") as create:
        with pytest.raises(ExportError) as excinfo:
            await PDFConverter(settings=Settings()).convert(ExportJob(title="Empty", format=ExportFormat.PDF))

    assert excinfo.value.code == ExportErrorCode.EMPTY_CONTENTS
    create.assert_not_called()
