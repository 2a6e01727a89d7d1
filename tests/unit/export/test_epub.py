"""Unit tests for the EPUB converter."""
import io
import xml.etree.ElementTree as ET
import zipfile

import pytest

from wepub.config import Settings
from wepub.export.epub import EPUBConverter
from wepub.export.errors import ExportError, ExportErrorCode
from wepub.models.export import ExportContent, ExportFormat, ExportJob

OPF_NS = {
    "opf": "http://www.idpf.org/2007/opf",
    "dc": "http://purl.org/dc/elements/1.1/",
}
CONTAINER_NS = {"c": "urn:oasis:names:tc:opendocument:xmlns:container"}


@pytest.fixture
def epub_job(export_contents):
    return ExportJob(
        title="My Book",
        author="Jane Doe",
        description="A collection",
        format=ExportFormat.EPUB,
        contents=export_contents,
    )


@pytest.fixture
def converter():
    return EPUBConverter(settings=Settings(language="fr"))


async def build(converter, job) -> zipfile.ZipFile:
    return zipfile.ZipFile(io.BytesIO(await converter.convert(job)))


@pytest.mark.asyncio
async def test_mimetype_is_first_and_stored(converter, epub_job):
    archive = await build(converter, epub_job)
    first = archive.infolist()[0]

    assert first.filename == "mimetype"
    assert first.compress_type == zipfile.ZIP_STORED
    assert archive.read("mimetype") == b"application/epub+zip"


@pytest.mark.asyncio
async def test_container_points_to_existing_package(converter, epub_job):
    archive = await build(converter, epub_job)
    container = ET.fromstring(archive.read("META-INF/container.xml"))
    rootfile = container.find("c:rootfiles/c:rootfile", CONTAINER_NS)

    assert rootfile is not None
    assert rootfile.get("full-path") in archive.namelist()


@pytest.mark.asyncio
async def test_manifest_and_spine_cover_every_chapter(converter, epub_job):
    archive = await build(converter, epub_job)
    package = ET.fromstring(archive.read("OEBPS/content.opf"))

    manifest = {
        item.get("id"): item for item in package.findall("opf:manifest/opf:item", OPF_NS)
    }
    for item in manifest.values():
        assert f"OEBPS/{item.get('href')}" in archive.namelist()
    assert manifest["nav"].get("properties") == "nav"
    assert "ncx" in manifest
    assert "style" in manifest

    spine = [ref.get("idref") for ref in package.findall("opf:spine/opf:itemref", OPF_NS)]
    chapters = [idref for idref in spine if idref.startswith("chapter-")]
    assert chapters == [f"chapter-{i}" for i in range(len(epub_job.contents))]
    assert all(idref in manifest for idref in spine)


@pytest.mark.asyncio
async def test_dublin_core_metadata(converter, epub_job):
    archive = await build(converter, epub_job)
    metadata = ET.fromstring(archive.read("OEBPS/content.opf")).find("opf:metadata", OPF_NS)

    assert metadata.find("dc:title", OPF_NS).text == "My Book"
    assert metadata.find("dc:creator", OPF_NS).text == "Jane Doe"
    assert metadata.find("dc:description", OPF_NS).text == "A collection"
    assert metadata.find("dc:language", OPF_NS).text == "fr"
    assert metadata.find("dc:identifier", OPF_NS).text.startswith("urn:uuid:")


@pytest.mark.asyncio
async def test_chapters_are_well_formed_xhtml(converter):
    job = ExportJob(
        title="Tricky",
        format=ExportFormat.EPUB,
        contents=[
            ExportContent(
                url="https://example.com/a?x=1&y=2",
                title="Tom & Jerry",
                content=(
                    "<p>Line<br>break &amp; <img src='a.png'></p>"
                    "<script>alert(1)</script>"
                    "<pre class='language-python'><span>x = 1 &lt; 2</span></pre>"
                ),
            )
        ],
    )
    archive = await build(converter, job)
    chapter = archive.read("OEBPS/chapter_0.xhtml")

    root = ET.fromstring(chapter)
    text = chapter.decode("utf-8")
    assert root.tag == "{http://www.w3.org/1999/xhtml}html"
    assert "alert(1)" not in text
    assert 'class="language-python"' in text
    assert "x = 1 &lt; 2" in text
    assert "Tom &amp; Jerry" in text


@pytest.mark.asyncio
async def test_no_title_page_without_author_or_description(converter, export_contents):
    job = ExportJob(title="Plain", format=ExportFormat.EPUB, contents=export_contents)

    archive = await build(converter, job)

    assert "OEBPS/title.xhtml" not in archive.namelist()


@pytest.mark.asyncio
async def test_failing_chapter_aborts_export(converter, epub_job):
    class BrokenSanitizer:
        def sanitize(self, html):
            raise ValueError("bad markup")

    converter.sanitizer = BrokenSanitizer()

    with pytest.raises(ExportError) as excinfo:
        await converter.convert(epub_job)

    assert excinfo.value.code == ExportErrorCode.CONVERSION_FAILED
    assert "bad markup" in str(excinfo.value)


@pytest.mark.asyncio
async def test_empty_contents_are_rejected(converter):
    with pytest.raises(ExportError) as excinfo:
        await converter.convert(ExportJob(title="Empty", format=ExportFormat.EPUB))

    assert excinfo.value.code == ExportErrorCode.EMPTY_CONTENTS
