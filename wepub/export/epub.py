"""EPUB 3 export.

The container is assembled directly with :mod:`zipfile`:

- ``mimetype`` is the first entry and is stored uncompressed
- ``META-INF/container.xml`` points at ``OEBPS/content.opf``
- the package document lists every chapter, the navigation documents and
  the stylesheet, and the spine keeps the articles in order
"""
from __future__ import annotations

import io
import logging
import uuid
import zipfile
from datetime import datetime, timezone
from html import escape
from typing import List, Optional, Tuple

from ..config import Settings, get_settings
from ..models.export import ExportContent, ExportFormat, ExportJob
from .base import BaseConverter
from .errors import ExportError, ExportErrorCode
from .sanitizer import ContentSanitizer
from .styles import EPUB_STYLES
from .templates import TemplateService

logger = logging.getLogger(__name__)

EPUB_MIMETYPE = "application/epub+zip"
OEBPS = "OEBPS"
PACKAGE_PATH = f"{OEBPS}/content.opf"

CONTAINER_XML = f"""<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="{PACKAGE_PATH}" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
"""


def chapter_filename(index: int) -> str:
    return f"chapter_{index}.xhtml"


def _xhtml_page(title: str, body: str, language: str, epub_ns: bool = False) -> str:
    epub_attr = ' xmlns:epub="http://www.idpf.org/2007/ops"' if epub_ns else ""
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE html>
<html xmlns="http://www.w3.org/1999/xhtml"{epub_attr} xml:lang="{language}" lang="{language}">
<head>
  <meta charset="UTF-8"/>
  <title>{escape(title)}</title>
  <link rel="stylesheet" type="text/css" href="style.css"/>
</head>
<body>
{body}
</body>
</html>
"""


class EPUBConverter(BaseConverter):
    """Packages articles as an EPUB 3 book with one chapter per article."""

    format = ExportFormat.EPUB

    def __init__(
        self,
        template_service: Optional[TemplateService] = None,
        sanitizer: Optional[ContentSanitizer] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(template_service)
        self.sanitizer = sanitizer or ContentSanitizer()
        self.settings = settings or get_settings()

    @property
    def language(self) -> str:
        return self.settings.language

    async def _convert(self, job: ExportJob) -> bytes:
        book_id = f"urn:uuid:{uuid.uuid4()}"
        include_title = bool(job.author or job.description)

        chapters: List[Tuple[str, str]] = []
        for index, article in enumerate(job.contents):
            chapters.append((chapter_filename(index), self.generate_chapter(article, index)))

        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.writestr(zipfile.ZipInfo("mimetype"), EPUB_MIMETYPE, compress_type=zipfile.ZIP_STORED)
            self._write(archive, "META-INF/container.xml", CONTAINER_XML)
            self._write(archive, PACKAGE_PATH, self.generate_package(job, book_id, include_title))
            self._write(archive, f"{OEBPS}/nav.xhtml", self.generate_nav(job))
            self._write(archive, f"{OEBPS}/toc.ncx", self.generate_ncx(job, book_id))
            self._write(archive, f"{OEBPS}/style.css", EPUB_STYLES)
            if include_title:
                self._write(archive, f"{OEBPS}/title.xhtml", self.generate_title_page(job))
            for name, text in chapters:
                self._write(archive, f"{OEBPS}/{name}", text)

        logger.info(f"EPUB '{job.title}' built with {len(chapters)} chapters")
        return buffer.getvalue()

    @staticmethod
    def _write(archive: zipfile.ZipFile, name: str, text: str) -> None:
        archive.writestr(name, text.encode("utf-8"), compress_type=zipfile.ZIP_DEFLATED)

    def generate_chapter(self, article: ExportContent, index: int) -> str:
        """Render one article as a standalone XHTML document.

        Raises:
            ExportError: If the article body cannot be converted.
        """
        try:
            body = self.sanitizer.sanitize(article.content)
        except Exception as e:
            raise ExportError(
                ExportErrorCode.CONVERSION_FAILED,
                f"Failed to convert article {index + 1}: {article.title}",
                str(e),
            ) from e

        url = escape(article.url, quote=True)
        content = f"""<article id="article-{index}">
  <h1>{escape(article.title)}</h1>
  {body}
  <div class="source-link">
    <p>Source: <a href="{url}">{escape(article.url)}</a></p>
  </div>
</article>"""
        return _xhtml_page(article.title, content, self.language)

    def generate_title_page(self, job: ExportJob) -> str:
        author = f'<p class="author">{escape(job.author)}</p>' if job.author else ""
        description = f"<p>{escape(job.description)}</p>" if job.description else ""
        body = f"""<div class="title-page">
  <h1>{escape(job.title)}</h1>
  {author}
  {description}
</div>"""
        return _xhtml_page(job.title, body, self.language)

    def generate_nav(self, job: ExportJob) -> str:
        items = "\n".join(
            f'      <li><a href="{chapter_filename(index)}">{escape(article.title)}</a></li>'
            for index, article in enumerate(job.contents)
        )
        body = f"""<nav epub:type="toc" id="toc">
  <h1>{escape(job.title)}</h1>
  <ol>
{items}
  </ol>
</nav>"""
        return _xhtml_page(job.title, body, self.language, epub_ns=True)

    def generate_ncx(self, job: ExportJob, book_id: str) -> str:
        """NCX table of contents for EPUB 2 reading systems."""
        points = "\n".join(
            f"""    <navPoint id="navpoint-{index + 1}" playOrder="{index + 1}">
      <navLabel><text>{escape(article.title)}</text></navLabel>
      <content src="{chapter_filename(index)}"/>
    </navPoint>"""
            for index, article in enumerate(job.contents)
        )
        return f"""<?xml version="1.0" encoding="UTF-8"?>
<ncx xmlns="http://www.daisy.org/z3986/2005/ncx/" version="2005-1">
  <head>
    <meta name="dtb:uid" content="{book_id}"/>
    <meta name="dtb:depth" content="1"/>
    <meta name="dtb:totalPageCount" content="0"/>
    <meta name="dtb:maxPageNumber" content="0"/>
  </head>
  <docTitle><text>{escape(job.title)}</text></docTitle>
  <navMap>
{points}
  </navMap>
</ncx>
"""

    def generate_package(self, job: ExportJob, book_id: str, include_title: bool) -> str:
        modified = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        metadata = [
            f'    <dc:identifier id="book-id">{book_id}</dc:identifier>',
            f"    <dc:title>{escape(job.title)}</dc:title>",
            f"    <dc:language>{escape(self.language)}</dc:language>",
        ]
        if job.author:
            metadata.append(f"    <dc:creator>{escape(job.author)}</dc:creator>")
        if job.description:
            metadata.append(f"    <dc:description>{escape(job.description)}</dc:description>")
        metadata.append(f'    <meta property="dcterms:modified">{modified}</meta>')

        manifest = [
            '    <item id="nav" href="nav.xhtml" media-type="application/xhtml+xml" properties="nav"/>',
            '    <item id="ncx" href="toc.ncx" media-type="application/x-dtbncx+xml"/>',
            '    <item id="style" href="style.css" media-type="text/css"/>',
        ]
        spine = []
        if include_title:
            manifest.append('    <item id="title" href="title.xhtml" media-type="application/xhtml+xml"/>')
            spine.append('    <itemref idref="title"/>')
        spine.append('    <itemref idref="nav"/>')
        for index in range(len(job.contents)):
            manifest.append(
                f'    <item id="chapter-{index}" href="{chapter_filename(index)}" media-type="application/xhtml+xml"/>'
            )
            spine.append(f'    <itemref idref="chapter-{index}"/>')

        newline = "\n"
        return f"""<?xml version="1.0" encoding="UTF-8"?>
<package xmlns="http://www.idpf.org/2007/opf" version="3.0" unique-identifier="book-id">
  <metadata xmlns:dc="http://purl.org/dc/elements/1.1/">
{newline.join(metadata)}
  </metadata>
  <manifest>
{newline.join(manifest)}
  </manifest>
  <spine toc="ncx">
{newline.join(spine)}
  </spine>
</package>
"""
