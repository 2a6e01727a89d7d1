"""PDF export rendered with xhtml2pdf."""
from __future__ import annotations

import asyncio
import io
import logging
from html import escape
from typing import List, Optional

from xhtml2pdf import pisa

from ..config import Settings, get_settings
from ..models.export import ExportContent, ExportFormat, ExportJob
from .base import BaseConverter
from .errors import ExportError, ExportErrorCode
from .sanitizer import ContentSanitizer
from .styles import PDF_STYLES
from .templates import TemplateService, export_time

logger = logging.getLogger(__name__)

PAGE_BREAK = '<div style="page-break-before: always"></div>'


def article_anchor(index: int) -> str:
    return f"article-{index}"


class PDFConverter(BaseConverter):
    """Renders every article into one PDF document, one article per page."""

    format = ExportFormat.PDF

    def __init__(
        self,
        template_service: Optional[TemplateService] = None,
        sanitizer: Optional[ContentSanitizer] = None,
        settings: Optional[Settings] = None,
        include_cover: Optional[bool] = None,
        include_toc: Optional[bool] = None,
    ):
        super().__init__(template_service)
        settings = settings or get_settings()
        self.sanitizer = sanitizer or ContentSanitizer()
        self.include_cover = settings.pdf_include_cover if include_cover is None else include_cover
        self.include_toc = settings.pdf_include_toc if include_toc is None else include_toc

    async def _convert(self, job: ExportJob) -> bytes:
        document = self.build_document(job)
        return await asyncio.to_thread(self.render, document)

    def build_document(self, job: ExportJob) -> str:
        """Assemble the cover, table of contents and articles into one HTML document."""
        pages: List[str] = []
        if self.include_cover:
            pages.append(self._cover(job))
        if self.include_toc:
            pages.append(self._toc(job))
        for index, article in enumerate(job.contents):
            pages.append(self._article(article, index))

        body = f"\n{PAGE_BREAK}\n".join(pages)
        return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <title>{escape(job.title)}</title>
  <style>{PDF_STYLES}</style>
</head>
<body>
{body}
</body>
</html>"""

    def _cover(self, job: ExportJob) -> str:
        author = f'<p class="author">{escape(job.author)}</p>' if job.author else ""
        description = f"<p>{escape(job.description)}</p>" if job.description else ""
        return f"""<div class="cover">
  <h1>{escape(job.title)}</h1>
  {author}
  {description}
  <p>Articles: {len(job.contents)}</p>
  <p>Exported: {export_time()}</p>
</div>"""

    def _toc(self, job: ExportJob) -> str:
        items = "\n".join(
            f'  <li><a href="#{article_anchor(index)}">{escape(article.title)}</a>'
            f'<div class="article-url">{escape(article.url)}</div></li>'
            for index, article in enumerate(job.contents)
        )
        return f"""<h1>Contents</h1>
<ul class="toc">
{items}
</ul>"""

    def _article(self, article: ExportContent, index: int) -> str:
        url = escape(article.url, quote=True)
        return f"""<a name="{article_anchor(index)}"></a>
<h1>{escape(article.title)}</h1>
{self.sanitizer.sanitize(article.content)}
<div class="source-link"><p>Source: <a href="{url}">{escape(article.url)}</a></p></div>"""

    @staticmethod
    def render(document: str) -> bytes:
        """Render an HTML document to PDF bytes.

        Raises:
            ExportError: If xhtml2pdf reports errors.
        """
        pdf_buffer = io.BytesIO()
        pisa_status = pisa.CreatePDF(io.StringIO(document), dest=pdf_buffer, encoding="utf-8")
        if pisa_status.err:
            details = "\n".join(str(entry) for entry in pisa_status.log)
            logger.error(f"PDF rendering failed with {pisa_status.err} errors")
            raise ExportError(ExportErrorCode.PROCESS_ERROR, "PDF generation failed", details or None)
        return pdf_buffer.getvalue()
