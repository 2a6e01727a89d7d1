"""HTML bundle export."""
from __future__ import annotations

from ..models.export import ExportFormat, ExportJob
from .base import BaseConverter, build_zip, current_timestamp
from .templates import article_filename

INDEX_FILE = "index.html"


class HTMLConverter(BaseConverter):
    """ZIP with an ``index.html`` table of contents and one page per article."""

    format = ExportFormat.HTML

    async def _convert(self, job: ExportJob) -> bytes:
        timestamp = current_timestamp()
        files = {INDEX_FILE: self.template_service.generate_toc_html(job, timestamp)}

        for index, article in enumerate(job.contents):
            files[article_filename(timestamp, index)] = self.template_service.generate_article_html(
                article, job.contents, index, timestamp
            )

        return build_zip(files)
