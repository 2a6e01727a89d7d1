"""Markdown bundle export."""
from __future__ import annotations

from typing import List

from markdownify import markdownify

from ..models.export import ExportContent, ExportFormat, ExportJob
from .base import BaseConverter, build_zip, current_timestamp
from .templates import article_filename, export_time

INDEX_FILE = "index.md"


def escape_link_text(text: str) -> str:
    return text.replace("[", "\\[").replace("]", "\\]")


def html_to_markdown(html: str) -> str:
    return markdownify(html, heading_style="ATX").strip()


class MarkdownConverter(BaseConverter):
    """ZIP with an ``index.md`` table of contents and one file per article."""

    format = ExportFormat.MARKDOWN

    async def _convert(self, job: ExportJob) -> bytes:
        timestamp = current_timestamp()
        files = {INDEX_FILE: self.generate_index(job, timestamp)}
        for index, article in enumerate(job.contents):
            files[article_filename(timestamp, index, "md")] = self.generate_article(
                article, job.contents, index, timestamp
            )
        return build_zip(files)

    def generate_index(self, job: ExportJob, timestamp: int) -> str:
        lines = [f"# {job.title}", ""]
        if job.author:
            lines.append(f"Author: {job.author}  ")
        lines.append(f"Exported: {export_time()}  ")
        lines.append(f"{len(job.contents)} articles")
        if job.description:
            lines += ["", job.description]
        lines.append("")
        for index, article in enumerate(job.contents):
            lines.append(f"{index + 1}. [{escape_link_text(article.title)}]({article_filename(timestamp, index, 'md')})")
        return "\n".join(lines) + "\n"

    def prepare_navigation(self, contents: List[ExportContent], current_index: int, timestamp: int) -> str:
        links = []
        if current_index > 0:
            prev = contents[current_index - 1]
            links.append(
                f"[Previous: {escape_link_text(prev.title)}]({article_filename(timestamp, current_index - 1, 'md')})"
            )
        links.append(f"[Back to index]({INDEX_FILE})")
        if current_index < len(contents) - 1:
            following = contents[current_index + 1]
            links.append(
                f"[Next: {escape_link_text(following.title)}]({article_filename(timestamp, current_index + 1, 'md')})"
            )
        return " | ".join(links)

    def generate_article(
        self, article: ExportContent, contents: List[ExportContent], index: int, timestamp: int
    ) -> str:
        nav = self.prepare_navigation(contents, index, timestamp)
        body = html_to_markdown(article.content)
        return (
            f"{nav}\n\n"
            f"# {article.title}\n\n"
            f"{body}\n\n"
            "---\n\n"
            f"Source: <{article.url}>\n\n"
            f"{nav}\n"
        )
